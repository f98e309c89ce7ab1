"""Client-side page filters and tag hierarchy extraction.

Used by the local page source and by the tag bar, which offers the next
level of tags under the current breadcrumb.
"""

from __future__ import annotations

from ..types import PageRecord, TagStep

HIERARCHY = ("general", "domain", "topic")

_SEARCH_FIELDS = (
    "title", "url", "description", "user_notes", "ai_summary_brief",
    "ai_summary_extended", "primary_classification_label", "domain", "author",
)


def matches_search(page: PageRecord, query: str) -> bool:
    """Case-insensitive substring match over content, AI, and metadata fields."""
    if not query or not query.strip():
        return True
    q = query.lower()
    for name in _SEARCH_FIELDS:
        value = getattr(page, name)
        if value and q in value.lower():
            return True
    return any(q in tag.lower() for tag in page.manual_tags)


def has_step(page: PageRecord, step: TagStep) -> bool:
    return any(c.type == step.type and c.label == step.label for c in page.classifications)


def matches_tag_path(page: PageRecord, path: tuple[TagStep, ...] | list[TagStep]) -> bool:
    """AND over every step: the page must carry all ancestor tags, not just the leaf."""
    return all(has_step(page, step) for step in path)


def filter_pages(
    pages: list[PageRecord],
    search: str = "",
    tag_path: tuple[TagStep, ...] | list[TagStep] = (),
) -> list[PageRecord]:
    return [p for p in pages if matches_search(p, search) and matches_tag_path(p, tag_path)]


def _child_type(parent_type: str) -> str | None:
    try:
        idx = HIERARCHY.index(parent_type)
    except ValueError:
        return None
    return HIERARCHY[idx + 1] if idx + 1 < len(HIERARCHY) else None


def extract_general_tags(pages: list[PageRecord]) -> list[TagStep]:
    """Unique top-level (general) tags, sorted by label."""
    labels = {
        c.label
        for page in pages
        for c in page.classifications
        if c.type == "general" and c.label
    }
    return [TagStep(type="general", label=label) for label in sorted(labels)]


def extract_child_tags(parent: TagStep, pages: list[PageRecord]) -> list[TagStep]:
    """Tags one level below ``parent`` on pages whose first tag of the parent's type matches it."""
    child_type = _child_type(parent.type)
    if child_type is None:
        return []
    labels: set[str] = set()
    for page in pages:
        first = next((c for c in page.classifications if c.type == parent.type), None)
        if first is None or first.label != parent.label:
            continue
        labels.update(c.label for c in page.classifications if c.type == child_type and c.label)
    return [TagStep(type=child_type, label=label) for label in sorted(labels)]


def next_level_tags(pages: list[PageRecord], path: tuple[TagStep, ...] | list[TagStep]) -> list[TagStep]:
    """Tags to offer after the current path: general tags on the Default view,
    otherwise the children of the leaf step."""
    if not path:
        return extract_general_tags(pages)
    return extract_child_tags(path[-1], pages)
