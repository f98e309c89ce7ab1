"""LocalPageSource: serve a fixed page list with the remote API's semantics.

Used for standalone/demo mode and as a realistic fetcher in tests.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from ..core.filters import filter_pages
from ..types import FetchError, PageQuery, PageRecord, PaginationMeta, ResponsePage

logger = logging.getLogger(__name__)


class LocalPageSource:
    """In-process stand-in for the remote API.

    Filters by search text and the AND of the tag path, sorts by
    ``saved_at``, then slices ``offset:offset+limit``. A ``cursor``, when
    given, is read as a stringified offset.
    """

    def __init__(self, pages: list[PageRecord]) -> None:
        self.pages = list(pages)
        self.calls: list[PageQuery] = []

    @classmethod
    def from_json(cls, path: str | Path) -> LocalPageSource:
        data = json.loads(Path(path).read_text())
        raw_pages = data.get("pages", []) if isinstance(data, dict) else data
        return cls([PageRecord.from_dict(p) for p in raw_pages])

    async def __call__(self, query: PageQuery) -> ResponsePage:
        self.calls.append(query)
        matched = filter_pages(self.pages, query.search, query.tag_path)
        if query.sort == "oldest":
            matched.sort(key=lambda p: p.saved_at)
        elif query.sort == "newest":
            matched.sort(key=lambda p: p.saved_at, reverse=True)

        if query.cursor is not None:
            try:
                start = int(query.cursor)
            except ValueError as e:
                raise FetchError(f"Invalid cursor: {query.cursor}", status_code=400) from e
        else:
            start = query.offset
        batch = matched[start:start + query.limit]
        end = start + len(batch)
        has_next = end < len(matched)
        logger.debug("Local source served %d/%d from offset %d", len(batch), len(matched), start)
        return ResponsePage(
            items=batch,
            pagination=PaginationMeta(
                total=len(matched),
                has_next_page=has_next,
                next_cursor=None,
            ),
        )

    async def delete_page(self, page_id: str) -> dict:
        before = len(self.pages)
        self.pages = [p for p in self.pages if p.id != page_id]
        if len(self.pages) == before:
            raise FetchError("Page not found", status_code=404)
        return {"success": True}

    async def pin_page(self, page_id: str, pinned: bool) -> dict:
        for page in self.pages:
            if page.id == page_id:
                page.pinned = pinned
                return {"success": True}
        raise FetchError("Page not found", status_code=404)
