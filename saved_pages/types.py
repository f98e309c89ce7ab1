"""All dataclasses, Protocols, and type aliases for saved-pages."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Protocol, runtime_checkable


# ---------------------------------------------------------------------------
# Pages
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Classification:
    """One AI-derived label on a page."""
    type: str  # "general", "domain", "topic"
    label: str


_PAGE_FIELDS = (
    "id", "url", "title", "description", "user_notes", "manual_tags",
    "classifications", "primary_classification_label", "ai_summary_brief",
    "ai_summary_extended", "domain", "author", "saved_at", "pinned",
)


@dataclass
class PageRecord:
    """A saved page. The engine only relies on ``id`` and ``classifications``."""
    id: str
    url: str = ""
    title: str = ""
    description: str = ""
    user_notes: str = ""
    manual_tags: list[str] = field(default_factory=list)
    classifications: list[Classification] = field(default_factory=list)
    primary_classification_label: str = ""
    ai_summary_brief: str = ""
    ai_summary_extended: str = ""
    domain: str = ""
    author: str = ""
    saved_at: str = ""  # ISO timestamp as sent by the API
    pinned: bool = False
    extra: dict = field(default_factory=dict)  # unknown wire fields, kept verbatim

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> PageRecord:
        return cls(
            id=str(raw["id"]),
            url=raw.get("url") or "",
            title=raw.get("title") or "",
            description=raw.get("description") or "",
            user_notes=raw.get("user_notes") or "",
            manual_tags=list(raw.get("manual_tags") or []),
            classifications=[
                Classification(type=c.get("type", ""), label=c.get("label", ""))
                for c in raw.get("classifications") or []
            ],
            primary_classification_label=raw.get("primary_classification_label") or "",
            ai_summary_brief=raw.get("ai_summary_brief") or "",
            ai_summary_extended=raw.get("ai_summary_extended") or "",
            domain=raw.get("domain") or "",
            author=raw.get("author") or "",
            saved_at=raw.get("saved_at") or "",
            pinned=bool(raw.get("pinned", False)),
            extra={k: v for k, v in raw.items() if k not in _PAGE_FIELDS},
        )

    def to_dict(self) -> dict:
        d = dict(self.extra)
        d.update({
            "id": self.id,
            "url": self.url,
            "title": self.title,
            "description": self.description,
            "user_notes": self.user_notes,
            "manual_tags": list(self.manual_tags),
            "classifications": [{"type": c.type, "label": c.label} for c in self.classifications],
            "primary_classification_label": self.primary_classification_label,
            "ai_summary_brief": self.ai_summary_brief,
            "ai_summary_extended": self.ai_summary_extended,
            "domain": self.domain,
            "author": self.author,
            "saved_at": self.saved_at,
            "pinned": self.pinned,
        })
        return d


@dataclass
class PaginationMeta:
    total: int = 0
    has_next_page: bool = False
    next_cursor: str | None = None

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "hasNextPage": self.has_next_page,
            "nextCursor": self.next_cursor,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> PaginationMeta:
        has_next = raw.get("hasNextPage", raw.get("has_more", False))
        return cls(
            total=max(0, int(raw.get("total") or 0)),
            has_next_page=bool(has_next),
            next_cursor=raw.get("nextCursor"),
        )


@dataclass
class ResponsePage:
    """One fetched page of results plus pagination metadata (a snapshot)."""
    items: list[PageRecord] = field(default_factory=list)
    pagination: PaginationMeta = field(default_factory=PaginationMeta)

    def to_dict(self) -> dict:
        """Wire/persisted form: ``{"pages": [...], "pagination": {...}}``."""
        return {
            "pages": [p.to_dict() for p in self.items],
            "pagination": self.pagination.to_dict(),
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> ResponsePage:
        return cls(
            items=[PageRecord.from_dict(p) for p in raw.get("pages") or []],
            pagination=PaginationMeta.from_dict(raw.get("pagination") or {}),
        )


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------

@dataclass
class CacheEntry:
    owner_id: str
    snapshot: ResponsePage
    stored_at_ms: int

    def to_dict(self) -> dict:
        return {
            "ownerId": self.owner_id,
            "response": self.snapshot.to_dict(),
            "timestamp": self.stored_at_ms,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> CacheEntry:
        return cls(
            owner_id=raw.get("ownerId") or "",
            snapshot=ResponsePage.from_dict(raw["response"]),
            stored_at_ms=int(raw["timestamp"]),
        )


class CacheMiss(str, Enum):
    """Why ``IdentityCache.get()`` returned ``None``."""
    NO_IDENTITY = "no_identity"
    STORE_UNAVAILABLE = "store_unavailable"
    NOT_FOUND = "not_found"
    IDENTITY_MISMATCH = "identity_mismatch"  # stale entry evicted
    EXPIRED = "expired"                      # entry kept
    CORRUPT = "corrupt"                      # unreadable entry, treated as absent


# ---------------------------------------------------------------------------
# Filters & navigation
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TagStep:
    """One level of a hierarchical classification."""
    type: str
    label: str


class NavState(str, Enum):
    DEFAULT = "default"
    DISCOVERY = "discovery"


@dataclass
class FilterState:
    """Mutable per-session filter. Empty ``search`` and ``tag_path`` is the Default view."""
    search: str = ""
    tag_path: list[TagStep] = field(default_factory=list)
    limit: int = 50
    offset: int = 0
    sort: str = "newest"

    @property
    def is_default_view(self) -> bool:
        return not self.search and not self.tag_path

    def to_query(self) -> PageQuery:
        return PageQuery(
            search=self.search,
            tag_path=tuple(self.tag_path),
            limit=self.limit,
            offset=self.offset,
            sort=self.sort,
        )


@dataclass(frozen=True)
class PageQuery:
    """Immutable request sent to a fetcher. ``cursor`` wins over ``offset`` when set."""
    search: str = ""
    tag_path: tuple[TagStep, ...] = ()
    limit: int = 50
    offset: int = 0
    cursor: str | None = None
    sort: str = "newest"

    @property
    def is_default_view(self) -> bool:
        return not self.search and not self.tag_path


@dataclass(frozen=True)
class LoadGuard:
    """Answer pulled by the scroll trigger before it asks for more pages."""
    has_more_pages: bool
    is_loading: bool


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class FetchError(Exception):
    """The remote fetch failed (network, HTTP status, or malformed body)."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class StorageUnavailable(Exception):
    """A key-value store operation failed or the store cannot be reached."""


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------

@runtime_checkable
class KeyValueStore(Protocol):
    async def get(self, key: str) -> Any | None: ...
    async def set(self, key: str, value: Any) -> None: ...
    async def remove(self, key: str) -> None: ...
    async def clear(self) -> None: ...


PageFetcher = Callable[[PageQuery], Awaitable[ResponsePage]]
IdentityProvider = Callable[[], str | None]
StoreProvider = Callable[[], KeyValueStore | None]
Clock = Callable[[], int]  # epoch milliseconds


@runtime_checkable
class PageMutations(Protocol):
    """Remote edits to saved pages. Both raise ``FetchError`` on failure."""
    async def delete_page(self, page_id: str) -> Any: ...
    async def pin_page(self, page_id: str, pinned: bool) -> Any: ...


@runtime_checkable
class LoadingIndicator(Protocol):
    def show_loading_indicator(self) -> None: ...
    def hide_loading_indicator(self) -> None: ...


@runtime_checkable
class DashboardView(Protocol):
    """Render layer. Implementations live outside the engine."""
    def render(self, state: DashboardState) -> None: ...
    def show_error(self, message: str) -> None: ...
    def show_loading_indicator(self) -> None: ...
    def hide_loading_indicator(self) -> None: ...


@dataclass
class DashboardState:
    """What the view needs to draw one frame."""
    items: list[PageRecord] = field(default_factory=list)
    total: int = 0
    has_next_page: bool = False
    nav_state: NavState = NavState.DEFAULT
    breadcrumbs: list[TagStep] = field(default_factory=list)
    search: str = ""
    show_clear_search: bool = False
    from_cache: bool = False
    next_tags: list[TagStep] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@dataclass
class ApiConfig:
    base_url: str = "http://localhost:8080"
    timeout: float = 30.0
    page_size: int = 50
    sort: str = "newest"


@dataclass
class CacheConfig:
    key_prefix: str = "savedPages_cache"
    ttl_ms: int = 300_000
    backend: str = "sqlite"  # "sqlite", "filesystem", "memory"
    sqlite_path: str = ".saved-pages/cache.db"
    root: str = ".saved-pages/cache"


@dataclass
class SearchConfig:
    debounce_ms: int = 300


@dataclass
class ScrollConfig:
    root_margin_px: int = 200


@dataclass
class RefreshConfig:
    enabled: bool = True
    delay_ms: int = 500


@dataclass
class SavedPagesConfig:
    version: str = "0.1"
    api: ApiConfig = field(default_factory=ApiConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    scroll: ScrollConfig = field(default_factory=ScrollConfig)
    refresh: RefreshConfig = field(default_factory=RefreshConfig)
    log_level: str = "WARNING"
