"""saved-pages: identity-scoped caching, infinite scroll, and tag drill-down for a saved-pages dashboard."""

from .config import load_config
from .dashboard import SavedPagesDashboard
from .types import (
    CacheMiss,
    DashboardState,
    FetchError,
    FilterState,
    NavState,
    PageQuery,
    PageRecord,
    ResponsePage,
    SavedPagesConfig,
    StorageUnavailable,
    TagStep,
)

__version__ = "0.1.0"

__all__ = [
    "SavedPagesDashboard",
    "load_config",
    "CacheMiss",
    "DashboardState",
    "FetchError",
    "FilterState",
    "NavState",
    "PageQuery",
    "PageRecord",
    "ResponsePage",
    "SavedPagesConfig",
    "StorageUnavailable",
    "TagStep",
]
