"""SavedPagesDashboard: one dashboard session wiring the engine together.

The UI binding layer calls the ``on_*`` hooks with user input and receives
``DashboardState`` frames through ``view.render``. Nothing here touches a
real UI toolkit.
"""

from __future__ import annotations

import asyncio
import logging
from .core.filters import next_level_tags
from .core.identity_cache import IdentityCache
from .core.pagination_store import PaginationStore
from .core.scroll_trigger import ScrollTrigger, Viewport
from .core.search_controller import SearchController
from .core.tag_navigator import TagNavigator
from .types import (
    DashboardState,
    DashboardView,
    FetchError,
    FilterState,
    IdentityProvider,
    NavState,
    PageFetcher,
    PageMutations,
    SavedPagesConfig,
    StoreProvider,
)

logger = logging.getLogger(__name__)


class SavedPagesDashboard:
    """Compose cache, pagination, scroll, tag navigation, and search."""

    def __init__(
        self,
        *,
        identity: IdentityProvider,
        store: StoreProvider,
        fetcher: PageFetcher,
        view: DashboardView,
        viewport: Viewport,
        config: SavedPagesConfig | None = None,
        clock=None,
        mutations: PageMutations | None = None,
    ) -> None:
        self.config = config or SavedPagesConfig()
        self._identity = identity
        if mutations is None and isinstance(fetcher, PageMutations):
            mutations = fetcher
        self._mutations = mutations
        self.view = view

        self.filter = FilterState(limit=self.config.api.page_size, sort=self.config.api.sort)
        self.cache = IdentityCache(
            identity,
            store,
            key_prefix=self.config.cache.key_prefix,
            ttl_ms=self.config.cache.ttl_ms,
            clock=clock,
        )
        self.scroll = ScrollTrigger(
            viewport,
            root_margin=self.config.scroll.root_margin_px,
            indicator=view,
        )
        self.pages = PaginationStore(
            fetcher,
            self.cache,
            filter=self.filter,
            on_change=self.render,
            on_error=view.show_error,
            indicator=self.scroll,
        )
        self.navigator = TagNavigator(
            self.pages, self.filter, on_state_change=self._on_nav_state_change,
        )
        self.search = SearchController(
            self.pages,
            self.filter,
            debounce_seconds=self.config.search.debounce_ms / 1000,
            on_input=lambda _value: self.render(),
        )
        self._refresh_task: asyncio.Task | None = None
        self.owner_id: str | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """First load of a session: prune the legacy key, load, arm scrolling."""
        self.owner_id = self._identity()
        await self.cache.prune_legacy_key()
        await self.pages.load_initial(self.filter)
        self._arm_scroll()
        if self.pages.from_cache and self.config.refresh.enabled:
            self._refresh_task = asyncio.ensure_future(self._refresh_later())

    async def sign_out(self) -> None:
        """Drop every cached identity and return to an empty Default view."""
        logger.info("Signing out %s", self.owner_id)
        self._teardown()
        await self.cache.clear_all()
        self.owner_id = None

    async def switch_identity(self) -> None:
        """Called after the identity provider reports a different user.

        The store is not wiped here: the cache notices the new identity on
        its next read and evicts the previous owner's entry.
        """
        new_owner = self._identity()
        if new_owner == self.owner_id:
            return
        logger.info("Identity changed %s -> %s", self.owner_id, new_owner)
        self._teardown()
        await self.start()

    async def wait_idle(self) -> None:
        """Wait for background work started by hooks (tests, CLI)."""
        await self.search.wait_for_reload()
        await self.scroll.wait_idle()
        if self._refresh_task is not None:
            await asyncio.gather(self._refresh_task, return_exceptions=True)

    def _teardown(self) -> None:
        self.scroll.cleanup()
        self.navigator.forget()
        self.search.cancel()
        if self._refresh_task is not None and not self._refresh_task.done():
            self._refresh_task.cancel()
        self._refresh_task = None
        self.filter.search = ""
        self.pages.clear()

    async def _refresh_later(self) -> None:
        await asyncio.sleep(self.config.refresh.delay_ms / 1000)
        if self._identity() is None:
            return
        await self.pages.refresh()

    # ------------------------------------------------------------------
    # UI hooks
    # ------------------------------------------------------------------

    async def on_tag_click(self, type: str, label: str) -> None:
        await self.navigator.handle_tag_click(type, label)

    async def on_breadcrumb(self, index: int) -> None:
        await self.navigator.navigate_to_breadcrumb(index)

    async def on_reset(self) -> None:
        if self.filter.search:
            self.search.cancel()
            self.filter.search = ""
        await self.navigator.reset_to_default_view()

    def on_search_change(self, value: str) -> None:
        self.search.on_search_change(value)

    async def on_clear_search(self) -> None:
        await self.search.clear_search()

    def on_scroll_near_bottom(self, is_intersecting: bool = True) -> None:
        self.scroll.on_scroll_near_bottom(is_intersecting)

    async def delete_page(self, page_id: str) -> bool:
        """Delete remotely, drop locally, invalidate this identity's cache."""
        if not self._can_mutate("Delete", page_id):
            return False
        try:
            await self._mutations.delete_page(page_id)
        except FetchError as e:
            logger.warning("Delete of %s failed: %s", page_id, e)
            self.view.show_error(str(e))
            return False
        self.pages.remove_item(page_id)
        await self.cache.invalidate()
        return True

    async def pin_page(self, page_id: str, pinned: bool = True) -> bool:
        if not self._can_mutate("Pin", page_id):
            return False
        try:
            await self._mutations.pin_page(page_id, pinned)
        except FetchError as e:
            logger.warning("Pin of %s failed: %s", page_id, e)
            self.view.show_error(str(e))
            return False
        for page in self.pages.items:
            if page.id == page_id:
                page.pinned = pinned
        await self.cache.invalidate()
        self.render()
        return True

    def _can_mutate(self, action: str, page_id: str) -> bool:
        if self._mutations is not None:
            return True
        logger.warning("%s of %s skipped: no page mutations configured", action, page_id)
        self.view.show_error("Page changes are not supported by this source")
        return False

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def state(self) -> DashboardState:
        path = self.navigator.path
        return DashboardState(
            items=list(self.pages.items),
            total=self.pages.total,
            has_next_page=self.pages.has_next_page,
            nav_state=self.navigator.state,
            breadcrumbs=list(path),
            search=self.filter.search,
            show_clear_search=self.search.show_clear_button,
            from_cache=self.pages.from_cache,
            next_tags=next_level_tags(self.pages.items, path),
        )

    def render(self) -> None:
        self.view.render(self.state())

    def _arm_scroll(self) -> None:
        self.scroll.setup(self.pages.begin_load_more, self.pages.guard)

    def _on_nav_state_change(self, old: NavState, new: NavState) -> None:
        # Default <-> Discovery swaps the whole list; start with a fresh sentinel.
        if self.scroll.is_active:
            self._arm_scroll()
