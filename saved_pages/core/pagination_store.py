"""Pagination store: loaded pages, pagination metadata, and the merge rules.

Owns the ordered item list. ``load_initial`` replaces it (seeding the
Default view from the identity cache when possible); ``load_more`` appends
the next page under a cooperative ``is_loading_more`` flag, claimed
synchronously by ``begin_load_more`` before any fetch is awaited.

Each ``load_initial`` starts a new generation. A fetch remembers the
generation it started in and its result is dropped if the generation moved
on before the fetch resolved, so a filter change can never receive pages
fetched for the previous filter.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from ..types import (
    FetchError,
    FilterState,
    LoadGuard,
    LoadingIndicator,
    PageFetcher,
    PaginationMeta,
    PageQuery,
    PageRecord,
    ResponsePage,
)
from .identity_cache import IdentityCache

logger = logging.getLogger(__name__)


class PaginationStore:
    """Holds the dashboard's loaded pages for the active filter."""

    def __init__(
        self,
        fetcher: PageFetcher,
        cache: IdentityCache | None,
        *,
        filter: FilterState | None = None,
        on_change: Callable[[], None] | None = None,
        on_error: Callable[[str], None] | None = None,
        indicator: LoadingIndicator | None = None,
    ) -> None:
        self._fetcher = fetcher
        self._cache = cache
        self.filter = filter or FilterState()
        self._on_change = on_change
        self._on_error = on_error
        self.indicator = indicator

        self.items: list[PageRecord] = []
        self.total = 0
        self.has_next_page = False
        self.next_cursor: str | None = None
        self.is_loading_more = False
        self.from_cache = False
        self.last_error: str | None = None

        self._generation = 0
        self._active_query: PageQuery = self.filter.to_query()

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def loaded_count(self) -> int:
        return len(self.items)

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def active_query(self) -> PageQuery:
        """Filter snapshot the current items were (or are being) loaded for."""
        return self._active_query

    def guard(self) -> LoadGuard:
        return LoadGuard(has_more_pages=self.has_next_page, is_loading=self.is_loading_more)

    def snapshot(self) -> ResponsePage:
        return ResponsePage(
            items=list(self.items),
            pagination=self._pagination(),
        )

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load_initial(self, filter: FilterState | None = None) -> bool:
        """Reset to the first page of ``filter`` (or the current filter).

        Returns True when the state was populated, False on failure or when a
        newer ``load_initial`` superseded this one.
        """
        if filter is not None:
            self.filter = filter
        self.filter.offset = 0

        self._generation += 1
        token = self._generation
        query = self.filter.to_query()
        self._active_query = query
        self._reset()
        self._notify()

        if query.is_default_view and self._cache is not None:
            cached = await self._cache.get()
            if token != self._generation:
                logger.debug("Discarding cache read for superseded generation %d", token)
                return False
            if cached is not None:
                self._apply(cached, append=False)
                self.from_cache = True
                logger.debug("Seeded %d items from cache", len(cached.items))
                self._notify()
                return True

        try:
            response = await self._fetcher(query)
        except FetchError as e:
            if token != self._generation:
                logger.debug("Ignoring failure for superseded generation %d: %s", token, e)
                return False
            logger.warning("Initial load failed: %s", e)
            self._report_error(str(e))
            return False

        if token != self._generation:
            logger.debug("Discarding initial page for superseded generation %d", token)
            return False

        self._apply(response, append=False)
        if query.is_default_view and self._cache is not None:
            await self._cache.set(response)
        self._notify()
        return True

    async def load_more(self) -> bool:
        """Fetch and append the next page. No-op unless more pages exist and
        no load-more is already running. Returns True when items were appended.
        """
        pending = self.begin_load_more()
        if pending is None:
            return False
        return await pending

    def begin_load_more(self) -> Awaitable[bool] | None:
        """Claim the load-more slot now and return the fetch to await.

        The claim (guard check, ``is_loading_more``, generation token) happens
        before this returns, so a caller that schedules the fetch later still
        blocks every other load-more in between. Returns None when the guard
        refuses.
        """
        if not self.has_next_page or self.is_loading_more:
            return None
        self.is_loading_more = True
        if self.indicator is not None:
            self.indicator.show_loading_indicator()
        query = PageQuery(
            search=self._active_query.search,
            tag_path=self._active_query.tag_path,
            limit=self._active_query.limit,
            offset=len(self.items),
            cursor=self.next_cursor,
            sort=self._active_query.sort,
        )
        return self._fetch_more(self._generation, query)

    async def _fetch_more(self, token: int, query: PageQuery) -> bool:
        offset = query.offset
        try:
            try:
                response = await self._fetcher(query)
            except FetchError as e:
                if token == self._generation:
                    logger.warning("Load more failed at offset %d: %s", offset, e)
                    self._report_error(str(e))
                return False

            if token != self._generation:
                logger.debug("Discarding page at offset %d for superseded generation %d", offset, token)
                return False

            if self.filter.search == query.search and tuple(self.filter.tag_path) == query.tag_path:
                self.filter.offset = offset
            self._apply(response, append=True)
            self._notify()
            return True
        finally:
            # A newer generation owns the flag and the indicator now.
            if token == self._generation:
                self.is_loading_more = False
                if self.indicator is not None:
                    self.indicator.hide_loading_indicator()

    async def refresh(self) -> bool:
        """Re-fetch the first Default-view page, bypassing the cache read.

        Replaces the state and rewrites the cache only when the fresh pages
        differ from what is shown. Failures are logged, never reported.
        Returns True when the state changed.
        """
        token = self._generation
        query = self._active_query
        if not query.is_default_view:
            return False
        try:
            fresh = await self._fetcher(PageQuery(limit=query.limit, sort=query.sort))
        except FetchError as e:
            logger.info("Background refresh failed: %s", e)
            return False
        if token != self._generation or self.is_loading_more:
            return False
        if len(self.items) > query.limit:
            # the user already scrolled past the first page
            return False

        shown = [p.to_dict() for p in self.items[: len(fresh.items)]]
        if shown == [p.to_dict() for p in fresh.items] and self.total == fresh.pagination.total:
            return False

        self._apply(fresh, append=False)
        self.from_cache = False
        if self._cache is not None:
            await self._cache.set(fresh)
        logger.debug("Background refresh replaced %d items", len(fresh.items))
        self._notify()
        return True

    # ------------------------------------------------------------------
    # Local edits
    # ------------------------------------------------------------------

    def remove_item(self, page_id: str) -> bool:
        """Drop a page from the loaded list (after a successful delete)."""
        for i, page in enumerate(self.items):
            if page.id == page_id:
                del self.items[i]
                self.total = max(0, self.total - 1)
                self._notify()
                return True
        return False

    def clear(self) -> None:
        """Forget everything and invalidate in-flight fetches (sign-out)."""
        self._generation += 1
        self._reset()
        self._notify()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _reset(self) -> None:
        if self.is_loading_more and self.indicator is not None:
            # the superseded load-more will not hide it
            self.indicator.hide_loading_indicator()
        self.items = []
        self.total = 0
        self.has_next_page = False
        self.next_cursor = None
        self.is_loading_more = False
        self.from_cache = False
        self.last_error = None

    def _apply(self, response: ResponsePage, *, append: bool) -> None:
        if append:
            self.items = self.items + list(response.items)
        else:
            self.items = list(response.items)
        meta = response.pagination
        if append and not meta.total:
            meta_total = self.total
        else:
            meta_total = meta.total
        if meta_total < len(self.items):
            logger.debug("Server total %d below loaded count %d, clamping", meta_total, len(self.items))
            meta_total = len(self.items)
        self.total = meta_total
        self.has_next_page = meta.has_next_page
        self.next_cursor = meta.next_cursor
        self.last_error = None

    def _pagination(self) -> PaginationMeta:
        return PaginationMeta(
            total=self.total,
            has_next_page=self.has_next_page,
            next_cursor=self.next_cursor,
        )

    def _report_error(self, message: str) -> None:
        self.last_error = message
        if self._on_error is not None:
            self._on_error(message)

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change()
