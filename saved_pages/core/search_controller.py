"""SearchController: debounced free-text search."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from ..types import FilterState
from .pagination_store import PaginationStore

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 0.3


class SearchController:
    """Apply search input to the filter now, reload after a quiet period.

    ``on_search_change`` must run inside the event loop. Each call cancels
    the pending timer and schedules a new one, so only the last value of a
    burst reaches ``load_initial``. A reload already running is not
    cancelled; the store's generation check drops its result if a newer
    reload starts.
    """

    def __init__(
        self,
        store: PaginationStore,
        filter: FilterState,
        *,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        on_input: Callable[[str], None] | None = None,
    ) -> None:
        self._store = store
        self._filter = filter
        self.debounce_seconds = debounce_seconds
        self._on_input = on_input
        self._timer: asyncio.TimerHandle | None = None
        self._reload: asyncio.Task | None = None

    @property
    def search(self) -> str:
        return self._filter.search

    @property
    def show_clear_button(self) -> bool:
        return bool(self._filter.search)

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def on_search_change(self, value: str) -> None:
        """Input hook: update the filter synchronously, debounce the reload."""
        self._filter.search = value
        self._filter.offset = 0
        if self._on_input is not None:
            self._on_input(value)
        self._cancel_timer()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.debounce_seconds, self._fire)

    async def clear_search(self) -> None:
        """Clear the query and reload immediately, skipping the debounce."""
        self._cancel_timer()
        self._filter.search = ""
        self._filter.offset = 0
        if self._on_input is not None:
            self._on_input("")
        await self._store.load_initial(self._filter)

    async def wait_for_reload(self) -> None:
        """Wait out a pending timer, then the reload it started."""
        while self._timer is not None:
            await asyncio.sleep(self.debounce_seconds / 4 or 0.001)
        if self._reload is not None:
            await asyncio.gather(self._reload, return_exceptions=True)

    def cancel(self) -> None:
        """Drop any pending reload (view teardown)."""
        self._cancel_timer()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _fire(self) -> None:
        self._timer = None
        logger.debug("Search settled on %r", self._filter.search)
        self._reload = asyncio.ensure_future(self._store.load_initial(self._filter))
