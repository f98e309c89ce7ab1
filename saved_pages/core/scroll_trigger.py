"""ScrollTrigger: infinite-scroll sentinel and guarded load-more dispatch."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Protocol

from ..types import LoadGuard, LoadingIndicator

logger = logging.getLogger(__name__)

SENTINEL_ID = "scroll-sentinel"
DEFAULT_ROOT_MARGIN_PX = 200


@dataclass
class Sentinel:
    """Marker placed after the last rendered item."""
    id: str = SENTINEL_ID
    height: int = 1
    attached: bool = False


class Viewport(Protocol):
    """Scroll container the sentinel lives in."""

    def append_sentinel(self, sentinel: Sentinel) -> None: ...

    def remove_sentinel(self, sentinel: Sentinel) -> None: ...

    def observe(
        self,
        sentinel: Sentinel,
        callback: Callable[[bool], None],
        *,
        root_margin: int,
    ) -> Callable[[], None]:
        """Start delivering ``callback(is_intersecting)``; returns a disconnect function."""
        ...


class ScrollTrigger:
    """Watch a sentinel near the bottom of the list and ask for more pages.

    Notifications carry no decision. On each one the trigger pulls
    ``should_load()`` and only calls ``on_load_more`` when there are more
    pages and nothing is loading. The guard is the only gate: ``on_load_more``
    must claim its slot before returning (``PaginationStore.begin_load_more``
    returns the fetch to schedule, or None when refused), so a burst of
    notifications starts at most one load while a filter change frees the
    slot immediately for the new context.
    """

    def __init__(
        self,
        viewport: Viewport,
        *,
        root_margin: int = DEFAULT_ROOT_MARGIN_PX,
        indicator: LoadingIndicator | None = None,
    ) -> None:
        self._viewport = viewport
        self.root_margin = root_margin
        self._indicator = indicator
        self.sentinel: Sentinel | None = None
        self._disconnect: Callable[[], None] | None = None
        self._on_load_more: Callable[[], Awaitable[object] | None] | None = None
        self._should_load: Callable[[], LoadGuard] | None = None
        self._tasks: set[asyncio.Task] = set()
        self.indicator_visible = False

    @property
    def is_active(self) -> bool:
        return self._disconnect is not None

    def setup(
        self,
        on_load_more: Callable[[], Awaitable[object] | None],
        should_load: Callable[[], LoadGuard],
    ) -> None:
        """Append the sentinel and start observing it. Re-arms if already set up."""
        self.cleanup()
        self._on_load_more = on_load_more
        self._should_load = should_load
        self.sentinel = Sentinel()
        self._viewport.append_sentinel(self.sentinel)
        self.sentinel.attached = True
        self._disconnect = self._viewport.observe(
            self.sentinel, self.on_scroll_near_bottom, root_margin=self.root_margin,
        )
        logger.debug("Infinite scroll armed (margin=%dpx)", self.root_margin)

    def on_scroll_near_bottom(self, is_intersecting: bool = True) -> None:
        """Intersection notification hook."""
        if not is_intersecting or self._on_load_more is None or self._should_load is None:
            return
        guard = self._should_load()
        if not guard.has_more_pages or guard.is_loading:
            logger.debug(
                "Scroll notification ignored (more=%s loading=%s)",
                guard.has_more_pages, guard.is_loading,
            )
            return
        pending = self._on_load_more()
        if pending is None:
            return
        task = asyncio.ensure_future(pending)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def wait_idle(self) -> None:
        """Wait for every load this trigger started, including superseded ones."""
        while self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    def show_loading_indicator(self) -> None:
        if self.indicator_visible:
            return
        self.indicator_visible = True
        if self._indicator is not None:
            self._indicator.show_loading_indicator()

    def hide_loading_indicator(self) -> None:
        if not self.indicator_visible:
            return
        self.indicator_visible = False
        if self._indicator is not None:
            self._indicator.hide_loading_indicator()

    def cleanup(self) -> None:
        """Disconnect and remove the sentinel. Safe to call any number of times."""
        if self._disconnect is not None:
            self._disconnect()
            self._disconnect = None
        if self.sentinel is not None and self.sentinel.attached:
            self._viewport.remove_sentinel(self.sentinel)
            self.sentinel.attached = False
        self.sentinel = None
        self._on_load_more = None
        self._should_load = None
        self.hide_loading_indicator()
