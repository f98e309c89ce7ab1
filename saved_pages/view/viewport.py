"""ScrollViewport: geometric model of a scrolling list, no UI toolkit needed."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from ..core.scroll_trigger import Sentinel


@dataclass
class _Observation:
    sentinel: Sentinel
    callback: Callable[[bool], None]
    root_margin: int
    last: bool | None = None


class ScrollViewport:
    """A column of fixed-height rows with a sentinel after the last row.

    The sentinel sits at ``content_height``. It intersects when it lies
    within ``viewport_height + root_margin`` of ``scroll_top``. Observers are
    notified on observe and whenever the intersection state flips, like a
    browser intersection observer with threshold 0.
    """

    def __init__(self, viewport_height: int = 800, row_height: int = 100) -> None:
        self.viewport_height = viewport_height
        self.row_height = row_height
        self.row_count = 0
        self.scroll_top = 0
        self.children: list[str] = []
        self._observations: list[_Observation] = []

    @property
    def content_height(self) -> int:
        return self.row_count * self.row_height

    @property
    def max_scroll_top(self) -> int:
        return max(0, self.content_height - self.viewport_height)

    def intersects(self, root_margin: int) -> bool:
        return self.content_height <= self.scroll_top + self.viewport_height + root_margin

    # -- Viewport protocol --

    def append_sentinel(self, sentinel: Sentinel) -> None:
        if sentinel.id not in self.children:
            self.children.append(sentinel.id)

    def remove_sentinel(self, sentinel: Sentinel) -> None:
        if sentinel.id in self.children:
            self.children.remove(sentinel.id)

    def observe(
        self,
        sentinel: Sentinel,
        callback: Callable[[bool], None],
        *,
        root_margin: int,
    ) -> Callable[[], None]:
        obs = _Observation(sentinel=sentinel, callback=callback, root_margin=root_margin)
        self._observations.append(obs)
        self._deliver(obs, force=True)

        def disconnect() -> None:
            if obs in self._observations:
                self._observations.remove(obs)

        return disconnect

    # -- layout / scrolling --

    def set_row_count(self, count: int) -> None:
        self.row_count = max(0, count)
        self.scroll_top = min(self.scroll_top, self.max_scroll_top)
        self._update()

    def scroll_to(self, y: int) -> None:
        self.scroll_top = max(0, min(y, self.max_scroll_top))
        self._update()

    def scroll_to_bottom(self) -> None:
        self.scroll_to(self.max_scroll_top)

    def emit(self) -> None:
        """Re-deliver the current state to every observer."""
        for obs in list(self._observations):
            self._deliver(obs, force=True)

    @property
    def observer_count(self) -> int:
        return len(self._observations)

    def _update(self) -> None:
        for obs in list(self._observations):
            self._deliver(obs, force=False)

    def _deliver(self, obs: _Observation, *, force: bool) -> None:
        state = self.intersects(obs.root_margin)
        if force or state != obs.last:
            obs.last = state
            obs.callback(state)
