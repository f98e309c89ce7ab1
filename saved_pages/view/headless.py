"""Headless dashboard view: records frames, optionally prints them."""

from __future__ import annotations

import sys
from typing import TextIO

from ..types import DashboardState
from .viewport import ScrollViewport


class HeadlessView:
    """DashboardView without a UI toolkit.

    Each render lays the items out on ``viewport`` (one row per item), so
    the scroll sentinel moves the way it would in a real list. Frames,
    errors, and indicator toggles are kept for inspection; with ``stream``
    set, a one-line summary of each is printed as well.
    """

    def __init__(
        self,
        viewport: ScrollViewport | None = None,
        stream: TextIO | None = None,
    ) -> None:
        self.viewport = viewport or ScrollViewport()
        self._stream = stream
        self.frames: list[DashboardState] = []
        self.errors: list[str] = []
        self.indicator_events: list[str] = []
        self.loading_visible = False

    @property
    def last(self) -> DashboardState | None:
        return self.frames[-1] if self.frames else None

    def render(self, state: DashboardState) -> None:
        self.frames.append(state)
        self.viewport.set_row_count(len(state.items))
        self._print(describe(state))

    def show_error(self, message: str) -> None:
        self.errors.append(message)
        self._print(f"error: {message}")

    def show_loading_indicator(self) -> None:
        self.loading_visible = True
        self.indicator_events.append("show")
        self._print("loading...")

    def hide_loading_indicator(self) -> None:
        self.loading_visible = False
        self.indicator_events.append("hide")

    def _print(self, line: str) -> None:
        if self._stream is not None:
            print(line, file=self._stream)


def describe(state: DashboardState) -> str:
    """One-line summary of a frame."""
    crumbs = " > ".join(f"{s.type}:{s.label}" for s in state.breadcrumbs) or "all"
    parts = [
        f"[{state.nav_state.value}] {crumbs}",
        f"{len(state.items)}/{state.total}",
    ]
    if state.search:
        parts.append(f"search={state.search!r}")
    if state.has_next_page:
        parts.append("more")
    if state.from_cache:
        parts.append("cached")
    return "  ".join(parts)


def print_pages(state: DashboardState, stream: TextIO = sys.stdout) -> None:
    """Print the loaded pages as a table."""
    print(f"{'ID':<12} {'Saved':<20} {'Title'}", file=stream)
    print("-" * 72, file=stream)
    for page in state.items:
        pin = "*" if page.pinned else " "
        title = page.title or page.url
        print(f"{page.id:<12} {page.saved_at[:19]:<20}{pin}{title[:40]}", file=stream)
    if state.next_tags:
        print(file=stream)
        print("Tags: " + ", ".join(f"{t.type}:{t.label}" for t in state.next_tags), file=stream)
