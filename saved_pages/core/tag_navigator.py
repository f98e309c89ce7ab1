"""TagNavigator: breadcrumb state machine over a hierarchical tag path."""

from __future__ import annotations

import logging
from typing import Callable

from ..types import FilterState, NavState, TagStep
from .pagination_store import PaginationStore

logger = logging.getLogger(__name__)


def push_step(path: tuple[TagStep, ...], step: TagStep) -> tuple[TagStep, ...]:
    """Return ``path`` extended by ``step``."""
    return path + (step,)


def truncate_path(path: tuple[TagStep, ...], index: int) -> tuple[TagStep, ...]:
    """Return the first ``index + 1`` steps. ``index == -1`` yields the empty path."""
    if index < -1 or index >= len(path):
        raise IndexError(f"breadcrumb index {index} out of range for path of length {len(path)}")
    return path[: index + 1]


class TagNavigator:
    """Default (empty path) <-> Discovery (non-empty path).

    Every tag click extends the current lineage, wherever the tag was shown.
    The path is held as a tuple and replaced on each transition; the filter
    receives a fresh list copy so nothing rendered aliases pending state.
    """

    def __init__(
        self,
        store: PaginationStore,
        filter: FilterState,
        *,
        on_state_change: Callable[[NavState, NavState], None] | None = None,
    ) -> None:
        self._store = store
        self._filter = filter
        self._on_state_change = on_state_change
        self._path: tuple[TagStep, ...] = tuple(filter.tag_path)

    @property
    def path(self) -> tuple[TagStep, ...]:
        return self._path

    @property
    def state(self) -> NavState:
        return NavState.DISCOVERY if self._path else NavState.DEFAULT

    @property
    def active_step(self) -> TagStep | None:
        return self._path[-1] if self._path else None

    def breadcrumbs(self) -> list[TagStep]:
        return list(self._path)

    async def handle_tag_click(self, type: str, label: str) -> None:
        """Extend the current path with ``(type, label)`` and reload."""
        step = TagStep(type=type, label=label)
        logger.debug("Tag click %s:%s at depth %d", type, label, len(self._path))
        await self._transition(push_step(self._path, step))

    on_tag_click = handle_tag_click

    async def navigate_to_breadcrumb(self, index: int) -> None:
        """Keep the first ``index + 1`` steps and reload."""
        await self._transition(truncate_path(self._path, index))

    async def reset_to_default_view(self) -> None:
        """Clear the path and reload the Default view."""
        await self._transition(())

    def forget(self) -> None:
        """Clear the path without reloading (sign-out)."""
        self._set_path(())

    async def _transition(self, new_path: tuple[TagStep, ...]) -> None:
        self._set_path(new_path)
        await self._store.load_initial(self._filter)

    def _set_path(self, new_path: tuple[TagStep, ...]) -> None:
        old_state = self.state
        self._path = new_path
        self._filter.tag_path = list(new_path)
        self._filter.offset = 0
        new_state = self.state
        if new_state != old_state:
            logger.info("Navigation %s -> %s", old_state.value, new_state.value)
            if self._on_state_change is not None:
                self._on_state_change(old_state, new_state)
