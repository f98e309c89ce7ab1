"""Shared fixtures for saved-pages tests."""

from __future__ import annotations

import asyncio
import tempfile
from pathlib import Path

import pytest

from saved_pages.core.identity_cache import IdentityCache
from saved_pages.storage.memory import MemoryKVStore
from saved_pages.types import (
    Classification,
    DashboardState,
    FetchError,
    PageQuery,
    PageRecord,
    PaginationMeta,
    ResponsePage,
    StorageUnavailable,
)


def make_page(i: int, *tags: tuple[str, str], **kwargs) -> PageRecord:
    """Page ``p{i}`` saved ``i`` seconds into the day; ``tags`` are ``(type, label)`` pairs."""
    return PageRecord(
        id=f"p{i}",
        url=kwargs.pop("url", f"https://example.com/{i}"),
        title=kwargs.pop("title", f"Page {i}"),
        saved_at=kwargs.pop("saved_at", f"2026-01-01T{i // 3600:02d}:{i // 60 % 60:02d}:{i % 60:02d}"),
        classifications=[Classification(type=t, label=l) for t, l in tags],
        **kwargs,
    )


def make_response(start: int, count: int, total: int, has_next: bool | None = None) -> ResponsePage:
    items = [make_page(i) for i in range(start, start + count)]
    if has_next is None:
        has_next = start + count < total
    return ResponsePage(items=items, pagination=PaginationMeta(total=total, has_next_page=has_next))


class FakeIdentity:
    """Callable identity provider whose user can be switched mid-test."""

    def __init__(self, user: str | None = "u1") -> None:
        self.user = user

    def __call__(self) -> str | None:
        return self.user


class FakeClock:
    def __init__(self, now_ms: int = 1_700_000_000_000) -> None:
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, ms: int) -> None:
        self.now_ms += ms


class FailingStore:
    """Every operation raises, like storage that was revoked or is full."""

    def __init__(self) -> None:
        self.calls = 0

    async def get(self, key):
        self.calls += 1
        raise StorageUnavailable("quota exceeded")

    async def set(self, key, value):
        self.calls += 1
        raise StorageUnavailable("quota exceeded")

    async def remove(self, key):
        self.calls += 1
        raise StorageUnavailable("quota exceeded")

    async def clear(self):
        self.calls += 1
        raise StorageUnavailable("quota exceeded")


class ScriptedFetcher:
    """Fetcher serving ``total`` synthetic pages by offset, recording queries.

    ``gate`` (an ``asyncio.Event``) holds every fetch until set; ``fail``
    makes the next fetch raise.
    """

    def __init__(self, total: int = 120) -> None:
        self.total = total
        self.calls: list[PageQuery] = []
        self.gate: asyncio.Event | None = None
        self.fail: str | None = None
        self.responses: list[ResponsePage] = []

    async def __call__(self, query: PageQuery) -> ResponsePage:
        self.calls.append(query)
        if self.gate is not None:
            await self.gate.wait()
        if self.fail is not None:
            message, self.fail = self.fail, None
            raise FetchError(message, status_code=500)
        if self.responses:
            return self.responses.pop(0)
        count = max(0, min(query.limit, self.total - query.offset))
        return make_response(query.offset, count, self.total)


class RecordingView:
    """DashboardView that keeps everything it is asked to show."""

    def __init__(self) -> None:
        self.frames: list[DashboardState] = []
        self.errors: list[str] = []
        self.indicator: list[str] = []

    @property
    def last(self) -> DashboardState:
        return self.frames[-1]

    def render(self, state: DashboardState) -> None:
        self.frames.append(state)

    def show_error(self, message: str) -> None:
        self.errors.append(message)

    def show_loading_indicator(self) -> None:
        self.indicator.append("show")

    def hide_loading_indicator(self) -> None:
        self.indicator.append("hide")


@pytest.fixture
def identity() -> FakeIdentity:
    return FakeIdentity("u1")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def kv() -> MemoryKVStore:
    return MemoryKVStore()


@pytest.fixture
def cache(identity, kv, clock) -> IdentityCache:
    return IdentityCache(identity, lambda: kv, clock=clock)


@pytest.fixture
def fetcher() -> ScriptedFetcher:
    return ScriptedFetcher(total=120)


@pytest.fixture
def view() -> RecordingView:
    return RecordingView()


@pytest.fixture
def tmp_store_dir():
    with tempfile.TemporaryDirectory() as d:
        yield Path(d)


@pytest.fixture
def tmp_sqlite_db(tmp_store_dir):
    return tmp_store_dir / "test_store.db"
