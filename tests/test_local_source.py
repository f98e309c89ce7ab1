"""Tests for the in-process page source."""

from __future__ import annotations

import json

import pytest

from conftest import make_page
from saved_pages.api.local import LocalPageSource
from saved_pages.types import FetchError, PageQuery, TagStep


@pytest.fixture
def source():
    pages = [make_page(i, ("domain", "Travel" if i % 2 else "Software")) for i in range(10)]
    return LocalPageSource(pages)


class TestLocalPageSource:
    @pytest.mark.asyncio
    async def test_newest_first_with_pagination(self, source):
        page = await source(PageQuery(limit=4))
        assert [p.id for p in page.items] == ["p9", "p8", "p7", "p6"]
        assert page.pagination.total == 10
        assert page.pagination.has_next_page

    @pytest.mark.asyncio
    async def test_last_page(self, source):
        page = await source(PageQuery(limit=4, offset=8))
        assert [p.id for p in page.items] == ["p1", "p0"]
        assert not page.pagination.has_next_page

    @pytest.mark.asyncio
    async def test_oldest_sort(self, source):
        page = await source(PageQuery(limit=2, sort="oldest"))
        assert [p.id for p in page.items] == ["p0", "p1"]

    @pytest.mark.asyncio
    async def test_tag_filter(self, source):
        page = await source(PageQuery(tag_path=(TagStep("domain", "Travel"),)))
        assert page.pagination.total == 5
        assert all(int(p.id[1:]) % 2 for p in page.items)

    @pytest.mark.asyncio
    async def test_cursor_as_offset(self, source):
        page = await source(PageQuery(limit=3, cursor="3"))
        assert [p.id for p in page.items] == ["p6", "p5", "p4"]

    @pytest.mark.asyncio
    async def test_bad_cursor(self, source):
        with pytest.raises(FetchError) as exc:
            await source(PageQuery(cursor="abc"))
        assert exc.value.status_code == 400

    @pytest.mark.asyncio
    async def test_records_calls(self, source):
        await source(PageQuery(search="x"))
        assert source.calls[0].search == "x"

    @pytest.mark.asyncio
    async def test_delete_and_pin(self, source):
        await source.delete_page("p3")
        assert "p3" not in [p.id for p in source.pages]
        with pytest.raises(FetchError):
            await source.delete_page("p3")
        await source.pin_page("p4", True)
        assert next(p for p in source.pages if p.id == "p4").pinned
        with pytest.raises(FetchError):
            await source.pin_page("nope", True)

    def test_from_json(self, tmp_path):
        path = tmp_path / "pages.json"
        path.write_text(json.dumps({"pages": [{"id": 1, "title": "One"}, {"id": "2"}]}))
        source = LocalPageSource.from_json(path)
        assert [p.id for p in source.pages] == ["1", "2"]
        assert source.pages[0].title == "One"

    def test_from_json_bare_list(self, tmp_path):
        path = tmp_path / "pages.json"
        path.write_text(json.dumps([{"id": "a"}]))
        assert LocalPageSource.from_json(path).pages[0].id == "a"
