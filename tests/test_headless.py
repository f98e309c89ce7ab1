"""Tests for the headless dashboard view."""

from __future__ import annotations

import io

from conftest import make_page
from saved_pages.types import DashboardState, NavState, TagStep
from saved_pages.view.headless import HeadlessView, describe, print_pages


def _state(**kwargs) -> DashboardState:
    defaults = dict(items=[make_page(1), make_page(2, pinned=True)], total=10, has_next_page=True)
    defaults.update(kwargs)
    return DashboardState(**defaults)


class TestHeadlessView:
    def test_render_lays_out_rows(self):
        view = HeadlessView()
        view.render(_state())
        assert view.viewport.row_count == 2
        assert view.last.total == 10

    def test_records_errors_and_indicator(self):
        out = io.StringIO()
        view = HeadlessView(stream=out)
        view.show_loading_indicator()
        view.hide_loading_indicator()
        view.show_error("Network down")
        assert view.indicator_events == ["show", "hide"]
        assert not view.loading_visible
        assert view.errors == ["Network down"]
        assert "error: Network down" in out.getvalue()


class TestDescribe:
    def test_default(self):
        assert describe(_state()) == "[default] all  2/10  more"

    def test_discovery_with_search(self):
        state = _state(
            nav_state=NavState.DISCOVERY,
            breadcrumbs=[TagStep("domain", "Travel"), TagStep("topic", "Hiking")],
            search="alps",
            has_next_page=False,
            from_cache=True,
        )
        assert describe(state) == "[discovery] domain:Travel > topic:Hiking  2/10  search='alps'  cached"

    def test_print_pages(self):
        out = io.StringIO()
        print_pages(_state(next_tags=[TagStep("general", "Leisure")]), out)
        text = out.getvalue()
        assert "p1" in text
        assert "*Page 2" in text
        assert "Tags: general:Leisure" in text
