"""
Event catalog aggregator + rails.

Verifies:
  1. reads degrade to []/None on gateway failure (never raise)
  2. Ok/Err results keep the failure reason
  3. category slugs are normalized before the query
  4. "Trending Now" = concat + truncate, duplicates kept
  5. home feed: independent failures, stale loads discarded
"""
from __future__ import annotations

import asyncio

from sceneflix.catalog.aggregator import EventCatalog, normalize_slug, parse_events
from sceneflix.catalog.rails import CategoryView, HomeFeed, merge_rails
from sceneflix.db.events import escape_like
from sceneflix.models import Event
from sceneflix.result import Err, Ok

from supabase_mock import api_error, event_row, mock_supabase, network_error


def run(coro):
    return asyncio.run(coro)


def _events(*ids: str) -> list[Event]:
    return [Event.model_validate(event_row(i)) for i in ids]


class StubCatalog:
    """Catalog double keyed by category slug; values are lists or exceptions."""

    def __init__(self, trending=None, categories=None) -> None:
        self.trending = trending or []
        self.categories = categories or {}
        self.calls: list[str] = []

    async def get_trending(self, limit: int = 5):
        self.calls.append("trending")
        return list(self.trending)

    async def get_by_category(self, slug: str, limit: int = 10):
        self.calls.append(slug)
        return list(self.categories.get(slug, []))


# ---------------------------------------------------------------------------
# aggregator
# ---------------------------------------------------------------------------

def test_get_trending_network_error_returns_empty():
    sb = mock_supabase({"events": network_error()})
    catalog = EventCatalog(sb)

    assert run(catalog.get_trending()) == []


def test_get_trending_api_error_result_keeps_reason():
    sb = mock_supabase({"events": api_error("relation does not exist", "42P01")})
    catalog = EventCatalog(sb)

    result = run(catalog.fetch_trending_result())

    assert isinstance(result, Err)
    assert result.ok is False
    assert "relation does not exist" in result.reason
    assert result.error.code == "42P01"


def test_get_trending_filters_and_limits():
    sb = mock_supabase({"events": [event_row("t1", is_trending=True)]})
    catalog = EventCatalog(sb)

    events = run(catalog.get_trending())

    assert [e.id for e in events] == ["t1"]
    builder = sb.builders["events"]
    builder.eq.assert_called_with("is_trending", True)
    builder.limit.assert_called_with(5)


def test_get_by_category_normalizes_slug():
    sb = mock_supabase({"events": [event_row("c1")]})
    catalog = EventCatalog(sb)

    run(catalog.get_by_category("  Techno "))

    sb.builders["events"].eq.assert_called_with("category.slug", "techno")
    sb.builders["events"].limit.assert_called_with(10)


def test_get_by_category_empty_slug_skips_network():
    sb = mock_supabase()
    catalog = EventCatalog(sb)

    assert run(catalog.get_by_category("   ")) == []
    sb.table.assert_not_called()


def test_get_by_id_not_found_and_error_are_none():
    catalog = EventCatalog(mock_supabase({"events": []}))
    assert run(catalog.get_by_id("missing")) is None

    catalog = EventCatalog(mock_supabase({"events": api_error()}))
    assert run(catalog.get_by_id("e1")) is None


def test_get_by_id_returns_detail():
    sb = mock_supabase({"events": [event_row("e1", venue={"name": "Hall", "city": "Pune", "capacity": 900})]})
    event = run(EventCatalog(sb).get_by_id("e1"))

    assert event.id == "e1"
    assert event.venue.city == "Pune"


def test_search_uses_case_insensitive_substring():
    sb = mock_supabase({"events": [event_row("s1")]})
    catalog = EventCatalog(sb)

    run(catalog.search("Jazz"))

    sb.builders["events"].ilike.assert_called_with("title", "%Jazz%")
    sb.builders["events"].limit.assert_called_with(20)


def test_search_treats_wildcards_literally():
    sb = mock_supabase({"events": []})

    run(EventCatalog(sb).search("50%_off"))

    sb.builders["events"].ilike.assert_called_with("title", "%50\\%\\_off%")


def test_escape_like():
    assert escape_like("a_b") == "a\\_b"
    assert escape_like("100%") == "100\\%"
    assert escape_like("c:\\x") == "c:\\\\x"
    assert escape_like("plain") == "plain"


def test_search_blank_query_is_ok_empty_without_network():
    sb = mock_supabase()
    result = run(EventCatalog(sb).fetch_search_result("  "))
    assert result == Ok([])
    sb.table.assert_not_called()


def test_malformed_rows_are_skipped():
    rows = [event_row("good"), {"id": "bad"}, event_row("neg", price_start=-1)]
    assert [e.id for e in parse_events(rows, source="test")] == ["good"]


def test_normalize_slug():
    assert normalize_slug(" LIVE ") == "live"
    assert normalize_slug(None) == ""


# ---------------------------------------------------------------------------
# rails
# ---------------------------------------------------------------------------

def test_trending_now_rail_keeps_duplicates():
    techno = _events("t1", "t2", "shared", "t4")
    live = _events("l1", "shared", "l3")

    rail = merge_rails(techno, live)

    assert len(rail) == 7
    assert [e.id for e in rail].count("shared") == 2


def test_trending_now_rail_truncates_to_ten():
    rail = merge_rails(_events(*[f"a{i}" for i in range(8)]), _events(*[f"b{i}" for i in range(8)]))
    assert len(rail) == 10
    assert rail[-1].id == "b1"


def test_home_feed_builds_hero_and_rails():
    catalog = StubCatalog(
        trending=_events("hero", "other"),
        categories={
            "techno": _events("t1", "t2", "shared", "t4"),
            "live": _events("l1", "shared", "l3"),
        },
    )
    feed = HomeFeed(catalog)

    view = run(feed.load())

    assert view is feed.view
    assert view.hero.id == "hero"
    assert [r.title for r in view.rails] == ["Techno & House", "Live Concerts", "Trending Now"]
    assert len(view.rail("Trending Now").events) == 7


def test_home_feed_one_failed_source_does_not_cancel_others():
    sb = mock_supabase({"events": network_error()})
    feed = HomeFeed(EventCatalog(sb))

    view = run(feed.load())

    assert view.hero is None
    assert all(r.events == [] for r in view.rails)
    assert sb.builders["events"].execute.call_count == 3


def test_home_feed_mixed_completion_with_real_catalog():
    calls = {"n": 0}

    def events_rows():
        calls["n"] += 1
        if calls["n"] == 1:
            raise network_error()
        return [event_row(f"r{calls['n']}")]

    sb = mock_supabase({"events": events_rows})
    view = run(HomeFeed(EventCatalog(sb)).load())

    total = sum(len(r.events) for r in view.rails[:2]) + (1 if view.hero else 0)
    assert total == 2


def test_home_feed_discards_result_after_close():
    gate = asyncio.Event()

    class SlowCatalog(StubCatalog):
        async def get_trending(self, limit: int = 5):
            await gate.wait()
            return _events("late")

    async def scenario():
        feed = HomeFeed(SlowCatalog())
        task = asyncio.create_task(feed.load())
        await asyncio.sleep(0)
        feed.close()
        gate.set()
        return feed, await task

    feed, result = run(scenario())

    assert result is None
    assert feed.view is None
    assert feed.closed is True


def test_home_feed_newer_load_supersedes_older():
    first_gate = asyncio.Event()

    class Catalog(StubCatalog):
        def __init__(self):
            super().__init__()
            self.n = 0

        async def get_trending(self, limit: int = 5):
            self.n += 1
            if self.n == 1:
                await first_gate.wait()
                return _events("old")
            return _events("new")

    async def scenario():
        feed = HomeFeed(Catalog())
        old = asyncio.create_task(feed.load())
        await asyncio.sleep(0)
        new_view = await feed.load()
        first_gate.set()
        old_view = await old
        return feed, old_view, new_view

    feed, old_view, new_view = run(scenario())

    assert old_view is None
    assert feed.view is new_view
    assert feed.view.hero.id == "new"


def test_category_view_loads_normalized_slug():
    catalog = StubCatalog(categories={"comedy": _events("c1", "c2")})
    view = CategoryView(catalog, "Comedy")

    events = run(view.load())

    assert [e.id for e in events] == ["c1", "c2"]
    assert view.loaded is True
    assert view.title == "All comedy Events"
    assert catalog.calls == ["comedy"]


def test_category_view_closed_does_not_commit():
    catalog = StubCatalog(categories={"live": _events("l1")})
    view = CategoryView(catalog, "live")
    view.close()

    assert run(view.load()) is None
    assert view.events == []
    assert view.loaded is False
