"""Tests for the SQLite item store."""

import dataclasses
from datetime import timedelta

import pytest

from helpers import NOW, make_enrichment, make_item, stored_item
from newsbot.core import Source, StoreError, TimeWindow


def test_upsert_sources_overwrites_by_domain(store) -> None:
    store.upsert_sources([Source(domain="a.com", score=10, author="Ann", rank=1)])
    store.upsert_sources([
        Source(domain="a.com", score=5, author="Ann B", rank=2),
        Source(domain="b.com", score=7, rank=1),
    ])

    sources = store.list_sources()
    assert [(s.domain, s.score, s.rank) for s in sources] == [("b.com", 7, 1), ("a.com", 5, 2)]
    assert sources[1].author == "Ann B"


def test_insert_item_is_idempotent(store) -> None:
    """A URL is stored once; re-harvests are no-ops."""
    assert store.insert_item_if_absent(make_item("https://a.com/1", title="First")) is True
    assert store.insert_item_if_absent(make_item("https://a.com/1", title="Changed")) is False

    items = store.latest_items(10)
    assert len(items) == 1
    assert items[0].title == "First"
    assert items[0].published_at.tzinfo is not None


def test_window_boundary_is_inclusive(store) -> None:
    cutoff = NOW - timedelta(hours=24)
    stored_item(store, "https://a.com/edge", published_at=cutoff)
    stored_item(store, "https://a.com/old", published_at=cutoff - timedelta(seconds=1))

    urls = [i.url for i in store.items_in_window(TimeWindow.DAY)]
    assert urls == ["https://a.com/edge"]


def test_unknown_publish_time_is_outside_every_window(store) -> None:
    stored_item(store, "https://a.com/undated", published_at=None)

    for window in TimeWindow:
        assert store.items_in_window(window) == []
        assert store.unenriched_items(window) == []
    assert len(store.latest_items(10)) == 1


def test_unenriched_items_excludes_enriched(store) -> None:
    first = stored_item(store, "https://a.com/1")
    stored_item(store, "https://a.com/2")
    store.upsert_enrichment(make_enrichment(first.id))

    assert [i.url for i in store.unenriched_items(TimeWindow.DAY)] == ["https://a.com/2"]


def test_ranked_scenario_two_sources(store) -> None:
    """Items from two sources rank by total score; old items fall outside the window."""
    x1 = stored_item(store, "https://x.com/1", source="x.com", published_at=NOW - timedelta(hours=2))
    x2 = stored_item(store, "https://x.com/2", source="x.com", published_at=NOW - timedelta(hours=30))
    y1 = stored_item(store, "https://y.com/1", source="y.com", published_at=NOW - timedelta(hours=5))

    store.upsert_enrichment(make_enrichment(x1.id, relevance=6, quality=6, timeliness=6))
    store.upsert_enrichment(make_enrichment(x2.id, relevance=10, quality=10, timeliness=10))
    store.upsert_enrichment(make_enrichment(y1.id, relevance=9, quality=8, timeliness=7))

    day = store.ranked_enriched(TimeWindow.DAY)
    assert [(r.item.url, r.enrichment.total_score) for r in day] == [
        ("https://y.com/1", 24),
        ("https://x.com/1", 18),
    ]

    week = store.ranked_enriched(TimeWindow.WEEK)
    assert [r.item.url for r in week] == ["https://x.com/2", "https://y.com/1", "https://x.com/1"]
    assert len(store.ranked_enriched(TimeWindow.WEEK, limit=1)) == 1


def test_total_score_column_follows_sub_scores(store) -> None:
    item = stored_item(store, "https://a.com/1")
    store.upsert_enrichment(make_enrichment(item.id, relevance=2, quality=2, timeliness=2))
    store.upsert_enrichment(make_enrichment(item.id, relevance=9, quality=9, timeliness=9))

    ranked = store.ranked_enriched(TimeWindow.DAY)
    assert len(ranked) == 1
    assert ranked[0].enrichment.total_score == 27


def test_keywords_round_trip(store) -> None:
    item = stored_item(store, "https://a.com/1")
    store.upsert_enrichment(make_enrichment(item.id))

    assert store.get_ranked_item(item.id).enrichment.keywords == ["rust", "databases"]


def test_keywords_with_commas_survive_rewrite(store) -> None:
    item = stored_item(store, "https://a.com/1")
    store.upsert_enrichment(make_enrichment(item.id, keywords=["1,000 GPUs", "rust"]))

    first = store.get_ranked_item(item.id).enrichment
    store.upsert_enrichment(first)

    assert store.get_ranked_item(item.id).enrichment.keywords == ["1,000 GPUs", "rust"]


def test_unsummarized_enriched(store) -> None:
    done = stored_item(store, "https://a.com/done")
    pending = stored_item(store, "https://a.com/pending")
    low = stored_item(store, "https://a.com/low")
    store.upsert_enrichment(make_enrichment(done.id))
    store.upsert_enrichment(make_enrichment(pending.id, synopsis=""))
    store.upsert_enrichment(make_enrichment(low.id, relevance=1, quality=1, timeliness=1, synopsis=""))

    assert len(store.unsummarized_enriched(TimeWindow.DAY)) == 2
    urls = [r.item.url for r in store.unsummarized_enriched(TimeWindow.DAY, min_score=10)]
    assert urls == ["https://a.com/pending"]


def test_mark_delivered_is_monotonic(store) -> None:
    """Marks are set once and survive re-enrichment."""
    item = stored_item(store, "https://a.com/1")
    store.upsert_enrichment(make_enrichment(item.id))

    assert store.mark_delivered([item.id]) == 1
    assert store.mark_delivered([item.id]) == 0
    delivered_at = store.get_ranked_item(item.id).enrichment.delivered_at
    assert delivered_at == NOW

    store.upsert_enrichment(make_enrichment(item.id, relevance=9))
    entry = store.get_ranked_item(item.id)
    assert entry.enrichment.delivered_at == delivered_at
    assert entry.enrichment.relevance == 9
    assert store.undelivered_ranked(TimeWindow.DAY) == []


def test_undelivered_ranked_limit(store) -> None:
    for n in range(5):
        item = stored_item(store, f"https://a.com/{n}")
        store.upsert_enrichment(make_enrichment(item.id, relevance=n + 1))

    undelivered = store.undelivered_ranked(TimeWindow.DAY, limit=3)
    assert [r.enrichment.relevance for r in undelivered] == [5, 4, 3]


def test_enrichment_requires_existing_item(store) -> None:
    with pytest.raises(StoreError):
        store.upsert_enrichment(make_enrichment(999))


def test_get_ranked_item_missing(store) -> None:
    item = stored_item(store, "https://a.com/1")
    assert store.get_ranked_item(item.id) is None
    assert store.get_ranked_item(12345) is None


def test_mark_delivered_empty(store) -> None:
    assert store.mark_delivered([]) == 0


def test_enrichment_copy_keeps_item_id(store) -> None:
    item = stored_item(store, "https://a.com/1")
    enrichment = make_enrichment(item.id, synopsis="")
    store.upsert_enrichment(enrichment)
    store.upsert_enrichment(dataclasses.replace(enrichment, synopsis="now summarized"))

    assert store.get_ranked_item(item.id).enrichment.synopsis == "now summarized"
