"""Run-scoped dedup tracking of discovered feed items."""

from __future__ import annotations

from yamap_reactor.feed.dedup import DedupTracker
from yamap_reactor.models import FeedItem, FeedItemKind, PendingItem


def _item(item_id: int, *, reacted: bool = False, kind: FeedItemKind = FeedItemKind.POST) -> FeedItem:
    return FeedItem(id=item_id, kind=kind, reacted_by_viewer=reacted)


def test_discover_filters_reacted_and_marks_survivors_seen() -> None:
    tracker = DedupTracker()

    pending = tracker.discover([_item(1), _item(2, reacted=True), _item(3)])

    assert pending == [
        PendingItem(item_id=1, url="https://yamap.com/activities/1"),
        PendingItem(item_id=3, url="https://yamap.com/activities/3"),
    ]
    assert 1 in tracker
    assert 2 not in tracker
    assert len(tracker) == 2


def test_discover_never_returns_an_id_twice() -> None:
    tracker = DedupTracker()
    tracker.discover([_item(1), _item(2)])

    pending = tracker.discover([_item(2), _item(1), _item(3)])

    assert [entry.item_id for entry in pending] == [3]


def test_discover_collapses_duplicates_within_one_snapshot() -> None:
    tracker = DedupTracker()
    pending = tracker.discover([_item(5), _item(5)])
    assert [entry.item_id for entry in pending] == [5]


def test_discover_ignores_non_post_items() -> None:
    tracker = DedupTracker()
    pending = tracker.discover([_item(8, kind=FeedItemKind.OTHER)])
    assert pending == []
    assert 8 not in tracker


def test_mark_reports_first_sighting_only() -> None:
    tracker = DedupTracker()
    assert tracker.mark(4) is True
    assert tracker.mark(4) is False
