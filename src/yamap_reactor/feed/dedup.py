"""Run-scoped tracking of feed item ids already discovered."""

from __future__ import annotations

from collections.abc import Iterable

from yamap_reactor.models import FeedItem, FeedItemKind, PendingItem


class DedupTracker:
    """Insertion-only seen set; one instance per crawl run, never persisted."""

    def __init__(self) -> None:
        self._seen: set[int] = set()

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._seen

    def __len__(self) -> int:
        return len(self._seen)

    def mark(self, item_id: int) -> bool:
        """Record `item_id`; return False when it was already seen."""
        if item_id in self._seen:
            return False
        self._seen.add(item_id)
        return True

    def discover(self, items: Iterable[FeedItem]) -> list[PendingItem]:
        """Return unseen, unreacted posts in feed order, marking each seen at once.

        Marking happens before any dispatch so an id is discovered at most
        once per run even if the queue holding it is later abandoned.
        """
        pending: list[PendingItem] = []
        for item in items:
            if item.kind is not FeedItemKind.POST or item.reacted_by_viewer:
                continue
            if not self.mark(item.id):
                continue
            pending.append(PendingItem(item_id=item.id, url=item.url))
        return pending
