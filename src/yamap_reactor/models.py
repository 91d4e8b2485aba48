"""Data model contracts for cross-module use."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

DEFAULT_ITEM_URL_TEMPLATE = "https://yamap.com/activities/{id}"


class FeedItemKind(str, Enum):
    POST = "post"
    OTHER = "other"


class CrawlAction(str, Enum):
    REACT_TIMELINE = "react-timeline"
    REACT_ACTIVITIES = "react-activities"


class StopReason(str, Enum):
    TARGET_REACHED = "target_reached"
    FEED_EXHAUSTED = "feed_exhausted"
    MAX_SCROLLS = "max_scrolls"
    DEADLINE = "deadline"
    SESSION_LOST = "session_lost"


class DispatchStatus(str, Enum):
    REACTED = "reacted"
    ALREADY_REACTED = "already_reacted"
    FAILED = "failed"


@dataclass(frozen=True)
class FeedItem:
    id: int
    kind: FeedItemKind
    reacted_by_viewer: bool
    url_template: str = DEFAULT_ITEM_URL_TEMPLATE

    @property
    def url(self) -> str:
        return self.url_template.format(id=self.id)


@dataclass(frozen=True)
class PendingItem:
    item_id: int
    url: str


@dataclass
class ScrollState:
    last_height: int = 0
    stagnant_rounds: int = 0


@dataclass(frozen=True)
class DispatchOutcome:
    url: str
    liked: bool
    status: DispatchStatus
    attempts: int = 0
    reloads: int = 0
    error: Exception | None = None

    @property
    def error_message(self) -> str | None:
        return str(self.error) if self.error is not None else None


@dataclass(frozen=True)
class RunResult:
    success_count: int
    processed_urls: tuple[str, ...]
    reacted_urls: tuple[str, ...]
    stop_reason: StopReason
    target: int
    rounds: int = 0
    scroll_rounds: int = 0
    seen_ids: int = 0
    outcomes: tuple[DispatchOutcome, ...] = field(default_factory=tuple)
    elapsed_seconds: float = 0.0

    @property
    def failed_count(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status is DispatchStatus.FAILED)

    @property
    def already_reacted_count(self) -> int:
        return sum(
            1 for outcome in self.outcomes if outcome.status is DispatchStatus.ALREADY_REACTED
        )
