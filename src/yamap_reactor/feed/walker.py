"""Discover/dispatch/scroll state machine over an infinite-scroll feed."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
import time as time_module
from typing import Protocol

from yamap_reactor.browser.driver import PageDriver
from yamap_reactor.deadline import Deadline, unbounded
from yamap_reactor.errors import (
    DecodeFailedError,
    DriverError,
    FeedError,
    SessionGuardError,
)
from yamap_reactor.feed.dedup import DedupTracker
from yamap_reactor.feed.guard import SessionGuard
from yamap_reactor.feed.snapshot import FeedSnapshotReader
from yamap_reactor.logging import get_logger
from yamap_reactor.models import (
    DispatchOutcome,
    PendingItem,
    RunResult,
    ScrollState,
    StopReason,
)

SleepFn = Callable[[float], None]
DecodeFailureHook = Callable[[DecodeFailedError], object]

logger = get_logger(__name__)


class WalkerState(str, Enum):
    DISCOVERING = "discovering"
    DISPATCHING = "dispatching"
    SCROLLING = "scrolling"
    TERMINATED = "terminated"


class GuardPlacement(str, Enum):
    BEFORE_DISPATCH = "before_dispatch"
    AFTER_DISPATCH = "after_dispatch"


class Dispatcher(Protocol):
    def dispatch(
        self,
        driver: PageDriver,
        url: str,
        *,
        deadline: Deadline | None = None,
    ) -> DispatchOutcome:
        """React to one item."""


@dataclass(frozen=True)
class WalkerPolicy:
    stagnation_rounds: int = 3
    max_scrolls: int | None = 200
    scroll_settle_seconds: float = 5.0
    between_items_seconds: float = 0.0
    guard_placement: GuardPlacement = GuardPlacement.BEFORE_DISPATCH
    item_timeout_seconds: float | None = None


@dataclass
class _RunLedger:
    target: int
    success_count: int = 0
    processed_urls: list[str] = field(default_factory=list)
    reacted_urls: list[str] = field(default_factory=list)
    outcomes: list[DispatchOutcome] = field(default_factory=list)
    rounds: int = 0
    scroll_rounds: int = 0

    @property
    def target_reached(self) -> bool:
        return self.success_count >= self.target

    def record(self, outcome: DispatchOutcome) -> None:
        self.processed_urls.append(outcome.url)
        self.outcomes.append(outcome)
        if outcome.liked:
            self.success_count += 1
            self.reacted_urls.append(outcome.url)

    def to_result(
        self, *, stop_reason: StopReason, seen_ids: int, elapsed_seconds: float
    ) -> RunResult:
        return RunResult(
            success_count=self.success_count,
            processed_urls=tuple(self.processed_urls),
            reacted_urls=tuple(self.reacted_urls),
            stop_reason=stop_reason,
            target=self.target,
            rounds=self.rounds,
            scroll_rounds=self.scroll_rounds,
            seen_ids=seen_ids,
            outcomes=tuple(self.outcomes),
            elapsed_seconds=elapsed_seconds,
        )


class FeedWalker:
    """Interleave discovery and dispatch per round so progress is incremental."""

    def __init__(
        self,
        reader: FeedSnapshotReader,
        dispatcher: Dispatcher,
        guard: SessionGuard,
        *,
        policy: WalkerPolicy = WalkerPolicy(),
        sleep_fn: SleepFn | None = None,
        on_decode_failure: DecodeFailureHook | None = None,
    ) -> None:
        if policy.stagnation_rounds <= 0:
            raise ValueError("stagnation_rounds must be > 0.")
        if policy.max_scrolls is not None and policy.max_scrolls < 0:
            raise ValueError("max_scrolls must be >= 0.")
        self._reader = reader
        self._dispatcher = dispatcher
        self._guard = guard
        self._policy = policy
        self._sleep = sleep_fn or time_module.sleep
        self._on_decode_failure = on_decode_failure

    def run(
        self,
        driver: PageDriver,
        target: int,
        *,
        deadline: Deadline | None = None,
    ) -> RunResult:
        """Walk the feed until `target` reactions succeed, the feed ends, or time runs out.

        Raises SessionGuardError when the driver cannot be returned to the
        feed; every per-item failure is folded into the result instead.
        """
        if target <= 0:
            raise ValueError("target must be > 0.")
        run_deadline = deadline or unbounded()
        clock = run_deadline.clock
        started = clock()

        seen = DedupTracker()
        scroll = ScrollState()
        ledger = _RunLedger(target=target)
        pending: list[PendingItem] = []
        discovered = 0
        stop_reason = StopReason.FEED_EXHAUSTED
        state = WalkerState.DISCOVERING

        try:
            while state is not WalkerState.TERMINATED:
                if run_deadline.expired():
                    logger.info("Run deadline reached; stopping with partial results")
                    stop_reason = StopReason.DEADLINE
                    break

                if state is WalkerState.DISCOVERING:
                    ledger.rounds += 1
                    if not self._guard_or_stop(driver, run_deadline):
                        stop_reason = StopReason.DEADLINE
                        break
                    pending = self._discover(driver, seen)
                    discovered = len(pending)
                    state = WalkerState.DISPATCHING if pending else WalkerState.SCROLLING

                elif state is WalkerState.DISPATCHING:
                    state, stop = self._dispatch_round(driver, pending, ledger, run_deadline)
                    pending = []
                    if stop is not None:
                        stop_reason = stop

                elif state is WalkerState.SCROLLING:
                    state, stop = self._scroll(driver, scroll, discovered, ledger, run_deadline)
                    if stop is not None:
                        stop_reason = stop
        except SessionGuardError as exc:
            # Reactions already sent are real; keep them visible to the caller.
            exc.partial_result = ledger.to_result(
                stop_reason=StopReason.SESSION_LOST,
                seen_ids=len(seen),
                elapsed_seconds=max(0.0, clock() - started),
            )
            logger.error(
                "Session lost after %d/%d reactions: %s", ledger.success_count, target, exc
            )
            raise

        result = ledger.to_result(
            stop_reason=stop_reason,
            seen_ids=len(seen),
            elapsed_seconds=max(0.0, clock() - started),
        )
        logger.info(
            "Walk finished: %d/%d reactions, %d processed, stop_reason=%s",
            result.success_count,
            target,
            len(result.processed_urls),
            result.stop_reason.value,
        )
        return result

    def _discover(self, driver: PageDriver, seen: DedupTracker) -> list[PendingItem]:
        try:
            items = self._reader.read(driver)
        except DecodeFailedError as exc:
            logger.warning("Feed state could not be decoded; scrolling on: %s", exc)
            if self._on_decode_failure is not None:
                self._on_decode_failure(exc)
            return []
        except FeedError as exc:
            logger.info("No feed data this round; scrolling on: %s", exc)
            return []

        pending = seen.discover(items)
        for entry in pending:
            logger.info("Found unreacted item %s", entry.url)
        logger.debug("Snapshot had %d entries, %d new", len(items), len(pending))
        return pending

    def _dispatch_round(
        self,
        driver: PageDriver,
        pending: list[PendingItem],
        ledger: _RunLedger,
        run_deadline: Deadline,
    ) -> tuple[WalkerState, StopReason | None]:
        placement = self._policy.guard_placement
        for index, entry in enumerate(pending):
            if run_deadline.expired():
                return WalkerState.TERMINATED, StopReason.DEADLINE
            if index > 0:
                self._sleep(self._policy.between_items_seconds)
                if placement is GuardPlacement.BEFORE_DISPATCH and not self._guard_or_stop(
                    driver, run_deadline
                ):
                    return WalkerState.TERMINATED, StopReason.DEADLINE

            item_deadline = run_deadline.child(self._policy.item_timeout_seconds)
            outcome = self._dispatcher.dispatch(driver, entry.url, deadline=item_deadline)
            ledger.record(outcome)
            if outcome.error is not None:
                logger.warning("Reaction to %s did not complete: %s", entry.url, outcome.error)
            if outcome.liked:
                logger.info("Reactions so far: %d/%d", ledger.success_count, ledger.target)
            if ledger.target_reached:
                return WalkerState.TERMINATED, StopReason.TARGET_REACHED

            if placement is GuardPlacement.AFTER_DISPATCH and not self._guard_or_stop(
                driver, run_deadline
            ):
                return WalkerState.TERMINATED, StopReason.DEADLINE
        return WalkerState.SCROLLING, None

    def _scroll(
        self,
        driver: PageDriver,
        scroll: ScrollState,
        discovered: int,
        ledger: _RunLedger,
        run_deadline: Deadline,
    ) -> tuple[WalkerState, StopReason | None]:
        if discovered == 0:
            scroll.stagnant_rounds += 1
        else:
            scroll.stagnant_rounds = 0

        # Dispatch navigated away; heights are only comparable on the feed page.
        if not self._guard_or_stop(driver, run_deadline):
            return WalkerState.TERMINATED, StopReason.DEADLINE

        try:
            height = driver.page_height()
        except DriverError as exc:
            logger.warning("Could not read page height: %s", exc)
            height = scroll.last_height

        if height == scroll.last_height and scroll.stagnant_rounds >= self._policy.stagnation_rounds:
            logger.info(
                "No new items for %d rounds and page height unchanged; feed exhausted",
                scroll.stagnant_rounds,
            )
            return WalkerState.TERMINATED, StopReason.FEED_EXHAUSTED

        max_scrolls = self._policy.max_scrolls
        if max_scrolls is not None and ledger.scroll_rounds >= max_scrolls:
            logger.info("Scroll budget of %d rounds used up", max_scrolls)
            return WalkerState.TERMINATED, StopReason.MAX_SCROLLS

        logger.debug("Scrolling (height=%d, stagnant_rounds=%d)", height, scroll.stagnant_rounds)
        try:
            driver.scroll_to_bottom()
        except DriverError as exc:
            logger.warning("Scroll failed; retrying next round: %s", exc)
        ledger.scroll_rounds += 1
        self._sleep(self._policy.scroll_settle_seconds)
        scroll.last_height = height
        return WalkerState.DISCOVERING, None

    def _guard_or_stop(self, driver: PageDriver, run_deadline: Deadline) -> bool:
        """Run the guard; False means the run deadline cut recovery short."""
        try:
            self._guard.ensure_on(driver, deadline=run_deadline)
        except SessionGuardError:
            if run_deadline.expired():
                return False
            raise
        return True
