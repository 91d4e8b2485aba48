"""Deliver one reaction to one item detail page with bounded retries."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
import json
import time as time_module

from yamap_reactor.browser.driver import PageDriver
from yamap_reactor.config import CrawlConfig, SelectorsConfig
from yamap_reactor.deadline import Deadline, unbounded
from yamap_reactor.errors import (
    DriverError,
    PageLoadFailedError,
    ReactionFailedError,
    ReactionTimeoutError,
    RecoveryFailedError,
)
from yamap_reactor.logging import get_logger
from yamap_reactor.models import DispatchOutcome, DispatchStatus

SleepFn = Callable[[float], None]

logger = get_logger(__name__)


@dataclass(frozen=True)
class ReactionSelectors:
    detail_ready: str
    reaction_button: str
    reaction_picker: str
    reaction_choice: str
    own_reaction_marker: str

    @classmethod
    def from_config(cls, selectors: SelectorsConfig) -> ReactionSelectors:
        return cls(
            detail_ready=selectors.detail_ready,
            reaction_button=selectors.reaction_button,
            reaction_picker=selectors.reaction_picker,
            reaction_choice=selectors.reaction_choice,
            own_reaction_marker=selectors.own_reaction_marker,
        )


@dataclass(frozen=True)
class ReactionPolicy:
    max_attempts: int = 3
    precheck_own_reaction: bool = True
    wait_timeout_ms: int = 10_000
    picker_settle_seconds: float = 2.0
    reaction_settle_seconds: float = 3.0
    reload_settle_seconds: float = 2.0

    @classmethod
    def from_config(cls, crawl: CrawlConfig, *, wait_timeout_ms: int) -> ReactionPolicy:
        return cls(
            max_attempts=crawl.max_reaction_attempts,
            precheck_own_reaction=crawl.precheck_own_reaction,
            wait_timeout_ms=wait_timeout_ms,
            picker_settle_seconds=crawl.picker_settle_seconds,
            reaction_settle_seconds=crawl.reaction_settle_seconds,
            reload_settle_seconds=crawl.reload_settle_seconds,
        )


class ReactionDispatcher:
    """Navigate to an item, then click affordance, picker and choice.

    The driver is left on the item page (or a reload of it) whatever the
    outcome; returning to the feed belongs to the caller's SessionGuard.
    """

    def __init__(
        self,
        selectors: ReactionSelectors,
        policy: ReactionPolicy = ReactionPolicy(),
        *,
        sleep_fn: SleepFn | None = None,
    ) -> None:
        if policy.max_attempts <= 0:
            raise ValueError("max_attempts must be > 0.")
        self._selectors = selectors
        self._policy = policy
        self._sleep = sleep_fn or time_module.sleep
        self._marker_script = (
            f"document.querySelector({json.dumps(selectors.own_reaction_marker)}) !== null"
        )

    def dispatch(
        self,
        driver: PageDriver,
        url: str,
        *,
        deadline: Deadline | None = None,
    ) -> DispatchOutcome:
        item_deadline = deadline or unbounded()
        logger.info("Opening %s to send a reaction", url)

        try:
            self._check_deadline(item_deadline, url)
            driver.navigate(url)
            driver.wait_visible(self._selectors.detail_ready, self._timeout(item_deadline))
            driver.scroll_to_bottom()
            driver.wait_visible(self._selectors.reaction_button, self._timeout(item_deadline))
        except ReactionTimeoutError as exc:
            return _failed(url, exc)
        except DriverError as exc:
            error = PageLoadFailedError(f"Detail page for {url} did not load: {exc}")
            error.__cause__ = exc
            logger.warning("%s", error)
            return _failed(url, error)

        if self._policy.precheck_own_reaction and self._already_reacted(driver):
            logger.info("Already reacted to %s; skipping", url)
            return DispatchOutcome(url=url, liked=False, status=DispatchStatus.ALREADY_REACTED)

        last_error: Exception | None = None
        reloads = 0
        for attempt in range(1, self._policy.max_attempts + 1):
            logger.debug("Reaction attempt %d/%d for %s", attempt, self._policy.max_attempts, url)
            try:
                self._check_deadline(item_deadline, url)
                self._attempt(driver, item_deadline)
            except ReactionTimeoutError as exc:
                exc.__cause__ = last_error
                return _failed(url, exc, attempts=attempt, reloads=reloads)
            except DriverError as exc:
                last_error = exc
                logger.warning("Reaction attempt %d failed for %s: %s", attempt, url, exc)
            else:
                logger.info("Reacted to %s", url)
                return DispatchOutcome(
                    url=url,
                    liked=True,
                    status=DispatchStatus.REACTED,
                    attempts=attempt,
                    reloads=reloads,
                )

            if attempt == self._policy.max_attempts:
                break

            try:
                self._check_deadline(item_deadline, url)
                driver.reload()
                reloads += 1
                driver.wait_visible(self._selectors.reaction_button, self._timeout(item_deadline))
            except ReactionTimeoutError as exc:
                exc.__cause__ = last_error
                return _failed(url, exc, attempts=attempt, reloads=reloads)
            except DriverError as exc:
                error = RecoveryFailedError(f"Reload before retrying {url} failed: {exc}")
                error.__cause__ = exc
                logger.warning("%s", error)
                return _failed(url, error, attempts=attempt, reloads=reloads)
            self._sleep(self._policy.reload_settle_seconds)

        error = ReactionFailedError(
            f"Reaction to {url} failed after {self._policy.max_attempts} attempts: {last_error}"
        )
        error.__cause__ = last_error
        logger.warning("%s", error)
        return _failed(url, error, attempts=self._policy.max_attempts, reloads=reloads)

    def _attempt(self, driver: PageDriver, deadline: Deadline) -> None:
        driver.click(self._selectors.reaction_button, self._timeout(deadline))
        driver.wait_visible(self._selectors.reaction_picker, self._timeout(deadline))
        self._sleep(self._policy.picker_settle_seconds)
        driver.click(self._selectors.reaction_choice, self._timeout(deadline))
        self._sleep(self._policy.reaction_settle_seconds)

    def _already_reacted(self, driver: PageDriver) -> bool:
        try:
            return bool(driver.evaluate(self._marker_script))
        except DriverError as exc:
            logger.debug("Own-reaction pre-check failed, attempting anyway: %s", exc)
            return False

    def _timeout(self, deadline: Deadline) -> int:
        return deadline.bound_ms(self._policy.wait_timeout_ms)

    @staticmethod
    def _check_deadline(deadline: Deadline, url: str) -> None:
        if deadline.expired():
            raise ReactionTimeoutError(f"Per-item deadline expired while reacting to {url}.")


def _failed(url: str, error: Exception, *, attempts: int = 0, reloads: int = 0) -> DispatchOutcome:
    return DispatchOutcome(
        url=url,
        liked=False,
        status=DispatchStatus.FAILED,
        attempts=attempts,
        reloads=reloads,
        error=error,
    )
