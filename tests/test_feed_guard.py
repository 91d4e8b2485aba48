"""Session guard re-navigation back to the feed page."""

from __future__ import annotations

import pytest

from yamap_reactor.deadline import Deadline
from yamap_reactor.errors import SessionGuardError
from yamap_reactor.feed.guard import SessionGuard
from yamap_reactor.testing import ManualClock, ScriptedDriver

FEED_URL = "https://yamap.com/timeline"


def test_guard_is_noop_when_already_on_feed() -> None:
    guard = SessionGuard(FEED_URL, ".TimelineList__Feed")
    driver = ScriptedDriver(current=f"{FEED_URL}?page=2")

    assert guard.ensure_on(driver) is False
    assert driver.calls_for("navigate") == []
    assert guard.renavigations == 0


def test_guard_renavigates_and_waits_for_readiness() -> None:
    guard = SessionGuard(FEED_URL, ".TimelineList__Feed")
    driver = ScriptedDriver(current="https://yamap.com/activities/1")

    assert guard.ensure_on(driver) is True
    assert driver.calls_for("navigate") == [FEED_URL]
    assert driver.calls_for("wait_visible") == [".TimelineList__Feed"]
    assert guard.renavigations == 1


def test_guard_honors_explicit_prefix() -> None:
    guard = SessionGuard(FEED_URL, "body")
    driver = ScriptedDriver(current="https://yamap.com/activities/1")

    assert guard.ensure_on(driver, "https://yamap.com/") is False


def test_guard_failure_raises_session_guard_error() -> None:
    guard = SessionGuard(FEED_URL, ".TimelineList__Feed")
    driver = ScriptedDriver(current="https://yamap.com/activities/1")
    driver.fail("wait_visible", ".TimelineList__Feed")

    with pytest.raises(SessionGuardError, match="Could not return to feed"):
        guard.ensure_on(driver)
    assert guard.renavigations == 0


def test_guard_url_read_failure_raises_session_guard_error() -> None:
    guard = SessionGuard(FEED_URL, "body")
    driver = ScriptedDriver()
    driver.fail("current_url")

    with pytest.raises(SessionGuardError, match="current page URL"):
        guard.ensure_on(driver)


def test_guard_wait_is_bounded_by_deadline() -> None:
    timeouts: list[int | None] = []

    class RecordingDriver(ScriptedDriver):
        def wait_visible(self, selector: str, timeout_ms: int | None = None) -> None:
            timeouts.append(timeout_ms)

    guard = SessionGuard(FEED_URL, "body", wait_timeout_ms=30_000)
    driver = RecordingDriver(current="https://yamap.com/activities/1")

    guard.ensure_on(driver, deadline=Deadline(2, clock=ManualClock()))

    assert timeouts == [2000]
