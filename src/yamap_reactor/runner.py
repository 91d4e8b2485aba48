"""End-to-end wiring of one crawl run: session, login, walker, deadlines."""

from __future__ import annotations

from collections.abc import Callable
import time as time_module
from typing import Any, Protocol

from .auth import LoginForm, login
from .browser.driver import PageDriver, PlaywrightPageDriver
from .browser.session import PlaywrightBrowserSession
from .config import RuntimeConfig
from .deadline import ClockFn, Deadline
from .diagnostics.artifacts import write_payload_artifact
from .errors import DecodeFailedError
from .feed.guard import SessionGuard
from .feed.snapshot import FeedSnapshotReader
from .feed.targets import build_target
from .feed.walker import FeedWalker, GuardPlacement, WalkerPolicy
from .logging import get_logger
from .models import CrawlAction, RunResult
from .reaction.dispatcher import ReactionDispatcher, ReactionPolicy, ReactionSelectors
from .settings import Credentials

SleepFn = Callable[[float], None]

logger = get_logger(__name__)


class BrowserSession(Protocol):
    def __enter__(self) -> Any: ...

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> Any: ...

    def page(self) -> Any:
        """Return the session's page."""


SessionFactory = Callable[[RuntimeConfig, "bool | None"], BrowserSession]
DriverFactory = Callable[[Any, RuntimeConfig], PageDriver]


def run_crawl(
    action: CrawlAction,
    config: RuntimeConfig,
    credentials: Credentials,
    *,
    headless: bool | None = None,
    snapshot_mode: str = "direct",
    session_factory: SessionFactory | None = None,
    driver_factory: DriverFactory | None = None,
    sleep_fn: SleepFn | None = None,
    clock: ClockFn | None = None,
) -> RunResult:
    """Log in and walk the feed for `action` until its target or a stop condition.

    Raises AuthError, BrowserError or SessionGuardError on fatal conditions;
    deadline expiry returns the partial result instead.
    """
    sleep = sleep_fn or time_module.sleep
    run_deadline = Deadline(config.crawl.run_timeout_seconds, clock=clock)
    target = build_target(action, config, snapshot_mode=snapshot_mode)
    open_session = session_factory or _default_session_factory
    make_driver = driver_factory or _default_driver_factory

    logger.info(
        "Starting %s: target=%d reactions, feed=%s",
        action.value,
        credentials.target_count,
        target.feed_url,
    )
    with open_session(config, headless) as session:
        driver = make_driver(session.page(), config)
        login(
            driver,
            credentials,
            LoginForm.from_config(config.selectors),
            target.login_readiness_selector,
            login_url=config.site.login_url,
            landing_url=target.feed_url,
            artifacts_dir=config.app.artifacts_dir,
            settle_seconds=config.crawl.post_login_settle_seconds,
            wait_timeout_ms=config.browser.navigation_timeout_ms,
            sleep_fn=sleep,
        )

        guard = SessionGuard(
            target.feed_url,
            target.readiness_selector,
            wait_timeout_ms=config.browser.navigation_timeout_ms,
        )
        walker = FeedWalker(
            FeedSnapshotReader(target.strategy, url_template=config.site.item_url_template),
            ReactionDispatcher(
                ReactionSelectors.from_config(config.selectors),
                ReactionPolicy.from_config(
                    config.crawl, wait_timeout_ms=config.browser.action_timeout_ms
                ),
                sleep_fn=sleep,
            ),
            guard,
            policy=WalkerPolicy(
                stagnation_rounds=target.stagnation_rounds,
                max_scrolls=config.crawl.max_scrolls,
                scroll_settle_seconds=target.scroll_settle_seconds,
                between_items_seconds=config.crawl.between_items_seconds,
                guard_placement=GuardPlacement(config.crawl.guard_placement),
                item_timeout_seconds=config.crawl.item_timeout_seconds,
            ),
            sleep_fn=sleep,
            on_decode_failure=_payload_artifact_hook(config.app.artifacts_dir),
        )
        result = walker.run(driver, credentials.target_count, deadline=run_deadline)

    logger.info("Returned to the feed %d time(s) during the run", guard.renavigations)
    return result


def _payload_artifact_hook(artifacts_dir: str) -> Callable[[DecodeFailedError], object]:
    def _hook(exc: DecodeFailedError) -> object:
        if not exc.raw_payload:
            return None
        return write_payload_artifact(artifacts_dir, exc.raw_payload)

    return _hook


def _default_session_factory(config: RuntimeConfig, headless: bool | None) -> BrowserSession:
    return PlaywrightBrowserSession(config, headless=headless)


def _default_driver_factory(page: Any, config: RuntimeConfig) -> PageDriver:
    return PlaywrightPageDriver(
        page,
        navigation_timeout_ms=config.browser.navigation_timeout_ms,
        action_timeout_ms=config.browser.action_timeout_ms,
    )
