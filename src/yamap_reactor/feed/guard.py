"""Keep the driver on the feed page between units of work."""

from __future__ import annotations

from yamap_reactor.browser.driver import PageDriver
from yamap_reactor.deadline import Deadline
from yamap_reactor.errors import DriverError, SessionGuardError
from yamap_reactor.logging import get_logger

logger = get_logger(__name__)


class SessionGuard:
    """Re-navigate to the canonical feed URL when the driver has strayed.

    `readiness_selector` is the feed root container for the strong readiness
    bar, or ``body`` for the lighter one.
    """

    def __init__(
        self,
        feed_url: str,
        readiness_selector: str,
        *,
        expected_url_prefix: str | None = None,
        wait_timeout_ms: int = 30_000,
    ) -> None:
        self.feed_url = feed_url
        self.readiness_selector = readiness_selector
        self.expected_url_prefix = expected_url_prefix or feed_url
        self._wait_timeout_ms = wait_timeout_ms
        self.renavigations = 0

    def ensure_on(
        self,
        driver: PageDriver,
        expected_url_prefix: str | None = None,
        *,
        deadline: Deadline | None = None,
    ) -> bool:
        """Return True when a re-navigation happened; raise SessionGuardError on failure."""
        prefix = expected_url_prefix or self.expected_url_prefix
        try:
            current = driver.current_url()
        except DriverError as exc:
            raise SessionGuardError(f"Could not read the current page URL: {exc}") from exc
        if current.startswith(prefix):
            return False

        logger.info("Driver is on %s; returning to feed %s", current, self.feed_url)
        timeout_ms = (
            deadline.bound_ms(self._wait_timeout_ms) if deadline is not None else self._wait_timeout_ms
        )
        try:
            driver.navigate(self.feed_url)
            driver.wait_visible(self.readiness_selector, timeout_ms)
        except DriverError as exc:
            raise SessionGuardError(
                f"Could not return to feed '{self.feed_url}' "
                f"(waiting for '{self.readiness_selector}'): {exc}"
            ) from exc
        self.renavigations += 1
        return True
