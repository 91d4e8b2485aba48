"""PageDriver contract and its Playwright-backed implementation.

Every crawl component talks to the browser exclusively through `PageDriver`.
All operations are blocking round-trips to one page; every one of them can
fail and raises `DriverError` when it does.
"""

from __future__ import annotations

from typing import Any, Protocol

from yamap_reactor.errors import DriverError

SCROLL_TO_BOTTOM_SCRIPT = "window.scrollTo(0, document.body.scrollHeight)"
PAGE_HEIGHT_SCRIPT = "document.body.scrollHeight"


class PageDriver(Protocol):
    def navigate(self, url: str) -> None:
        """Load `url` in the current page."""

    def wait_visible(self, selector: str, timeout_ms: int | None = None) -> None:
        """Block until `selector` matches a visible element."""

    def evaluate(self, script: str) -> Any:
        """Run a JavaScript expression and return its JSON-serializable result."""

    def click(self, selector: str, timeout_ms: int | None = None) -> None:
        """Click the first element matching `selector`."""

    def send_keys(self, selector: str, text: str) -> None:
        """Type `text` into the element matching `selector`."""

    def scroll_to_bottom(self) -> None:
        """Scroll the window to the current document height."""

    def current_url(self) -> str:
        """Return the page URL."""

    def page_height(self) -> int:
        """Return `document.body.scrollHeight`."""

    def reload(self) -> None:
        """Reload the current page."""

    def screenshot(self) -> bytes:
        """Capture a full-page PNG screenshot."""

    def content(self) -> str:
        """Return the full rendered page markup."""


class PlaywrightPageDriver:
    """Adapt a Playwright sync `Page` to the `PageDriver` contract."""

    def __init__(
        self,
        page: Any,
        *,
        navigation_timeout_ms: int = 30_000,
        action_timeout_ms: int = 10_000,
    ) -> None:
        self._page = page
        self._navigation_timeout_ms = navigation_timeout_ms
        self._action_timeout_ms = action_timeout_ms

    def navigate(self, url: str) -> None:
        try:
            self._page.goto(url, wait_until="domcontentloaded", timeout=self._navigation_timeout_ms)
        except Exception as exc:
            raise DriverError(f"Could not navigate to '{url}': {exc}") from exc

    def wait_visible(self, selector: str, timeout_ms: int | None = None) -> None:
        timeout = timeout_ms if timeout_ms is not None else self._action_timeout_ms
        try:
            self._page.wait_for_selector(selector, state="visible", timeout=timeout)
        except Exception as exc:
            raise DriverError(
                f"Element '{selector}' did not become visible within {timeout} ms: {exc}"
            ) from exc

    def evaluate(self, script: str) -> Any:
        try:
            return self._page.evaluate(script)
        except Exception as exc:
            raise DriverError(f"Script evaluation failed: {exc}") from exc

    def click(self, selector: str, timeout_ms: int | None = None) -> None:
        timeout = timeout_ms if timeout_ms is not None else self._action_timeout_ms
        try:
            self._page.click(selector, timeout=timeout)
        except Exception as exc:
            raise DriverError(f"Could not click '{selector}': {exc}") from exc

    def send_keys(self, selector: str, text: str) -> None:
        try:
            self._page.fill(selector, text, timeout=self._action_timeout_ms)
        except Exception as exc:
            # The text may be a credential; never echo it.
            raise DriverError(f"Could not type into '{selector}': {exc}") from exc

    def scroll_to_bottom(self) -> None:
        try:
            self._page.evaluate(SCROLL_TO_BOTTOM_SCRIPT)
        except Exception as exc:
            raise DriverError(f"Scroll operation failed: {exc}") from exc

    def current_url(self) -> str:
        try:
            return str(self._page.url)
        except Exception as exc:
            raise DriverError(f"Could not read current URL: {exc}") from exc

    def page_height(self) -> int:
        try:
            value = self._page.evaluate(PAGE_HEIGHT_SCRIPT)
        except Exception as exc:
            raise DriverError(f"Could not read page height: {exc}") from exc
        try:
            return int(value)
        except (TypeError, ValueError) as exc:
            raise DriverError(f"Page height is not numeric: {value!r}") from exc

    def reload(self) -> None:
        try:
            self._page.reload(wait_until="domcontentloaded", timeout=self._navigation_timeout_ms)
        except Exception as exc:
            raise DriverError(f"Page reload failed: {exc}") from exc

    def screenshot(self) -> bytes:
        try:
            payload = self._page.screenshot(type="png", full_page=True)
        except Exception as exc:
            raise DriverError(f"Screenshot failed: {exc}") from exc
        return bytes(payload)

    def content(self) -> str:
        try:
            return str(self._page.content())
        except Exception as exc:
            raise DriverError(f"Could not read page content: {exc}") from exc
