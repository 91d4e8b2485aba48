"""Playwright browser lifecycle for one crawl run."""

from __future__ import annotations

from collections.abc import Callable
from contextlib import AbstractContextManager
from dataclasses import dataclass
from typing import Any

from yamap_reactor.config import RuntimeConfig
from yamap_reactor.errors import BrowserError
from yamap_reactor.logging import get_logger

# Stylesheets stay enabled: visibility waits depend on computed layout.
BLOCKED_RESOURCE_TYPES = frozenset({"image", "media", "font"})
CHROMIUM_ARGS = ("--no-sandbox", "--disable-gpu", "--disable-dev-shm-usage")

logger = get_logger(__name__)


@dataclass(frozen=True)
class BrowserSessionOptions:
    engine: str
    headless: bool
    navigation_timeout_ms: int
    action_timeout_ms: int
    locale: str
    viewport_width: int
    viewport_height: int
    block_resources: bool


class PlaywrightBrowserSession:
    """Own one browser, one context and one page; tear all three down together."""

    def __init__(
        self,
        config: RuntimeConfig,
        *,
        headless: bool | None = None,
        playwright_factory: Callable[[], AbstractContextManager[Any]] | None = None,
    ) -> None:
        browser = config.browser
        self.options = BrowserSessionOptions(
            engine=browser.engine,
            headless=headless if headless is not None else browser.headless,
            navigation_timeout_ms=browser.navigation_timeout_ms,
            action_timeout_ms=browser.action_timeout_ms,
            locale=browser.locale,
            viewport_width=browser.viewport_width,
            viewport_height=browser.viewport_height,
            block_resources=browser.block_resources,
        )
        self._playwright_factory = playwright_factory or _default_playwright_factory
        self._playwright_cm: AbstractContextManager[Any] | None = None
        self._browser: Any | None = None
        self._context: Any | None = None
        self._page: Any | None = None

    def open(self) -> None:
        if self._context is not None:
            return

        try:
            self._playwright_cm = self._playwright_factory()
            playwright = self._playwright_cm.__enter__()

            launcher = getattr(playwright, self.options.engine, None)
            if launcher is None:
                raise BrowserError(
                    f"Unsupported browser engine '{self.options.engine}' for Playwright session."
                )

            launch_kwargs: dict[str, Any] = {"headless": self.options.headless}
            if self.options.engine == "chromium":
                launch_kwargs["args"] = list(CHROMIUM_ARGS)
            self._browser = launcher.launch(**launch_kwargs)

            self._context = self._browser.new_context(
                locale=self.options.locale,
                viewport={
                    "width": self.options.viewport_width,
                    "height": self.options.viewport_height,
                },
            )
            self._context.set_default_timeout(self.options.action_timeout_ms)
            self._context.set_default_navigation_timeout(self.options.navigation_timeout_ms)
        except BrowserError:
            self._teardown(raise_on_error=False)
            raise
        except Exception as exc:
            self._teardown(raise_on_error=False)
            raise BrowserError(f"Failed to open browser session: {exc}") from exc
        logger.info(
            "Browser session opened (engine=%s, headless=%s)",
            self.options.engine,
            self.options.headless,
        )

    def page(self) -> Any:
        """Return the session's single page, creating it on first use."""
        if self._page is not None:
            return self._page
        if self._context is None:
            self.open()
        if self._context is None:
            raise BrowserError("Browser session is not open.")

        try:
            page = self._context.new_page()
            if self.options.block_resources:
                page.route("**/*", _block_heavy_resources)
        except Exception as exc:
            raise BrowserError(f"Failed to create browser page: {exc}") from exc
        self._page = page
        return page

    def close(self) -> None:
        self._teardown(raise_on_error=True)

    def __enter__(self) -> PlaywrightBrowserSession:
        self.open()
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> bool:
        try:
            self.close()
        except BrowserError:
            if exc_type is None:
                raise
        return False

    def _teardown(self, *, raise_on_error: bool) -> None:
        errors: list[str] = []
        self._page = None

        for label, attr in (("context", "_context"), ("browser", "_browser")):
            resource = getattr(self, attr)
            if resource is None:
                continue
            try:
                resource.close()
            except Exception as exc:
                errors.append(f"{label} close failed: {exc}")
            finally:
                setattr(self, attr, None)

        if self._playwright_cm is not None:
            try:
                self._playwright_cm.__exit__(None, None, None)
            except Exception as exc:
                errors.append(f"playwright teardown failed: {exc}")
            finally:
                self._playwright_cm = None

        if raise_on_error and errors:
            raise BrowserError(
                "Errors occurred during browser session teardown: " + "; ".join(errors)
            )


def _block_heavy_resources(route: Any, request: Any) -> Any:
    resource_type = str(getattr(request, "resource_type", "")).strip().lower()
    if resource_type in BLOCKED_RESOURCE_TYPES:
        return route.abort()
    return route.continue_()


def _default_playwright_factory() -> AbstractContextManager[Any]:
    from playwright.sync_api import sync_playwright

    return sync_playwright()
