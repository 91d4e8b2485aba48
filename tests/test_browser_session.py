"""Browser session lifecycle and resource routing behavior."""

from __future__ import annotations

import pytest

from yamap_reactor.browser.session import (
    BLOCKED_RESOURCE_TYPES,
    CHROMIUM_ARGS,
    PlaywrightBrowserSession,
)
from yamap_reactor.config import BrowserConfig, RuntimeConfig
from yamap_reactor.errors import BrowserError


class FakePage:
    def __init__(self) -> None:
        self.routes: list[tuple[str, object]] = []

    def route(self, pattern: str, handler: object) -> None:
        self.routes.append((pattern, handler))


class FakeContext:
    def __init__(self, *, events: list[str], close_error: Exception | None = None) -> None:
        self.events = events
        self.close_error = close_error
        self.default_timeout_ms: int | None = None
        self.navigation_timeout_ms: int | None = None
        self.pages: list[FakePage] = []

    def set_default_timeout(self, timeout_ms: int) -> None:
        self.default_timeout_ms = timeout_ms

    def set_default_navigation_timeout(self, timeout_ms: int) -> None:
        self.navigation_timeout_ms = timeout_ms

    def new_page(self) -> FakePage:
        page = FakePage()
        self.pages.append(page)
        return page

    def close(self) -> None:
        self.events.append("context.close")
        if self.close_error is not None:
            raise self.close_error


class FakeBrowser:
    def __init__(self, context: FakeContext, *, events: list[str]) -> None:
        self.context = context
        self.events = events
        self.new_context_kwargs: dict[str, object] | None = None

    def new_context(self, **kwargs: object) -> FakeContext:
        self.new_context_kwargs = kwargs
        return self.context

    def close(self) -> None:
        self.events.append("browser.close")


class FakeLauncher:
    def __init__(self, browser: FakeBrowser) -> None:
        self.browser = browser
        self.launch_kwargs: list[dict[str, object]] = []

    def launch(self, **kwargs: object) -> FakeBrowser:
        self.launch_kwargs.append(kwargs)
        return self.browser


class FakePlaywright:
    def __init__(self, **engines: FakeLauncher) -> None:
        for name, launcher in engines.items():
            setattr(self, name, launcher)


class FakePlaywrightContextManager:
    def __init__(self, playwright: FakePlaywright, *, events: list[str]) -> None:
        self.playwright = playwright
        self.events = events

    def __enter__(self) -> FakePlaywright:
        self.events.append("playwright.enter")
        return self.playwright

    def __exit__(self, exc_type: object, exc: object, tb: object) -> bool:
        self.events.append("playwright.exit")
        return False


class FakeRoute:
    def __init__(self) -> None:
        self.action: str | None = None

    def abort(self) -> None:
        self.action = "abort"

    def continue_(self) -> None:
        self.action = "continue"


class FakeRequest:
    def __init__(self, resource_type: str) -> None:
        self.resource_type = resource_type


def _session(
    events: list[str],
    *,
    context_close_error: Exception | None = None,
    **browser_overrides: object,
) -> tuple[PlaywrightBrowserSession, FakeLauncher, FakeBrowser, FakeContext]:
    context = FakeContext(events=events, close_error=context_close_error)
    browser = FakeBrowser(context, events=events)
    launcher = FakeLauncher(browser)
    manager = FakePlaywrightContextManager(FakePlaywright(chromium=launcher), events=events)
    session = PlaywrightBrowserSession(
        RuntimeConfig(browser=BrowserConfig(**browser_overrides)),
        playwright_factory=lambda: manager,
    )
    return session, launcher, browser, context


def test_open_wires_launch_context_and_timeouts_from_config() -> None:
    events: list[str] = []
    session, launcher, browser, context = _session(
        events,
        navigation_timeout_ms=12_345,
        action_timeout_ms=4_321,
        viewport_width=1440,
        viewport_height=900,
    )

    session.open()

    assert launcher.launch_kwargs == [{"headless": True, "args": list(CHROMIUM_ARGS)}]
    assert browser.new_context_kwargs == {
        "locale": "ja-JP",
        "viewport": {"width": 1440, "height": 900},
    }
    assert context.default_timeout_ms == 4_321
    assert context.navigation_timeout_ms == 12_345


def test_headless_override_wins_over_config() -> None:
    events: list[str] = []
    context = FakeContext(events=events)
    launcher = FakeLauncher(FakeBrowser(context, events=events))
    manager = FakePlaywrightContextManager(FakePlaywright(chromium=launcher), events=events)
    session = PlaywrightBrowserSession(
        RuntimeConfig(), headless=False, playwright_factory=lambda: manager
    )

    session.open()

    assert launcher.launch_kwargs[0]["headless"] is False


def test_page_is_created_once_and_routes_heavy_resources() -> None:
    events: list[str] = []
    session, _, _, context = _session(events)

    first = session.page()
    second = session.page()

    assert first is second
    assert len(context.pages) == 1
    assert [pattern for pattern, _ in first.routes] == ["**/*"]

    handler = first.routes[0][1]
    for resource_type in sorted(BLOCKED_RESOURCE_TYPES):
        route = FakeRoute()
        handler(route, FakeRequest(resource_type))
        assert route.action == "abort"
    route = FakeRoute()
    handler(route, FakeRequest("stylesheet"))
    assert route.action == "continue"


def test_page_skips_routing_when_blocking_disabled() -> None:
    events: list[str] = []
    session, _, _, _ = _session(events, block_resources=False)
    assert session.page().routes == []


def test_context_manager_tears_down_in_order() -> None:
    events: list[str] = []
    session, _, _, _ = _session(events)

    with session:
        pass

    assert events == ["playwright.enter", "context.close", "browser.close", "playwright.exit"]


def test_close_raises_browser_error_after_full_teardown() -> None:
    events: list[str] = []
    session, _, _, _ = _session(events, context_close_error=RuntimeError("boom"))
    session.open()

    with pytest.raises(BrowserError, match="context close failed: boom"):
        session.close()
    assert events[-2:] == ["browser.close", "playwright.exit"]


def test_unsupported_engine_raises_and_cleans_up() -> None:
    events: list[str] = []
    manager = FakePlaywrightContextManager(FakePlaywright(), events=events)
    session = PlaywrightBrowserSession(RuntimeConfig(), playwright_factory=lambda: manager)

    with pytest.raises(BrowserError, match="Unsupported browser engine 'chromium'"):
        session.open()
    assert events == ["playwright.enter", "playwright.exit"]
