"""Playwright page driver adaptation and error wrapping."""

from __future__ import annotations

import pytest

from yamap_reactor.browser.driver import (
    PAGE_HEIGHT_SCRIPT,
    SCROLL_TO_BOTTOM_SCRIPT,
    PlaywrightPageDriver,
)
from yamap_reactor.errors import DriverError


class FakePage:
    def __init__(self, *, fail: set[str] | None = None, height: object = 2400) -> None:
        self.url = "https://yamap.com/timeline"
        self.calls: list[tuple[str, tuple[object, ...], dict[str, object]]] = []
        self._fail = fail or set()
        self._height = height

    def _record(self, name: str, *args: object, **kwargs: object) -> None:
        self.calls.append((name, args, kwargs))
        if name in self._fail:
            raise TimeoutError(f"{name} timed out")

    def goto(self, url: str, **kwargs: object) -> None:
        self._record("goto", url, **kwargs)
        self.url = url

    def wait_for_selector(self, selector: str, **kwargs: object) -> None:
        self._record("wait_for_selector", selector, **kwargs)

    def evaluate(self, script: str) -> object:
        self._record("evaluate", script)
        if script == PAGE_HEIGHT_SCRIPT:
            return self._height
        return {"script": script}

    def click(self, selector: str, **kwargs: object) -> None:
        self._record("click", selector, **kwargs)

    def fill(self, selector: str, text: str, **kwargs: object) -> None:
        self._record("fill", selector, text, **kwargs)

    def reload(self, **kwargs: object) -> None:
        self._record("reload", **kwargs)

    def screenshot(self, **kwargs: object) -> bytes:
        self._record("screenshot", **kwargs)
        return b"png-bytes"

    def content(self) -> str:
        self._record("content")
        return "<html></html>"


def _driver(page: FakePage) -> PlaywrightPageDriver:
    return PlaywrightPageDriver(page, navigation_timeout_ms=30_000, action_timeout_ms=5_000)


def test_navigate_uses_navigation_timeout() -> None:
    page = FakePage()
    _driver(page).navigate("https://yamap.com/activities/1")

    assert page.calls == [
        (
            "goto",
            ("https://yamap.com/activities/1",),
            {"wait_until": "domcontentloaded", "timeout": 30_000},
        )
    ]
    assert page.url == "https://yamap.com/activities/1"


def test_wait_visible_defaults_to_action_timeout_and_accepts_override() -> None:
    page = FakePage()
    driver = _driver(page)

    driver.wait_visible(".FooterNav")
    driver.wait_visible(".FooterNav", 250)

    assert [call[2] for call in page.calls] == [
        {"state": "visible", "timeout": 5_000},
        {"state": "visible", "timeout": 250},
    ]


def test_scroll_and_height_use_document_scripts() -> None:
    page = FakePage(height=3200.0)
    driver = _driver(page)

    driver.scroll_to_bottom()
    height = driver.page_height()

    assert [call[1][0] for call in page.calls] == [SCROLL_TO_BOTTOM_SCRIPT, PAGE_HEIGHT_SCRIPT]
    assert height == 3200


def test_non_numeric_height_raises_driver_error() -> None:
    driver = _driver(FakePage(height=None))
    with pytest.raises(DriverError, match="not numeric"):
        driver.page_height()


def test_screenshot_is_full_page_png() -> None:
    page = FakePage()
    assert _driver(page).screenshot() == b"png-bytes"
    assert page.calls[0][2] == {"type": "png", "full_page": True}


def test_current_url_and_content_pass_through() -> None:
    driver = _driver(FakePage())
    assert driver.current_url() == "https://yamap.com/timeline"
    assert driver.content() == "<html></html>"


@pytest.mark.parametrize(
    "operation, call, message",
    [
        ("goto", lambda d: d.navigate("https://yamap.com/x"), "Could not navigate"),
        ("wait_for_selector", lambda d: d.wait_visible(".x"), "did not become visible"),
        ("click", lambda d: d.click(".x"), "Could not click"),
        ("reload", lambda d: d.reload(), "reload failed"),
        ("evaluate", lambda d: d.evaluate("1"), "Script evaluation failed"),
        ("content", lambda d: d.content(), "Could not read page content"),
    ],
)
def test_page_failures_become_driver_errors(operation: str, call: object, message: str) -> None:
    driver = _driver(FakePage(fail={operation}))
    with pytest.raises(DriverError, match=message):
        call(driver)  # type: ignore[operator]


def test_send_keys_failure_never_echoes_typed_text() -> None:
    driver = _driver(FakePage(fail={"fill"}))
    with pytest.raises(DriverError) as excinfo:
        driver.send_keys('input[name="password"]', "hunter2")
    assert "hunter2" not in str(excinfo.value)
