"""Credential login flow and failure artifact capture."""

from __future__ import annotations

from pathlib import Path

import pytest

from yamap_reactor.auth import LoginForm, login
from yamap_reactor.config import SelectorsConfig
from yamap_reactor.diagnostics.artifacts import (
    LOGIN_FAILURE_HTML_FILENAME,
    LOGIN_FAILURE_SCREENSHOT_FILENAME,
)
from yamap_reactor.errors import AuthError
from yamap_reactor.settings import Credentials
from yamap_reactor.testing import ScriptedDriver, SleepRecorder

LOGIN_URL = "https://yamap.com/login"
TIMELINE_URL = "https://yamap.com/timeline"
FORM = LoginForm.from_config(SelectorsConfig())
CREDENTIALS = Credentials(email="hiker@example.com", password="s3cret", target_count=5)


def _login(driver: ScriptedDriver, tmp_path: Path, sleep: SleepRecorder | None = None) -> None:
    login(
        driver,
        CREDENTIALS,
        FORM,
        ".TimelineList__Feed",
        login_url=LOGIN_URL,
        landing_url=TIMELINE_URL,
        artifacts_dir=tmp_path,
        sleep_fn=sleep or SleepRecorder(),
    )


def test_login_fills_form_then_lands_on_feed(tmp_path: Path) -> None:
    driver = ScriptedDriver()
    sleep = SleepRecorder()

    _login(driver, tmp_path, sleep)

    assert driver.calls_for("navigate") == [LOGIN_URL, TIMELINE_URL]
    assert driver.typed == {FORM.email: "hiker@example.com", FORM.password: "s3cret"}
    assert driver.calls_for("click") == [FORM.submit]
    assert driver.calls_for("wait_visible") == [FORM.email, ".TimelineList__Feed"]
    assert sleep.calls == [5.0]
    assert list(tmp_path.iterdir()) == []


def test_login_form_failure_raises_auth_error_with_artifacts(tmp_path: Path) -> None:
    driver = ScriptedDriver(markup="<html>login</html>")
    driver.fail("wait_visible", FORM.email)

    with pytest.raises(AuthError, match="Could not submit the login form"):
        _login(driver, tmp_path)

    assert (tmp_path / LOGIN_FAILURE_SCREENSHOT_FILENAME).read_bytes() == driver.screenshot_bytes
    assert (tmp_path / LOGIN_FAILURE_HTML_FILENAME).read_text(encoding="utf-8") == "<html>login</html>"


def test_login_missing_feed_root_raises_auth_error(tmp_path: Path) -> None:
    driver = ScriptedDriver()
    driver.fail("wait_visible", ".TimelineList__Feed")

    with pytest.raises(AuthError, match="Verify YAMAP_EMAIL/YAMAP_PASSWORD"):
        _login(driver, tmp_path)

    assert (tmp_path / LOGIN_FAILURE_SCREENSHOT_FILENAME).exists()


def test_login_redirected_back_to_login_page_is_auth_error(tmp_path: Path) -> None:
    class BouncingDriver(ScriptedDriver):
        def navigate(self, url: str) -> None:
            super().navigate(url)
            self.current = LOGIN_URL

    with pytest.raises(AuthError, match="Still on the login page"):
        _login(BouncingDriver(), tmp_path)


def test_login_artifact_failure_does_not_mask_auth_error(tmp_path: Path) -> None:
    driver = ScriptedDriver()
    driver.fail("click", FORM.submit)
    driver.fail("screenshot")
    driver.fail("content")

    with pytest.raises(AuthError):
        _login(driver, tmp_path)

    assert list(tmp_path.iterdir()) == []
