"""Credential login against the site's email/password form."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
import time as time_module

from .browser.driver import PageDriver
from .config import SelectorsConfig
from .diagnostics.artifacts import write_login_failure_artifacts
from .errors import AuthError, DriverError
from .logging import get_logger
from .settings import Credentials

DEFAULT_LOGIN_URL = "https://yamap.com/login"

SleepFn = Callable[[float], None]

logger = get_logger(__name__)


@dataclass(frozen=True)
class LoginForm:
    email: str
    password: str
    submit: str

    @classmethod
    def from_config(cls, selectors: SelectorsConfig) -> LoginForm:
        return cls(
            email=selectors.login_email,
            password=selectors.login_password,
            submit=selectors.login_submit,
        )


def login(
    driver: PageDriver,
    credentials: Credentials,
    selectors: LoginForm,
    readiness_selector: str,
    *,
    login_url: str = DEFAULT_LOGIN_URL,
    landing_url: str,
    artifacts_dir: str | Path = ".",
    settle_seconds: float = 5.0,
    wait_timeout_ms: int = 30_000,
    sleep_fn: SleepFn | None = None,
) -> None:
    """Sign in, then land on `landing_url` and wait for `readiness_selector`.

    Any failure captures a screenshot and markup into `artifacts_dir` and
    raises AuthError; the run cannot continue without a session.
    """
    sleep = sleep_fn or time_module.sleep
    logger.info("Logging in as %s", credentials.email)
    try:
        driver.navigate(login_url)
        driver.wait_visible(selectors.email, wait_timeout_ms)
        driver.send_keys(selectors.email, credentials.email)
        driver.send_keys(selectors.password, credentials.password)
        driver.click(selectors.submit)
    except DriverError as exc:
        write_login_failure_artifacts(driver, artifacts_dir)
        raise AuthError(
            f"Could not submit the login form at '{login_url}': {exc}. "
            "Check the login selectors in [selectors] or the site's availability."
        ) from exc

    # Submission triggers a client-side redirect with no stable marker to wait on.
    sleep(settle_seconds)

    try:
        driver.navigate(landing_url)
        driver.wait_visible(readiness_selector, wait_timeout_ms)
        current = driver.current_url()
    except DriverError as exc:
        write_login_failure_artifacts(driver, artifacts_dir)
        raise AuthError(
            f"Login did not reach '{landing_url}' (waiting for '{readiness_selector}'): {exc}. "
            "Verify YAMAP_EMAIL/YAMAP_PASSWORD and inspect the saved login failure screenshot."
        ) from exc

    if current.startswith(login_url):
        write_login_failure_artifacts(driver, artifacts_dir)
        raise AuthError(
            "Still on the login page after submitting credentials. "
            "Verify YAMAP_EMAIL/YAMAP_PASSWORD."
        )
    logger.info("Login succeeded; on %s", landing_url)
