"""Best-effort debug artifacts: undecodable feed payloads and login failure captures.

Every writer here logs and returns None on failure; a broken artifact write must
never turn a recoverable crawl condition into a fatal one.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import re

from yamap_reactor.browser.driver import PageDriver
from yamap_reactor.errors import DiagnosticsError, DriverError
from yamap_reactor.logging import get_logger

FAILED_FEEDS_FILENAME = "failed_unmarshal_feeds.json"
LOGIN_FAILURE_SCREENSHOT_FILENAME = "login_failure_screenshot.png"
LOGIN_FAILURE_HTML_FILENAME = "login_failure.html"
REDACTED = "<redacted>"

_SENSITIVE_VALUE_PATTERNS = (
    re.compile(r"(?i)(authorization\s*[:=]\s*)(bearer\s+[a-z0-9._~+/-]+)"),
    re.compile(r"(?i)(set-cookie\s*[:=]\s*)([^;\n]+)"),
    re.compile(r"(?i)(<input[^>]*type=\"password\"[^>]*value=\")([^\"]*)"),
    re.compile(r"(?i)(\"(?:password|access_token|refresh_token|token)\"\s*:\s*\")([^\"]+)"),
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class LoginFailureArtifacts:
    screenshot_path: Path | None
    html_path: Path | None


def redact_text(value: str) -> str:
    """Redact credential-bearing markers from free-form text."""
    redacted = value
    for pattern in _SENSITIVE_VALUE_PATTERNS:
        redacted = pattern.sub(_replace_with_redacted, redacted)
    return redacted


def resolve_artifacts_dir(artifacts_dir: str | Path) -> Path:
    root = Path(artifacts_dir).expanduser()
    if root.exists() and not root.is_dir():
        raise DiagnosticsError(f"Artifacts path '{root}' exists and is not a directory.")
    try:
        root.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise DiagnosticsError(f"Could not create artifacts directory '{root}': {exc}") from exc
    return root


def write_payload_artifact(
    artifacts_dir: str | Path,
    raw_payload: str,
    *,
    filename: str = FAILED_FEEDS_FILENAME,
) -> Path | None:
    """Write an undecodable feed payload for offline diagnosis; overwrite each time."""
    try:
        path = resolve_artifacts_dir(artifacts_dir) / filename
        path.write_text(redact_text(raw_payload), encoding="utf-8")
    except (DiagnosticsError, OSError) as exc:
        logger.warning("Could not write feed payload artifact: %s", exc)
        return None
    logger.info("Wrote undecodable feed payload to %s", path)
    return path


def write_login_failure_artifacts(
    driver: PageDriver,
    artifacts_dir: str | Path,
) -> LoginFailureArtifacts:
    """Capture a full-page screenshot and the page markup after a failed login."""
    try:
        root = resolve_artifacts_dir(artifacts_dir)
    except DiagnosticsError as exc:
        logger.warning("Skipping login failure artifacts: %s", exc)
        return LoginFailureArtifacts(screenshot_path=None, html_path=None)

    screenshot_path: Path | None = root / LOGIN_FAILURE_SCREENSHOT_FILENAME
    try:
        screenshot_path.write_bytes(driver.screenshot())
    except (DriverError, OSError) as exc:
        logger.warning("Could not save login failure screenshot: %s", exc)
        screenshot_path = None

    html_path: Path | None = root / LOGIN_FAILURE_HTML_FILENAME
    try:
        html_path.write_text(redact_text(driver.content()), encoding="utf-8")
    except (DriverError, OSError) as exc:
        logger.warning("Could not save login failure markup: %s", exc)
        html_path = None

    if screenshot_path is not None or html_path is not None:
        logger.info(
            "Login failure artifacts: screenshot=%s html=%s", screenshot_path, html_path
        )
    return LoginFailureArtifacts(screenshot_path=screenshot_path, html_path=html_path)


def _replace_with_redacted(match: re.Match[str]) -> str:
    return f"{match.group(1)}{REDACTED}"
