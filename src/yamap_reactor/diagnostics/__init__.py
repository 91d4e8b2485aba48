"""Diagnostics contracts."""

from .artifacts import (
    FAILED_FEEDS_FILENAME,
    LOGIN_FAILURE_HTML_FILENAME,
    LOGIN_FAILURE_SCREENSHOT_FILENAME,
    LoginFailureArtifacts,
    redact_text,
    write_login_failure_artifacts,
    write_payload_artifact,
)

__all__ = [
    "FAILED_FEEDS_FILENAME",
    "LOGIN_FAILURE_HTML_FILENAME",
    "LOGIN_FAILURE_SCREENSHOT_FILENAME",
    "LoginFailureArtifacts",
    "redact_text",
    "write_login_failure_artifacts",
    "write_payload_artifact",
]
