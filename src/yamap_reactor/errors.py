"""Error taxonomy for stable module boundaries."""

from __future__ import annotations

from typing import Any


class YamapReactorError(Exception):
    """Base exception for yamap-reactor."""


class ConfigError(YamapReactorError):
    """Raised when configuration or credentials are invalid or missing."""


class AuthError(YamapReactorError):
    """Raised when the login flow cannot reach an authenticated page."""


class BrowserError(YamapReactorError):
    """Raised for browser/session management failures."""


class DriverError(BrowserError):
    """Raised when a single page-driver operation fails or times out."""


class FeedError(YamapReactorError):
    """Raised when the feed state cannot be read from the page."""


class NoFeedDataError(FeedError):
    """Raised when the page carries no feed state yet; retry after scrolling."""


class DecodeFailedError(FeedError):
    """Raised when feed state exists but is structurally invalid."""

    def __init__(self, message: str, *, raw_payload: str = "") -> None:
        super().__init__(message)
        self.raw_payload = raw_payload


class ReactionError(YamapReactorError):
    """Base for per-item reaction failures."""


class PageLoadFailedError(ReactionError):
    """Raised when the item detail page never shows the reaction control."""


class RecoveryFailedError(ReactionError):
    """Raised when a reload between reaction attempts fails."""


class ReactionFailedError(ReactionError):
    """Raised when every reaction attempt failed."""


class ReactionTimeoutError(ReactionFailedError):
    """Raised when the per-item deadline expires mid-dispatch."""


class SessionGuardError(YamapReactorError):
    """Raised when the driver cannot be returned to the feed page.

    When the error ends a walk, `partial_result` holds the `RunResult` built so far.
    """

    def __init__(self, message: str, *, partial_result: Any = None) -> None:
        super().__init__(message)
        self.partial_result = partial_result


class DiagnosticsError(YamapReactorError):
    """Raised for diagnostics artifact path failures."""
