"""
Credential and run-target settings.
Loads environment variables, optionally materialized from a `.env` file.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigError
from .models import CrawlAction

DEFAULT_ENV_FILE = ".env"

_TARGET_COUNT_ENV = {
    CrawlAction.REACT_TIMELINE: "timeline_post_count_to_process",
    CrawlAction.REACT_ACTIVITIES: "activities_post_count_to_process",
}


class CredentialSettings(BaseSettings):
    """Raw values; validation happens in `resolve_credentials`."""

    model_config = SettingsConfigDict(
        env_file=DEFAULT_ENV_FILE,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    yamap_email: str = ""
    yamap_password: str = ""
    post_count_to_process: str = ""  # Shared fallback for both actions
    timeline_post_count_to_process: str = ""
    activities_post_count_to_process: str = ""


@dataclass(frozen=True)
class Credentials:
    email: str
    password: str
    target_count: int

    def __repr__(self) -> str:
        return (
            f"Credentials(email={self.email!r}, password='<redacted>', "
            f"target_count={self.target_count})"
        )


def load_settings(env_file: str | Path | None = DEFAULT_ENV_FILE) -> CredentialSettings:
    """Read settings from process env, then the optional env file (env wins)."""
    if env_file is None:
        return CredentialSettings(_env_file=None)
    return CredentialSettings(_env_file=str(env_file))


def resolve_credentials(
    action: CrawlAction,
    settings: CredentialSettings | None = None,
) -> Credentials:
    """Validate required credentials and the positive target count for `action`."""
    resolved = settings if settings is not None else load_settings()

    missing: list[str] = []
    email = resolved.yamap_email.strip()
    password = resolved.yamap_password
    if not email:
        missing.append("YAMAP_EMAIL")
    if not password:
        missing.append("YAMAP_PASSWORD")

    action_field = _TARGET_COUNT_ENV[action]
    raw_count = getattr(resolved, action_field).strip() or resolved.post_count_to_process.strip()
    if not raw_count:
        missing.append(f"{action_field.upper()} or POST_COUNT_TO_PROCESS")

    if missing:
        raise ConfigError(
            f"Missing required environment variable(s): {', '.join(missing)}. "
            f"Export them or add them to '{DEFAULT_ENV_FILE}'."
        )

    return Credentials(
        email=email,
        password=password,
        target_count=parse_target_count(raw_count),
    )


def parse_target_count(raw: str) -> int:
    try:
        value = int(raw.strip())
    except ValueError as exc:
        raise ConfigError(
            f"Invalid target count '{raw}': expected a positive integer."
        ) from exc
    if value <= 0:
        raise ConfigError(f"Invalid target count '{raw}': expected a positive integer.")
    return value
