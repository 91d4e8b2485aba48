"""Logging setup helpers for yamap-reactor."""

from __future__ import annotations

import logging

LOGGER_NAME = "yamap_reactor"


def configure_logging(debug: bool = False) -> None:
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    # The Playwright sync API drives an asyncio loop that is noisy at DEBUG.
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> logging.Logger:
    return logging.getLogger(name or LOGGER_NAME)
