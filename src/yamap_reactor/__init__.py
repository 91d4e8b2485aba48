"""yamap_reactor package scaffold."""

from .config import (
    AppConfig,
    BrowserConfig,
    CrawlConfig,
    RuntimeConfig,
    SelectorsConfig,
    SiteConfig,
    config_to_dict,
    default_config,
    init_default_config,
    load_runtime_config,
    resolve_config_path,
)
from .models import CrawlAction, DispatchOutcome, FeedItem, RunResult, StopReason

__all__ = [
    "AppConfig",
    "BrowserConfig",
    "CrawlAction",
    "CrawlConfig",
    "DispatchOutcome",
    "FeedItem",
    "RunResult",
    "RuntimeConfig",
    "SelectorsConfig",
    "SiteConfig",
    "StopReason",
    "config_to_dict",
    "default_config",
    "init_default_config",
    "load_runtime_config",
    "resolve_config_path",
]

__version__ = "0.1.0"
