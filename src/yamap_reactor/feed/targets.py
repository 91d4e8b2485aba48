"""Per-action crawl targets so one walker serves both feeds."""

from __future__ import annotations

from dataclasses import dataclass

from yamap_reactor.config import RuntimeConfig
from yamap_reactor.errors import ConfigError
from yamap_reactor.feed.snapshot import (
    ActivityLinkStrategy,
    EmbeddedScriptStrategy,
    NuxtStateStrategy,
    SnapshotStrategy,
)
from yamap_reactor.models import CrawlAction

VALID_SNAPSHOT_MODES = {"direct", "embedded"}


@dataclass(frozen=True)
class CrawlTarget:
    action: CrawlAction
    feed_url: str
    readiness_selector: str
    login_readiness_selector: str
    strategy: SnapshotStrategy
    stagnation_rounds: int
    scroll_settle_seconds: float


def build_target(
    action: CrawlAction,
    config: RuntimeConfig,
    *,
    snapshot_mode: str = "direct",
) -> CrawlTarget:
    """Resolve feed URL, readiness bars, snapshot strategy and stagnation policy."""
    selectors = config.selectors
    crawl = config.crawl
    if action is CrawlAction.REACT_TIMELINE:
        return CrawlTarget(
            action=action,
            feed_url=config.site.timeline_url,
            readiness_selector=selectors.timeline_feed_root,
            login_readiness_selector=selectors.timeline_feed_root,
            strategy=_timeline_strategy(snapshot_mode),
            stagnation_rounds=crawl.timeline_stagnation_rounds,
            scroll_settle_seconds=crawl.timeline_scroll_settle_seconds,
        )
    if action is CrawlAction.REACT_ACTIVITIES:
        return CrawlTarget(
            action=action,
            feed_url=config.site.activities_url,
            readiness_selector=selectors.activities_entry,
            login_readiness_selector=selectors.global_footer,
            strategy=ActivityLinkStrategy(selectors.activities_link),
            stagnation_rounds=crawl.activities_stagnation_rounds,
            scroll_settle_seconds=crawl.activities_scroll_settle_seconds,
        )
    raise ConfigError(f"Unsupported crawl action '{action}'.")


def _timeline_strategy(snapshot_mode: str) -> SnapshotStrategy:
    if snapshot_mode == "direct":
        return NuxtStateStrategy()
    if snapshot_mode == "embedded":
        return EmbeddedScriptStrategy()
    choices = ", ".join(sorted(VALID_SNAPSHOT_MODES))
    raise ConfigError(f"Invalid snapshot mode '{snapshot_mode}': expected one of [{choices}].")
