"""Feed discovery contracts."""

from .dedup import DedupTracker
from .guard import SessionGuard
from .snapshot import (
    ActivityLinkStrategy,
    EmbeddedScriptStrategy,
    FeedSnapshotReader,
    NuxtStateStrategy,
    SnapshotStrategy,
    decode_feed_items,
)
from .targets import CrawlTarget, build_target
from .walker import FeedWalker, GuardPlacement, WalkerPolicy, WalkerState

__all__ = [
    "ActivityLinkStrategy",
    "CrawlTarget",
    "DedupTracker",
    "EmbeddedScriptStrategy",
    "FeedSnapshotReader",
    "FeedWalker",
    "GuardPlacement",
    "NuxtStateStrategy",
    "SessionGuard",
    "SnapshotStrategy",
    "WalkerPolicy",
    "WalkerState",
    "build_target",
    "decode_feed_items",
]
