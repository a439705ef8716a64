"""
Feed module.

Tape reels (sequential slot allocation) and the feed configuration that
maps component keys to reels.
"""

from pnp_control.feeds.config import (
    FeedConfig,
    FeedConfigError,
    ReelUsage,
    UnknownFeedError,
    load_feed_config,
    parse_feed_config,
)
from pnp_control.feeds.tape import Position, TapeExhaustedError, TapeReel

__all__ = [
    "FeedConfig",
    "FeedConfigError",
    "Position",
    "ReelUsage",
    "TapeExhaustedError",
    "TapeReel",
    "UnknownFeedError",
    "load_feed_config",
    "parse_feed_config",
]
