"""Slack notifications for bid sync events."""

from .formatters import format_bid_update, format_digest, format_new_bid
from .poster import SlackPoster

__all__ = ["format_bid_update", "format_digest", "format_new_bid", "SlackPoster"]
