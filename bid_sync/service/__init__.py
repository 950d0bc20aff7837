"""Bid CRUD and dashboard summaries."""

from .bids import BidService, next_bid_id
from .stats import BidStats, summarize_bids

__all__ = ["BidService", "next_bid_id", "BidStats", "summarize_bids"]
