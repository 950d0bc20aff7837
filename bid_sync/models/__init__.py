"""Shared Pydantic models for the bid sync pipeline."""

from .bid import Bid, BidStatus, DEFAULT_STATUS, LOCKED_STATUSES
from .staging_candidate import StagingCandidate

__all__ = [
    "Bid",
    "BidStatus",
    "DEFAULT_STATUS",
    "LOCKED_STATUSES",
    "StagingCandidate",
]
