"""Automatic status transitions derived from which fields are populated.

Re-evaluated on every sync pass rather than on events, so a bid manually set
back to New while a draft is still attached returns to Reviewing on the next
pass.
"""

from ..models import Bid, BidStatus

# Statuses a draft document may advance. The legacy Open and Walkthrough
# Scheduled states map onto New and Reviewing respectively.
_DRAFTABLE = frozenset({BidStatus.NEW, BidStatus.REVIEWING})


def next_status(bid: Bid) -> BidStatus:
    if bid.is_locked:
        return bid.status
    if bid.final_doc_ref:
        return BidStatus.SUBMITTED
    if bid.draft_doc_ref and bid.status in _DRAFTABLE:
        return BidStatus.REVIEWING
    if bid.walk_datetime and bid.status == BidStatus.NEW:
        return BidStatus.REVIEWING
    return bid.status


def apply_auto_status(bid: Bid) -> Bid:
    """Return a copy of `bid` with its auto-derived status. Pure and idempotent."""
    status = next_status(bid)
    if status == bid.status:
        return bid
    return bid.model_copy(update={"status": status})
