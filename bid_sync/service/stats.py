"""Dashboard summary numbers over a list of bids."""

from datetime import date
from typing import List

from pydantic import BaseModel

from ..models import Bid, BidStatus

DUE_SOON_DAYS = 7
AT_RISK_DAYS = 3


class BidStats(BaseModel):
    total: int = 0
    active: int = 0
    due_soon: int = 0
    at_risk: int = 0
    won: int = 0
    lost: int = 0
    win_rate: float = 0.0


def days_until_due(bid: Bid, today: date):
    if bid.due_date is None:
        return None
    return (bid.due_date - today).days


def is_due_soon(bid: Bid, today: date, window_days: int = DUE_SOON_DAYS) -> bool:
    days = days_until_due(bid, today)
    return days is not None and 0 <= days <= window_days


def summarize_bids(bids: List[Bid], today: date) -> BidStats:
    # Active means not locked and not yet submitted.
    active = [b for b in bids if not b.is_locked and b.status != BidStatus.SUBMITTED]
    won = sum(1 for b in bids if b.status == BidStatus.WON)
    lost = sum(1 for b in bids if b.status == BidStatus.LOST)
    decided = won + lost
    return BidStats(
        total=len(bids),
        active=len(active),
        due_soon=sum(1 for b in active if is_due_soon(b, today)),
        at_risk=sum(1 for b in active if is_due_soon(b, today, AT_RISK_DAYS)),
        won=won,
        lost=lost,
        win_rate=round(won / decided * 100, 1) if decided else 0.0,
    )
