"""StagingCandidate - a discovered, unconfirmed bid awaiting promotion."""

from datetime import datetime, timezone
from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StagingCandidate(BaseModel):
    """Listing scraped from an external source, keyed by url."""

    discovered_at: datetime = Field(default_factory=_utcnow)
    external_bid_number: str = ""
    title: str = ""
    url: str = Field("", description="Detail page URL (dedup key)")
    agency: str = ""
    due_date: str = Field("", description="Due date as listed; parsed best-effort on import")
    bid_type: str = ""
    matched_keyword: str = ""
    imported: bool = False
