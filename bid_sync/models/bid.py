"""Bid - one tracked procurement opportunity (one spreadsheet row)."""

from datetime import date, datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class BidStatus(str, Enum):
    """Canonical status values (current sheet schema)."""

    NEW = "New"
    REVIEWING = "Reviewing"
    SUBMITTED = "Submitted"
    WON = "Won"
    LOST = "Lost"
    ARCHIVED = "Archived"


DEFAULT_STATUS = BidStatus.NEW

# Terminal/frozen statuses, never auto-transitioned.
LOCKED_STATUSES = frozenset({BidStatus.WON, BidStatus.LOST, BidStatus.ARCHIVED})


class Bid(BaseModel):
    """Structured bid record.

    Optional references are None when the cell is blank. Drive references
    (folder, RFP copy, draft, final) are write-once from the pipeline's
    perspective; event ids are the join key for calendar upserts.
    """

    # Identity
    id: str = Field("", description="PREFIX-YEAR-SEQ, assigned once at creation")
    name: str = Field("", description="Bid name")
    client: str = Field("", description="Issuing client/agency")
    posting_url: str = Field("", description="Link to the public posting (dedup key for discovery)")

    # Dates
    due_date: Optional[date] = Field(None, description="Submission due date")
    walk_datetime: Optional[datetime] = Field(None, description="Walkthrough date and time")
    walk_location: str = ""

    # Ownership
    owner_name: str = ""
    owner_email: str = ""

    status: BidStatus = Field(DEFAULT_STATUS, description="Canonical status")

    # RFP source
    rfp_source_ref: str = Field("", description="Drive URL/id of the RFP as received")
    rfp_attach_flag: bool = Field(False, description="Attach (copy or move) the RFP into the bid folder")

    # Write-once drive references
    drive_folder_ref: Optional[str] = None
    rfp_attached_ref: Optional[str] = None
    draft_doc_ref: Optional[str] = None
    final_doc_ref: Optional[str] = None

    notes: str = ""

    # Sync bookkeeping
    due_event_id: Optional[str] = None
    walk_event_id: Optional[str] = None
    last_fingerprint: str = Field("", description="SHA-256 of mutable fields at last sync")
    notified: bool = Field(False, description="New-bid notification already sent")

    @property
    def is_locked(self) -> bool:
        return self.status in LOCKED_STATUSES

    @property
    def has_calendar_refs(self) -> bool:
        return bool(self.due_event_id or self.walk_event_id)

    @property
    def label(self) -> str:
        """Short identifier for logs and messages."""
        return self.id or self.name or "<unnamed>"
