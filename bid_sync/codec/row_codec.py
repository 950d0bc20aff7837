"""Row codec: positional spreadsheet rows <-> Bid / StagingCandidate.

The column order here is the only positional knowledge in the pipeline.
"""

import logging
from datetime import date, datetime
from typing import List, Optional, Sequence

from dateutil import parser as dateparse

from ..errors import RowDecodeError
from ..models import Bid, BidStatus, DEFAULT_STATUS, StagingCandidate

logger = logging.getLogger(__name__)

COLUMNS = [
    "bidId",
    "bidName",
    "client",
    "bidUrl",
    "dueDate",
    "walkDateTime",
    "walkLocation",
    "ownerName",
    "ownerEmail",
    "status",
    "rfpFileUrl",
    "moveRfp",
    "driveFolderUrl",
    "rfpInFolderUrl",
    "draftUrl",
    "finalUrl",
    "notes",
    "dueEventId",
    "walkEventId",
    "lastHash",
    "notified",
]

# Sheet column -> Bid attribute, in sheet order.
FIELD_MAP = {
    "bidId": "id",
    "bidName": "name",
    "client": "client",
    "bidUrl": "posting_url",
    "dueDate": "due_date",
    "walkDateTime": "walk_datetime",
    "walkLocation": "walk_location",
    "ownerName": "owner_name",
    "ownerEmail": "owner_email",
    "status": "status",
    "rfpFileUrl": "rfp_source_ref",
    "moveRfp": "rfp_attach_flag",
    "driveFolderUrl": "drive_folder_ref",
    "rfpInFolderUrl": "rfp_attached_ref",
    "draftUrl": "draft_doc_ref",
    "finalUrl": "final_doc_ref",
    "notes": "notes",
    "dueEventId": "due_event_id",
    "walkEventId": "walk_event_id",
    "lastHash": "last_fingerprint",
    "notified": "notified",
}

STAGING_COLUMNS = [
    "discoveredAt",
    "bidNumber",
    "title",
    "url",
    "agency",
    "dueDate",
    "bidType",
    "keyword",
    "imported",
]

# Older sheets and the intake form used a different status vocabulary.
# Keys are lowercased with spaces, dashes and underscores removed.
LEGACY_STATUS_MAP = {
    "open": BidStatus.NEW,
    "walkthroughscheduled": BidStatus.REVIEWING,
    "inprogress": BidStatus.REVIEWING,
    "nobid": BidStatus.LOST,
    "onhold": BidStatus.ARCHIVED,
}

_OPTIONAL_REFS = {
    "drive_folder_ref",
    "rfp_attached_ref",
    "draft_doc_ref",
    "final_doc_ref",
    "due_event_id",
    "walk_event_id",
}

_TRUE_VALUES = {"true", "1", "y", "yes"}

# Free-text columns keep their cell text verbatim.
_FREE_TEXT = {"name", "client", "walk_location", "owner_name", "notes"}


def _status_key(value: str) -> str:
    return "".join(ch for ch in value.lower() if ch not in " -_")


def normalize_status(raw) -> BidStatus:
    """Map a raw cell value onto the canonical status enum.

    Canonical values match case-insensitively, legacy values go through
    LEGACY_STATUS_MAP, anything else falls back to DEFAULT_STATUS.
    """
    if isinstance(raw, BidStatus):
        return raw
    text = str(raw or "").strip()
    if not text:
        return DEFAULT_STATUS
    key = _status_key(text)
    for status in BidStatus:
        if _status_key(status.value) == key:
            return status
    if key in LEGACY_STATUS_MAP:
        return LEGACY_STATUS_MAP[key]
    logger.debug("Unrecognized status %r, using %s", text, DEFAULT_STATUS.value)
    return DEFAULT_STATUS


def to_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() in _TRUE_VALUES


def _raw_cell(raw_row: Sequence, index: int) -> str:
    if index >= len(raw_row) or raw_row[index] is None:
        return ""
    return str(raw_row[index])


def _cell(raw_row: Sequence, index: int) -> str:
    return _raw_cell(raw_row, index).strip()


def parse_datetime(value: str, column: str) -> Optional[datetime]:
    if not value:
        return None
    try:
        return dateparse.parse(value)
    except (ValueError, OverflowError) as exc:
        raise RowDecodeError(f"Malformed {column} value {value!r}") from exc


def parse_date(value: str, column: str) -> Optional[date]:
    parsed = parse_datetime(value, column)
    return parsed.date() if parsed else None


def is_blank_row(raw_row: Sequence) -> bool:
    return all(not str(cell or "").strip() for cell in raw_row)


def is_valid(bid: Bid) -> bool:
    """A decoded row with neither id nor name is skipped by the orchestrator."""
    return bool(bid.id or bid.name.strip())


def decode(raw_row: Sequence) -> Bid:
    """Decode a positional row into a Bid. Missing cells become empty/None."""
    values = {}
    for index, column in enumerate(COLUMNS):
        attr = FIELD_MAP[column]
        if attr in _FREE_TEXT:
            values[attr] = _raw_cell(raw_row, index)
            continue
        text = _cell(raw_row, index)
        if attr == "due_date":
            values[attr] = parse_date(text, column)
        elif attr == "walk_datetime":
            values[attr] = parse_datetime(text, column)
        elif attr == "status":
            values[attr] = normalize_status(text)
        elif attr in ("rfp_attach_flag", "notified"):
            values[attr] = to_bool(text)
        elif attr in _OPTIONAL_REFS:
            values[attr] = text or None
        else:
            values[attr] = text
    return Bid(**values)


def _format_cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, BidStatus):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def encode(bid: Bid) -> List[str]:
    """Encode a Bid into a positional row of strings."""
    return [_format_cell(getattr(bid, FIELD_MAP[column])) for column in COLUMNS]


# ---------------------------------------------------------------------------
# Staging rows
# ---------------------------------------------------------------------------

def decode_candidate(raw_row: Sequence) -> StagingCandidate:
    discovered = _cell(raw_row, 0)
    values = {
        "external_bid_number": _cell(raw_row, 1),
        "title": _cell(raw_row, 2),
        "url": _cell(raw_row, 3),
        "agency": _cell(raw_row, 4),
        "due_date": _cell(raw_row, 5),
        "bid_type": _cell(raw_row, 6),
        "matched_keyword": _cell(raw_row, 7),
        "imported": to_bool(_cell(raw_row, 8)),
    }
    if discovered:
        try:
            values["discovered_at"] = dateparse.parse(discovered)
        except (ValueError, OverflowError):
            logger.warning("Unparseable discoveredAt %r in staging row", discovered)
    return StagingCandidate(**values)


def encode_candidate(candidate: StagingCandidate) -> List[str]:
    return [
        candidate.discovered_at.isoformat(),
        candidate.external_bid_number,
        candidate.title,
        candidate.url,
        candidate.agency,
        candidate.due_date,
        candidate.bid_type,
        candidate.matched_keyword,
        "TRUE" if candidate.imported else "FALSE",
    ]
