"""Bid CRUD surface consumed by the dashboard API.

The sheet is the system of record: every call re-reads it, so callers always
see state reloaded from source after a mutation.
"""

import logging
import re
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..codec.row_codec import (
    decode,
    encode,
    is_blank_row,
    normalize_status,
    parse_date,
    parse_datetime,
    to_bool,
)
from ..errors import NotFoundError, RowDecodeError
from ..models import Bid, BidStatus

logger = logging.getLogger(__name__)

ID_COLUMN = 0


def next_bid_id(existing_ids: Iterable[str], year: int, prefix: str = "BID") -> str:
    """Next `{prefix}-{year}-{seq}` id, seq = max existing seq for that year + 1.

    Always a full scan over every id; there is no persisted counter.
    """
    pattern = re.compile(rf"^{re.escape(prefix)}-{year}-(\d+)$")
    highest = 0
    for bid_id in existing_ids:
        match = pattern.match(str(bid_id or "").strip())
        if match:
            highest = max(highest, int(match.group(1)))
    return f"{prefix}-{year}-{highest + 1:03d}"


class BidService:
    """List, fetch, create and partially update bids in the row store."""

    def __init__(self, store, id_prefix: str = "BID", clock=datetime.now) -> None:
        self._store = store
        self.id_prefix = id_prefix
        self._clock = clock

    def _rows(self) -> List[List[str]]:
        return self._store.read_all()

    @staticmethod
    def _row_id(row) -> str:
        return str(row[ID_COLUMN]).strip() if row else ""

    def list_bids(self) -> List[Bid]:
        bids = []
        for index, row in enumerate(self._rows()):
            if is_blank_row(row) or not self._row_id(row):
                continue
            try:
                bids.append(decode(row))
            except RowDecodeError as exc:
                logger.warning("Skipping undecodable row %d: %s", index, exc)
        return bids

    def _find(self, bid_id: str) -> Tuple[int, Bid]:
        wanted = str(bid_id).strip()
        for index, row in enumerate(self._rows()):
            if self._row_id(row) == wanted:
                return index, decode(row)
        raise NotFoundError(wanted)

    def get_bid(self, bid_id: str) -> Bid:
        """Return the bid with `bid_id`. Raises NotFoundError."""
        return self._find(bid_id)[1]

    def existing_ids(self) -> List[str]:
        return [self._row_id(row) for row in self._rows() if self._row_id(row)]

    def create_bid(self, fields: Optional[Dict[str, Any]] = None) -> Bid:
        """Append a new bid. Assigns a fresh id unless one is supplied."""
        fields = dict(fields or {})
        ids = self.existing_ids()
        bid_id = str(fields.pop("id", "") or "").strip()
        if bid_id and bid_id in ids:
            raise ValueError(f"Bid id already exists: {bid_id}")
        if not bid_id:
            bid_id = next_bid_id(ids, self._clock().year, self.id_prefix)

        archived = to_bool(fields.pop("archived", False))
        raw_status = fields.pop("status", "")
        status = BidStatus.ARCHIVED if archived else normalize_status(raw_status)
        known = {k: v for k, v in fields.items() if k in Bid.model_fields and v is not None}
        if isinstance(known.get("due_date"), str):
            known["due_date"] = parse_date(known["due_date"], "dueDate")
        if isinstance(known.get("walk_datetime"), str):
            known["walk_datetime"] = parse_datetime(known["walk_datetime"], "walkDateTime")
        known["name"] = known.get("name") or "Untitled Bid"
        bid = Bid(**{**known, "id": bid_id, "status": status})

        self._store.append_row(encode(bid))
        logger.info("Created bid %s (%s)", bid.id, bid.name)
        return bid

    def update_bid(
        self,
        bid_id: str,
        status: Optional[str] = None,
        notes: Optional[str] = None,
        archived: Optional[bool] = None,
    ) -> Bid:
        """Partial update of status, notes and/or archived flag.

        Archiving sets status Archived; un-archiving an Archived bid returns
        it to Reviewing. Raises NotFoundError.
        """
        index, bid = self._find(bid_id)
        update: Dict[str, Any] = {}
        if status is not None:
            update["status"] = normalize_status(status)
        if notes is not None:
            update["notes"] = notes
        if archived is not None:
            current = update.get("status", bid.status)
            if to_bool(archived):
                update["status"] = BidStatus.ARCHIVED
            elif current == BidStatus.ARCHIVED:
                update["status"] = BidStatus.REVIEWING
        if not update:
            return bid

        updated = bid.model_copy(update=update)
        self._store.write_row(index, encode(updated))
        logger.info("Updated bid %s fields=%s", updated.id, sorted(update))
        return updated
