"""Content fingerprint of a bid's mutable fields.

Gates calendar upserts and update notifications. Folder and document creation
are gated by reference presence instead.
"""

import hashlib
import json

from ..models import Bid

# Sync bookkeeping (last_fingerprint, event ids, notified) is excluded so the
# hash never depends on itself.
FINGERPRINT_FIELDS = (
    "name",
    "client",
    "posting_url",
    "due_date",
    "walk_datetime",
    "walk_location",
    "owner_name",
    "owner_email",
    "status",
    "drive_folder_ref",
    "rfp_attached_ref",
    "draft_doc_ref",
    "final_doc_ref",
    "notes",
)


def canonical_payload(bid: Bid) -> str:
    data = bid.model_dump(mode="json", include=set(FINGERPRINT_FIELDS))
    return json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def fingerprint(bid: Bid) -> str:
    return hashlib.sha256(canonical_payload(bid).encode("utf-8")).hexdigest()


def needs_sync(bid: Bid) -> bool:
    return fingerprint(bid) != bid.last_fingerprint
