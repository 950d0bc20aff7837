"""Sync orchestrator: one pass over every bid row.

Per row: decode -> auto status -> ensure folder / RFP / docs -> fingerprint ->
calendar upsert (first sync or changed) -> notification decision -> queue the
write. Each row runs in its own failure scope; a failed row is not written and
is retried on the next scheduled pass. Writes are flushed in one batch and a
single digest is posted after the loop.
"""

import logging
import time
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from ..adapters import due_event_fields, walk_event_fields
from ..change_detector import fingerprint
from ..codec.row_codec import decode, encode, is_blank_row, is_valid
from ..config import Config
from ..errors import RowProcessingError
from ..models import Bid
from ..rules import apply_auto_status
from ..service.bids import next_bid_id
from ..slack_poster import format_bid_update, format_digest, format_new_bid

logger = logging.getLogger(__name__)


class SyncResult(BaseModel):
    """Outcome of one sync pass."""

    started_at: datetime = Field(default_factory=datetime.now)
    processed: int = 0
    skipped: int = 0
    written: int = 0
    new_bids: List[str] = Field(default_factory=list)
    updated_bids: List[str] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.errors)


class RowOutcome(BaseModel):
    bid: Bid
    notification: Optional[str] = None  # "new" | "update" | None
    changed: bool = False


class SyncOrchestrator:
    """Runs the per-row sync state machine against the row store."""

    def __init__(
        self,
        config: Config,
        store,
        calendar=None,
        folder_adapter=None,
        rfp_adapter=None,
        draft_adapter=None,
        final_adapter=None,
        notifier=None,
        clock=datetime.now,
    ) -> None:
        self.config = config
        self._store = store
        self._calendar = calendar
        self._folders = folder_adapter
        self._rfp = rfp_adapter
        self._draft = draft_adapter
        self._final = final_adapter
        self._notifier = notifier
        self._clock = clock

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def run(self) -> SyncResult:
        """Process every row once. ConfigurationError aborts before any row."""
        self.config.require_for_sync()
        start = time.monotonic()
        result = SyncResult()
        pending: Dict[int, List[str]] = {}
        new_bids: List[Bid] = []
        updated_bids: List[Bid] = []

        rows = self._store.read_all()
        known_ids = [str(r[0]).strip() for r in rows if r and str(r[0]).strip()]
        logger.info("sync_start rows=%d", len(rows))

        for index, raw in enumerate(rows):
            if is_blank_row(raw):
                result.skipped += 1
                continue
            try:
                outcome = self._process_row(index, raw, known_ids)
            except RowProcessingError as exc:
                logger.error(
                    "sync_row result=failure row=%d bid_id=%s error=%s",
                    exc.row_index,
                    exc.bid_id,
                    exc.cause,
                )
                result.errors.append(str(exc))
                continue
            if outcome is None:
                result.skipped += 1
                continue

            result.processed += 1
            if outcome.changed:
                pending[index] = encode(outcome.bid)
            if outcome.notification == "new":
                new_bids.append(outcome.bid)
            elif outcome.notification == "update":
                updated_bids.append(outcome.bid)

        result.written = self._store.batch_write(pending) if pending else 0
        result.new_bids = [b.id for b in new_bids]
        result.updated_bids = [b.id for b in updated_bids]
        self._send_digest(new_bids, updated_bids)

        logger.info(
            "sync_complete processed=%d skipped=%d failed=%d written=%d new=%d updated=%d duration_ms=%.0f",
            result.processed,
            result.skipped,
            result.failed,
            result.written,
            len(new_bids),
            len(updated_bids),
            (time.monotonic() - start) * 1000,
        )
        return result

    # ------------------------------------------------------------------
    # Per-row state machine
    # ------------------------------------------------------------------

    def _process_row(self, index: int, raw, known_ids: List[str]) -> Optional[RowOutcome]:
        bid_id = str(raw[0]).strip() if raw else ""
        try:
            original = decode(raw)
            if not is_valid(original):
                logger.debug("sync_row row=%d result=skip reason=no_id_or_name", index)
                return None
            bid = original
            if not bid.id:
                bid_id = next_bid_id(known_ids, self._clock().year, self.config.bid_id_prefix)
                known_ids.append(bid_id)
                bid = bid.model_copy(update={"id": bid_id})
                logger.info("sync_row row=%d action=assign_id bid_id=%s", index, bid_id)
            outcome = self._sync_bid(bid)
            # Compare decoded values; sheet display formats differ from encode().
            outcome.changed = outcome.bid != original
            return outcome
        except Exception as exc:
            raise RowProcessingError(index, bid_id, exc) from exc

    def _sync_bid(self, bid: Bid) -> RowOutcome:
        bid = apply_auto_status(bid)
        bid = self._ensure_folder(bid)
        bid = self._ensure_rfp(bid)
        bid = self._ensure_docs(bid)

        current = fingerprint(bid)
        changed = current != bid.last_fingerprint
        had_refs = bid.has_calendar_refs
        first_sync = not bid.last_fingerprint

        if self._calendar is not None and (first_sync or changed or not had_refs):
            bid = self._sync_calendar(bid)
        newly_synced = first_sync or (not had_refs and bid.has_calendar_refs)

        notification = None
        if newly_synced and not bid.notified and self.config.notify_on_new:
            self._notify(*format_new_bid(bid))
            bid = bid.model_copy(update={"notified": True})
            notification = "new"
        elif bid.notified and changed and not first_sync and self.config.notify_on_updates:
            self._notify(*format_bid_update(bid))
            notification = "update"

        bid = bid.model_copy(update={"last_fingerprint": current})
        return RowOutcome(bid=bid, notification=notification)

    # ------------------------------------------------------------------
    # Drive (gated by reference presence, not by fingerprint)
    # ------------------------------------------------------------------

    def _folder_name(self, bid: Bid) -> str:
        return f"{bid.id} - {bid.name}".strip(" -")

    def _ensure_folder(self, bid: Bid) -> Bid:
        if not self.config.create_folders or self._folders is None or bid.drive_folder_ref:
            return bid
        ref = self._folders.upsert(None, {"name": self._folder_name(bid)})
        return bid.model_copy(update={"drive_folder_ref": ref})

    def _ensure_rfp(self, bid: Bid) -> Bid:
        if (
            not self.config.attach_rfp
            or self._rfp is None
            or bid.rfp_attached_ref
            or not bid.rfp_attach_flag
            or not bid.rfp_source_ref
            or not bid.drive_folder_ref
        ):
            return bid
        ref = self._rfp.upsert(
            None,
            {
                "source_ref": bid.rfp_source_ref,
                "folder_ref": bid.drive_folder_ref,
                "name": f"{bid.id} - RFP",
            },
        )
        return bid.model_copy(update={"rfp_attached_ref": ref})

    def _ensure_docs(self, bid: Bid) -> Bid:
        if not bid.drive_folder_ref:
            return bid
        update = {}
        if self.config.create_draft_docs and self._draft is not None and not bid.draft_doc_ref:
            update["draft_doc_ref"] = self._draft.upsert(
                None, {"folder_ref": bid.drive_folder_ref, "name": f"{bid.id} - {bid.name} - Draft"}
            )
        if self.config.create_final_docs and self._final is not None and not bid.final_doc_ref:
            update["final_doc_ref"] = self._final.upsert(
                None, {"folder_ref": bid.drive_folder_ref, "name": f"{bid.id} - {bid.name} - Final"}
            )
        return bid.model_copy(update=update) if update else bid

    # ------------------------------------------------------------------
    # Calendar
    # ------------------------------------------------------------------

    def _sync_calendar(self, bid: Bid) -> Bid:
        update = {}
        if bid.due_date is not None:
            update["due_event_id"] = self._calendar.upsert(bid.due_event_id, due_event_fields(bid))
        if bid.walk_datetime is not None:
            update["walk_event_id"] = self._calendar.upsert(
                bid.walk_event_id,
                walk_event_fields(bid, self.config.timezone, self.config.walk_duration_minutes),
            )
        return bid.model_copy(update=update) if update else bid

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def _notify(self, text: str, blocks: list) -> None:
        if self._notifier is not None:
            self._notifier.send(text, blocks)

    def _send_digest(self, new_bids: List[Bid], updated_bids: List[Bid]) -> None:
        if not (new_bids or updated_bids):
            return
        self._notify(*format_digest(new_bids, updated_bids))
