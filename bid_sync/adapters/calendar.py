"""Google Calendar adapter - due-date and walkthrough events."""

import logging
from datetime import timedelta
from typing import Any, Dict, Optional

from .base import UpsertAdapter
from ..models import Bid

logger = logging.getLogger(__name__)

# Event keys owned by the field builders; stale values are dropped on update.
MANAGED_KEYS = ("summary", "description", "location", "start", "end")


def _description(bid: Bid) -> str:
    lines = [
        f"Bid: {bid.id}",
        f"Client: {bid.client or 'N/A'}",
        f"Owner: {bid.owner_name or 'N/A'} {('<' + bid.owner_email + '>') if bid.owner_email else ''}".rstrip(),
        f"Status: {bid.status.value}",
    ]
    if bid.posting_url:
        lines.append(f"Posting: {bid.posting_url}")
    if bid.drive_folder_ref:
        lines.append(f"Folder: {bid.drive_folder_ref}")
    return "\n".join(lines)


def due_event_fields(bid: Bid) -> Dict[str, Any]:
    """All-day event on the due date."""
    return {
        "summary": f"DUE: {bid.name or bid.id}",
        "description": _description(bid),
        "start": {"date": bid.due_date.isoformat()},
        "end": {"date": (bid.due_date + timedelta(days=1)).isoformat()},
    }


def walk_event_fields(bid: Bid, timezone: str, duration_minutes: int = 60) -> Dict[str, Any]:
    """Timed event for the walkthrough."""
    start = bid.walk_datetime
    end = start + timedelta(minutes=duration_minutes)
    fields = {
        "summary": f"WALKTHROUGH: {bid.name or bid.id}",
        "description": _description(bid),
        "start": {"dateTime": start.isoformat(), "timeZone": timezone},
        "end": {"dateTime": end.isoformat(), "timeZone": timezone},
    }
    if bid.walk_location:
        fields["location"] = bid.walk_location
    return fields


class CalendarAdapter(UpsertAdapter):
    """Upserts events into one calendar, keyed by the stored event id."""

    def __init__(self, service, calendar_id: str) -> None:
        self._service = service
        self.calendar_id = calendar_id

    @property
    def name(self) -> str:
        return "calendar"

    def _fetch(self, ref: str) -> Optional[Dict[str, Any]]:
        event = self._service.events().get(calendarId=self.calendar_id, eventId=ref).execute()
        # Deleted events stay fetchable with status=cancelled.
        if event.get("status") == "cancelled":
            return None
        return event

    def _update(self, ref: str, existing: Dict[str, Any], fields: Dict[str, Any]) -> str:
        body = {k: v for k, v in existing.items() if k not in MANAGED_KEYS}
        body.update(fields)
        updated = (
            self._service.events()
            .update(calendarId=self.calendar_id, eventId=ref, body=body)
            .execute()
        )
        return updated.get("id", ref)

    def _create(self, fields: Dict[str, Any]) -> str:
        created = self._service.events().insert(calendarId=self.calendar_id, body=fields).execute()
        return created["id"]
