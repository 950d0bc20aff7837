"""Create-or-update adapters for external services."""

from .base import UpsertAdapter, file_id_from_ref
from .calendar import CalendarAdapter, due_event_fields, walk_event_fields
from .drive import DocumentAdapter, FolderAdapter, RfpAttachAdapter

__all__ = [
    "UpsertAdapter",
    "file_id_from_ref",
    "CalendarAdapter",
    "due_event_fields",
    "walk_event_fields",
    "DocumentAdapter",
    "FolderAdapter",
    "RfpAttachAdapter",
]
