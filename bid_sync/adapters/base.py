"""Base interface for create-or-update adapters over external services."""

import logging
import re
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from googleapiclient.errors import HttpError

from ..errors import AdapterError

logger = logging.getLogger(__name__)

# HTTP statuses that mean "the remembered object is gone".
NOT_FOUND_STATUSES = (404, 410)

_DRIVE_ID_PATTERNS = (
    re.compile(r"/folders/([A-Za-z0-9_-]+)"),
    re.compile(r"/d/([A-Za-z0-9_-]+)"),
    re.compile(r"[?&]id=([A-Za-z0-9_-]+)"),
)


def file_id_from_ref(ref: str) -> str:
    """Extract a Drive file id from a stored URL; bare ids pass through."""
    ref = (ref or "").strip()
    for pattern in _DRIVE_ID_PATTERNS:
        match = pattern.search(ref)
        if match:
            return match.group(1)
    return ref


def is_not_found(exc: Exception) -> bool:
    return isinstance(exc, HttpError) and getattr(exc.resp, "status", None) in NOT_FOUND_STATUSES


class UpsertAdapter(ABC):
    """Create-or-update keyed by an externally remembered reference.

    upsert(existing_ref, fields):
      - existing_ref present and object found -> update it, return its ref
      - existing_ref present but object gone  -> create, return the new ref
      - existing_ref absent                   -> create, return the new ref
    Any other failure is raised as AdapterError; there is no retry within a
    pass.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Adapter identifier for logs."""

    @abstractmethod
    def _fetch(self, ref: str) -> Optional[Any]:
        """Return the existing object, or None when it no longer exists."""

    @abstractmethod
    def _update(self, ref: str, existing: Any, fields: Dict[str, Any]) -> str:
        """Update an existing object and return its reference."""

    @abstractmethod
    def _create(self, fields: Dict[str, Any]) -> str:
        """Create a new object and return its reference."""

    def upsert(self, existing_ref: Optional[str], fields: Dict[str, Any]) -> str:
        start = time.monotonic()
        try:
            existing = None
            if existing_ref:
                existing = self._fetch_or_none(existing_ref)
                if existing is None:
                    logger.info(
                        "adapter=%s ref=%s result=not_found action=recreate",
                        self.name,
                        existing_ref,
                    )
            if existing is not None:
                ref = self._update(existing_ref, existing, fields)
                action = "update"
            else:
                ref = self._create(fields)
                action = "create"
        except AdapterError:
            raise
        except Exception as exc:
            logger.error(
                "adapter=%s ref=%s result=failure error=%s",
                self.name,
                existing_ref,
                exc,
            )
            raise AdapterError(f"{self.name} upsert failed: {exc}") from exc

        logger.info(
            "adapter=%s action=%s ref=%s duration_ms=%.0f",
            self.name,
            action,
            ref,
            (time.monotonic() - start) * 1000,
        )
        return ref

    def _fetch_or_none(self, ref: str) -> Optional[Any]:
        try:
            return self._fetch(ref)
        except HttpError as exc:
            if is_not_found(exc):
                return None
            raise
