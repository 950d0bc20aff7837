"""Google Drive adapters - bid folder, RFP attachment, draft/final documents.

Stored references are webViewLink URLs, so they are clickable from the sheet.
"""

import logging
from typing import Any, Dict, Optional

from .base import UpsertAdapter, file_id_from_ref

logger = logging.getLogger(__name__)

FOLDER_MIME = "application/vnd.google-apps.folder"
DOC_MIME = "application/vnd.google-apps.document"
FILE_FIELDS = "id, name, webViewLink, parents, trashed"


def _ref(file: Dict[str, Any]) -> str:
    return file.get("webViewLink") or file["id"]


class _DriveAdapter(UpsertAdapter):
    """Write-once Drive objects.

    Given a stored ref, upsert reuses the object as is and only recreates it
    when it is gone or trashed. The sync pass only calls upsert for a missing
    ref, so a stored folder or document is never touched again.
    """

    def __init__(self, service) -> None:
        self._service = service

    def _fetch(self, ref: str) -> Optional[Dict[str, Any]]:
        file = (
            self._service.files()
            .get(fileId=file_id_from_ref(ref), fields=FILE_FIELDS, supportsAllDrives=True)
            .execute()
        )
        if file.get("trashed"):
            return None
        return file

    def _update(self, ref: str, existing: Dict[str, Any], fields: Dict[str, Any]) -> str:
        return ref


class FolderAdapter(_DriveAdapter):
    """Creates one folder per bid under the configured parent folder."""

    def __init__(self, service, parent_folder_id: str) -> None:
        super().__init__(service)
        self.parent_folder_id = parent_folder_id

    @property
    def name(self) -> str:
        return "drive_folder"

    def _create(self, fields: Dict[str, Any]) -> str:
        body = {
            "name": fields["name"],
            "mimeType": FOLDER_MIME,
            "parents": [self.parent_folder_id],
        }
        created = (
            self._service.files()
            .create(body=body, fields=FILE_FIELDS, supportsAllDrives=True)
            .execute()
        )
        return _ref(created)


class RfpAttachAdapter(_DriveAdapter):
    """Copies or moves the received RFP into the bid folder.

    move removes the file from its original parents; copy leaves the source
    in place and references the copy.
    """

    def __init__(self, service, mode: str = "copy") -> None:
        super().__init__(service)
        if mode not in ("copy", "move"):
            raise ValueError(f"Unknown RFP mode: {mode!r}")
        self.mode = mode

    @property
    def name(self) -> str:
        return f"rfp_{self.mode}"

    def _create(self, fields: Dict[str, Any]) -> str:
        source_id = file_id_from_ref(fields["source_ref"])
        folder_id = file_id_from_ref(fields["folder_ref"])
        files = self._service.files()
        if self.mode == "move":
            current = files.get(fileId=source_id, fields="parents", supportsAllDrives=True).execute()
            moved = files.update(
                fileId=source_id,
                addParents=folder_id,
                removeParents=",".join(current.get("parents", [])),
                fields=FILE_FIELDS,
                supportsAllDrives=True,
            ).execute()
            return _ref(moved)

        body = {"parents": [folder_id]}
        if fields.get("name"):
            body["name"] = fields["name"]
        copied = files.copy(
            fileId=source_id, body=body, fields=FILE_FIELDS, supportsAllDrives=True
        ).execute()
        return _ref(copied)


class DocumentAdapter(_DriveAdapter):
    """Creates a working document (draft or final) in the bid folder.

    With a template id the template is copied, otherwise a blank Google Doc
    is created.
    """

    def __init__(self, service, kind: str, template_id: Optional[str] = None) -> None:
        super().__init__(service)
        self.kind = kind
        self.template_id = template_id

    @property
    def name(self) -> str:
        return f"{self.kind}_doc"

    def _create(self, fields: Dict[str, Any]) -> str:
        folder_id = file_id_from_ref(fields["folder_ref"])
        body = {"name": fields["name"], "parents": [folder_id]}
        files = self._service.files()
        if self.template_id:
            created = files.copy(
                fileId=file_id_from_ref(self.template_id),
                body=body,
                fields=FILE_FIELDS,
                supportsAllDrives=True,
            ).execute()
        else:
            body["mimeType"] = DOC_MIME
            created = files.create(body=body, fields=FILE_FIELDS, supportsAllDrives=True).execute()
        return _ref(created)
