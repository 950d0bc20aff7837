"""Google service-account credentials and API client builders."""

import json
import logging
from typing import Sequence

import gspread
from google.oauth2 import service_account
from googleapiclient.discovery import build

from .config import Config
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

SHEETS_SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
CALENDAR_SCOPES = ["https://www.googleapis.com/auth/calendar"]
DRIVE_SCOPES = ["https://www.googleapis.com/auth/drive"]


def load_credentials(config: Config, scopes: Sequence[str]) -> service_account.Credentials:
    """Service-account credentials from inline JSON, else from the key file."""
    if config.google_service_account_json:
        try:
            info = json.loads(config.google_service_account_json)
        except ValueError as exc:
            raise ConfigurationError("GOOGLE_SERVICE_ACCOUNT_JSON is not valid JSON") from exc
        return service_account.Credentials.from_service_account_info(info, scopes=list(scopes))
    try:
        return service_account.Credentials.from_service_account_file(
            config.google_service_account_file, scopes=list(scopes)
        )
    except FileNotFoundError as exc:
        raise ConfigurationError(
            f"Google service account file not found: {config.google_service_account_file}"
        ) from exc


def gspread_client(config: Config) -> gspread.Client:
    return gspread.authorize(load_credentials(config, SHEETS_SCOPES))


def calendar_service(config: Config):
    creds = load_credentials(config, CALENDAR_SCOPES)
    return build("calendar", "v3", credentials=creds, cache_discovery=False)


def drive_service(config: Config):
    creds = load_credentials(config, DRIVE_SCOPES)
    return build("drive", "v3", credentials=creds, cache_discovery=False)
