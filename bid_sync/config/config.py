"""Configuration management for the bid sync pipeline."""

from typing import List, Optional
from pydantic import ValidationError
from pydantic_settings import BaseSettings

from ..errors import ConfigurationError


REQUIRED_VARS = [
    "SPREADSHEET_ID",
]

RFP_MODES = ("copy", "move")


class Config(BaseSettings):
    """Application configuration from environment variables.

    Resolved once per run and passed explicitly to every component.
    """

    # Required
    spreadsheet_id: str

    # Google credentials (file path or inline JSON)
    google_service_account_file: str = "service_account.json"
    google_service_account_json: Optional[str] = None

    # Row store
    bids_worksheet: str = "Bids"
    staging_worksheet: str = "Staging"

    # Calendar
    sync_calendar: bool = True
    calendar_id: Optional[str] = None
    timezone: str = "America/New_York"
    walk_duration_minutes: int = 60

    # Drive
    drive_parent_folder_id: Optional[str] = None
    create_folders: bool = True
    attach_rfp: bool = True
    rfp_mode: str = "copy"
    create_draft_docs: bool = False
    create_final_docs: bool = False
    draft_template_id: Optional[str] = None
    final_template_id: Optional[str] = None

    # Notifications
    notify_on_new: bool = True
    notify_on_updates: bool = False
    slack_bot_token: Optional[str] = None
    slack_channel: Optional[str] = None

    # Discovery
    listing_url: str = "https://www.commbuys.com/bso/external/publicBids.sdo"
    discovery_keywords: str = ""
    auto_import: bool = False
    import_owner_name: str = ""

    # Misc
    bid_id_prefix: str = "BID"
    allowed_email_domains: str = ""
    sync_interval_minutes: int = 15
    discovery_interval_minutes: int = 180
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "case_sensitive": False, "extra": "ignore"}

    @property
    def keyword_list(self) -> List[str]:
        return [k.strip() for k in self.discovery_keywords.split(",") if k.strip()]

    @property
    def email_domain_list(self) -> List[str]:
        return [d.strip().lower() for d in self.allowed_email_domains.split(",") if d.strip()]

    @property
    def notifications_enabled(self) -> bool:
        return self.notify_on_new or self.notify_on_updates

    def require_for_sync(self) -> None:
        """Check settings the enabled sync features depend on.

        Raises ConfigurationError listing ALL problems, before any row is touched.
        """
        problems = []
        if self.sync_calendar and not self.calendar_id:
            problems.append("CALENDAR_ID (required when SYNC_CALENDAR is on)")
        uses_drive = (
            self.create_folders or self.attach_rfp
            or self.create_draft_docs or self.create_final_docs
        )
        if uses_drive and not self.drive_parent_folder_id:
            problems.append("DRIVE_PARENT_FOLDER_ID (required when folder/doc creation is on)")
        if self.rfp_mode not in RFP_MODES:
            problems.append(f"RFP_MODE must be one of {', '.join(RFP_MODES)}, got {self.rfp_mode!r}")
        if self.notifications_enabled and not (self.slack_bot_token and self.slack_channel):
            problems.append("SLACK_BOT_TOKEN and SLACK_CHANNEL (required when notifications are on)")
        if problems:
            raise ConfigurationError("Invalid sync configuration: " + "; ".join(problems))


def validate_config(**overrides) -> Config:
    """Load and validate configuration from environment.

    Raises ConfigurationError with descriptive message listing ALL missing
    required variables (not just the first one).
    """
    try:
        return Config(**overrides)  # type: ignore[call-arg]
    except ValidationError as exc:
        missing = []
        err_str = str(exc)
        for var in REQUIRED_VARS:
            if var.lower() in err_str.lower():
                missing.append(var)
        if missing:
            names = ", ".join(missing)
            raise ConfigurationError(
                f"Missing required environment variable(s): {names}. "
                "Please set them in your .env file or environment."
            ) from exc
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc


def load_config() -> Config:
    """Load configuration from environment (startup entry point)."""
    return validate_config()
