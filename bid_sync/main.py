"""Bid sync entry point with APScheduler.

- Sync pass every SYNC_INTERVAL_MINUTES (default 15)
- Discovery pass every DISCOVERY_INTERVAL_MINUTES (default 180)
- max_instances=1 per job: at most one sync run and one poll run at a time
"""

import logging
import sys
from datetime import datetime

from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .adapters import CalendarAdapter, DocumentAdapter, FolderAdapter, RfpAttachAdapter
from .config import Config, load_config
from .database import SheetsClient
from .discovery import CommBuysListingSource, DiscoveryPoller
from .google_clients import calendar_service, drive_service, gspread_client
from .slack_poster import SlackPoster
from .sync import SyncOrchestrator

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)]
)
logger = logging.getLogger(__name__)


def build_store(config: Config) -> SheetsClient:
    return SheetsClient(
        gspread_client(config),
        config.spreadsheet_id,
        bids_worksheet=config.bids_worksheet,
        staging_worksheet=config.staging_worksheet,
    )


def build_orchestrator(config: Config) -> SyncOrchestrator:
    """Wire the orchestrator with only the adapters the config enables."""
    config.require_for_sync()
    calendar = None
    if config.sync_calendar:
        calendar = CalendarAdapter(calendar_service(config), config.calendar_id)

    folders = rfp = draft = final = None
    if config.create_folders or config.attach_rfp or config.create_draft_docs or config.create_final_docs:
        drive = drive_service(config)
        folders = FolderAdapter(drive, config.drive_parent_folder_id)
        rfp = RfpAttachAdapter(drive, mode=config.rfp_mode)
        draft = DocumentAdapter(drive, "draft", template_id=config.draft_template_id)
        final = DocumentAdapter(drive, "final", template_id=config.final_template_id)

    notifier = None
    if config.notifications_enabled:
        notifier = SlackPoster(config.slack_bot_token, config.slack_channel)

    return SyncOrchestrator(
        config,
        build_store(config),
        calendar=calendar,
        folder_adapter=folders,
        rfp_adapter=rfp,
        draft_adapter=draft,
        final_adapter=final,
        notifier=notifier,
    )


def build_poller(config: Config) -> DiscoveryPoller:
    return DiscoveryPoller(config, build_store(config), CommBuysListingSource(config.listing_url))


def run_sync():
    """One sync pass. Configuration errors abort the run before any row."""
    logger.info("=" * 60)
    logger.info("Starting sync pass")
    logger.info("=" * 60)
    start_time = datetime.now()
    try:
        config = load_config()
        result = build_orchestrator(config).run()
    except Exception as e:
        logger.error(f"Sync pass failed: {e}", exc_info=True)
        raise
    duration = (datetime.now() - start_time).total_seconds()
    logger.info(f"Sync pass completed in {duration:.2f} seconds ({result.failed} row failures)")
    return result


def run_discovery():
    """One discovery pass over all configured keywords."""
    logger.info("Starting discovery pass")
    try:
        config = load_config()
        return build_poller(config).poll()
    except Exception as e:
        logger.error(f"Discovery pass failed: {e}", exc_info=True)
        raise


def run_promotion():
    """Promote every staged candidate not yet imported."""
    config = load_config()
    return build_poller(config).promote_staged()


def start_scheduler():
    """Start the blocking scheduler with the sync and discovery jobs."""
    config = load_config()

    # Configure logging level
    logging.getLogger().setLevel(config.log_level)

    logger.info("Initializing Bid Sync")
    logger.info(f"Sync interval: {config.sync_interval_minutes} minutes")
    logger.info(f"Discovery interval: {config.discovery_interval_minutes} minutes")

    scheduler = BlockingScheduler()
    scheduler.add_job(
        run_sync,
        trigger=IntervalTrigger(minutes=config.sync_interval_minutes),
        id="sync_bids",
        name="Sync bid rows",
        replace_existing=True,
        max_instances=1,  # Prevent overlapping runs
        next_run_time=datetime.now(),
    )
    if config.keyword_list:
        scheduler.add_job(
            run_discovery,
            trigger=IntervalTrigger(minutes=config.discovery_interval_minutes),
            id="discover_bids",
            name="Poll listing source for new bids",
            replace_existing=True,
            max_instances=1,
        )

    logger.info("✓ Scheduler started")
    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("✓ Scheduler stopped")


def main(argv=None):
    args = sys.argv[1:] if argv is None else argv
    mode = args[0] if args else ""
    if mode == "--sync-once":
        run_sync()
    elif mode == "--discover-once":
        run_discovery()
    elif mode == "--promote":
        run_promotion()
    else:
        start_scheduler()


if __name__ == "__main__":
    main()
