"""Pytest configuration and fixtures."""

from datetime import date, datetime
from typing import Dict, List, Sequence

import pytest

from bid_sync.codec import encode
from bid_sync.config.config import Config
from bid_sync.models import Bid, BidStatus


class FakeRowStore:
    """In-memory replacement for SheetsClient."""

    def __init__(self, rows: List[List[str]] = None, staging: List[List[str]] = None):
        self.rows: List[List[str]] = [list(r) for r in (rows or [])]
        self.staging: List[List[str]] = [list(r) for r in (staging or [])]
        self.batches: List[Dict[int, List[str]]] = []
        self.single_writes: List[int] = []

    def read_all(self) -> List[List[str]]:
        return [list(r) for r in self.rows]

    def write_row(self, index: int, values: Sequence[str]) -> None:
        self.rows[index] = list(values)
        self.single_writes.append(index)

    def append_row(self, values: Sequence[str]) -> None:
        self.rows.append(list(values))

    def batch_write(self, rows: Dict[int, Sequence[str]]) -> int:
        self.batches.append({i: list(v) for i, v in rows.items()})
        for index, values in rows.items():
            self.rows[index] = list(values)
        return len(rows)

    def read_staging(self) -> List[List[str]]:
        return [list(r) for r in self.staging]

    def append_staging(self, values: Sequence[str]) -> None:
        self.staging.append(list(values))

    def mark_staging_imported(self, index: int) -> None:
        self.staging[index][8] = "TRUE"


@pytest.fixture
def store():
    return FakeRowStore()


@pytest.fixture
def config():
    """Config with every feature on and all dependent settings present."""
    return Config(
        spreadsheet_id="sheet-123",
        calendar_id="cal-123",
        drive_parent_folder_id="parent-folder",
        slack_bot_token="xoxb-test",
        slack_channel="#bids",
        notify_on_new=True,
        notify_on_updates=True,
        create_folders=True,
        attach_rfp=True,
        discovery_keywords="drilling, paving",
        _env_file=None,
    )


def make_bid(**overrides) -> Bid:
    values = dict(
        id="BID-2024-001",
        name="Test Boring Services",
        client="City of Springfield",
        posting_url="https://example.com/bids/1",
        due_date=date(2024, 3, 18),
        owner_name="Craig",
        owner_email="craig@example.com",
        status=BidStatus.NEW,
    )
    values.update(overrides)
    return Bid(**values)


def make_row(**overrides) -> List[str]:
    return encode(make_bid(**overrides))


@pytest.fixture
def sample_bid():
    return make_bid()


@pytest.fixture
def walk_time():
    return datetime(2024, 3, 5, 10, 0)
