"""Tests for the sync orchestrator pass."""

from datetime import datetime
from unittest.mock import MagicMock

import pytest

from bid_sync.change_detector import fingerprint
from bid_sync.codec import COLUMNS, decode, encode
from bid_sync.errors import AdapterError, ConfigurationError
from bid_sync.models import BidStatus
from bid_sync.service import BidService
from bid_sync.sync import SyncOrchestrator

from conftest import FakeRowStore, make_bid, make_row


def make_calendar():
    calendar = MagicMock()
    counter = iter(range(1, 1000))
    calendar.upsert.side_effect = lambda ref, fields: ref or f"evt-{next(counter)}"
    return calendar


def make_folders():
    folders = MagicMock()
    folders.upsert.side_effect = lambda ref, fields: ref or f"https://drive.google.com/drive/folders/{fields['name'][:12]}"
    return folders


@pytest.fixture
def calendar():
    return make_calendar()


@pytest.fixture
def folders():
    return make_folders()


@pytest.fixture
def notifier():
    return MagicMock()


def build(config, store, calendar=None, folders=None, notifier=None, **adapters):
    return SyncOrchestrator(
        config,
        store,
        calendar=calendar,
        folder_adapter=folders,
        notifier=notifier,
        **adapters,
    )


def synced_row(**overrides):
    """A row as it looks after a previous successful pass."""
    bid = make_bid(
        drive_folder_ref="https://drive.google.com/drive/folders/existing",
        due_event_id="evt-existing",
        notified=True,
        **overrides,
    )
    return encode(bid.model_copy(update={"last_fingerprint": fingerprint(bid)}))


class TestFirstSync:
    def test_new_row_is_fully_synced(self, config, calendar, folders, notifier):
        store = FakeRowStore([make_row()])
        result = build(config, store, calendar, folders, notifier).run()

        assert result.processed == 1
        assert result.new_bids == ["BID-2024-001"]
        bid = decode(store.rows[0])
        assert bid.drive_folder_ref
        assert bid.due_event_id == "evt-1"
        assert bid.notified is True
        assert bid.last_fingerprint == fingerprint(bid)

    def test_new_notification_and_digest(self, config, calendar, folders, notifier):
        store = FakeRowStore([make_row()])
        build(config, store, calendar, folders, notifier).run()
        texts = [c.args[0] for c in notifier.send.call_args_list]
        assert texts[0].startswith("New bid BID-2024-001")
        assert texts[-1] == "Bid sync: 1 new, 0 updated"
        assert len(texts) == 2

    def test_walkthrough_event_created(self, config, calendar, folders):
        walk = datetime(2024, 3, 5, 10, 0)
        store = FakeRowStore([make_row(walk_datetime=walk)])
        build(config, store, calendar, folders).run()
        bid = decode(store.rows[0])
        assert bid.walk_event_id is not None
        assert bid.status == BidStatus.REVIEWING

    def test_notify_on_new_disabled(self, config, calendar, folders, notifier):
        config.notify_on_new = False
        store = FakeRowStore([make_row()])
        result = build(config, store, calendar, folders, notifier).run()
        assert result.new_bids == []
        assert decode(store.rows[0]).notified is False
        notifier.send.assert_not_called()


class TestSteadyState:
    def test_unchanged_row_not_written(self, config, calendar, folders, notifier):
        store = FakeRowStore([synced_row()])
        result = build(config, store, calendar, folders, notifier).run()
        assert result.processed == 1
        assert result.written == 0
        assert store.batches == []
        calendar.upsert.assert_not_called()
        folders.upsert.assert_not_called()
        notifier.send.assert_not_called()

    def test_changed_row_updates_calendar_and_notifies(self, config, calendar, folders, notifier):
        row = synced_row()
        row[COLUMNS.index("notes")] = "Pre-bid meeting added"
        store = FakeRowStore([row])
        result = build(config, store, calendar, folders, notifier).run()

        assert result.updated_bids == ["BID-2024-001"]
        assert result.new_bids == []
        calendar.upsert.assert_called_once()
        assert calendar.upsert.call_args.args[0] == "evt-existing"
        texts = [c.args[0] for c in notifier.send.call_args_list]
        assert texts == ["Bid updated BID-2024-001: Test Boring Services", "Bid sync: 0 new, 1 updated"]
        assert decode(store.rows[0]).due_event_id == "evt-existing"

    def test_update_notifications_disabled(self, config, calendar, folders, notifier):
        config.notify_on_updates = False
        row = synced_row()
        row[COLUMNS.index("notes")] = "changed"
        store = FakeRowStore([row])
        result = build(config, store, calendar, folders, notifier).run()
        assert result.updated_bids == []
        calendar.upsert.assert_called_once()
        notifier.send.assert_not_called()
        assert result.written == 1

    def test_existing_folder_never_recreated(self, config, calendar, folders):
        row = synced_row()
        row[COLUMNS.index("notes")] = "changed"
        store = FakeRowStore([row])
        build(config, store, calendar, folders).run()
        folders.upsert.assert_not_called()


def test_new_and_update_notifications_are_exclusive(config, calendar, folders, notifier):
    """A never-synced row that was already notified gets neither new nor a duplicate."""
    fresh = make_row()
    notified_but_unsynced = make_row(id="BID-2024-002", notified=True)
    store = FakeRowStore([fresh, notified_but_unsynced])
    result = build(config, store, calendar, folders, notifier).run()

    assert result.new_bids == ["BID-2024-001"]
    assert set(result.new_bids).isdisjoint(result.updated_bids)
    assert "BID-2024-002" not in result.updated_bids


def test_row_failure_is_isolated(config, calendar, folders, notifier):
    """Row 2 has a malformed date; rows 1 and 3 are still written in the batch."""
    bad = make_row(id="BID-2024-002")
    bad[COLUMNS.index("dueDate")] = "TBD"
    store = FakeRowStore([make_row(), bad, make_row(id="BID-2024-003")])

    result = build(config, store, calendar, folders, notifier).run()

    assert result.processed == 2
    assert result.failed == 1
    assert "BID-2024-002" in result.errors[0]
    assert len(store.batches) == 1
    assert sorted(store.batches[0]) == [0, 2]
    assert store.rows[1] == bad


def test_adapter_failure_leaves_row_unsynced(config, folders, notifier):
    calendar = MagicMock()
    calendar.upsert.side_effect = AdapterError("quota exceeded")
    store = FakeRowStore([make_row(), make_row(id="BID-2024-002", due_date=None)])

    result = build(config, store, calendar, folders, notifier).run()

    assert result.failed == 1
    assert list(store.batches[0]) == [1]
    assert decode(store.rows[0]).last_fingerprint == ""


def test_blank_and_invalid_rows_skipped(config, calendar, folders):
    invalid = [""] * 21
    invalid[COLUMNS.index("notes")] = "stray note"
    store = FakeRowStore([[""] * 21, invalid, make_row()])
    result = build(config, store, calendar, folders).run()
    assert result.skipped == 2
    assert result.processed == 1
    assert list(store.batches[0]) == [2]


def test_auto_status_written_back(config, calendar, folders):
    store = FakeRowStore([make_row(final_doc_ref="https://docs.google.com/document/d/final")])
    build(config, store, calendar, folders).run()
    assert decode(store.rows[0]).status == BidStatus.SUBMITTED


def test_locked_bid_status_kept(config, calendar, folders):
    store = FakeRowStore([make_row(status=BidStatus.LOST, final_doc_ref="final")])
    build(config, store, calendar, folders).run()
    assert decode(store.rows[0]).status == BidStatus.LOST


class TestRfpAndDocs:
    def test_rfp_attached_when_flagged(self, config, calendar, folders):
        rfp = MagicMock()
        rfp.upsert.return_value = "rfp-copy"
        store = FakeRowStore([make_row(rfp_attach_flag=True, rfp_source_ref="SRC")])
        build(config, store, calendar, folders, rfp_adapter=rfp).run()
        fields = rfp.upsert.call_args.args[1]
        assert fields["source_ref"] == "SRC"
        assert decode(store.rows[0]).rfp_attached_ref == "rfp-copy"

    def test_rfp_skipped_without_flag(self, config, calendar, folders):
        rfp = MagicMock()
        store = FakeRowStore([make_row(rfp_attach_flag=False, rfp_source_ref="SRC")])
        build(config, store, calendar, folders, rfp_adapter=rfp).run()
        rfp.upsert.assert_not_called()

    def test_rfp_skipped_without_source(self, config, calendar, folders):
        rfp = MagicMock()
        store = FakeRowStore([make_row(rfp_attach_flag=True)])
        build(config, store, calendar, folders, rfp_adapter=rfp).run()
        rfp.upsert.assert_not_called()

    def test_draft_doc_created_when_enabled(self, config, calendar, folders):
        config.create_draft_docs = True
        draft = MagicMock()
        draft.upsert.return_value = "draft-doc"
        store = FakeRowStore([make_row()])
        build(config, store, calendar, folders, draft_adapter=draft).run()
        bid = decode(store.rows[0])
        assert bid.draft_doc_ref == "draft-doc"

    def test_folder_creation_disabled(self, config, calendar, folders):
        config.create_folders = False
        store = FakeRowStore([make_row()])
        build(config, store, calendar, folders).run()
        folders.upsert.assert_not_called()
        assert decode(store.rows[0]).drive_folder_ref is None


def test_configuration_error_aborts_before_reading(config, calendar):
    config.calendar_id = None
    store = MagicMock()
    with pytest.raises(ConfigurationError):
        build(config, store, calendar).run()
    store.read_all.assert_not_called()


def test_second_pass_is_quiet(config, calendar, folders, notifier):
    store = FakeRowStore([make_row(), make_row(id="BID-2024-002")])
    orchestrator = build(config, store, calendar, folders, notifier)
    orchestrator.run()
    notifier.reset_mock()
    calendar.reset_mock()

    result = orchestrator.run()

    assert result.written == 0
    assert result.new_bids == [] and result.updated_bids == []
    notifier.send.assert_not_called()
    calendar.upsert.assert_not_called()


def test_rows_without_id_get_sequential_ids(config, calendar, folders, notifier):
    store = FakeRowStore([
        make_row(id="BID-2024-004"),
        make_row(id="", name="Form intake A"),
        make_row(id="", name="Form intake B"),
    ])
    result = build(config, store, calendar, folders, notifier, clock=lambda: datetime(2024, 5, 1)).run()

    ids = [decode(row).id for row in store.rows]
    assert ids == ["BID-2024-004", "BID-2024-005", "BID-2024-006"]
    assert result.new_bids == ids
    assert "BID-2024-005" in folders.upsert.call_args_list[1].args[1]["name"]
    assert [b.id for b in BidService(store).list_bids()] == ids


def test_sheet_display_formats_not_rewritten(config, calendar, folders, notifier):
    row = synced_row()
    row[COLUMNS.index("dueDate")] = "3/18/2024"
    row[COLUMNS.index("status")] = "new"
    store = FakeRowStore([row])

    result = build(config, store, calendar, folders, notifier).run()

    assert result.written == 0
    assert store.batches == []
    notifier.send.assert_not_called()
