"""Tests for the positional row codec."""

from datetime import date, datetime, timezone

import pytest

from bid_sync.codec import (
    COLUMNS,
    decode,
    decode_candidate,
    encode,
    encode_candidate,
    is_blank_row,
    is_valid,
    normalize_status,
)
from bid_sync.errors import RowDecodeError
from bid_sync.models import Bid, BidStatus, StagingCandidate

from conftest import make_bid, make_row


def test_column_count():
    assert len(COLUMNS) == 21
    assert COLUMNS[0] == "bidId"
    assert COLUMNS[-1] == "notified"


def test_round_trip_full_bid():
    bid = make_bid(
        walk_datetime=datetime(2024, 3, 5, 10, 30),
        walk_location="Town Hall",
        status=BidStatus.REVIEWING,
        rfp_source_ref="https://drive.google.com/file/d/abc123/view",
        rfp_attach_flag=True,
        drive_folder_ref="https://drive.google.com/drive/folders/f1",
        rfp_attached_ref="https://drive.google.com/file/d/r1/view",
        draft_doc_ref="https://docs.google.com/document/d/d1/edit",
        notes="Line one\nLine two",
        due_event_id="evt-due",
        walk_event_id="evt-walk",
        last_fingerprint="abc",
        notified=True,
    )
    assert decode(encode(bid)) == bid


def test_round_trip_sparse_bid():
    bid = Bid(id="BID-2024-002", name="Minimal")
    assert decode(encode(bid)) == bid


def test_round_trip_keeps_free_text_whitespace():
    bid = make_bid(name="Name ", notes="Line one\n", walk_location=" Gate 2 ")
    assert decode(encode(bid)) == bid


def test_structured_cells_are_trimmed():
    row = make_row()
    row[0] = " BID-2024-001 "
    row[COLUMNS.index("dueDate")] = " 2024-03-18 "
    row[COLUMNS.index("status")] = " Won "
    bid = decode(row)
    assert bid.id == "BID-2024-001"
    assert bid.due_date == date(2024, 3, 18)
    assert bid.status == BidStatus.WON


def test_whitespace_only_name_without_id_is_invalid():
    assert not is_valid(Bid(id="", name="   "))


def test_missing_cells_default():
    bid = decode(["BID-2024-003", "Short row"])
    assert bid.id == "BID-2024-003"
    assert bid.name == "Short row"
    assert bid.due_date is None
    assert bid.drive_folder_ref is None
    assert bid.due_event_id is None
    assert bid.notified is False
    assert bid.status == BidStatus.NEW


def test_none_cells_tolerated():
    bid = decode([None] * 21)
    assert bid.id == ""
    assert not is_valid(bid)


def test_dates_parsed_from_sheet_formats():
    row = [""] * 21
    row[0] = "BID-2024-004"
    row[4] = "3/18/2024"
    row[5] = "3/5/2024 10:00 AM"
    bid = decode(row)
    assert bid.due_date == date(2024, 3, 18)
    assert bid.walk_datetime == datetime(2024, 3, 5, 10, 0)


def test_malformed_date_raises():
    row = [""] * 21
    row[0] = "BID-2024-005"
    row[4] = "TBD"
    with pytest.raises(RowDecodeError):
        decode(row)


def test_booleans_encoded_as_sheet_values():
    row = encode(make_bid(rfp_attach_flag=True, notified=False))
    assert row[COLUMNS.index("moveRfp")] == "TRUE"
    assert row[COLUMNS.index("notified")] == "FALSE"


@pytest.mark.parametrize("raw", ["yes", "Y", "1", "true", "TRUE"])
def test_truthy_flag_values(raw):
    row = [""] * 21
    row[0] = "BID-1"
    row[COLUMNS.index("notified")] = raw
    assert decode(row).notified is True


class TestStatusNormalization:
    def test_legacy_no_bid_maps_to_lost(self):
        assert normalize_status("No Bid") == BidStatus.LOST

    def test_legacy_walkthrough_maps_to_reviewing(self):
        assert normalize_status("Walkthrough Scheduled") == BidStatus.REVIEWING

    def test_legacy_open_and_on_hold(self):
        assert normalize_status("Open") == BidStatus.NEW
        assert normalize_status("On Hold") == BidStatus.ARCHIVED
        assert normalize_status("In Progress") == BidStatus.REVIEWING

    def test_canonical_case_insensitive(self):
        assert normalize_status("submitted") == BidStatus.SUBMITTED
        assert normalize_status(" Won ") == BidStatus.WON

    def test_unknown_falls_back_to_default(self):
        assert normalize_status("Pending Legal") == BidStatus.NEW

    def test_blank_falls_back_to_default(self):
        assert normalize_status("") == BidStatus.NEW
        assert normalize_status(None) == BidStatus.NEW

    def test_decode_applies_mapping(self):
        row = [""] * 21
        row[0] = "BID-2024-010"
        row[COLUMNS.index("status")] = "No Bid"
        assert decode(row).status == BidStatus.LOST


def test_blank_row_detection():
    assert is_blank_row([])
    assert is_blank_row(["", "  ", None])
    assert not is_blank_row(["", "x"])


def test_validity_requires_id_or_name():
    assert is_valid(Bid(id="BID-1"))
    assert is_valid(Bid(name="Unnumbered"))
    assert not is_valid(Bid(notes="orphan notes"))


def test_staging_codec():
    candidate = StagingCandidate(
        discovered_at=datetime(2024, 2, 1, 12, 0, tzinfo=timezone.utc),
        external_bid_number="BD-24-1234",
        title="Geotechnical Drilling",
        url="https://www.commbuys.com/bso/external/bidDetail.sdo?docId=BD-24-1234",
        agency="MassDOT",
        due_date="03/18/2024 02:00 PM",
        bid_type="Open Market",
        matched_keyword="drilling",
    )
    row = encode_candidate(candidate)
    assert row[-1] == "FALSE"
    assert decode_candidate(row) == candidate


def test_staging_decode_short_row():
    candidate = decode_candidate(["", "", "Title only", "https://x"])
    assert candidate.title == "Title only"
    assert candidate.imported is False
