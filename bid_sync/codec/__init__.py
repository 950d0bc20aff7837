"""Row codec between the spreadsheet and Bid records."""

from .row_codec import (
    COLUMNS,
    LEGACY_STATUS_MAP,
    STAGING_COLUMNS,
    decode,
    decode_candidate,
    encode,
    encode_candidate,
    is_blank_row,
    is_valid,
    normalize_status,
    to_bool,
)

__all__ = [
    "COLUMNS",
    "LEGACY_STATUS_MAP",
    "STAGING_COLUMNS",
    "decode",
    "decode_candidate",
    "encode",
    "encode_candidate",
    "is_blank_row",
    "is_valid",
    "normalize_status",
    "to_bool",
]
