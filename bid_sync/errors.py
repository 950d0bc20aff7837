"""Error taxonomy for the bid sync pipeline."""


class BidSyncError(Exception):
    """Base class for pipeline errors."""


class ConfigurationError(BidSyncError, ValueError):
    """A required setting is missing. Fatal: aborts the run before any row."""


class RowDecodeError(BidSyncError, ValueError):
    """A spreadsheet cell could not be decoded (e.g. malformed date)."""


class RowProcessingError(BidSyncError):
    """Processing a single row failed. The row is left unsynced for this pass."""

    def __init__(self, row_index: int, bid_id: str, cause: Exception) -> None:
        super().__init__(f"row {row_index} ({bid_id or 'no id'}): {cause}")
        self.row_index = row_index
        self.bid_id = bid_id
        self.cause = cause


class AdapterError(BidSyncError):
    """An external service call (calendar, drive, etc.) failed."""


class ParseError(BidSyncError):
    """A listing page could not be parsed."""


class NotFoundError(BidSyncError, LookupError):
    """No bid exists with the requested id."""

    def __init__(self, bid_id: str) -> None:
        super().__init__(f"Bid not found: {bid_id}")
        self.bid_id = bid_id
