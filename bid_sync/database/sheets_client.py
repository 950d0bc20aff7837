"""Google Sheets row store for bids and staging candidates."""

import logging
from typing import Dict, List, Optional, Sequence

import gspread
from gspread.exceptions import APIError
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..codec.row_codec import COLUMNS, STAGING_COLUMNS

logger = logging.getLogger(__name__)

HEADER_ROWS = 1
VALUE_INPUT = "USER_ENTERED"
# Scraped text is stored literally so a leading "=" never becomes a formula.
STAGING_VALUE_INPUT = "RAW"


def sheets_retry():
    """Retry decorator for idempotent Sheets calls: 3 attempts, exponential backoff."""
    return retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(APIError),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )


def col_to_a1(col_idx_1based: int) -> str:
    s = ""
    n = col_idx_1based
    while n:
        n, rem = divmod(n - 1, 26)
        s = chr(65 + rem) + s
    return s


def row_range(index: int, width: int) -> str:
    """A1 range for 0-based data row `index` (the header occupies row 1)."""
    sheet_row = index + HEADER_ROWS + 1
    return f"A{sheet_row}:{col_to_a1(width)}{sheet_row}"


class SheetsClient:
    """Row store over two worksheets of one spreadsheet.

    Data rows are addressed by 0-based index below the header row.
    """

    def __init__(
        self,
        client: gspread.Client,
        spreadsheet_id: str,
        bids_worksheet: str = "Bids",
        staging_worksheet: str = "Staging",
    ) -> None:
        self._client = client
        self.spreadsheet_id = spreadsheet_id
        self.bids_worksheet = bids_worksheet
        self.staging_worksheet = staging_worksheet
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._worksheets: Dict[str, gspread.Worksheet] = {}

    # ------------------------------------------------------------------
    # Worksheet access
    # ------------------------------------------------------------------

    def _worksheet(self, title: str, header: Sequence[str]) -> gspread.Worksheet:
        if title in self._worksheets:
            return self._worksheets[title]
        if self._spreadsheet is None:
            self._spreadsheet = self._client.open_by_key(self.spreadsheet_id)
        try:
            ws = self._spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            ws = self._spreadsheet.add_worksheet(title, rows=2000, cols=len(header))
            ws.append_row(list(header), value_input_option=VALUE_INPUT)
            logger.info("Created missing worksheet '%s'", title)
        self._worksheets[title] = ws
        return ws

    @property
    def _bids(self) -> gspread.Worksheet:
        return self._worksheet(self.bids_worksheet, COLUMNS)

    @property
    def _staging(self) -> gspread.Worksheet:
        return self._worksheet(self.staging_worksheet, STAGING_COLUMNS)

    # ------------------------------------------------------------------
    # Bids
    # ------------------------------------------------------------------

    @sheets_retry()
    def read_all(self) -> List[List[str]]:
        """All data rows of the bids worksheet, in sheet order."""
        rows = self._bids.get_all_values()
        logger.info("sheets_read worksheet=%s rows=%d", self.bids_worksheet, max(len(rows) - HEADER_ROWS, 0))
        return rows[HEADER_ROWS:]

    @sheets_retry()
    def write_row(self, index: int, values: Sequence[str]) -> None:
        self._bids.update(
            range_name=row_range(index, len(COLUMNS)),
            values=[list(values)],
            value_input_option=VALUE_INPUT,
        )

    def append_row(self, values: Sequence[str]) -> None:
        self._bids.append_row(
            list(values),
            value_input_option=VALUE_INPUT,
            insert_data_option="INSERT_ROWS",
        )

    @sheets_retry()
    def batch_write(self, rows: Dict[int, Sequence[str]]) -> int:
        """Write many rows in one request. Returns the number of rows written."""
        if not rows:
            return 0
        data = [
            {"range": row_range(index, len(COLUMNS)), "values": [list(values)]}
            for index, values in sorted(rows.items())
        ]
        self._bids.batch_update(data, value_input_option=VALUE_INPUT)
        logger.info("sheets_batch_write worksheet=%s rows=%d", self.bids_worksheet, len(data))
        return len(data)

    # ------------------------------------------------------------------
    # Staging
    # ------------------------------------------------------------------

    @sheets_retry()
    def read_staging(self) -> List[List[str]]:
        return self._staging.get_all_values()[HEADER_ROWS:]

    def append_staging(self, values: Sequence[str]) -> None:
        self._staging.append_row(
            list(values),
            value_input_option=STAGING_VALUE_INPUT,
            insert_data_option="INSERT_ROWS",
        )

    @sheets_retry()
    def mark_staging_imported(self, index: int) -> None:
        sheet_row = index + HEADER_ROWS + 1
        self._staging.update_cell(sheet_row, STAGING_COLUMNS.index("imported") + 1, "TRUE")
