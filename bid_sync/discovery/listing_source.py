"""External bid listing sources.

The listing page is uncontrolled third-party HTML. Parsing is best-effort:
missing fields stay empty and a malformed page yields an empty list.
"""

import logging
import re
import time
from abc import ABC, abstractmethod
from typing import Dict, List, Optional
from urllib.parse import urljoin

import httpx
from bs4 import BeautifulSoup
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..errors import ParseError
from ..models import StagingCandidate

logger = logging.getLogger(__name__)

# Standard timeout: 30s connect, 60s read
LISTING_TIMEOUT = httpx.Timeout(connect=30.0, read=60.0, write=30.0, pool=30.0)

USER_AGENT = "Mozilla/5.0 (compatible; BidSync/1.0)"

_DATE_RE = re.compile(r"\b\d{1,2}/\d{1,2}/\d{2,4}(?:\s+\d{1,2}:\d{2}(?:\s*[AP]M)?)?", re.I)

# Header keyword -> candidate field, checked in order.
_HEADER_RULES = (
    (("due", "opening", "closing", "close date"), "due_date"),
    (("#", "number", "solicitation"), "external_bid_number"),
    (("description", "title"), "title"),
    (("organization", "agency", "department"), "agency"),
    (("type", "purchase method"), "bid_type"),
)


def listing_retry():
    """Retry decorator for listing fetches: 3 attempts, exponential backoff."""
    return retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(httpx.HTTPError),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )


def _clean(text: str) -> str:
    return re.sub(r"\s+", " ", text or "").strip()


def map_headers(headers: List[str]) -> Dict[int, str]:
    """Map header cell positions to candidate fields by keyword."""
    columns: Dict[int, str] = {}
    taken = set()
    for position, header in enumerate(headers):
        text = header.lower()
        for keywords, field in _HEADER_RULES:
            if field not in taken and any(k in text for k in keywords):
                columns[position] = field
                taken.add(field)
                break
    return columns


def _row_link(tr, base_url: str):
    for anchor in tr.find_all("a", href=True):
        href = anchor["href"].strip()
        if href and not href.lower().startswith(("javascript:", "mailto:", "#")):
            return urljoin(base_url, href), _clean(anchor.get_text(" "))
    return None, ""


def _row_to_candidate(tr, columns: Dict[int, str], base_url: str, keyword: str) -> Optional[StagingCandidate]:
    cells = [_clean(td.get_text(" ")) for td in tr.find_all("td")]
    if not cells:
        return None
    url, link_text = _row_link(tr, base_url)
    if not url:
        return None

    values: Dict[str, str] = {}
    if columns:
        for position, field in columns.items():
            if position < len(cells):
                values[field] = cells[position]
    else:
        values["external_bid_number"] = cells[0]
        if len(cells) > 2:
            values["agency"] = cells[1]
        dated = next((c for c in cells if _DATE_RE.search(c)), "")
        if dated:
            values["due_date"] = _DATE_RE.search(dated).group(0)

    if not values.get("title"):
        values["title"] = link_text if link_text != values.get("external_bid_number") else ""
    if not values.get("title") and not values.get("external_bid_number"):
        return None

    return StagingCandidate(url=url, matched_keyword=keyword, **values)


def parse_listing_page(page: str, base_url: str, keyword: str = "") -> List[StagingCandidate]:
    """Extract candidates from every table on the page. Never raises."""
    try:
        soup = BeautifulSoup(page or "", "html.parser")
        candidates: List[StagingCandidate] = []
        for table in soup.find_all("table"):
            rows = table.find_all("tr")
            if not rows:
                continue
            header_cells = rows[0].find_all("th") or rows[0].find_all("td")
            columns = map_headers([_clean(c.get_text(" ")) for c in header_cells])
            if len(columns) < 2:
                columns = {}
            data_rows = rows[1:] if (columns or rows[0].find("th")) else rows
            for tr in data_rows:
                candidate = _row_to_candidate(tr, columns, base_url, keyword)
                if candidate is not None:
                    candidates.append(candidate)
        return candidates
    except Exception as exc:
        error = ParseError(f"Could not parse listing page for keyword {keyword!r}: {exc}")
        logger.error("listing_parse result=failure keyword=%s error=%s", keyword, error)
        return []


class ListingSource(ABC):
    """Fetches and parses one external listing source."""

    @property
    @abstractmethod
    def source_name(self) -> str:
        """Source identifier."""

    @abstractmethod
    def fetch(self, keyword: str) -> str:
        """Return the raw listing page for `keyword`."""

    @abstractmethod
    def parse(self, page: str, keyword: str) -> List[StagingCandidate]:
        """Parse a raw page into candidates. Must not raise."""

    def safe_fetch(self, keyword: str) -> List[StagingCandidate]:
        """Fetch and parse with full error handling; returns [] on any failure."""
        start = time.monotonic()
        try:
            page = self.fetch(keyword)
            results = self.parse(page, keyword)
        except Exception as exc:
            logger.error(
                "fetch_complete source=%s keyword=%s result=failure error=%s duration_ms=%.0f",
                self.source_name,
                keyword,
                exc,
                (time.monotonic() - start) * 1000,
            )
            return []
        logger.info(
            "fetch_complete source=%s keyword=%s result=success count=%d duration_ms=%.0f",
            self.source_name,
            keyword,
            len(results),
            (time.monotonic() - start) * 1000,
        )
        return results


class CommBuysListingSource(ListingSource):
    """COMMBUYS public bid search."""

    def __init__(self, listing_url: str, timeout: httpx.Timeout = LISTING_TIMEOUT) -> None:
        self.listing_url = listing_url
        self.timeout = timeout

    @property
    def source_name(self) -> str:
        return "commbuys"

    @listing_retry()
    def fetch(self, keyword: str) -> str:
        with httpx.Client(timeout=self.timeout, follow_redirects=True) as client:
            response = client.get(
                self.listing_url,
                params={"keyword": keyword},
                headers={"User-Agent": USER_AGENT},
            )
            logger.info(
                "[%s] url=%s keyword=%s status=%s",
                self.source_name,
                self.listing_url,
                keyword,
                response.status_code,
            )
            response.raise_for_status()
            return response.text

    def parse(self, page: str, keyword: str) -> List[StagingCandidate]:
        return parse_listing_page(page, self.listing_url, keyword)
