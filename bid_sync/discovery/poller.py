"""Discovery poller: external listings -> staging area or directly into bids."""

import logging
from typing import List, Optional

from pydantic import BaseModel, Field

from ..codec.row_codec import (
    decode_candidate,
    encode_candidate,
    is_blank_row,
    parse_date,
)
from ..config import Config
from ..deduplicator import Deduplicator
from ..errors import RowDecodeError
from ..models import Bid, DEFAULT_STATUS, StagingCandidate
from ..service import BidService

logger = logging.getLogger(__name__)

POSTING_URL_COLUMN = 3


class DiscoveryResult(BaseModel):
    fetched: int = 0
    staged: int = 0
    imported: List[str] = Field(default_factory=list)
    duplicates: int = 0
    errors: List[str] = Field(default_factory=list)


def provenance_notes(candidate: StagingCandidate, source_name: str = "CommBuys") -> str:
    return (
        f"Imported from {source_name}\n"
        f"Bid #: {candidate.external_bid_number or 'N/A'}\n"
        f"Type: {candidate.bid_type or 'N/A'}\n"
        f"Due (as listed): {candidate.due_date or 'N/A'}\n"
        f"Keyword: {candidate.matched_keyword or 'N/A'}\n"
        f"Detail: {candidate.url}"
    )


def candidate_to_fields(candidate: StagingCandidate, owner_name: str = "") -> dict:
    """Bid fields for a promoted candidate; the due date is parsed best-effort."""
    try:
        due_date = parse_date(candidate.due_date, "dueDate")
    except RowDecodeError:
        due_date = None
    return {
        "name": candidate.title or f"Bid {candidate.external_bid_number}",
        "client": candidate.agency,
        "posting_url": candidate.url,
        "due_date": due_date,
        "owner_name": owner_name,
        "status": DEFAULT_STATUS.value,
        "notes": provenance_notes(candidate),
    }


class DiscoveryPoller:
    """Polls a listing source per keyword and dedups by URL."""

    def __init__(self, config: Config, store, source, service: Optional[BidService] = None) -> None:
        self.config = config
        self._store = store
        self._source = source
        self._service = service or BidService(store, id_prefix=config.bid_id_prefix)

    def _existing_posting_urls(self) -> List[str]:
        return [
            str(row[POSTING_URL_COLUMN]).strip()
            for row in self._store.read_all()
            if len(row) > POSTING_URL_COLUMN and not is_blank_row(row)
        ]

    def _staging(self) -> List[StagingCandidate]:
        return [decode_candidate(row) for row in self._store.read_staging() if not is_blank_row(row)]

    def _import(self, candidate: StagingCandidate) -> Bid:
        return self._service.create_bid(candidate_to_fields(candidate, self.config.import_owner_name))

    def poll(self) -> DiscoveryResult:
        """One discovery pass over every configured keyword."""
        result = DiscoveryResult()
        keywords = self.config.keyword_list
        if not keywords:
            logger.warning("No discovery keywords configured; nothing to poll")
            return result

        staged_urls = [c.url for c in self._staging()]
        deduplicator = Deduplicator(self._existing_posting_urls() + staged_urls)

        for keyword in keywords:
            candidates = self._source.safe_fetch(keyword)
            result.fetched += len(candidates)
            fresh = deduplicator.deduplicate(candidates)
            result.duplicates += len(candidates) - len(fresh)

            for candidate in fresh:
                try:
                    if self.config.auto_import:
                        bid = self._import(candidate)
                        result.imported.append(bid.id)
                    else:
                        self._store.append_staging(encode_candidate(candidate))
                        result.staged += 1
                except Exception as exc:
                    logger.error(
                        "discovery_candidate result=failure keyword=%s url=%s error=%s",
                        keyword,
                        candidate.url,
                        exc,
                    )
                    result.errors.append(f"{candidate.url}: {exc}")

        logger.info(
            "discovery_complete keywords=%d fetched=%d staged=%d imported=%d duplicates=%d failed=%d",
            len(keywords),
            result.fetched,
            result.staged,
            len(result.imported),
            result.duplicates,
            len(result.errors),
        )
        return result

    def promote_staged(self) -> List[str]:
        """Create a bid for every staged candidate not yet imported.

        Idempotent: imported rows are skipped, and a candidate whose URL is
        already a bid is only marked imported.
        """
        created = []
        known = Deduplicator(self._existing_posting_urls())
        for index, row in enumerate(self._store.read_staging()):
            if is_blank_row(row):
                continue
            candidate = decode_candidate(row)
            if candidate.imported:
                continue
            if known.is_known(candidate.url):
                logger.info("Staged candidate already a bid, marking imported: %s", candidate.url)
            else:
                bid = self._import(candidate)
                created.append(bid.id)
                known.add_url(candidate.url)
            self._store.mark_staging_imported(index)

        logger.info("promote_complete created=%d", len(created))
        return created
