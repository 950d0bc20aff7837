"""Deduplication of discovered listings by URL."""

import logging
from typing import Iterable, List, Optional, Set

from ..models import StagingCandidate

logger = logging.getLogger(__name__)


def normalize_url(url: str) -> str:
    """Comparison key for a listing URL (trimmed, no trailing slash, no fragment)."""
    url = (url or "").strip()
    url = url.split("#", 1)[0]
    return url.rstrip("/")


class Deduplicator:
    """Filters candidates whose URL is already a bid or already staged.

    The known-URL set is built once per pass and grows as candidates are
    accepted, so duplicates within the same pass are also dropped.
    """

    def __init__(self, existing_urls: Optional[Iterable[str]] = None):
        self.existing_urls: Set[str] = {
            normalize_url(u) for u in (existing_urls or []) if normalize_url(u)
        }

    def is_known(self, url: str) -> bool:
        return normalize_url(url) in self.existing_urls

    def deduplicate(self, candidates: List[StagingCandidate]) -> List[StagingCandidate]:
        new_candidates = []
        duplicate_count = 0

        for candidate in candidates:
            key = normalize_url(candidate.url)
            if not key:
                logger.debug("Dropping candidate without url: %s", candidate.title)
                continue
            if key in self.existing_urls:
                duplicate_count += 1
                logger.debug("Duplicate found: %s", candidate.url)
            else:
                new_candidates.append(candidate)
                self.existing_urls.add(key)

        logger.info("Deduplication: %d new, %d duplicates", len(new_candidates), duplicate_count)
        return new_candidates

    def add_url(self, url: str):
        if normalize_url(url):
            self.existing_urls.add(normalize_url(url))
