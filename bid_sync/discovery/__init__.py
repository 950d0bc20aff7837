"""Discovery of new bids from external listing sources."""

from .listing_source import CommBuysListingSource, ListingSource, parse_listing_page
from .poller import DiscoveryPoller, DiscoveryResult

__all__ = [
    "CommBuysListingSource",
    "ListingSource",
    "parse_listing_page",
    "DiscoveryPoller",
    "DiscoveryResult",
]
