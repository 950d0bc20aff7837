from .dedup import Deduplicator, normalize_url

__all__ = ["Deduplicator", "normalize_url"]
