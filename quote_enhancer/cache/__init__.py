"""In-memory caches for enhancement results, extractions and legal baselines."""

from .service import CacheStats, EnhancementCache, quote_content_hash
from .store import CacheEntry, TTLStore

__all__ = ["CacheEntry", "CacheStats", "EnhancementCache", "TTLStore", "quote_content_hash"]
