"""Generic in-memory TTL store.

Expiry is checked lazily on read. After every write the store trims itself
to its size cap by evicting the entries with the oldest insertion
timestamp. All mutations are synchronous, so a read-modify-write sequence
cannot interleave with another coroutine.
"""

import time
from dataclasses import dataclass
from typing import Callable, Dict, Generic, Iterator, Optional, Tuple, TypeVar

T = TypeVar("T")


@dataclass
class CacheEntry(Generic[T]):
    """
    One cached value.

    Attributes:
        data: Cached value
        timestamp: Insertion time (epoch seconds)
        expires_at: Expiry time (epoch seconds); the entry is valid while now < expires_at
    """

    data: T
    timestamp: float
    expires_at: float

    def is_valid(self, now: float) -> bool:
        return now < self.expires_at


class TTLStore(Generic[T]):
    """Bounded key-value store with per-entry expiry.

    Attributes:
        default_ttl: Lifetime in seconds used when set() gets no ttl
        max_entries: Size cap enforced after every write
    """

    def __init__(self, default_ttl: float, max_entries: int = 100, clock: Optional[Callable[[], float]] = None) -> None:
        if max_entries < 1:
            raise ValueError(f"max_entries must be at least 1, got: {max_entries}")
        self.default_ttl = default_ttl
        self.max_entries = max_entries
        self._clock = clock or time.time
        self._entries: Dict[str, CacheEntry[T]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> Optional[T]:
        """Return the value for key, dropping it if expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if not entry.is_valid(self._clock()):
            del self._entries[key]
            return None
        return entry.data

    def has(self, key: str) -> bool:
        return self.get(key) is not None

    def set(self, key: str, value: T, ttl: Optional[float] = None) -> None:
        now = self._clock()
        lifetime = self.default_ttl if ttl is None else ttl
        # Re-insert so dict order stays in line with timestamps
        self._entries.pop(key, None)
        self._entries[key] = CacheEntry(data=value, timestamp=now, expires_at=now + lifetime)
        self.enforce_size()

    def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def enforce_size(self) -> int:
        """Evict oldest entries until the cap holds; returns the number evicted."""
        overflow = len(self._entries) - self.max_entries
        if overflow <= 0:
            return 0
        oldest = sorted(self._entries.items(), key=lambda item: item[1].timestamp)[:overflow]
        for key, _ in oldest:
            del self._entries[key]
        return overflow

    def cleanup(self) -> int:
        """Remove expired entries, then enforce the size cap.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if not entry.is_valid(now)]
        for key in expired:
            del self._entries[key]
        return len(expired) + self.enforce_size()

    def clear(self) -> None:
        self._entries.clear()

    def entries(self) -> Iterator[Tuple[str, CacheEntry[T]]]:
        return iter(list(self._entries.items()))

    def valid_count(self) -> int:
        now = self._clock()
        return sum(1 for entry in self._entries.values() if entry.is_valid(now))
