"""Per-backend exchange rate cache with in-flight request de-duplication."""

import asyncio
import time
from typing import Awaitable, Callable, Dict, Optional, Tuple


def rate_key(source_currency: str, target_currency: str) -> str:
    """Build the ``SOURCE_TARGET`` cache key."""
    return f"{source_currency.strip().upper()}_{target_currency.strip().upper()}"


class RateCache:
    """TTL cache of exchange rates keyed by currency pair.

    Concurrent lookups for a pair that is not cached share one fetch: the
    first caller starts a task and later callers await the same task. The
    in-flight entry is removed once the task settles, whether it succeeded
    or failed.

    Attributes:
        ttl_seconds: Lifetime of a cached rate
    """

    def __init__(self, ttl_seconds: float, clock: Optional[Callable[[], float]] = None) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock or time.monotonic
        self._rates: Dict[str, Tuple[float, float]] = {}
        self._inflight: Dict[str, "asyncio.Task[float]"] = {}

    def get(self, key: str) -> Optional[float]:
        """Return a cached rate, or None if missing or expired."""
        entry = self._rates.get(key)
        if entry is None:
            return None
        rate, expires_at = entry
        if self._clock() >= expires_at:
            del self._rates[key]
            return None
        return rate

    def set(self, key: str, rate: float) -> None:
        self._rates[key] = (rate, self._clock() + self.ttl_seconds)

    @property
    def inflight_count(self) -> int:
        return len(self._inflight)

    async def get_or_fetch(self, key: str, fetch: Callable[[], Awaitable[float]]) -> float:
        """Return the cached rate for key, fetching it at most once concurrently.

        Args:
            key: Pair key from rate_key()
            fetch: Coroutine factory returning a validated rate

        Returns:
            Exchange rate

        Raises:
            Whatever fetch raises; every waiter receives the same error
        """
        cached = self.get(key)
        if cached is not None:
            return cached

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._fetch_and_store(key, fetch))
            self._inflight[key] = task
        return await task

    async def _fetch_and_store(self, key: str, fetch: Callable[[], Awaitable[float]]) -> float:
        try:
            rate = await fetch()
            self.set(key, rate)
            return rate
        finally:
            self._inflight.pop(key, None)

    def clear(self) -> None:
        self._rates.clear()
