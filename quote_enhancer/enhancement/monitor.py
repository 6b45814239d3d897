"""In-process performance tracking for enhancement requests."""

from collections import deque
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Callable, Deque, Dict

from quote_enhancer.logging import get_logger
from quote_enhancer.utils.timestamps import format_timestamp, utc_now

logger = get_logger(__name__, component="monitor")

SLOW_REQUEST_MS = 5000.0
MAX_SLOW_REQUESTS = 10
MAX_RECENT_ERRORS = 20


@dataclass
class RequestRecord:
    """
    One tracked request.

    Attributes:
        provider: Provider the request enhanced
        duration_ms: Wall time in milliseconds
        cache_hit: Whether the result came from the cache
        recorded_at: UTC time the request finished
    """

    provider: str
    duration_ms: float
    cache_hit: bool
    recorded_at: datetime


@dataclass
class ErrorRecord:
    provider: str
    code: str
    message: str
    recorded_at: datetime


def _as_dict(record: Any) -> Dict[str, Any]:
    data = asdict(record)
    data["recorded_at"] = format_timestamp(record.recorded_at)
    return data


class PerformanceMonitor:
    """Tracks request timing, slow requests, recent errors and cache hit rate.

    Only the last 10 slow requests (over 5 seconds) and the last 20 errors
    are kept.
    """

    def __init__(self, clock: Callable[[], datetime] = utc_now) -> None:
        self._clock = clock
        self.total_requests = 0
        self.cache_hits = 0
        self.total_duration_ms = 0.0
        self.slow_requests: Deque[RequestRecord] = deque(maxlen=MAX_SLOW_REQUESTS)
        self.recent_errors: Deque[ErrorRecord] = deque(maxlen=MAX_RECENT_ERRORS)

    def record_request(self, provider: str, duration_ms: float, cache_hit: bool = False) -> None:
        self.total_requests += 1
        self.total_duration_ms += duration_ms
        if cache_hit:
            self.cache_hits += 1
        if duration_ms > SLOW_REQUEST_MS:
            self.slow_requests.append(RequestRecord(provider, duration_ms, cache_hit, self._clock()))
            logger.warning(
                f"Slow enhancement for {provider}: {duration_ms:.0f}ms",
                extra={"event": "monitor.request.slow", "provider": provider, "duration_ms": round(duration_ms, 1)},
            )

    def record_error(self, provider: str, code: str, message: str) -> None:
        self.recent_errors.append(ErrorRecord(provider, code, message, self._clock()))

    def get_stats(self) -> Dict[str, Any]:
        return {
            "total_requests": self.total_requests,
            "cache_hits": self.cache_hits,
            "cache_hit_rate": self.cache_hits / self.total_requests if self.total_requests else 0.0,
            "average_duration_ms": self.total_duration_ms / self.total_requests if self.total_requests else 0.0,
            "slow_requests": [_as_dict(record) for record in self.slow_requests],
            "recent_errors": [_as_dict(record) for record in self.recent_errors],
        }
