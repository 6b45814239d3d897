"""Process-lifetime cache for enhancement results, extractions and legal baselines.

Three TTL stores are owned by one EnhancementCache:

- results: EnhancedQuote keyed by provider, request shape and quote content
- extractions: StandardizedBenefitData keyed by provider and raw response
- baselines: LegalBaseline keyed by country, salary, contract and quote type

The cache is empty at construction and is only emptied again by clear().
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from quote_enhancer.config.models import CacheConfig
from quote_enhancer.domain.legal import LegalBaseline
from quote_enhancer.domain.models import (
    EnhancedQuote,
    FormData,
    NormalizedQuote,
    QuoteType,
    RawProviderQuote,
    StandardizedBenefitData,
)
from quote_enhancer.logging import get_logger
from quote_enhancer.utils.hashing import content_hash

from .store import TTLStore

logger = get_logger(__name__, component="cache")

DEFAULT_ENHANCEMENT_TTL = 30 * 60
DEFAULT_EXTRACTION_TTL = 60 * 60
DEFAULT_BASELINE_TTL = 30 * 60
DEFAULT_MAX_ENTRIES = 100


@dataclass
class CacheStats:
    """
    Snapshot of the result cache.

    Attributes:
        total_entries: Result entries currently stored (expired included)
        valid_entries: Result entries not yet expired
        oldest_entry: Insertion time of the oldest result entry, if any
        newest_entry: Insertion time of the newest result entry, if any
        hits: Result lookups answered from the cache
        misses: Result lookups that missed
        hit_rate: hits / (hits + misses), 0 when nothing was looked up
        extraction_entries: Cached extractions
        baseline_entries: Cached legal baselines
    """

    total_entries: int = 0
    valid_entries: int = 0
    oldest_entry: Optional[float] = None
    newest_entry: Optional[float] = None
    hits: int = 0
    misses: int = 0
    hit_rate: float = 0.0
    extraction_entries: int = 0
    baseline_entries: int = 0


def quote_content_hash(quote: Union[NormalizedQuote, RawProviderQuote, Dict[str, Any]]) -> str:
    """Hash the parts of a quote that determine its enhancement."""
    if isinstance(quote, NormalizedQuote):
        projection: Any = {
            "monthly_total": quote.monthly_total,
            "base_cost": quote.base_cost,
            "currency": quote.currency,
            "breakdown": quote.breakdown,
        }
    elif isinstance(quote, RawProviderQuote):
        projection = quote.payload
    else:
        projection = quote
    return content_hash(projection)


class EnhancementCache:
    """Cache service owned by the enhancement engine."""

    def __init__(
        self,
        enhancement_ttl: float = DEFAULT_ENHANCEMENT_TTL,
        extraction_ttl: float = DEFAULT_EXTRACTION_TTL,
        baseline_ttl: float = DEFAULT_BASELINE_TTL,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self.results: TTLStore[EnhancedQuote] = TTLStore(enhancement_ttl, max_entries, clock)
        self.extractions: TTLStore[StandardizedBenefitData] = TTLStore(extraction_ttl, max_entries, clock)
        self.baselines: TTLStore[LegalBaseline] = TTLStore(baseline_ttl, max_entries, clock)
        self.hits = 0
        self.misses = 0
        self._inflight_baselines: Dict[str, "asyncio.Task[LegalBaseline]"] = {}

    @classmethod
    def from_config(cls, cache_config: CacheConfig, clock: Optional[Callable[[], float]] = None) -> "EnhancementCache":
        return cls(
            enhancement_ttl=cache_config.enhancement_ttl_seconds or DEFAULT_ENHANCEMENT_TTL,
            extraction_ttl=cache_config.extraction_ttl_seconds or DEFAULT_EXTRACTION_TTL,
            baseline_ttl=cache_config.baseline_ttl_seconds or DEFAULT_BASELINE_TTL,
            max_entries=cache_config.max_entries,
            clock=clock,
        )

    # ------------------------------------------------------------------
    # Keys
    # ------------------------------------------------------------------

    @staticmethod
    def result_key(provider: str, form_data: FormData, quote_type: QuoteType, quote_hash: str) -> str:
        """Build the result key from provider, request shape and quote hash.

        Salary currency and local office amounts are part of the request
        shape; "-" stands for an unset value.
        """
        office = form_data.local_office_info
        parts = [
            provider,
            form_data.country,
            f"{form_data.base_salary:.2f}",
            str(form_data.contract_duration),
            form_data.employment_type,
            quote_type.value,
            form_data.currency or "-",
            content_hash(office.model_dump(mode="json")) if office is not None else "-",
        ]
        return "|".join(part.strip().lower() for part in parts) + f"|{quote_hash}"

    @staticmethod
    def extraction_key(provider: str, original_response: Any) -> str:
        return f"extraction|{provider.lower()}|{content_hash(original_response)}"

    @staticmethod
    def baseline_key(
        country_code: str,
        base_salary: float,
        contract_months: int,
        quote_type: QuoteType,
        employment_type: str,
    ) -> str:
        return f"prepass|{country_code.upper()}|{base_salary:.2f}|{contract_months}|{quote_type.value}|{employment_type.lower()}"

    # ------------------------------------------------------------------
    # Enhancement results
    # ------------------------------------------------------------------

    def get(self, key: str) -> Optional[EnhancedQuote]:
        """Return a cached result and count the lookup as a hit or miss."""
        result = self.results.get(key)
        if result is None:
            self.record_miss()
        else:
            self.record_hit()
        return result

    def set(self, key: str, value: EnhancedQuote, ttl: Optional[float] = None) -> None:
        self.results.set(key, value, ttl)

    def has(self, key: str) -> bool:
        return self.results.has(key)

    def delete(self, key: str) -> bool:
        return self.results.delete(key)

    def record_hit(self) -> None:
        self.hits += 1

    def record_miss(self) -> None:
        self.misses += 1

    # ------------------------------------------------------------------
    # Extractions
    # ------------------------------------------------------------------

    def set_extraction(self, provider: str, original_response: Any, data: StandardizedBenefitData) -> None:
        self.extractions.set(self.extraction_key(provider, original_response), data)

    def get_extraction(self, provider: str, original_response: Any) -> Optional[StandardizedBenefitData]:
        return self.extractions.get(self.extraction_key(provider, original_response))

    # ------------------------------------------------------------------
    # Legal baselines
    # ------------------------------------------------------------------

    def get_baseline(self, key: str) -> Optional[LegalBaseline]:
        return self.baselines.get(key)

    def set_baseline(self, key: str, baseline: LegalBaseline) -> None:
        self.baselines.set(key, baseline)

    async def get_or_create_baseline(
        self, key: str, factory: Callable[[], Awaitable[LegalBaseline]]
    ) -> LegalBaseline:
        """Return the cached baseline for key, building it at most once concurrently.

        Callers arriving while a build for the same key is running await that
        build instead of starting another. The in-flight entry is removed once
        the build settles, success or failure.

        Args:
            key: Key from baseline_key()
            factory: Coroutine factory that builds the baseline

        Returns:
            LegalBaseline shared by every concurrent caller
        """
        cached = self.baselines.get(key)
        if cached is not None:
            logger.debug("Legal baseline cache hit", extra={"event": "cache.baseline.hit", "cache_key": key})
            return cached

        task = self._inflight_baselines.get(key)
        if task is not None:
            logger.debug(
                "Joining in-flight legal baseline build",
                extra={"event": "cache.baseline.joined", "cache_key": key},
            )
            return await task

        task = asyncio.ensure_future(self._build_baseline(key, factory))
        self._inflight_baselines[key] = task
        return await task

    async def _build_baseline(self, key: str, factory: Callable[[], Awaitable[LegalBaseline]]) -> LegalBaseline:
        try:
            baseline = await factory()
            self.baselines.set(key, baseline)
            return baseline
        finally:
            self._inflight_baselines.pop(key, None)

    @property
    def inflight_baselines(self) -> int:
        return len(self._inflight_baselines)

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def get_stats(self) -> CacheStats:
        timestamps = [entry.timestamp for _, entry in self.results.entries()]
        lookups = self.hits + self.misses
        return CacheStats(
            total_entries=len(self.results),
            valid_entries=self.results.valid_count(),
            oldest_entry=min(timestamps) if timestamps else None,
            newest_entry=max(timestamps) if timestamps else None,
            hits=self.hits,
            misses=self.misses,
            hit_rate=self.hits / lookups if lookups else 0.0,
            extraction_entries=len(self.extractions),
            baseline_entries=len(self.baselines),
        )

    def cleanup(self) -> int:
        """Sweep expired entries from every store and enforce size caps."""
        removed = self.results.cleanup() + self.extractions.cleanup() + self.baselines.cleanup()
        if removed:
            logger.info(
                f"Cache cleanup removed {removed} entries",
                extra={"event": "cache.cleanup.completed", "removed": removed},
            )
        return removed

    def clear(self) -> None:
        """Empty every store and reset counters."""
        self.results.clear()
        self.extractions.clear()
        self.baselines.clear()
        self.hits = 0
        self.misses = 0
        logger.info("Enhancement cache cleared", extra={"event": "cache.cleared"})
