"""Tests for the TTL store and the enhancement cache."""

import asyncio

import pytest

from quote_enhancer.cache import EnhancementCache, TTLStore, quote_content_hash
from quote_enhancer.config.models import CacheConfig
from quote_enhancer.domain.legal import LegalBaseline
from quote_enhancer.domain.models import FormData, LocalOfficeInfo, NormalizedQuote, QuoteType, RawProviderQuote


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_baseline(country_code: str = "BR") -> LegalBaseline:
    return LegalBaseline(
        country_code=country_code,
        currency="BRL",
        base_salary_monthly=1000,
        contract_months=12,
        quote_type=QuoteType.ALL_INCLUSIVE,
    )


# ============================================================================
# TTLStore
# ============================================================================


class TestTTLStore:
    """Tests for TTLStore expiry and eviction."""

    def test_get_and_expiry(self):
        """Test that entries are valid strictly before expires_at."""
        clock = FakeClock()
        store = TTLStore(default_ttl=10, clock=clock)
        store.set("a", 1)

        clock.advance(9.9)
        assert store.get("a") == 1

        clock.advance(0.1)
        assert store.get("a") is None
        assert len(store) == 0

    def test_per_entry_ttl(self):
        """Test that an explicit ttl overrides the default."""
        clock = FakeClock()
        store = TTLStore(default_ttl=10, clock=clock)
        store.set("short", 1, ttl=1)
        store.set("long", 2)

        clock.advance(5)

        assert not store.has("short")
        assert store.has("long")

    def test_eviction_removes_oldest(self):
        """Test that the size cap evicts by insertion time."""
        clock = FakeClock()
        store = TTLStore(default_ttl=100, max_entries=2, clock=clock)
        store.set("a", 1)
        clock.advance(1)
        store.set("b", 2)
        clock.advance(1)
        store.set("c", 3)

        assert len(store) == 2
        assert store.get("a") is None
        assert store.get("c") == 3

    def test_reinsert_refreshes_timestamp(self):
        """Test that overwriting a key makes it the newest entry."""
        clock = FakeClock()
        store = TTLStore(default_ttl=100, max_entries=2, clock=clock)
        store.set("a", 1)
        clock.advance(1)
        store.set("b", 2)
        clock.advance(1)
        store.set("a", 10)
        clock.advance(1)
        store.set("c", 3)

        assert store.get("a") == 10
        assert store.get("b") is None

    def test_cleanup(self):
        """Test that cleanup removes only expired entries."""
        clock = FakeClock()
        store = TTLStore(default_ttl=10, clock=clock)
        store.set("old", 1, ttl=1)
        store.set("fresh", 2)
        clock.advance(2)

        assert store.valid_count() == 1
        assert store.cleanup() == 1
        assert len(store) == 1

    def test_delete_and_clear(self):
        """Test explicit removal."""
        store = TTLStore(default_ttl=10)
        store.set("a", 1)
        store.set("b", 2)

        assert store.delete("a") is True
        assert store.delete("a") is False

        store.clear()
        assert len(store) == 0

    def test_invalid_max_entries(self):
        """Test that a zero cap is rejected."""
        with pytest.raises(ValueError, match="max_entries"):
            TTLStore(default_ttl=10, max_entries=0)


# ============================================================================
# EnhancementCache
# ============================================================================


class TestCacheKeys:
    """Tests for cache key construction."""

    def test_result_key(self):
        """Test that the key is lower-cased and carries the quote hash."""
        form = FormData(country=" Brazil ", base_salary="5,000", contract_duration=24)

        key = EnhancementCache.result_key("Deel", form, QuoteType.STATUTORY_ONLY, "abc123")

        assert key == "deel|brazil|5000.00|24|full-time|statutory-only|-|-|abc123"

    def test_result_key_tracks_currency_and_local_office(self):
        """Test that salary currency and local office amounts change the key."""
        form = FormData(country="Brazil", base_salary=1000, currency="BRL")
        in_usd = form.model_copy(update={"currency": "USD"})
        with_office = form.model_copy(update={"local_office_info": LocalOfficeInfo(currency="BRL", meal_voucher=100)})
        other_office = form.model_copy(update={"local_office_info": LocalOfficeInfo(currency="BRL", meal_voucher=400)})

        keys = {
            EnhancementCache.result_key("deel", f, QuoteType.ALL_INCLUSIVE, "abc123")
            for f in (form, in_usd, with_office, other_office)
        }

        assert len(keys) == 4

    def test_baseline_key(self):
        """Test the legal baseline key format."""
        key = EnhancementCache.baseline_key("br", 1000, 12, QuoteType.ALL_INCLUSIVE, "Full-Time")

        assert key == "prepass|BR|1000.00|12|all-inclusive|full-time"

    def test_extraction_key_depends_on_content(self):
        """Test that equal responses share a key regardless of key order."""
        first = EnhancementCache.extraction_key("Deel", {"a": 1, "b": 2})
        second = EnhancementCache.extraction_key("deel", {"b": 2, "a": 1})
        third = EnhancementCache.extraction_key("deel", {"a": 2})

        assert first == second
        assert first != third

    def test_quote_content_hash(self, normalized_brazil_quote):
        """Test that only cost-relevant fields drive the normalized hash."""
        renamed = normalized_brazil_quote.model_copy(update={"country": "Brasil"})
        repriced = normalized_brazil_quote.model_copy(update={"monthly_total": 1401})

        assert quote_content_hash(normalized_brazil_quote) == quote_content_hash(renamed)
        assert quote_content_hash(normalized_brazil_quote) != quote_content_hash(repriced)

    def test_raw_quote_hash_uses_payload(self):
        """Test that a raw quote hashes like its payload."""
        raw = RawProviderQuote(provider="deel", payload={"salary": "1000"})

        assert quote_content_hash(raw) == quote_content_hash({"salary": "1000"})


class TestEnhancementCache:
    """Tests for result and extraction caching."""

    def test_hits_and_misses(self):
        """Test lookup counting and hit rate."""
        cache = EnhancementCache()
        result = object()

        assert cache.get("k") is None
        cache.set("k", result)
        assert cache.get("k") is result
        assert cache.get("k") is result

        stats = cache.get_stats()
        assert stats.hits == 2
        assert stats.misses == 1
        assert stats.hit_rate == pytest.approx(2 / 3)
        assert stats.total_entries == 1
        assert stats.valid_entries == 1

    def test_stats_when_empty(self):
        """Test a zero hit rate before any lookup."""
        stats = EnhancementCache().get_stats()

        assert stats.hit_rate == 0.0
        assert stats.oldest_entry is None

    def test_result_expiry(self):
        """Test the enhancement lifetime."""
        clock = FakeClock()
        cache = EnhancementCache(enhancement_ttl=60, clock=clock)
        cache.set("k", object())

        clock.advance(60)

        assert cache.get("k") is None

    def test_extraction_round_trip(self):
        """Test extraction lookup by provider and response."""
        cache = EnhancementCache()
        data = object()
        cache.set_extraction("deel", {"salary": "1"}, data)

        assert cache.get_extraction("deel", {"salary": "1"}) is data
        assert cache.get_extraction("deel", {"salary": "2"}) is None

    def test_clear(self):
        """Test that clear empties stores and resets counters."""
        cache = EnhancementCache()
        cache.set("k", object())
        cache.set_baseline("b", make_baseline())
        cache.get("k")

        cache.clear()

        stats = cache.get_stats()
        assert stats.total_entries == 0
        assert stats.baseline_entries == 0
        assert stats.hits == 0

    def test_from_config(self):
        """Test construction from configuration durations."""
        clock = FakeClock()
        cache = EnhancementCache.from_config(
            CacheConfig(enhancement_ttl="5m", baseline_ttl="1h", max_entries=3), clock=clock
        )

        assert cache.results.default_ttl == 300
        assert cache.baselines.default_ttl == 3600
        assert cache.results.max_entries == 3


class TestBaselineDeduplication:
    """Tests for concurrent legal baseline builds."""

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_build(self):
        """Test that callers for the same key await a single build."""
        cache = EnhancementCache()
        release = asyncio.Event()
        calls = []

        async def factory():
            calls.append(1)
            await release.wait()
            return make_baseline()

        first = asyncio.ensure_future(cache.get_or_create_baseline("k", factory))
        second = asyncio.ensure_future(cache.get_or_create_baseline("k", factory))
        await asyncio.sleep(0)
        assert cache.inflight_baselines == 1

        release.set()
        results = await asyncio.gather(first, second)

        assert len(calls) == 1
        assert results[0] is results[1]
        assert cache.inflight_baselines == 0
        assert cache.get_baseline("k") is results[0]

    @pytest.mark.asyncio
    async def test_cached_baseline_skips_factory(self):
        """Test that a stored baseline is returned without building."""
        cache = EnhancementCache()
        baseline = make_baseline()
        cache.set_baseline("k", baseline)

        async def factory():
            raise AssertionError("factory should not run")

        assert await cache.get_or_create_baseline("k", factory) is baseline

    @pytest.mark.asyncio
    async def test_failure_clears_inflight_entry(self):
        """Test that a failed build is not cached and can be retried."""
        cache = EnhancementCache()

        async def failing():
            raise RuntimeError("boom")

        async def working():
            return make_baseline("PT")

        with pytest.raises(RuntimeError, match="boom"):
            await cache.get_or_create_baseline("k", failing)

        assert cache.inflight_baselines == 0
        assert cache.get_baseline("k") is None
        assert (await cache.get_or_create_baseline("k", working)).country_code == "PT"
