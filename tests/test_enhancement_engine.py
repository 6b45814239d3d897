"""Tests for the enhancement engine pipeline."""

import asyncio

import httpx
import pytest

from quote_enhancer.cache import EnhancementCache
from quote_enhancer.config.models import EnhancementConfig, EnhancerConfig, LegalDataConfig
from quote_enhancer.currency import ExchangerateHostProvider
from quote_enhancer.domain.models import (
    TERMINATION_KINDS,
    BenefitKind,
    EnhancedQuote,
    EnhancementSource,
    FormData,
    LocalOfficeInfo,
    QuoteType,
)
from quote_enhancer.enhancement import (
    EnhancementEngine,
    InvalidEnhancedQuoteError,
    NoLegalProfileError,
    validate_enhanced_quote,
)
from quote_enhancer.enhancement.calculator import SEVERANCE_FALLBACK_WARNING
from quote_enhancer.legal import LegalDataService
from quote_enhancer.normalizers.exceptions import MalformedQuoteError, UnsupportedProviderError

from tests.helpers import FakeReasoningService


def reasoning_engine(legal_data, fixed_clock, service, **kwargs):
    return EnhancementEngine(
        legal_data, reasoning_service=service, cache=EnhancementCache(), clock=fixed_clock, **kwargs
    )


# ============================================================================
# Single quote
# ============================================================================


class TestEnhanceQuote:
    """Tests for enhance_quote on the deterministic path."""

    @pytest.mark.asyncio
    async def test_all_inclusive_brazil(self, engine, deel_brazil_payload, brazil_form):
        """Test the 13th salary, provisions and customary allowance are added."""
        result = await engine.enhance_quote("deel", deel_brazil_payload, brazil_form)

        assert result.provider == "deel"
        assert result.base_quote.monthly_total == 1500
        assert result.enhancements[BenefitKind.THIRTEENTH_SALARY].monthly_amount == 83.33
        assert result.enhancements[BenefitKind.SEVERANCE_PROVISION].monthly_amount == 83.33
        assert result.enhancements[BenefitKind.PROBATION_PROVISION].monthly_amount == 250.0
        assert result.enhancements[BenefitKind.TRANSPORTATION_ALLOWANCE].monthly_amount == 50.0
        assert result.total_enhancement == 466.66
        assert result.final_total == 1966.66
        assert result.monthly_cost_breakdown.total == result.final_total
        assert result.base_currency == "BRL"
        assert 0.0 <= result.overall_confidence <= 1.0

    @pytest.mark.asyncio
    async def test_final_total_invariant(self, engine, normalized_brazil_quote, brazil_form):
        """Test final total equals base plus enhancements."""
        result = await engine.enhance_quote("oyster", normalized_brazil_quote, brazil_form)

        assert result.final_total == pytest.approx(
            result.base_quote.monthly_total + result.total_enhancement, abs=0.01
        )
        assert result.final_total == 1866.66
        assert result.calculated_at.year == 2025

    @pytest.mark.asyncio
    async def test_statutory_only(self, engine, deel_brazil_payload, brazil_form):
        """Test that termination provisions and customary allowances are excluded."""
        result = await engine.enhance_quote("deel", deel_brazil_payload, brazil_form, QuoteType.STATUTORY_ONLY)

        assert list(result.enhancements) == [BenefitKind.THIRTEENTH_SALARY]
        assert not TERMINATION_KINDS & set(result.enhancements)
        assert result.total_enhancement == 83.33
        assert result.final_total == 1583.33
        assert result.explanations[0] == (
            "Excluded in statutory-only mode: severance_provision, probation_provision, transportation_allowance"
        )

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "quote_type,expected", [(QuoteType.ALL_INCLUSIVE, True), (QuoteType.STATUTORY_ONLY, False)]
    )
    async def test_severance_fallback_warning_follows_quote_type(self, engine, quote_type, expected):
        """Test that the severance fallback notice only accompanies quotes that keep severance."""
        payload = {"salary": "1000", "currency": "EUR", "country": "Germany", "total_costs": "1000", "deel_fee": "0"}
        form = FormData(country="Germany", base_salary=1000, currency="EUR")

        result = await engine.enhance_quote("deel", payload, form, quote_type)

        assert (BenefitKind.SEVERANCE_PROVISION in result.enhancements) is expected
        assert (SEVERANCE_FALLBACK_WARNING in result.warnings) is expected

    @pytest.mark.asyncio
    async def test_quote_type_from_form(self, engine, deel_brazil_payload, brazil_form):
        """Test that the form's quote type applies without an override."""
        form = brazil_form.model_copy(update={"quote_type": QuoteType.STATUTORY_ONLY})

        result = await engine.enhance_quote("deel", deel_brazil_payload, form)

        assert result.quote_type == QuoteType.STATUTORY_ONLY

    @pytest.mark.asyncio
    async def test_form_as_mapping(self, engine, deel_brazil_payload):
        """Test that form data may be a plain mapping."""
        result = await engine.enhance_quote(
            "deel", deel_brazil_payload, {"country": "Brazil", "base_salary": "1,000", "currency": "brl"}
        )

        assert result.final_total == 1966.66

    @pytest.mark.asyncio
    async def test_coverage_reduces_delta(self, engine, brazil_form):
        """Test that an itemized 13th salary is not charged twice."""
        payload = {
            "salary": "1000",
            "currency": "BRL",
            "country": "Brazil",
            "total_costs": "1583.33",
            "deel_fee": "0",
            "costs": [{"name": "13th Salary", "amount": "83.33", "frequency": "monthly"}],
        }

        result = await engine.enhance_quote("deel", payload, brazil_form)
        record = result.enhancements[BenefitKind.THIRTEENTH_SALARY]

        assert record.is_already_included
        assert record.counted_amount == 0
        assert result.total_enhancement == 383.33
        assert "thirteenth_salary: already included by provider" in result.explanations

    @pytest.mark.asyncio
    async def test_cache_hit_returns_same_object(self, engine, deel_brazil_payload, brazil_form):
        """Test that a repeated request is answered from the cache."""
        first = await engine.enhance_quote("deel", deel_brazil_payload, brazil_form)
        second = await engine.enhance_quote("deel", dict(deel_brazil_payload), brazil_form)

        assert second is first
        stats = engine.get_stats()
        assert stats["cache_hits"] == 1
        assert stats["total_requests"] == 2
        assert stats["cache"]["hits"] == 1
        assert stats["cache"]["misses"] == 1

    @pytest.mark.asyncio
    async def test_different_quote_type_misses_cache(self, engine, deel_brazil_payload, brazil_form):
        """Test that the quote type is part of the cache key."""
        first = await engine.enhance_quote("deel", deel_brazil_payload, brazil_form)
        second = await engine.enhance_quote("deel", deel_brazil_payload, brazil_form, "statutory-only")

        assert second is not first

    @pytest.mark.asyncio
    async def test_local_office_change_misses_cache(self, engine, deel_brazil_payload, brazil_form):
        """Test that new local office amounts are not answered from the cache."""
        first_form = brazil_form.model_copy(
            update={"local_office_info": LocalOfficeInfo(currency="BRL", meal_voucher=100)}
        )
        second_form = brazil_form.model_copy(
            update={"local_office_info": LocalOfficeInfo(currency="BRL", meal_voucher=400)}
        )

        first = await engine.enhance_quote("deel", deel_brazil_payload, first_form)
        second = await engine.enhance_quote("deel", deel_brazil_payload, second_form)

        assert first.enhancements[BenefitKind.LOCAL_OFFICE_BENEFITS].monthly_amount == 100.0
        assert second.enhancements[BenefitKind.LOCAL_OFFICE_BENEFITS].monthly_amount == 400.0
        assert engine.get_stats()["cache"]["hits"] == 0

    @pytest.mark.asyncio
    async def test_clear_cache(self, engine, deel_brazil_payload, brazil_form):
        """Test that clearing forces a recomputation."""
        first = await engine.enhance_quote("deel", deel_brazil_payload, brazil_form)
        engine.clear_cache()

        second = await engine.enhance_quote("deel", deel_brazil_payload, brazil_form)

        assert second is not first
        assert second.final_total == first.final_total


class TestEnhanceQuoteErrors:
    """Tests for fatal errors on a single quote."""

    @pytest.mark.asyncio
    async def test_unsupported_provider(self, engine, deel_brazil_payload, brazil_form):
        """Test that unknown providers are rejected."""
        with pytest.raises(UnsupportedProviderError):
            await engine.enhance_quote("acme", deel_brazil_payload, brazil_form)

    @pytest.mark.asyncio
    async def test_unknown_country(self, engine, deel_brazil_payload):
        """Test that a country without legal data raises and is recorded."""
        form = FormData(country="Narnia", base_salary=1000, currency="BRL")

        with pytest.raises(NoLegalProfileError) as exc_info:
            await engine.enhance_quote("deel", deel_brazil_payload, form)

        assert exc_info.value.country_code == ""
        assert engine.get_stats()["recent_errors"][0]["code"] == "NO_LEGAL_PROFILE"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("country,code", [("Denmark", "DK"), ("Sweden", "SE"), ("Singapore", "SG")])
    async def test_country_without_document_never_borrows_another(
        self, engine, deel_brazil_payload, country, code
    ):
        """Test that a name sharing its first letters with a documented country raises."""
        payload = {**deel_brazil_payload, "country": country, "currency": "EUR"}
        form = FormData(country=country, base_salary=1000, currency="EUR")

        with pytest.raises(NoLegalProfileError) as exc_info:
            await engine.enhance_quote("deel", payload, form)

        assert exc_info.value.country_code == code

    @pytest.mark.asyncio
    async def test_malformed_raw_quote(self, engine, brazil_form):
        """Test that a raw quote without a total is rejected."""
        with pytest.raises(MalformedQuoteError):
            await engine.enhance_quote("rivermate", {"salary": 1000, "currency": "BRL", "country": "Brazil"}, brazil_form)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "quote",
        [
            {"kind": "normalized"},
            {"kind": "normalized", "provider": "oyster", "currency": "BRL", "country": "Brazil", "monthly_total": 0},
        ],
    )
    async def test_malformed_tagged_quote(self, engine, brazil_form, quote):
        """Test that invalid tagged quotes are rejected."""
        with pytest.raises(MalformedQuoteError):
            await engine.enhance_quote("oyster", quote, brazil_form)

    @pytest.mark.asyncio
    async def test_tagged_raw_quote(self, engine, deel_brazil_payload, brazil_form):
        """Test that a tagged raw quote is normalized."""
        result = await engine.enhance_quote("deel", {"kind": "raw", "provider": "deel", "payload": deel_brazil_payload}, brazil_form)

        assert result.final_total == 1966.66


# ============================================================================
# Local office and currency alignment
# ============================================================================


class TestLocalOfficeAndCurrency:
    """Tests for local office costs and legal allowance conversion."""

    @pytest.mark.asyncio
    async def test_local_office_added(self, engine, deel_brazil_payload, brazil_form):
        """Test that local office costs in the quote currency are added in both modes."""
        form = brazil_form.model_copy(
            update={"local_office_info": LocalOfficeInfo(currency="BRL", meal_voucher=100, drug_test=120)}
        )

        result = await engine.enhance_quote("deel", deel_brazil_payload, form, QuoteType.STATUTORY_ONLY)

        assert result.enhancements[BenefitKind.LOCAL_OFFICE_BENEFITS].monthly_amount == 110.0
        assert result.final_total == 1693.33

    @pytest.mark.asyncio
    async def test_local_office_currency_mismatch(self, engine, deel_brazil_payload, brazil_form):
        """Test that mismatched local office costs are skipped with a warning."""
        form = brazil_form.model_copy(update={"local_office_info": LocalOfficeInfo(currency="USD", wfh=40)})

        result = await engine.enhance_quote("deel", deel_brazil_payload, form)

        assert BenefitKind.LOCAL_OFFICE_BENEFITS not in result.enhancements
        assert any(w.startswith("Local office benefits skipped due to currency mismatch") for w in result.warnings)

    @pytest.fixture
    def portugal_usd(self):
        """Portugal quote and form priced in USD."""
        payload = {"salary": "2000", "currency": "USD", "country": "Portugal", "total_costs": "2000", "deel_fee": "0"}
        form = FormData(country="Portugal", base_salary=2000, currency="USD")
        return payload, form

    @pytest.mark.asyncio
    async def test_allowance_converted(self, legal_data, fixed_clock, portugal_usd):
        """Test that a legal EUR allowance is converted into the quote currency."""
        payload, form = portugal_usd
        async with httpx.AsyncClient(
            transport=httpx.MockTransport(lambda r: httpx.Response(200, json={"info": {"rate": 1.1}}))
        ) as client:
            engine = EnhancementEngine(
                legal_data, currency_provider=ExchangerateHostProvider(client=client), clock=fixed_clock
            )
            result = await engine.enhance_quote("deel", payload, form)

        assert result.enhancements[BenefitKind.MEAL_VOUCHERS].monthly_amount == 145.2
        assert result.enhancements[BenefitKind.EMPLOYER_CONTRIBUTIONS].monthly_amount == 505.0

    @pytest.mark.asyncio
    async def test_allowance_dropped_without_converter(self, engine, portugal_usd):
        """Test that an unconvertible allowance is dropped with a warning."""
        payload, form = portugal_usd

        result = await engine.enhance_quote("deel", payload, form)

        assert BenefitKind.MEAL_VOUCHERS not in result.enhancements
        assert "Legal meal voucher allowance of 132.0 EUR skipped: could not convert to USD" in result.warnings

    @pytest.mark.asyncio
    async def test_salary_currency_mismatch(self, engine, deel_brazil_payload):
        """Test that the quoted base salary is used when the form currency differs."""
        form = FormData(country="Brazil", base_salary=200, currency="USD")

        result = await engine.enhance_quote("deel", deel_brazil_payload, form)

        assert result.enhancements[BenefitKind.THIRTEENTH_SALARY].monthly_amount == 83.33
        assert any("Salary currency USD differs" in w for w in result.warnings)


# ============================================================================
# Reasoning service
# ============================================================================


class TestReasoningPath:
    """Tests for reasoning-computed deltas and fallback."""

    @pytest.mark.asyncio
    async def test_reasoning_deltas_win(self, legal_data, fixed_clock, deel_brazil_payload, brazil_form):
        """Test that non-zero reasoning deltas override deterministic ones."""
        service = FakeReasoningService(
            enhancement_responses=[
                {
                    "enhancements": {"thirteenth_salary": {"monthly_amount": 90, "confidence": 0.9}},
                    "confidence_scores": {"overall": 0.85},
                }
            ]
        )
        engine = reasoning_engine(legal_data, fixed_clock, service)

        result = await engine.enhance_quote("deel", deel_brazil_payload, brazil_form)

        thirteenth = result.enhancements[BenefitKind.THIRTEENTH_SALARY]
        assert thirteenth.monthly_amount == 90
        assert thirteenth.source == EnhancementSource.REASONING
        # Deterministic records fill what the service left out
        assert result.enhancements[BenefitKind.PROBATION_PROVISION].monthly_amount == 250.0
        assert result.total_enhancement == 473.33
        assert result.overall_confidence == 0.85
        assert len(service.enhancement_calls) == 1

    @pytest.mark.asyncio
    async def test_fallback_after_two_failures(self, legal_data, fixed_clock, deel_brazil_payload, brazil_form):
        """Test deterministic fallback after the retry budget is spent."""
        service = FakeReasoningService(enhancement_responses=[RuntimeError("down"), RuntimeError("still down")])
        engine = reasoning_engine(legal_data, fixed_clock, service)

        result = await engine.enhance_quote("deel", deel_brazil_payload, brazil_form)

        assert len(service.enhancement_calls) == 2
        assert "Reasoning service unavailable; used deterministic calculation" in result.warnings
        assert result.final_total == 1966.66
        assert {r.source for r in result.enhancements.values()} == {EnhancementSource.DETERMINISTIC}

    @pytest.mark.asyncio
    async def test_configured_attempts(self, legal_data, fixed_clock, deel_brazil_payload, brazil_form):
        """Test that the retry budget comes from settings."""
        service = FakeReasoningService(enhancement_responses=[RuntimeError("down")] * 3)
        engine = reasoning_engine(
            legal_data, fixed_clock, service, settings=EnhancementConfig(reasoning_max_attempts=3)
        )

        await engine.enhance_quote("deel", deel_brazil_payload, brazil_form)

        assert len(service.enhancement_calls) == 3

    @pytest.mark.asyncio
    async def test_direct_uses_reasoning_baseline(self, legal_data, fixed_clock, deel_brazil_payload, brazil_form):
        """Test that the pre-pass baseline drives direct deltas."""
        service = FakeReasoningService(
            baseline_responses=[{"items": [{"key": "thirteenth_salary", "monthly_amount_local": 100}]}]
        )
        engine = reasoning_engine(legal_data, fixed_clock, service)

        result = await engine.enhance_quote_direct("deel", deel_brazil_payload, brazil_form)

        assert result.enhancements[BenefitKind.THIRTEENTH_SALARY].monthly_amount == 100
        assert result.enhancements[BenefitKind.THIRTEENTH_SALARY].source == EnhancementSource.REASONING
        assert service.enhancement_calls == []

    @pytest.mark.asyncio
    async def test_direct_baseline_fallback_warning(self, legal_data, fixed_clock, deel_brazil_payload, brazil_form):
        """Test that a failed pre-pass falls back to the deterministic baseline."""
        service = FakeReasoningService(baseline_responses=[RuntimeError("a"), RuntimeError("b")])
        engine = reasoning_engine(legal_data, fixed_clock, service)

        result = await engine.enhance_quote_direct("deel", deel_brazil_payload, brazil_form)

        assert "Reasoning service unavailable; used deterministic legal baseline" in result.warnings
        assert result.final_total == 1966.66

    @pytest.mark.asyncio
    async def test_concurrent_direct_calls_share_baseline(
        self, legal_data, fixed_clock, deel_brazil_payload, normalized_brazil_quote, brazil_form
    ):
        """Test that concurrent requests with the same shape build one baseline."""
        service = FakeReasoningService(
            baseline_responses=[{"items": [{"key": "thirteenth_salary", "monthly_amount_local": 83.33}]}],
            gate_baseline=True,
        )
        engine = reasoning_engine(legal_data, fixed_clock, service)

        tasks = [
            asyncio.ensure_future(engine.enhance_quote_direct("deel", deel_brazil_payload, brazil_form)),
            asyncio.ensure_future(engine.enhance_quote_direct("oyster", normalized_brazil_quote, brazil_form)),
        ]
        for _ in range(200):
            if service.baseline_calls:
                break
            await asyncio.sleep(0.01)
        await asyncio.sleep(0.05)
        service.release.set()
        deel, oyster = await asyncio.gather(*tasks)

        assert len(service.baseline_calls) == 1
        assert deel.enhancements[BenefitKind.THIRTEENTH_SALARY].source == EnhancementSource.REASONING
        assert oyster.enhancements[BenefitKind.THIRTEENTH_SALARY].source == EnhancementSource.REASONING


# ============================================================================
# Multiple providers
# ============================================================================


class TestEnhanceAllProviders:
    """Tests for the multi-provider fan-out."""

    @pytest.mark.asyncio
    async def test_partial_failure(self, engine, deel_brazil_payload, normalized_brazil_quote, brazil_form):
        """Test that one failing provider does not abort the others."""
        result = await engine.enhance_all_providers(
            {
                "deel": deel_brazil_payload,
                "rivermate": {"salary": 1000, "currency": "BRL", "total": 1450, "taxItems": []},
                "oyster": normalized_brazil_quote,
            },
            brazil_form,
        )

        assert set(result.enhancements) == {"deel", "oyster"}
        assert result.errors["rivermate"][0].code == "MALFORMED_QUOTE"
        assert result.errors["rivermate"][0].provider == "rivermate"
        assert result.comparison.cheapest == "oyster"
        assert result.comparison.most_expensive == "deel"
        assert set(result.comparison.provider_totals) == {"deel", "oyster"}
        assert result.processing_time >= 0

    @pytest.mark.asyncio
    async def test_unsupported_provider_recorded(self, engine, deel_brazil_payload, brazil_form):
        """Test that an unknown provider key becomes an error record."""
        result = await engine.enhance_all_providers(
            {"deel": deel_brazil_payload, "acme": deel_brazil_payload}, brazil_form
        )

        assert list(result.enhancements) == ["deel"]
        assert result.errors["acme"][0].code == "UNSUPPORTED_PROVIDER"

    @pytest.mark.asyncio
    async def test_all_fail(self, engine, deel_brazil_payload):
        """Test that every provider failing yields an empty comparison."""
        form = FormData(country="Narnia", base_salary=1000, currency="BRL")

        result = await engine.enhance_all_providers({"deel": deel_brazil_payload}, form)

        assert result.enhancements == {}
        assert result.comparison.cheapest is None
        assert result.errors["deel"][0].code == "NO_LEGAL_PROFILE"

    @pytest.mark.asyncio
    async def test_statutory_only_batch(self, engine, deel_brazil_payload, normalized_brazil_quote, brazil_form):
        """Test that the quote type override applies to every provider."""
        result = await engine.enhance_all_providers(
            {"deel": deel_brazil_payload, "oyster": normalized_brazil_quote}, brazil_form, QuoteType.STATUTORY_ONLY
        )

        assert result.comparison.provider_totals == {"deel": 1583.33, "oyster": 1483.33}


# ============================================================================
# Validation, health and construction
# ============================================================================


class TestValidateEnhancedQuote:
    """Tests for enhanced quote invariants."""

    @pytest.mark.asyncio
    async def test_rejects_inconsistent_total(self, engine, deel_brazil_payload, brazil_form):
        """Test that a tampered final total is rejected."""
        result = await engine.enhance_quote("deel", deel_brazil_payload, brazil_form)
        tampered = result.model_copy(update={"final_total": result.final_total + 5})

        with pytest.raises(InvalidEnhancedQuoteError, match="final_total"):
            validate_enhanced_quote(tampered)

    @pytest.mark.asyncio
    async def test_rejects_statutory_termination(self, engine, deel_brazil_payload, brazil_form):
        """Test that termination provisions cannot appear in statutory-only quotes."""
        result = await engine.enhance_quote("deel", deel_brazil_payload, brazil_form)
        tampered = result.model_copy(update={"quote_type": QuoteType.STATUTORY_ONLY})

        with pytest.raises(InvalidEnhancedQuoteError, match="termination provisions"):
            validate_enhanced_quote(tampered)

    @pytest.mark.asyncio
    async def test_valid_quote_passes(self, engine, deel_brazil_payload, brazil_form):
        """Test that engine output is valid."""
        result = await engine.enhance_quote("deel", deel_brazil_payload, brazil_form)

        assert isinstance(result, EnhancedQuote)
        validate_enhanced_quote(result)


class TestEngineLifecycle:
    """Tests for health checks and construction."""

    @pytest.mark.asyncio
    async def test_health_check(self, engine):
        """Test a healthy deterministic engine."""
        assert await engine.health_check() is True

    @pytest.mark.asyncio
    async def test_health_check_without_legal_data(self, tmp_path):
        """Test that an empty legal directory is unhealthy."""
        engine = EnhancementEngine(LegalDataService(tmp_path))

        assert await engine.health_check() is False

    @pytest.mark.asyncio
    async def test_health_check_reasoning_unhealthy(self, legal_data, fixed_clock):
        """Test that an unhealthy reasoning service is reported."""
        engine = reasoning_engine(legal_data, fixed_clock, FakeReasoningService(healthy=False))

        assert await engine.health_check() is False

    @pytest.mark.asyncio
    async def test_from_config(self, legal_data_dir, deel_brazil_payload, brazil_form):
        """Test construction from configuration."""
        config = EnhancerConfig(
            legal_data=LegalDataConfig(data_dir=str(legal_data_dir)),
            enhancement=EnhancementConfig(severance_fallback_months=0),
        )

        engine = EnhancementEngine.from_config(config)
        result = await engine.enhance_quote("deel", deel_brazil_payload, brazil_form)

        assert engine.settings.severance_fallback_months == 0
        assert engine.cache.results.default_ttl == 1800
        assert result.final_total == 1966.66
