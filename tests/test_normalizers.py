"""Unit tests for provider quote normalizers."""

import pytest

from quote_enhancer.domain.models import NormalizedQuote, ProviderKind
from quote_enhancer.normalizers import (
    UnsupportedProviderError,
    compare_quotes,
    get_normalizer,
    get_quote_summary,
    normalize,
    normalize_breakdown_key,
    resolve_provider,
    validate_normalized_quote,
)
from quote_enhancer.normalizers.deel import DeelNormalizer
from quote_enhancer.normalizers.generic import RipplingNormalizer


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def remote_full_payload():
    """Full Remote API response."""
    return {
        "employment": {
            "country": {"name": "Portugal"},
            "employer_currency_costs": {
                "currency": {"code": "EUR"},
                "monthly_gross_salary": 2000,
                "monthly_total": 2600,
                "monthly_contributions_total": 475,
                "monthly_contributions_breakdown": [
                    {"name": "Social Security", "amount": 475},
                ],
                "monthly_benefits_total": 125,
                "monthly_benefits_breakdown": [
                    {"name": "Meal allowance", "amount": 125},
                ],
            },
        }
    }


# ============================================================================
# Provider resolution
# ============================================================================


class TestResolveProvider:
    """Tests for resolve_provider and get_normalizer."""

    def test_case_insensitive(self):
        """Test that names resolve regardless of case and whitespace."""
        assert resolve_provider(" Deel ") == ProviderKind.DEEL
        assert resolve_provider(ProviderKind.OYSTER) == ProviderKind.OYSTER

    def test_unknown_provider(self):
        """Test that unknown providers raise UnsupportedProviderError."""
        with pytest.raises(UnsupportedProviderError) as exc_info:
            resolve_provider("acme-eor")

        assert exc_info.value.code == "UNSUPPORTED_PROVIDER"
        assert exc_info.value.provider == "acme-eor"

    def test_every_provider_has_a_normalizer(self):
        """Test that the factory covers every ProviderKind."""
        for kind in ProviderKind:
            assert get_normalizer(kind).PROVIDER == kind


# ============================================================================
# Normalizers
# ============================================================================


class TestDeelNormalizer:
    """Tests for the Deel normalizer."""

    def test_normalize(self, deel_brazil_payload):
        """Test monthly total excludes fee and severance accrual."""
        payload = dict(deel_brazil_payload, severance_accural="83.33")
        quote = DeelNormalizer().normalize(payload)

        assert quote.provider == "deel"
        assert quote.base_cost == 1000.0
        assert quote.currency == "BRL"
        assert quote.country == "Brazil"
        assert quote.monthly_total == pytest.approx(1416.67)
        assert quote.breakdown["platform_fee"] == 100.0
        assert quote.breakdown["statutory_contributions"] == 500.0
        assert quote.breakdown["inss_employer"] == 500.0
        assert quote.original_response == payload

    def test_malformed_amounts_become_zero(self):
        """Test that unparsable money does not raise."""
        quote = DeelNormalizer().normalize({"salary": "n/a", "total_costs": None, "currency": "usd"})

        assert quote.base_cost == 0.0
        assert quote.monthly_total == 0.0
        assert quote.currency == "USD"


class TestRemoteNormalizer:
    """Tests for the Remote normalizer."""

    def test_full_response(self, remote_full_payload):
        """Test the nested employment shape."""
        quote = normalize("remote", remote_full_payload)

        assert quote.base_cost == 2000
        assert quote.monthly_total == 2600
        assert quote.currency == "EUR"
        assert quote.country == "Portugal"
        assert quote.breakdown["statutory_contributions"] == 475
        assert quote.breakdown["social_security"] == 475

    def test_simplified_response(self):
        """Test the flat simplified shape."""
        quote = normalize(
            "remote",
            {"salary": 3000, "currency": "GBP", "country": "United Kingdom", "total": 3600, "contributions": 600, "tce": 43200},
        )

        assert quote.monthly_total == 3600
        assert quote.breakdown == {"contributions": 600.0, "total_cost_employment": 43200.0}

    def test_missing_currency_defaults_to_usd(self, remote_full_payload):
        """Test the currency fallback of the full shape."""
        del remote_full_payload["employment"]["employer_currency_costs"]["currency"]
        assert normalize("remote", remote_full_payload).currency == "USD"


class TestOtherNormalizers:
    """Tests for Rivermate, Oyster and cost-list providers."""

    def test_rivermate(self):
        """Test tax items become statutory contributions."""
        quote = normalize(
            "rivermate",
            {
                "salary": 1000,
                "currency": "BRL",
                "country": "Brazil",
                "total": 1450,
                "managementFee": 199,
                "taxItems": [{"name": "INSS", "amount": 200}, {"name": "FGTS", "amount": 80}],
            },
        )

        assert quote.breakdown["management_fee"] == 199
        assert quote.breakdown["statutory_contributions"] == 280
        assert quote.breakdown["fgts"] == 80

    def test_oyster(self):
        """Test contributions sum into statutory contributions."""
        quote = normalize(
            "oyster",
            {"salary": "1000", "currency": "BRL", "country": "Brazil", "total": "1300", "contributions": [{"name": "INSS", "amount": "300"}]},
        )

        assert quote.monthly_total == 1300
        assert quote.breakdown["statutory_contributions"] == 300

    def test_cost_list_platform_fee(self):
        """Test that fee-like cost items are recorded as platform_fee."""
        quote = RipplingNormalizer().normalize(
            {
                "salary": "5,000.00",
                "currency": "USD",
                "country": "United States",
                "total_costs": "6,000.00",
                "costs": [{"name": "Platform Fee", "amount": "500"}, {"name": "FICA", "amount": "500"}],
            }
        )

        assert quote.provider == "rippling"
        assert quote.breakdown["platform_fee"] == 500
        assert quote.breakdown["fica"] == 500

    def test_normalization_is_pure(self, deel_brazil_payload):
        """Test that normalizing twice yields equal quotes."""
        assert normalize("deel", deel_brazil_payload) == normalize("deel", deel_brazil_payload)


# ============================================================================
# Helpers
# ============================================================================


class TestQuoteHelpers:
    """Tests for validation, summary, comparison and key normalization."""

    @pytest.mark.parametrize(
        "overrides,valid",
        [
            ({}, True),
            ({"currency": ""}, False),
            ({"country": ""}, False),
            ({"monthly_total": 0}, False),
        ],
    )
    def test_validate_normalized_quote(self, overrides, valid):
        """Test required fields and positive total."""
        fields = {"provider": "deel", "currency": "BRL", "country": "Brazil", "monthly_total": 1500, **overrides}
        assert validate_normalized_quote(NormalizedQuote(**fields)) is valid

    def test_summary(self, normalized_brazil_quote):
        """Test summary fields."""
        summary = get_quote_summary(normalized_brazil_quote)

        assert summary["monthly_cost"] == 1400.0
        assert summary["additional_costs"] == 400.0
        assert summary["has_detailed_breakdown"] is False

    def test_compare_quotes(self, normalized_brazil_quote):
        """Test pairwise comparison."""
        other = normalized_brazil_quote.model_copy(update={"provider": "deel", "monthly_total": 1120.0})
        result = compare_quotes(normalized_brazil_quote, other)

        assert result["cheaper_provider"] == "deel"
        assert result["cost_difference"] == pytest.approx(280.0)
        assert result["percentage_difference"] == pytest.approx(20.0)

    @pytest.mark.parametrize(
        "label,expected",
        [
            ("Social Security (Employer)", "social_security_employer"),
            ("", "unknown"),
            (None, "unknown"),
            ("!!!", "unknown"),
            ("A very long label that keeps going on and on", "a_very_long_label_that_keeps_g"),
        ],
    )
    def test_normalize_breakdown_key(self, label, expected):
        """Test label to key conversion."""
        assert normalize_breakdown_key(label) == expected
