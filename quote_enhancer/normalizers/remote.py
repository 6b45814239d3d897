"""Remote quote normalizer."""

from typing import Any, Mapping

from quote_enhancer.domain.models import NormalizedQuote, ProviderKind

from .base import BaseNormalizer


class RemoteNormalizer(BaseNormalizer):
    """Normalizer for Remote quotes.

    Remote quotes arrive in two shapes:

    - Full API response: ``{"employment": {"country": {"name"},
      "employer_currency_costs": {monthly_gross_salary, monthly_total,
      currency: {code}, monthly_contributions_total,
      monthly_contributions_breakdown: [...], monthly_benefits_total,
      monthly_benefits_breakdown: [...]}}}``
    - Simplified quote: ``{salary, currency, country, total, contributions, tce}``
    """

    PROVIDER = ProviderKind.REMOTE

    def normalize(self, raw_quote: Mapping[str, Any]) -> NormalizedQuote:
        employment = raw_quote.get("employment")
        if isinstance(employment, Mapping):
            return self._normalize_full(employment, raw_quote)
        return self._normalize_simple(raw_quote)

    def _normalize_full(self, employment: Mapping[str, Any], raw_quote: Mapping[str, Any]) -> NormalizedQuote:
        costs = employment.get("employer_currency_costs") or {}
        currency = costs.get("currency") or {}
        country = employment.get("country") or {}

        breakdown = {"statutory_contributions": self._money(costs.get("monthly_contributions_total"))}
        breakdown.update(
            self._line_item_breakdown(
                costs.get("monthly_contributions_breakdown"),
                amount_keys=("amount", "cost"),
            )
        )

        return self._build(
            base_cost=self._money(costs.get("monthly_gross_salary")),
            currency=(currency.get("code") if isinstance(currency, Mapping) else None) or "USD",
            country=country.get("name") if isinstance(country, Mapping) else "",
            monthly_total=self._money(costs.get("monthly_total")),
            breakdown=breakdown,
            raw_quote=raw_quote,
        )

    def _normalize_simple(self, raw_quote: Mapping[str, Any]) -> NormalizedQuote:
        return self._build(
            base_cost=self._money(raw_quote.get("salary")),
            currency=raw_quote.get("currency"),
            country=raw_quote.get("country"),
            monthly_total=self._money(raw_quote.get("total")),
            breakdown={
                "contributions": self._money(raw_quote.get("contributions")),
                "total_cost_employment": self._money(raw_quote.get("tce")),
            },
            raw_quote=raw_quote,
        )
