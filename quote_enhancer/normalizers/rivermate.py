"""Rivermate quote normalizer."""

from typing import Any, Mapping

from quote_enhancer.domain.models import NormalizedQuote, ProviderKind

from .base import BaseNormalizer


class RivermateNormalizer(BaseNormalizer):
    """Normalizer for Rivermate quotes.

    Shape: ``{salary, currency, country, total, managementFee,
    taxItems: [{name, amount}]}``. Tax items are the employer's statutory
    contributions.
    """

    PROVIDER = ProviderKind.RIVERMATE

    def normalize(self, raw_quote: Mapping[str, Any]) -> NormalizedQuote:
        tax_items = raw_quote.get("taxItems")
        breakdown = {
            "management_fee": self._money(raw_quote.get("managementFee")),
            "statutory_contributions": self._sum_amounts(tax_items),
        }
        breakdown.update(self._line_item_breakdown(tax_items))

        return self._build(
            base_cost=self._money(raw_quote.get("salary")),
            currency=raw_quote.get("currency"),
            country=raw_quote.get("country"),
            monthly_total=self._money(raw_quote.get("total")),
            breakdown=breakdown,
            raw_quote=raw_quote,
        )
