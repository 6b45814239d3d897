"""Oyster quote normalizer."""

from typing import Any, Mapping

from quote_enhancer.domain.models import NormalizedQuote, ProviderKind

from .base import BaseNormalizer


class OysterNormalizer(BaseNormalizer):
    """Normalizer for Oyster quotes: ``{salary, currency, country, total, contributions: [{name, amount}]}``."""

    PROVIDER = ProviderKind.OYSTER

    def normalize(self, raw_quote: Mapping[str, Any]) -> NormalizedQuote:
        contributions = raw_quote.get("contributions")
        breakdown = {"statutory_contributions": self._sum_amounts(contributions)}
        breakdown.update(self._line_item_breakdown(contributions))

        return self._build(
            base_cost=self._money(raw_quote.get("salary")),
            currency=raw_quote.get("currency"),
            country=raw_quote.get("country"),
            monthly_total=self._money(raw_quote.get("total")),
            breakdown=breakdown,
            raw_quote=raw_quote,
        )
