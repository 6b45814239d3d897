"""Normalizers for providers sharing the string-formatted cost-list quote shape.

Rippling, Skuad and Velocity all return:

    {salary, currency, country, total_costs, employer_costs,
     costs: [{name, amount, frequency}]}

with every amount formatted as a string.
"""

from typing import Any, Dict, Mapping

from quote_enhancer.domain.models import NormalizedQuote, ProviderKind

from .base import BaseNormalizer

PLATFORM_FEE_MARKERS = ("fee", "platform", "management")


class CostListNormalizer(BaseNormalizer):
    """Shared normalizer for the cost-list quote shape."""

    def normalize(self, raw_quote: Mapping[str, Any]) -> NormalizedQuote:
        return self._build(
            base_cost=self._money(raw_quote.get("salary")),
            currency=raw_quote.get("currency"),
            country=raw_quote.get("country"),
            monthly_total=self._money(raw_quote.get("total_costs")),
            breakdown=self._cost_breakdown(raw_quote.get("costs")),
            raw_quote=raw_quote,
        )

    def _cost_breakdown(self, costs: Any) -> Dict[str, float]:
        breakdown = self._line_item_breakdown(costs)
        for cost in self._items(costs):
            name = self._text(cost.get("name")).lower()
            if any(marker in name for marker in PLATFORM_FEE_MARKERS):
                breakdown["platform_fee"] = self._money(cost.get("amount"))
                break
        return breakdown


class RipplingNormalizer(CostListNormalizer):
    PROVIDER = ProviderKind.RIPPLING


class SkuadNormalizer(CostListNormalizer):
    PROVIDER = ProviderKind.SKUAD


class VelocityNormalizer(CostListNormalizer):
    PROVIDER = ProviderKind.VELOCITY
