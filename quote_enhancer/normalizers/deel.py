"""Deel quote normalizer."""

from typing import Any, Mapping

from quote_enhancer.domain.models import NormalizedQuote, ProviderKind

from .base import BaseNormalizer


class DeelNormalizer(BaseNormalizer):
    """Normalizer for Deel quotes.

    Deel returns every monetary field as a formatted string:

        {salary, currency, country, total_costs, deel_fee,
         severance_accural, employer_costs, costs: [{name, amount, frequency}]}

    The monthly total excludes Deel's platform fee and its severance accrual
    (severance is computed separately as an enhancement). Statutory
    contributions are whatever remains after removing salary and fee.
    """

    PROVIDER = ProviderKind.DEEL

    def normalize(self, raw_quote: Mapping[str, Any]) -> NormalizedQuote:
        total_costs = self._money(raw_quote.get("total_costs"))
        deel_fee = self._money(raw_quote.get("deel_fee"))
        salary = self._money(raw_quote.get("salary"))
        # Field name is misspelled in Deel's API
        severance_accrual = self._money(raw_quote.get("severance_accural"))

        breakdown = {
            "platform_fee": deel_fee,
            "statutory_contributions": total_costs - deel_fee - salary,
        }
        breakdown.update(self._line_item_breakdown(raw_quote.get("costs")))

        return self._build(
            base_cost=salary,
            currency=raw_quote.get("currency"),
            country=raw_quote.get("country"),
            monthly_total=max(0.0, total_costs - deel_fee - severance_accrual),
            breakdown=breakdown,
            raw_quote=raw_quote,
        )
