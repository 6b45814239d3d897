"""Deterministic extraction of what a provider quote already includes.

The extractor walks the provider-specific line item arrays inside a
normalized quote's original response and classifies every item into the
fixed IncludedBenefitKind taxonomy. No external service is involved, so the
same quote always yields the same result.
"""

from datetime import datetime
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Union

from quote_enhancer.domain.models import (
    Frequency,
    IncludedBenefit,
    IncludedBenefitKind,
    NormalizedQuote,
    ProviderKind,
    StandardizedBenefitData,
)
from quote_enhancer.logging import get_logger
from quote_enhancer.normalizers.factory import resolve_provider
from quote_enhancer.utils.money import parse_money
from quote_enhancer.utils.timestamps import utc_now

from .patterns import categorize, is_fee

logger = get_logger(__name__, component="extraction")

# Reflects how reliably each provider's response shape itemizes employer costs
PROVIDER_BASE_CONFIDENCE: Dict[ProviderKind, float] = {
    ProviderKind.REMOTE: 0.7,
    ProviderKind.RIVERMATE: 0.65,
    ProviderKind.OYSTER: 0.6,
    ProviderKind.DEEL: 0.5,
    ProviderKind.RIPPLING: 0.5,
    ProviderKind.SKUAD: 0.5,
    ProviderKind.VELOCITY: 0.5,
}
DEFAULT_BASE_CONFIDENCE = 0.45
CATEGORY_BONUS = 0.04
MANDATORY_BONUS = 0.1
MAX_CONFIDENCE = 0.9
EMPTY_CONFIDENCE = 0.3

MANDATORY_CATEGORIES = frozenset(
    {
        IncludedBenefitKind.THIRTEENTH_SALARY,
        IncludedBenefitKind.FOURTEENTH_SALARY,
        IncludedBenefitKind.SOCIAL_SECURITY,
    }
)

STATUTORY_DESCRIPTION = "Employer statutory contributions"


class _Accumulator:
    """Collects monthly amounts per category."""

    def __init__(self) -> None:
        self.amounts: Dict[IncludedBenefitKind, float] = {}
        self.descriptions: Dict[IncludedBenefitKind, Optional[str]] = {}

    def add(self, kind: IncludedBenefitKind, amount: float, description: Optional[str]) -> None:
        if amount <= 0:
            return
        if kind not in self.amounts:
            self.amounts[kind] = 0.0
            self.descriptions[kind] = description
        self.amounts[kind] += amount

    def has(self, kind: IncludedBenefitKind) -> bool:
        return kind in self.amounts

    def benefits(self) -> Dict[IncludedBenefitKind, IncludedBenefit]:
        # Enum order keeps the output independent of line item order
        return {
            kind: IncludedBenefit(
                amount=round(self.amounts[kind], 6),
                frequency=Frequency.MONTHLY,
                description=self.descriptions[kind],
            )
            for kind in IncludedBenefitKind
            if kind in self.amounts
        }


def _monthlyize(amount: float, frequency: Any) -> float:
    if isinstance(frequency, str):
        lowered = frequency.lower()
        if "year" in lowered or "annual" in lowered:
            return amount / 12
    return amount


class ProviderInclusionsExtractor:
    """Classifies provider line items into StandardizedBenefitData.

    Args:
        clock: Callable returning the extraction timestamp (injectable for tests)
    """

    def __init__(self, clock: Callable[[], datetime] = utc_now) -> None:
        self._clock = clock

    def extract(
        self, provider: Union[str, ProviderKind], quote: NormalizedQuote
    ) -> StandardizedBenefitData:
        """Extract the benefits a normalized quote already includes.

        Args:
            provider: Provider the quote came from
            quote: Normalized quote carrying the original response

        Returns:
            StandardizedBenefitData with monthly-normalized amounts
        """
        kind = resolve_provider(provider)
        original = quote.original_response if isinstance(quote.original_response, Mapping) else {}
        included = _Accumulator()

        if kind == ProviderKind.REMOTE:
            self._extract_remote(original, included)
        elif kind == ProviderKind.RIVERMATE:
            self._extract_line_items(original.get("taxItems"), included)
        elif kind == ProviderKind.OYSTER:
            self._extract_line_items(original.get("contributions"), included)
        else:
            self._extract_cost_list(original, included)

        # Aggregate statutory figure only when no line item covered social security
        statutory = quote.breakdown.get("statutory_contributions", 0.0)
        if not included.has(IncludedBenefitKind.SOCIAL_SECURITY) and statutory > 0:
            included.add(IncludedBenefitKind.SOCIAL_SECURITY, statutory, STATUTORY_DESCRIPTION)

        benefits = included.benefits()
        confidence = self.estimate_confidence(kind, benefits.keys())

        logger.debug(
            "Extracted provider inclusions",
            extra={
                "event": "extraction.inclusions.extracted",
                "provider": kind.value,
                "categories": [category.value for category in benefits],
                "confidence": confidence,
            },
        )

        return StandardizedBenefitData(
            provider=kind.value,
            base_salary=quote.base_cost,
            currency=quote.currency,
            country=quote.country,
            monthly_total=quote.monthly_total,
            included_benefits=benefits,
            total_monthly_benefits=round(sum(b.amount for b in benefits.values()), 6),
            extraction_confidence=confidence,
            extracted_at=self._clock(),
        )

    @staticmethod
    def estimate_confidence(provider: ProviderKind, categories: Iterable[IncludedBenefitKind]) -> float:
        """Score how much the extraction can be trusted.

        Per-provider base constant, plus 0.04 per matched category, plus 0.1
        when a mandatory category was found. Capped at 0.9; 0.3 when nothing
        matched.
        """
        found = set(categories)
        if not found:
            return EMPTY_CONFIDENCE
        score = PROVIDER_BASE_CONFIDENCE.get(provider, DEFAULT_BASE_CONFIDENCE)
        score += CATEGORY_BONUS * len(found)
        if found & MANDATORY_CATEGORIES:
            score += MANDATORY_BONUS
        return round(min(MAX_CONFIDENCE, score), 4)

    def _extract_remote(self, original: Mapping[str, Any], included: _Accumulator) -> None:
        employment = original.get("employment")
        costs = employment.get("employer_currency_costs") if isinstance(employment, Mapping) else None
        if not isinstance(costs, Mapping):
            # Simplified quote carries a single contributions figure
            contributions = parse_money(original.get("contributions"))
            included.add(IncludedBenefitKind.SOCIAL_SECURITY, contributions, STATUTORY_DESCRIPTION)
            return

        # Benefits only count when classifiable; contributions default to social security
        self._extract_line_items(costs.get("monthly_benefits_breakdown"), included, default=None)
        self._extract_line_items(costs.get("monthly_contributions_breakdown"), included)
        if not included.has(IncludedBenefitKind.SOCIAL_SECURITY):
            included.add(
                IncludedBenefitKind.SOCIAL_SECURITY,
                parse_money(costs.get("monthly_contributions_total")),
                STATUTORY_DESCRIPTION,
            )

    def _extract_cost_list(self, original: Mapping[str, Any], included: _Accumulator) -> None:
        self._extract_line_items(original.get("costs"), included)
        if not included.has(IncludedBenefitKind.SOCIAL_SECURITY):
            included.add(
                IncludedBenefitKind.SOCIAL_SECURITY,
                parse_money(original.get("employer_costs")),
                STATUTORY_DESCRIPTION,
            )

    def _extract_line_items(
        self,
        items: Any,
        included: _Accumulator,
        default: Optional[IncludedBenefitKind] = IncludedBenefitKind.SOCIAL_SECURITY,
    ) -> None:
        """Classify a list of {name, amount, frequency} items.

        Unmatched items fall into ``default``; with ``default=None`` they are
        dropped.
        """
        if not isinstance(items, list):
            return
        for item in items:
            if not isinstance(item, Mapping):
                continue
            label = item.get("name") or item.get("description") or ""
            if is_fee(label):
                continue
            kind = categorize(label) or default
            if kind is None:
                continue
            amount = parse_money(item.get("amount") if item.get("amount") is not None else item.get("cost"))
            included.add(kind, _monthlyize(amount, item.get("frequency")), label or None)
