"""Validation, summaries and pairwise comparison of normalized quotes."""

import logging
from typing import Any, Dict

from quote_enhancer.domain.models import NormalizedQuote

logger = logging.getLogger(__name__)


def validate_normalized_quote(quote: NormalizedQuote) -> bool:
    """Check that a normalized quote is usable.

    A quote is valid iff provider, currency and country are non-empty and
    the monthly total is positive.
    """
    return bool(
        quote.provider
        and quote.currency
        and quote.country
        and quote.monthly_total > 0
    )


def get_quote_summary(quote: NormalizedQuote) -> Dict[str, Any]:
    """Summarize a normalized quote for display or logging."""
    return {
        "provider": quote.provider,
        "monthly_cost": quote.monthly_total,
        "base_salary": quote.base_cost,
        "additional_costs": quote.monthly_total - quote.base_cost,
        "breakdown_total": sum(quote.breakdown.values()),
        "currency": quote.currency,
        "country": quote.country,
        "has_detailed_breakdown": bool(quote.breakdown),
    }


def compare_quotes(first: NormalizedQuote, second: NormalizedQuote) -> Dict[str, Any]:
    """Compare the monthly totals of two normalized quotes.

    Returns:
        Dictionary with cheaper_provider, cost_difference and
        percentage_difference (relative to the first quote)
    """
    if first.currency != second.currency:
        logger.warning(
            "Comparing quotes with different currencies",
            extra={
                "event": "normalizer.compare.currency_mismatch",
                "currencies": [first.currency, second.currency],
            },
        )

    difference = first.monthly_total - second.monthly_total
    percentage = abs(difference / first.monthly_total * 100) if first.monthly_total else 0.0
    return {
        "cheaper_provider": first.provider if first.monthly_total < second.monthly_total else second.provider,
        "cost_difference": abs(difference),
        "percentage_difference": percentage,
    }
