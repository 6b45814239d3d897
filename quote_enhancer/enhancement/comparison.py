"""Cross-provider comparison of enhanced quotes."""

from typing import Dict

from quote_enhancer.domain.models import EnhancedQuote, ProviderComparison
from quote_enhancer.utils.money import round_money

LOW_CONFIDENCE_THRESHOLD = 0.5
NO_QUOTES_RECOMMENDATION = "No valid quotes to compare"


def generate_comparison(enhancements: Dict[str, EnhancedQuote]) -> ProviderComparison:
    """Compare final monthly totals of successfully enhanced quotes.

    Failed providers never appear here; with nothing to compare, cheapest
    and most_expensive are None.
    """
    if not enhancements:
        return ProviderComparison(recommendations=[NO_QUOTES_RECOMMENDATION])

    totals = {provider: quote.final_total for provider, quote in enhancements.items()}
    cheapest = min(totals, key=lambda provider: (totals[provider], provider))
    most_expensive = max(totals, key=lambda provider: (totals[provider], provider))
    average = round_money(sum(totals.values()) / len(totals))

    recommendations = [f"{cheapest} offers the lowest total monthly cost ({round_money(totals[cheapest])})"]
    if cheapest != most_expensive:
        savings = round_money(totals[most_expensive] - totals[cheapest])
        recommendations.append(f"Choosing {cheapest} over {most_expensive} saves {savings} per month")

    currencies = {quote.base_currency for quote in enhancements.values()}
    if len(currencies) > 1:
        recommendations.append(
            f"Quotes use different currencies ({', '.join(sorted(currencies))}); totals are not directly comparable"
        )

    low_confidence = sorted(
        provider for provider, quote in enhancements.items() if quote.overall_confidence < LOW_CONFIDENCE_THRESHOLD
    )
    if low_confidence:
        recommendations.append(f"Verify enhancements manually for: {', '.join(low_confidence)}")

    return ProviderComparison(
        cheapest=cheapest,
        most_expensive=most_expensive,
        average_cost=average,
        provider_totals={provider: round_money(total) for provider, total in totals.items()},
        recommendations=recommendations,
    )
