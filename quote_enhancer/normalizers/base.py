"""Base normalizer class with shared helpers for all provider normalizers.

Each provider returns quotes in its own shape. Normalizers map one provider
shape onto NormalizedQuote. They are pure: the same raw quote always yields
the same NormalizedQuote, and malformed monetary values become 0 instead of
raising.
"""

import re
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, Mapping

from quote_enhancer.domain.models import NormalizedQuote, ProviderKind
from quote_enhancer.utils.money import parse_money

_NON_WORD = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")

BREAKDOWN_KEY_LENGTH = 30


def normalize_breakdown_key(name: Any) -> str:
    """Turn a free-text cost label into a breakdown key.

    The label is lower-cased, punctuation is removed, whitespace runs become
    underscores, and the result is cut to 30 characters.

    Example:
        >>> normalize_breakdown_key("Social Security (Employer)")
        'social_security_employer'
    """
    if not name or not isinstance(name, str):
        return "unknown"
    key = _NON_WORD.sub("", name.lower()).strip()
    key = _WHITESPACE.sub("_", key)
    return key[:BREAKDOWN_KEY_LENGTH] or "unknown"


class BaseNormalizer(ABC):
    """Base class for all provider normalizers.

    Subclasses set PROVIDER and implement normalize().
    """

    PROVIDER: ProviderKind

    @abstractmethod
    def normalize(self, raw_quote: Mapping[str, Any]) -> NormalizedQuote:
        """Map a raw provider quote onto NormalizedQuote.

        Args:
            raw_quote: Provider response payload

        Returns:
            NormalizedQuote for this provider
        """

    def _money(self, value: Any) -> float:
        """Parse a monetary field (number or formatted string)."""
        return parse_money(value)

    def _text(self, value: Any) -> str:
        """Return a stripped string field or an empty string."""
        if isinstance(value, str):
            return value.strip()
        return ""

    def _items(self, value: Any) -> Iterable[Mapping[str, Any]]:
        """Iterate over dict entries of a list field, skipping anything else."""
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, Mapping)]

    def _line_item_breakdown(self, items: Any, amount_keys: Iterable[str] = ("amount",)) -> Dict[str, float]:
        """Build breakdown entries from a list of {name, amount} items.

        Args:
            items: Raw list of line items
            amount_keys: Field names tried in order for the amount

        Returns:
            Mapping of normalized label key to amount
        """
        breakdown: Dict[str, float] = {}
        keys = tuple(amount_keys)
        for item in self._items(items):
            label = item.get("name") or item.get("description")
            amount = 0.0
            for amount_key in keys:
                if item.get(amount_key) is not None:
                    amount = self._money(item.get(amount_key))
                    break
            breakdown[normalize_breakdown_key(label)] = amount
        return breakdown

    def _sum_amounts(self, items: Any) -> float:
        """Sum the amount field of a list of line items."""
        return sum(self._money(item.get("amount")) for item in self._items(items))

    def _build(
        self,
        *,
        base_cost: float,
        currency: Any,
        country: Any,
        monthly_total: float,
        breakdown: Dict[str, Any],
        raw_quote: Mapping[str, Any],
    ) -> NormalizedQuote:
        """Assemble the NormalizedQuote, dropping empty breakdown entries."""
        clean_breakdown = {
            key: float(value)
            for key, value in breakdown.items()
            if isinstance(value, (int, float)) and not isinstance(value, bool)
        }
        return NormalizedQuote(
            provider=self.PROVIDER.value,
            base_cost=base_cost,
            currency=self._text(currency).upper(),
            country=self._text(country),
            monthly_total=monthly_total,
            breakdown=clean_breakdown,
            original_response=dict(raw_quote),
        )
