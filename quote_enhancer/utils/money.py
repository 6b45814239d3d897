"""Monetary parsing and rounding helpers."""

import math
import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

_CURRENCY_NOISE = re.compile(r"[,\s$€£¥]")
_LEADING_NUMBER = re.compile(r"^[-+]?(?:\d+\.?\d*|\.\d+)")


def parse_money(value: Any) -> float:
    """Parse a monetary value that may be a number or a formatted string.

    Thousands separators, whitespace and currency symbols are stripped, then
    the leading numeric part is read ("1,234.50 USD" -> 1234.5). Anything
    unparsable, including non-finite numbers, yields 0.0.

    Args:
        value: Number, string, or None

    Returns:
        Parsed amount as float
    """
    if isinstance(value, bool) or value is None:
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else 0.0
    if not isinstance(value, str):
        return 0.0

    cleaned = _CURRENCY_NOISE.sub("", value)
    match = _LEADING_NUMBER.match(cleaned)
    if not match:
        return 0.0
    try:
        number = float(match.group(0))
    except ValueError:
        return 0.0
    return number if math.isfinite(number) else 0.0


def round_money(value: float) -> float:
    """Round an amount to 2 decimals using half-up rounding.

    Example:
        >>> round_money(1000 / 12)
        83.33
        >>> round_money(0.125)
        0.13
    """
    try:
        return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))
    except (InvalidOperation, ValueError):
        return 0.0
