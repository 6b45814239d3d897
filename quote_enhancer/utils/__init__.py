"""Utility modules for hashing, money handling, and timestamps."""

from .hashing import canonical_json, content_hash
from .money import parse_money, round_money
from .timestamps import format_timestamp, utc_now

__all__ = [
    "canonical_json",
    "content_hash",
    "parse_money",
    "round_money",
    "format_timestamp",
    "utc_now",
]
