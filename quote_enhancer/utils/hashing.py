"""Hashing utilities for cache keys and content identifiers.

This module provides deterministic hashing functions for:
- canonical_json: stable serialization used as hash input
- content_hash: short identifier of a JSON-compatible structure (quotes,
  provider responses, legal profile parts)
"""

import base64
import hashlib
import json
from typing import Any


def canonical_json(value: Any) -> str:
    """Serialize a value to canonical JSON.

    Keys are sorted and separators are compact so that two structurally equal
    values always produce the same string. Values JSON cannot represent
    (datetimes, enums, Decimals) are serialized with str().

    Args:
        value: JSON-compatible structure

    Returns:
        Canonical JSON string
    """
    try:
        return json.dumps(value, sort_keys=True, separators=(",", ":"), default=str, ensure_ascii=False)
    except (TypeError, ValueError):
        # Circular references or unsortable mixed-type keys
        return repr(value)


def content_hash(value: Any, length: int = 16) -> str:
    """Compute a short content hash of a JSON-compatible value.

    The hash is the first ``length`` hex characters of the SHA256 digest of
    the canonical JSON form. If SHA256 is unavailable in the running
    interpreter, a truncated base64 encoding of the canonical JSON is returned
    instead. This function never raises.

    Args:
        value: Structure to hash
        length: Number of characters to keep (default 16)

    Returns:
        Hash string of at most ``length`` characters

    Example:
        >>> content_hash({"b": 1, "a": 2}) == content_hash({"a": 2, "b": 1})
        True
    """
    payload = canonical_json(value).encode("utf-8")
    try:
        return hashlib.new("sha256", payload).hexdigest()[:length]
    except ValueError:
        return base64.b64encode(payload).decode("ascii")[:length]
