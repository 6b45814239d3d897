"""Additional validation utilities for configuration."""

import warnings
from typing import Any, Dict, List


def check_for_warnings(config_dict: Dict[str, Any]) -> List[str]:
    """
    Check configuration for potential issues and return warnings.

    Args:
        config_dict: Raw configuration dictionary

    Returns:
        List of warning messages
    """
    warning_messages = []

    enhancement = config_dict.get("enhancement", {})
    if isinstance(enhancement, dict):
        if enhancement.get("severance_fallback_months") == 0:
            warning_messages.append(
                "severance_fallback_months is 0; countries with unparseable termination text "
                "will report no termination exposure"
            )
        attempts = enhancement.get("reasoning_max_attempts")
        if isinstance(attempts, int) and attempts > 3:
            warning_messages.append(
                f"reasoning_max_attempts ({attempts}) multiplies latency when the reasoning service is down"
            )

    cache = config_dict.get("cache", {})
    if isinstance(cache, dict):
        max_entries = cache.get("max_entries", 100)
        if isinstance(max_entries, int) and max_entries > 10000:
            warning_messages.append(f"Large cache max_entries ({max_entries}) may cause memory growth")

    currency = config_dict.get("currency", {})
    if isinstance(currency, dict) and currency.get("api_key"):
        warning_messages.append(
            "currency.api_key is set in the config file; prefer the EXCHANGERATE_API_KEY environment variable"
        )

    return warning_messages


def emit_warnings(warning_messages: List[str]) -> None:
    """
    Emit warning messages using Python's warnings module.

    Args:
        warning_messages: List of warning messages to emit
    """
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)
