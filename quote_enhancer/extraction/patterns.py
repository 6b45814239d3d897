"""Keyword patterns for classifying provider cost line items.

Groups are evaluated in order and the first match wins, so an item such as
"13th salary bonus" is never also counted as a bonus of another kind.
"""

import re
from typing import Optional, Tuple

from quote_enhancer.domain.models import IncludedBenefitKind

CATEGORY_PATTERNS: Tuple[Tuple[IncludedBenefitKind, "re.Pattern[str]"], ...] = (
    (
        IncludedBenefitKind.THIRTEENTH_SALARY,
        re.compile(
            r"(^|\s)13(th)?|thirteenth|aguinaldo|d[eé]cim[ao]\s*terc|christmas\s*bonus"
            r"|13.*salary|salary.*13|bonus.*13"
        ),
    ),
    (
        IncludedBenefitKind.FOURTEENTH_SALARY,
        re.compile(r"(^|\s)14(th)?|fourteenth|14.*salary|salary.*14|bonus.*14"),
    ),
    (
        IncludedBenefitKind.VACATION_BONUS,
        re.compile(r"vacation|holiday\s*bonus|annual\s*bonus|prima\s*vacanza"),
    ),
    (
        IncludedBenefitKind.TRANSPORT_ALLOWANCE,
        re.compile(
            r"transport|commut|\bbus\b|metro|transit|car\s*allowance|auto\s*allowance"
            r"|vehicle|travel\s*allowance|gas\s*allowance|fuel"
        ),
    ),
    (
        IncludedBenefitKind.REMOTE_WORK_ALLOWANCE,
        re.compile(
            r"remote|work\s*from\s*home|wfh|telework|home\s*office|telecommut"
            r"|distance\s*work|home.*allowance|office.*allowance"
        ),
    ),
    (
        IncludedBenefitKind.MEAL_VOUCHERS,
        re.compile(
            r"meal|food|voucher|ticket\s*restaurant|lunch|dining|cafeteria"
            r"|vale\s*refei|vale\s*aliment|restaurant\s*card"
        ),
    ),
    (
        IncludedBenefitKind.SOCIAL_SECURITY,
        re.compile(
            r"social\s*security|social\s*insur|employer\s*contrib|pension|\bni\b|inps|ssf"
            r"|contrib.*social|fica|\bssi\b|unemployment\s*insur|disability\s*insur|workers.*comp"
        ),
    ),
    (
        IncludedBenefitKind.HEALTH_INSURANCE,
        re.compile(
            r"health\s*insur|medical\s*insur|\bhi\b|health.*care|medical.*care"
            r"|dental|vision|life\s*insur"
        ),
    ),
)

# Provider fees are not employee benefits and are never classified
FEE_PATTERN = re.compile(r"\bfees?\b|platform|management")


def categorize(label: object) -> Optional[IncludedBenefitKind]:
    """Classify a line item label into the benefit taxonomy.

    Args:
        label: Free-text line item name

    Returns:
        First matching category, or None when no group matches

    Example:
        >>> categorize("Aguinaldo")
        <IncludedBenefitKind.THIRTEENTH_SALARY: 'thirteenth_salary'>
        >>> categorize("Office snacks") is None
        True
    """
    if not isinstance(label, str):
        return None
    name = label.strip().lower()
    if not name:
        return None
    for kind, pattern in CATEGORY_PATTERNS:
        if pattern.search(name):
            return kind
    return None


def is_fee(label: object) -> bool:
    """Return True when a line item label describes a provider fee."""
    return isinstance(label, str) and bool(FEE_PATTERN.search(label.lower()))
