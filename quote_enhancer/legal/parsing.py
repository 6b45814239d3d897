"""Text-pattern extraction of legal requirements from country documents.

Legal documents are prose. Every parser here is a pure function of its
input text and only ever produces non-negative numbers; percentages are
clamped to 0-100.
"""

import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from quote_enhancer.domain.legal import (
    Allowances,
    Bonuses,
    Contributions,
    LegalRequirements,
    MandatorySalaries,
    TerminationCosts,
)

WORKING_DAYS_PER_MONTH = 22

_DAYS = re.compile(r"(\d+)\s*days?", re.IGNORECASE)
_MONTHS = re.compile(r"(\d+)\s*months?", re.IGNORECASE)
_MONTH_SALARY = re.compile(r"(\d+)\s*month(?:'|’)?s?\s*salary", re.IGNORECASE)
_WEEKS = re.compile(r"(\d+)\s*weeks?", re.IGNORECASE)

_PERCENT_RANGE = re.compile(r"([\d.]+)%\s*(?:to|-|–)\s*([\d.]+)%", re.IGNORECASE)
_PERCENT = re.compile(r"([\d.]+)\s*%")

_AMOUNT_APPROX = re.compile(r"[~≈]\s*(\d[\d,]*\.?\d*)\s*([A-Z]{3})")
_AMOUNT_RANGE = re.compile(r"(\d[\d,]*\.?\d*)\s*[-–]\s*(\d[\d,]*\.?\d*)\s*([A-Z]{3})")
_AMOUNT_CURRENCY = re.compile(r"(\d[\d,]*\.?\d*)\s*([A-Z]{3})\b")
_AMOUNT_ANY = re.compile(r"\d[\d,]*\.?\d*")
_PER_WORKING_DAY = re.compile(r"per\s*working\s*day", re.IGNORECASE)

_NON_WORD = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")
_SENTENCE_SPLIT = re.compile(r"(?<=[.;!?])\s+|\n+")

THIRTEENTH_MENTIONS = ("13th", "thirteenth", "13-month", "christmas bonus", "aguinaldo", "décimo terceiro")
FOURTEENTH_MENTIONS = ("14th", "fourteenth", "14-month")

SOFT_NEGATIVE_TOKENS = (
    "customary", "customarily", "commonly", "common", "typical", "typically",
    "discretionary", "at employer discretion", "may be paid", "might be paid", "can be paid",
    "optional", "not mandatory", "not required", "not obligated", "no legal requirement",
    "depends on company policy", "case by case", "subject to contract", "n/a",
)

MANDATORY_SIGNAL_TOKENS = (
    "mandatory", "required", "must", "obligatory", "by law", "legal requirement",
    "statutory", "entitled", "guaranteed", "shall", "is paid",
)

MEAL_VOUCHER_TERMS = (
    "meal voucher", "food voucher", "ticket restaurant", "meal ticket", "food ticket",
    "grocery voucher", "restaurant voucher", "alimentação",
)
TRANSPORTATION_TERMS = (
    "transport", "auto allowance", "gas allowance", "commut", "bus", "metro", "transit",
    "car allowance", "vehicle allowance", "travel allowance",
)
REMOTE_WORK_TERMS = (
    "home office", "remote work", "work from home", "wfh", "telework", "remote allowance",
)

_MANDATORY_BENEFIT = re.compile(
    r"\b(mandatory|required|compulsory|obligatory|must|law|legal|legally|regulation|statutory"
    r"|collective bargaining|cba|union requirement)\b"
)
_OPTIONAL_BENEFIT = re.compile(r"\b(optional|may|can|discretionary|voluntary)\b")


def _to_float(value: str) -> Optional[float]:
    try:
        return float(value.replace(",", ""))
    except ValueError:
        return None


# ============================================================================
# Durations
# ============================================================================


def extract_days_from_text(text: Any) -> int:
    """Parse a duration in days ("30 days", "2 months" -> 60, "4 weeks" -> 28)."""
    if not isinstance(text, str):
        return 0
    match = _DAYS.search(text)
    if match:
        return int(match.group(1))
    match = _MONTHS.search(text)
    if match:
        return int(match.group(1)) * 30
    match = _WEEKS.search(text)
    if match:
        return int(match.group(1)) * 7
    return 0


def extract_months_from_text(text: Any) -> int:
    """Parse a duration in months ("3 months", "1 month's salary")."""
    if not isinstance(text, str):
        return 0
    match = _MONTHS.search(text) or _MONTH_SALARY.search(text)
    return int(match.group(1)) if match else 0


# ============================================================================
# Percentages and amounts
# ============================================================================


def extract_percentage_from_text(text: Any) -> float:
    """Parse a percentage on a 0-100 scale.

    Supports a single value ("7.3%"), additive terms ("7.3% + 0.85%", summed
    only when at least two terms carry a % sign) and ranges ("20% - 26.8%",
    averaged).

    Example:
        >>> extract_percentage_from_text("20.00% to 26.80%")
        23.4
    """
    if not isinstance(text, str):
        return 0.0

    value: Optional[float] = None
    range_match = _PERCENT_RANGE.search(text)
    if range_match:
        low, high = _to_float(range_match.group(1)), _to_float(range_match.group(2))
        if low is not None and high is not None:
            value = (low + high) / 2

    if value is None and "+" in text:
        terms = [m for m in (_PERCENT.search(part) for part in text.split("+")) if m]
        numbers = [n for n in (_to_float(m.group(1)) for m in terms) if n is not None]
        if len(numbers) >= 2:
            value = sum(numbers)

    if value is None:
        single = _PERCENT.search(text)
        value = _to_float(single.group(1)) if single else None

    if value is None:
        return 0.0
    return round(min(100.0, max(0.0, value)), 6)


def extract_amount_with_currency(text: Any) -> Tuple[float, Optional[str]]:
    """Parse a monthly amount and the currency code written next to it.

    Forms tried in order: approximate ("~ 350 BRL"), range ("20-50 BRL",
    averaged), amount with currency code, then any number. Amounts quoted
    per working day are multiplied by 22.

    Returns:
        Tuple of (amount, currency code or None)
    """
    if not isinstance(text, str):
        return 0.0, None

    amount: Optional[float] = None
    currency: Optional[str] = None

    approx = _AMOUNT_APPROX.search(text)
    ranged = _AMOUNT_RANGE.search(text)
    plain = _AMOUNT_CURRENCY.search(text)
    if approx:
        amount, currency = _to_float(approx.group(1)), approx.group(2)
    elif ranged:
        low, high = _to_float(ranged.group(1)), _to_float(ranged.group(2))
        if low is not None and high is not None:
            amount = (low + high) / 2
        currency = ranged.group(3)
    elif plain:
        amount, currency = _to_float(plain.group(1)), plain.group(2)
    else:
        any_number = _AMOUNT_ANY.search(text)
        amount = _to_float(any_number.group(0)) if any_number else None

    if amount is None or amount < 0:
        return 0.0, None
    if _PER_WORKING_DAY.search(text):
        amount *= WORKING_DAYS_PER_MONTH
    return round(amount, 6), currency


def extract_amount_from_text(text: Any) -> float:
    """Parse a monthly amount from allowance prose (see extract_amount_with_currency)."""
    return extract_amount_with_currency(text)[0]


def normalize_contribution_key(description: str) -> str:
    """Normalize a contribution description into a rate key (max 50 chars)."""
    key = _NON_WORD.sub("", (description or "").lower()).strip()
    return _WHITESPACE.sub("_", key)[:50]


# ============================================================================
# Classifiers
# ============================================================================


def detect_mandatory_salary(text: str, mentions: Iterable[str]) -> bool:
    """Decide whether a 13th/14th salary is mandatory from prose.

    Requires an explicit mention of the salary, at least one mandatory signal
    and no soft-negative token anywhere in the text.
    """
    lowered = (text or "").lower()
    if not any(mention in lowered for mention in mentions):
        return False
    if any(token in lowered for token in SOFT_NEGATIVE_TOKENS):
        return False
    return any(token in lowered for token in MANDATORY_SIGNAL_TOKENS)


def is_mandatory_benefit(text: str) -> bool:
    """Decide whether an allowance is mandatory; optional wording wins over mandatory wording."""
    lowered = (text or "").lower()
    if _OPTIONAL_BENEFIT.search(lowered):
        return False
    return bool(_MANDATORY_BENEFIT.search(lowered))


def _mentions_any(text: str, terms: Iterable[str]) -> bool:
    lowered = (text or "").lower()
    return any(term in lowered for term in terms)


def _is_aggregate(description: str) -> bool:
    lowered = description.lower()
    return (
        "total employment cost" in lowered
        or "total employee cost" in lowered
        or ("total" in lowered and "cost" in lowered)
        or "overall" in lowered
    )


# ============================================================================
# Section parsers
# ============================================================================


def _parse_termination(termination: Mapping[str, Any]) -> TerminationCosts:
    return TerminationCosts(
        notice_period_days=extract_days_from_text(termination.get("notice_period")),
        severance_months=extract_months_from_text(termination.get("severance_pay")),
        probation_period_days=extract_days_from_text(termination.get("probation_period")),
    )


def _salary_text(data: Mapping[str, Any], field: str, mentions: Iterable[str]) -> str:
    payroll = data.get("payroll") if isinstance(data.get("payroll"), Mapping) else {}
    parts: List[str] = []
    for value in (payroll.get(field), data.get(field)):
        if isinstance(value, str):
            parts.append(value)
    cycle = payroll.get("payroll_cycle")
    if isinstance(cycle, str):
        mention_list = tuple(mentions)
        parts.extend(
            sentence for sentence in _SENTENCE_SPLIT.split(cycle)
            if _mentions_any(sentence, mention_list)
        )
    return " ".join(parts)


def _parse_salaries(data: Mapping[str, Any]) -> MandatorySalaries:
    has_13th = detect_mandatory_salary(
        _salary_text(data, "13th_salary", THIRTEENTH_MENTIONS), THIRTEENTH_MENTIONS
    )
    has_14th = detect_mandatory_salary(
        _salary_text(data, "14th_salary", FOURTEENTH_MENTIONS), FOURTEENTH_MENTIONS
    )
    return MandatorySalaries(
        has_13th_salary=has_13th,
        has_14th_salary=has_14th,
        monthly_multiplier_13th=1 / 12 if has_13th else None,
        monthly_multiplier_14th=1 / 12 if has_14th else None,
    )


def _employer_contributions(data: Mapping[str, Any]) -> List[Mapping[str, Any]]:
    contribution = data.get("contribution")
    if not isinstance(contribution, Mapping):
        return []
    items = contribution.get("employer_contributions")
    return [item for item in items if isinstance(item, Mapping)] if isinstance(items, list) else []


def _common_benefits(data: Mapping[str, Any]) -> List[str]:
    benefits = data.get("common_benefits")
    if not isinstance(benefits, list):
        return []
    return [b for b in benefits if isinstance(b, str)]


def _parse_bonuses(data: Mapping[str, Any]) -> Bonuses:
    percentage: Optional[float] = None
    for contribution in _employer_contributions(data):
        if "vacation bonus" in str(contribution.get("description") or "").lower():
            percentage = extract_percentage_from_text(contribution.get("rate"))
            break
    for benefit in _common_benefits(data):
        if "vacation" in benefit.lower() and "%" in benefit:
            percentage = extract_percentage_from_text(benefit)
    return Bonuses(vacation_bonus_percentage=percentage if percentage else None)


def _parse_allowances(data: Mapping[str, Any]) -> Allowances:
    found: Dict[str, Any] = {}
    currencies: List[str] = []

    def record(prefix: str, text: str, classifier_text: str) -> None:
        if found.get(f"{prefix}_amount"):
            return
        amount, currency = extract_amount_with_currency(text)
        if amount > 0:
            found[f"{prefix}_amount"] = amount
            found[f"{prefix}_mandatory"] = is_mandatory_benefit(f"{classifier_text} {text}")
            if currency:
                currencies.append(currency)

    # Employer contributions take precedence over common benefits
    for contribution in _employer_contributions(data):
        description = str(contribution.get("description") or "")
        rate = str(contribution.get("rate") or "")
        if _mentions_any(description, MEAL_VOUCHER_TERMS):
            record("meal_voucher", rate, description)
        if _mentions_any(description, TRANSPORTATION_TERMS):
            record("transportation", rate, description)
        if _mentions_any(description, REMOTE_WORK_TERMS):
            record("remote_work", rate, description)

    for benefit in _common_benefits(data):
        if _mentions_any(benefit, TRANSPORTATION_TERMS):
            record("transportation", benefit, benefit)
        if _mentions_any(benefit, REMOTE_WORK_TERMS):
            record("remote_work", benefit, benefit)
        if _mentions_any(benefit, MEAL_VOUCHER_TERMS):
            record("meal_voucher", benefit, benefit)

    remote_text = data.get("remote_work")
    if isinstance(remote_text, str):
        record("remote_work", remote_text, remote_text)

    return Allowances(currency=currencies[0] if currencies else None, **found)


def _parse_rates(items: Any, skip_vacation_bonus: bool = False) -> Dict[str, float]:
    rates: Dict[str, float] = {}
    if not isinstance(items, list):
        return rates
    for item in items:
        if not isinstance(item, Mapping):
            continue
        description = str(item.get("description") or "")
        if _is_aggregate(description):
            continue
        if skip_vacation_bonus and "vacation bonus" in description.lower():
            continue
        rate = extract_percentage_from_text(item.get("rate"))
        if 0 < rate <= 100:
            rates[normalize_contribution_key(description)] = rate
    return rates


def _parse_contributions(data: Mapping[str, Any]) -> Contributions:
    contribution = data.get("contribution")
    if not isinstance(contribution, Mapping):
        return Contributions()
    return Contributions(
        employer_rates=_parse_rates(contribution.get("employer_contributions"), skip_vacation_bonus=True),
        employee_rates=_parse_rates(contribution.get("employee_contributions")),
    )


def _core_data(document: Mapping[str, Any]) -> Mapping[str, Any]:
    """Accept either a document record ({"data": {...}}) or its data section."""
    data = document.get("data")
    if isinstance(data, Mapping) and not any(
        key in document for key in ("termination", "payroll", "contribution")
    ):
        return data
    return document


def extract_legal_requirements(document: Optional[Mapping[str, Any]]) -> LegalRequirements:
    """Extract structured legal requirements from a country document.

    Args:
        document: Document record or its ``data`` section; None yields empty
            requirements

    Returns:
        LegalRequirements with all numbers non-negative
    """
    if not isinstance(document, Mapping):
        return LegalRequirements()

    data = _core_data(document)
    termination = data.get("termination")
    return LegalRequirements(
        termination_costs=_parse_termination(termination) if isinstance(termination, Mapping) else TerminationCosts(),
        mandatory_salaries=_parse_salaries(data),
        bonuses=_parse_bonuses(data),
        allowances=_parse_allowances(data),
        contributions=_parse_contributions(data),
    )
