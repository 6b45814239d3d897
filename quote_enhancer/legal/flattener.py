"""Flatten country legal documents into sectioned plain text.

The flattened text is what a reasoning service receives as legal context.
flatten() keeps every known section; flatten_for_quote() keeps only the
sections that drive cost computation and is capped in length.
"""

import re
from collections import Counter
from datetime import datetime
from typing import Any, Iterable, List, Mapping, Optional

from pydantic import BaseModel, Field

from quote_enhancer.utils.timestamps import utc_now

MAX_QUOTE_TEXT_LENGTH = 20000
TRUNCATION_MARKER = "\n[truncated]"
NO_DATA_TEXT = "No legal data available"

_WHITESPACE = re.compile(r"\s+")
_AMOUNT_CODE = re.compile(r"\d[\d,.]*\s*([A-Z]{3})\b")
# Uppercase tokens that look like currency codes but never are
_NOT_CURRENCIES = frozenset({"VAT", "CBA", "PTO", "EOR", "THE", "AND", "PER", "USC", "PRSI", "NHS"})


class FlattenedLegalData(BaseModel):
    """Sectioned text rendering of a legal document."""

    country: str = "Unknown"
    currency: Optional[str] = None
    text: str
    extracted_at: datetime = Field(default_factory=utc_now)


def clean_text(value: Any) -> str:
    """Collapse whitespace; non-strings become an empty string."""
    if not isinstance(value, str):
        return ""
    return _WHITESPACE.sub(" ", value).strip()


def detect_currency(core: Mapping[str, Any]) -> Optional[str]:
    """Return the currency code most often written next to an amount.

    Searches minimum wage, contribution and benefit text. Returns None when
    no amount carries a currency code.
    """
    texts: List[str] = [clean_text(core.get("minimum_wage"))]
    contribution = core.get("contribution")
    if isinstance(contribution, Mapping):
        for item in contribution.get("employer_contributions") or []:
            if isinstance(item, Mapping):
                texts.append(f"{item.get('rate') or ''} {item.get('description') or ''}")
    benefits = core.get("common_benefits")
    if isinstance(benefits, list):
        texts.extend(b for b in benefits if isinstance(b, str))
    if isinstance(core.get("remote_work"), str):
        texts.append(core["remote_work"])

    codes = Counter(
        code
        for code in _AMOUNT_CODE.findall(" ".join(texts))
        if code not in _NOT_CURRENCIES
    )
    if not codes:
        return None
    return codes.most_common(1)[0][0]


def _contribution_lines(items: Any) -> List[str]:
    lines = []
    for item in items if isinstance(items, list) else []:
        if isinstance(item, Mapping):
            lines.append(f"- {clean_text(item.get('description'))}: {clean_text(item.get('rate'))}")
    return lines


def _labelled(pairs: Iterable[tuple], section: Mapping[str, Any]) -> List[str]:
    return [
        f"{label}: {clean_text(section.get(key))}"
        for key, label in pairs
        if clean_text(section.get(key))
    ]


class _Sections:
    def __init__(self) -> None:
        self.lines: List[str] = []

    def add(self, header: str, body: List[str]) -> None:
        if body:
            self.lines.append(f"{header}:")
            self.lines.extend(body)
            self.lines.append("")

    def render(self) -> str:
        return "\n".join(self.lines).strip()


def _core(document: Optional[Mapping[str, Any]]) -> Optional[Mapping[str, Any]]:
    if not isinstance(document, Mapping):
        return None
    data = document.get("data")
    return data if isinstance(data, Mapping) else document


def _country(document: Optional[Mapping[str, Any]]) -> str:
    if isinstance(document, Mapping) and isinstance(document.get("country"), str):
        return document["country"]
    return "Unknown"


def _payroll_lines(core: Mapping[str, Any], include_cycle: bool) -> List[str]:
    payroll = core.get("payroll")
    if not isinstance(payroll, Mapping):
        return []
    pairs = [("13th_salary", "13th Salary"), ("14th_salary", "14th Salary")]
    if include_cycle:
        pairs.insert(0, ("payroll_cycle", "Payroll Cycle"))
    return _labelled(pairs, payroll)


def _termination_lines(core: Mapping[str, Any], include_process: bool) -> List[str]:
    termination = core.get("termination")
    if not isinstance(termination, Mapping):
        return []
    pairs = [
        ("notice_period", "Notice Period"),
        ("severance_pay", "Severance Pay"),
        ("probation_period", "Probation Period"),
    ]
    if include_process:
        pairs.append(("termination_process", "Process"))
    return _labelled(pairs, termination)


def _benefit_lines(core: Mapping[str, Any]) -> List[str]:
    benefits = core.get("common_benefits")
    if not isinstance(benefits, list):
        return []
    return [f"- {clean_text(b)}" for b in benefits if clean_text(b)]


def flatten(document: Optional[Mapping[str, Any]]) -> FlattenedLegalData:
    """Render every known section of a legal document.

    Args:
        document: Document record (``{"data": {...}}``) or its data section

    Returns:
        FlattenedLegalData with the sectioned text and detected currency
    """
    core = _core(document)
    if not core:
        return FlattenedLegalData(country=_country(document), text=NO_DATA_TEXT)

    sections = _Sections()
    contribution = core.get("contribution") if isinstance(core.get("contribution"), Mapping) else {}
    sections.add("EMPLOYER_CONTRIBUTIONS", _contribution_lines(contribution.get("employer_contributions")))
    sections.add("EMPLOYEE_CONTRIBUTIONS", _contribution_lines(contribution.get("employee_contributions")))
    sections.add("MINIMUM_WAGE", [clean_text(core.get("minimum_wage"))] if clean_text(core.get("minimum_wage")) else [])
    sections.add("PAYROLL_REQUIREMENTS", _payroll_lines(core, include_cycle=True))

    hours = core.get("working_hours")
    if isinstance(hours, Mapping):
        sections.add("WORKING_HOURS", _labelled([("general", "General"), ("overtime", "Overtime")], hours))

    sections.add("TERMINATION_REQUIREMENTS", _termination_lines(core, include_process=True))

    leave = core.get("leave")
    if isinstance(leave, Mapping):
        sections.add(
            "LEAVE_ENTITLEMENTS",
            [
                f"{key.replace('_', ' ').upper()}: {clean_text(value)}"
                for key, value in leave.items()
                if clean_text(value)
            ],
        )

    sections.add("COMMON_BENEFITS", _benefit_lines(core))
    sections.add("REMOTE_WORK_RULES", [clean_text(core.get("remote_work"))] if clean_text(core.get("remote_work")) else [])

    vat = core.get("vat")
    if isinstance(vat, Mapping) and clean_text(vat.get("general")):
        sections.add("VAT_RATES", [clean_text(vat.get("general"))])

    return FlattenedLegalData(
        country=_country(document),
        currency=detect_currency(core),
        text=sections.render() or NO_DATA_TEXT,
    )


def flatten_for_quote(document: Optional[Mapping[str, Any]]) -> FlattenedLegalData:
    """Render only the cost-relevant sections, capped at 20,000 characters."""
    core = _core(document)
    if not core:
        return FlattenedLegalData(country=_country(document), text=NO_DATA_TEXT)

    sections = _Sections()
    contribution = core.get("contribution") if isinstance(core.get("contribution"), Mapping) else {}
    sections.add("EMPLOYER_CONTRIBUTIONS", _contribution_lines(contribution.get("employer_contributions")))
    sections.add("PAYROLL_REQUIREMENTS", _payroll_lines(core, include_cycle=False))
    sections.add("TERMINATION_REQUIREMENTS", _termination_lines(core, include_process=False))
    sections.add("COMMON_BENEFITS", _benefit_lines(core))

    text = sections.render() or NO_DATA_TEXT
    if len(text) > MAX_QUOTE_TEXT_LENGTH:
        text = text[:MAX_QUOTE_TEXT_LENGTH] + TRUNCATION_MARKER

    return FlattenedLegalData(
        country=_country(document),
        currency=detect_currency(core),
        text=text,
    )
