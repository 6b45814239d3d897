"""Country legal documents, requirement parsing and legal profiles."""

from .countries import COUNTRY_CODES, country_name_for, resolve_country_code
from .documents import LegalDataService
from .flattener import FlattenedLegalData, flatten, flatten_for_quote
from .parsing import (
    detect_mandatory_salary,
    extract_amount_from_text,
    extract_amount_with_currency,
    extract_days_from_text,
    extract_legal_requirements,
    extract_months_from_text,
    extract_percentage_from_text,
    is_mandatory_benefit,
)
from .profile import LegalProfileService, ProfileRenderer, ProfileRenderError

__all__ = [
    "COUNTRY_CODES",
    "FlattenedLegalData",
    "LegalDataService",
    "LegalProfileService",
    "ProfileRenderError",
    "ProfileRenderer",
    "country_name_for",
    "detect_mandatory_salary",
    "extract_amount_from_text",
    "extract_amount_with_currency",
    "extract_days_from_text",
    "extract_legal_requirements",
    "extract_months_from_text",
    "extract_percentage_from_text",
    "flatten",
    "flatten_for_quote",
    "is_mandatory_benefit",
    "resolve_country_code",
]
