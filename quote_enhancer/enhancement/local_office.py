"""Caller-supplied local office costs.

Local office amounts are added as a single local_office_benefits record,
and only when they are expressed in the quote's currency. They are never
converted.
"""

from typing import List, Optional, Tuple

from quote_enhancer.domain.models import (
    BenefitKind,
    EnhancementRecord,
    EnhancementSource,
    LocalOfficeInfo,
)
from quote_enhancer.utils.money import round_money

MONTHLY_FIELDS = (
    "meal_voucher",
    "transportation",
    "wfh",
    "health_insurance",
    "monthly_payments_to_local_office",
)
# Paid once, amortised over a year
ONE_TIME_FIELDS = (
    "pre_employment_medical_test",
    "drug_test",
    "background_check",
)
AMORTISATION_MONTHS = 12
LOCAL_OFFICE_CONFIDENCE = 0.9


def build_local_office_record(
    info: Optional[LocalOfficeInfo],
    form_currency: str,
    quote_currency: str,
    contract_months: int,
) -> Tuple[Optional[EnhancementRecord], List[str]]:
    """Build the local office record for a quote.

    VAT is never added.

    Args:
        info: Local office amounts, if the caller supplied any
        form_currency: Currency used when info carries none
        quote_currency: Currency of the quote being enhanced
        contract_months: Contract length used for total_amount

    Returns:
        Tuple of (record or None, warnings)
    """
    if info is None:
        return None, []

    components = {
        name: round_money(getattr(info, name))
        for name in MONTHLY_FIELDS
        if getattr(info, name) > 0
    }
    components.update(
        {
            name: round_money(getattr(info, name) / AMORTISATION_MONTHS)
            for name in ONE_TIME_FIELDS
            if getattr(info, name) > 0
        }
    )
    monthly = round_money(sum(components.values()))
    if monthly <= 0:
        return None, []

    currency = (info.currency or form_currency or "").upper()
    if currency != (quote_currency or "").upper():
        return None, [
            f"Local office benefits skipped due to currency mismatch "
            f"({currency or 'unknown'} vs quote {quote_currency})"
        ]

    return (
        EnhancementRecord(
            kind=BenefitKind.LOCAL_OFFICE_BENEFITS,
            monthly_amount=monthly,
            yearly_amount=round_money(monthly * 12),
            total_amount=round_money(monthly * contract_months),
            explanation="Local office costs supplied by the client (one-time items spread over 12 months, VAT excluded)",
            confidence=LOCAL_OFFICE_CONFIDENCE,
            is_already_included=False,
            is_mandatory=True,
            source=EnhancementSource.LOCAL_OFFICE,
            components=components,
        ),
        [],
    )
