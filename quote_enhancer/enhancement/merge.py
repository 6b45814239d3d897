"""Merging of enhancement records and quote-type filtering."""

from typing import Dict, Iterable, Optional

from quote_enhancer.domain.models import (
    ALLOWANCE_KINDS,
    TERMINATION_KINDS,
    BenefitKind,
    EnhancementRecord,
    QuoteType,
)


def _positive(record: Optional[EnhancementRecord]) -> bool:
    return record is not None and not record.is_already_included and record.monthly_amount > 0


def merge_records(
    external: Optional[Dict[BenefitKind, EnhancementRecord]],
    deterministic: Dict[BenefitKind, EnhancementRecord],
) -> Dict[BenefitKind, EnhancementRecord]:
    """Merge externally computed records with deterministic ones.

    Per kind, a non-zero external delta wins; otherwise a non-zero
    deterministic delta is used so legally mandated items are never dropped;
    otherwise whichever record exists (external first) is kept.
    A notice-based termination_costs record is dropped when a severance or
    probation provision is present.
    """
    external = external or {}
    merged: Dict[BenefitKind, EnhancementRecord] = {}

    for kind in BenefitKind:
        ext = external.get(kind)
        det = deterministic.get(kind)
        if _positive(ext):
            merged[kind] = ext
        elif _positive(det):
            merged[kind] = det
        elif ext is not None:
            merged[kind] = ext
        elif det is not None:
            merged[kind] = det

    if BenefitKind.TERMINATION_COSTS in merged and (
        BenefitKind.SEVERANCE_PROVISION in merged or BenefitKind.PROBATION_PROVISION in merged
    ):
        del merged[BenefitKind.TERMINATION_COSTS]

    return merged


def excluded_for_quote_type(record: EnhancementRecord, quote_type: QuoteType) -> bool:
    """Whether a record is excluded in the given mode.

    Statutory-only quotes exclude every termination contingency and every
    non-mandatory allowance. All-inclusive quotes exclude nothing.
    """
    if quote_type != QuoteType.STATUTORY_ONLY:
        return False
    if record.kind in TERMINATION_KINDS:
        return True
    return record.kind in ALLOWANCE_KINDS and not record.is_mandatory


def filter_for_quote_type(
    records: Dict[BenefitKind, EnhancementRecord], quote_type: QuoteType
) -> Dict[BenefitKind, EnhancementRecord]:
    return {kind: record for kind, record in records.items() if not excluded_for_quote_type(record, quote_type)}


def total_enhancement(records: Iterable[EnhancementRecord]) -> float:
    """Sum of monthly amounts that are not already included."""
    return sum(record.counted_amount for record in records)
