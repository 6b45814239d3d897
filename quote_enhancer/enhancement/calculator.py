"""Deterministic legal baseline and delta computation.

Everything here is a pure function of its inputs; no external service is
called. All monetary results are rounded half-up to 2 decimals.

Baseline formulas (monthly):
    thirteenth_salary      = base * multiplier_13th            (1/12 when mandatory)
    fourteenth_salary      = base * multiplier_14th
    vacation_bonus         = base * pct / 100 / 12
    severance_provision    = severance_months * base / contract_months
    probation_provision    = (probation_days / 30) * base / contract_months
    termination_costs      = (notice_days / 30) * base / contract_months
                             (only when neither severance nor probation applies)
    allowances             = legally defined monthly amount
    employer_contributions = base * sum(employer rates) / 100
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from quote_enhancer.domain.legal import BaselineItem, LegalBaseline, LegalRequirements
from quote_enhancer.domain.models import (
    ALLOWANCE_KINDS,
    COVERAGE_FOR_BENEFIT,
    BenefitKind,
    EnhancementRecord,
    EnhancementSource,
    OverlapAnalysis,
    QuoteType,
    StandardizedBenefitData,
)
from quote_enhancer.utils.money import round_money

DEFAULT_CONFIDENCE = 0.8
FALLBACK_CONFIDENCE = 0.4
SEVERANCE_FALLBACK_WARNING = "Severance could not be determined from legal data; conservative fallback applied"
# Coverage above required by this factor is reported as a double-counting risk
OVERCOVERAGE_TOLERANCE = 1.05


@dataclass
class DeltaResult:
    """
    Per-benefit deltas for one quote.

    Attributes:
        records: Enhancement records keyed by benefit kind
        overlap: Coverage analysis against the legal baseline
        warnings: Data-quality notices
        confidence: Overall confidence reported by the producer, if any
        source: Computation path that produced the records
    """

    records: Dict[BenefitKind, EnhancementRecord] = field(default_factory=dict)
    overlap: OverlapAnalysis = field(default_factory=OverlapAnalysis)
    warnings: List[str] = field(default_factory=list)
    confidence: Optional[float] = None
    source: EnhancementSource = EnhancementSource.DETERMINISTIC


def _monthly_share(amount: float, contract_months: int) -> float:
    return amount / max(1, contract_months)


def build_baseline(
    requirements: LegalRequirements,
    base_salary: float,
    contract_months: int,
    quote_type: QuoteType,
    country_code: str = "",
    currency: str = "",
    severance_fallback_months: float = 3.0,
) -> LegalBaseline:
    """Compute the legally required monthly amounts from parsed requirements.

    When a legal document yields neither severance nor probation, a
    severance of ``severance_fallback_months`` salaries over the contract is
    assumed at reduced confidence. A fallback of 0 disables this.

    Args:
        requirements: Parsed legal requirements
        base_salary: Monthly base salary
        contract_months: Contract length in months (at least 1)
        quote_type: Enhancement mode recorded on the baseline
        country_code: ISO country code recorded on the baseline
        currency: Currency of base_salary and of allowance amounts
        severance_fallback_months: Fallback severance in months of salary

    Returns:
        LegalBaseline with one item per applicable benefit kind
    """
    contract_months = max(1, contract_months)
    items: Dict[BenefitKind, BaselineItem] = {}
    warnings: List[str] = []

    def add(kind: BenefitKind, amount: float, **kwargs) -> None:
        amount = round_money(amount)
        if amount > 0:
            items[kind] = BaselineItem(kind=kind, monthly_amount=amount, **kwargs)

    salaries = requirements.mandatory_salaries
    if salaries.has_13th_salary:
        multiplier = salaries.monthly_multiplier_13th or 1 / 12
        add(
            BenefitKind.THIRTEENTH_SALARY,
            base_salary * multiplier,
            formula="base_salary / 12",
            explanation="Mandatory 13th salary accrued monthly",
        )
    if salaries.has_14th_salary:
        multiplier = salaries.monthly_multiplier_14th or 1 / 12
        add(
            BenefitKind.FOURTEENTH_SALARY,
            base_salary * multiplier,
            formula="base_salary / 12",
            explanation="Mandatory 14th salary accrued monthly",
        )

    vacation_pct = requirements.bonuses.vacation_bonus_percentage
    if vacation_pct:
        add(
            BenefitKind.VACATION_BONUS,
            base_salary * vacation_pct / 100 / 12,
            formula=f"base_salary * {vacation_pct}% / 12",
            explanation=f"Vacation bonus of {vacation_pct}% of monthly salary, accrued monthly",
        )

    termination = requirements.termination_costs
    severance = _monthly_share(termination.severance_months * base_salary, contract_months)
    probation = _monthly_share(termination.probation_period_days / 30 * base_salary, contract_months)
    if severance <= 0 and probation <= 0 and severance_fallback_months > 0:
        add(
            BenefitKind.SEVERANCE_PROVISION,
            _monthly_share(severance_fallback_months * base_salary, contract_months),
            formula=f"{severance_fallback_months} * base_salary / contract_months",
            explanation=(
                f"Severance not stated in legal data; assuming {severance_fallback_months:g} months "
                f"of salary over {contract_months} months"
            ),
            confidence=FALLBACK_CONFIDENCE,
        )
        # Statutory-only results never carry termination records
        if quote_type != QuoteType.STATUTORY_ONLY:
            warnings.append(SEVERANCE_FALLBACK_WARNING)
    else:
        add(
            BenefitKind.SEVERANCE_PROVISION,
            severance,
            formula="severance_months * base_salary / contract_months",
            explanation=f"{termination.severance_months:g} months of severance spread over {contract_months} months",
        )
        add(
            BenefitKind.PROBATION_PROVISION,
            probation,
            formula="(probation_days / 30) * base_salary / contract_months",
            explanation=f"{termination.probation_period_days}-day probation provision spread over {contract_months} months",
        )

    if BenefitKind.SEVERANCE_PROVISION not in items and BenefitKind.PROBATION_PROVISION not in items:
        add(
            BenefitKind.TERMINATION_COSTS,
            _monthly_share(termination.notice_period_days / 30 * base_salary, contract_months),
            formula="(notice_days / 30) * base_salary / contract_months",
            explanation=f"{termination.notice_period_days}-day notice period provision",
        )

    allowances = requirements.allowances
    for kind, amount, mandatory in (
        (BenefitKind.TRANSPORTATION_ALLOWANCE, allowances.transportation_amount, allowances.transportation_mandatory),
        (BenefitKind.REMOTE_WORK_ALLOWANCE, allowances.remote_work_amount, allowances.remote_work_mandatory),
        (BenefitKind.MEAL_VOUCHERS, allowances.meal_voucher_amount, allowances.meal_voucher_mandatory),
    ):
        if amount:
            add(
                kind,
                amount,
                mandatory=mandatory,
                formula="legally_defined_amount",
                explanation=f"{'Mandatory' if mandatory else 'Customary'} allowance of {round_money(amount)} {currency}".strip(),
            )

    rates = requirements.contributions.employer_rates
    if rates:
        components = {key: round_money(base_salary * rate / 100) for key, rate in sorted(rates.items())}
        total_rate = sum(rates.values())
        add(
            BenefitKind.EMPLOYER_CONTRIBUTIONS,
            base_salary * total_rate / 100,
            formula=f"base_salary * {round(total_rate, 4)}%",
            explanation=f"Employer contributions totalling {round(total_rate, 4)}% of salary",
            components=components,
        )

    return LegalBaseline(
        country_code=country_code,
        currency=currency,
        base_salary_monthly=base_salary,
        contract_months=contract_months,
        quote_type=quote_type,
        items=items,
        source="deterministic",
        warnings=warnings,
    )


def compute_deltas(
    baseline: LegalBaseline,
    extracted: StandardizedBenefitData,
    contract_months: int,
    source: EnhancementSource = EnhancementSource.DETERMINISTIC,
) -> DeltaResult:
    """Subtract provider coverage from the legal baseline.

    delta = max(0, required - covered). A requirement the provider fully
    covers yields a record flagged is_already_included with amount 0.

    Args:
        baseline: Legally required monthly amounts
        extracted: What the provider quote already includes
        contract_months: Contract length used for total_amount
        source: Source recorded on each enhancement record

    Returns:
        DeltaResult with records and a coverage analysis
    """
    records: Dict[BenefitKind, EnhancementRecord] = {}
    coverage: List[str] = []
    missing: List[str] = []
    risks: List[str] = []
    recommendations: List[str] = []

    for kind, item in baseline.items.items():
        required = item.monthly_amount
        coverage_kind = COVERAGE_FOR_BENEFIT.get(kind)
        covered = extracted.covered_monthly(coverage_kind) if coverage_kind else 0.0
        delta = round_money(max(0.0, required - covered))
        already_included = required > 0 and covered >= required

        if covered > 0:
            coverage.append(f"{kind.value}: provider covers {round_money(covered)} of {required} required")
        if delta > 0:
            missing.append(f"{kind.value}: {delta} per month not covered")
        if required > 0 and covered > required * OVERCOVERAGE_TOLERANCE:
            risks.append(
                f"{kind.value}: provider covers {round_money(covered)}, more than the {required} legally required"
            )

        if already_included:
            explanation = f"{item.explanation}; already included in provider quote".lstrip("; ")
        elif covered > 0:
            explanation = f"{item.explanation}; provider covers {round_money(covered)} of {required}".lstrip("; ")
        else:
            explanation = item.explanation

        records[kind] = EnhancementRecord(
            kind=kind,
            monthly_amount=0.0 if already_included else delta,
            yearly_amount=0.0 if already_included else round_money(delta * 12),
            total_amount=0.0 if already_included else round_money(delta * contract_months),
            explanation=explanation,
            confidence=item.confidence,
            is_already_included=already_included,
            is_mandatory=item.mandatory,
            source=source,
            components=dict(item.components),
        )

    if missing:
        recommendations.append("Confirm with the provider whether the missing statutory items are billed separately")
    if risks:
        recommendations.append("Review provider line items that exceed legal requirements before adding enhancements")
    if any(kind in ALLOWANCE_KINDS and not records[kind].is_mandatory for kind in records):
        recommendations.append("Customary allowances are excluded from statutory-only quotes")

    return DeltaResult(
        records=records,
        overlap=OverlapAnalysis(
            provider_coverage=coverage,
            missing_requirements=missing,
            double_counting_risks=risks,
            recommendations=recommendations,
        ),
        warnings=list(baseline.warnings),
        source=source,
    )
