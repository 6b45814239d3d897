"""Core domain models for quotes, extracted inclusions, and enhanced results.

This module defines the data structures used throughout the engine:
- RawProviderQuote / NormalizedQuote: tagged quote input variants
- StandardizedBenefitData: what a provider quote already includes
- FormData / LocalOfficeInfo: caller request data
- EnhancementRecord / EnhancedQuote: the enhancement result
- MultiProviderResult: fan-out result across providers
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

from quote_enhancer.utils.money import parse_money


class ProviderKind(str, Enum):
    """Supported EOR providers."""

    DEEL = "deel"
    REMOTE = "remote"
    RIVERMATE = "rivermate"
    OYSTER = "oyster"
    RIPPLING = "rippling"
    SKUAD = "skuad"
    VELOCITY = "velocity"


class QuoteType(str, Enum):
    """Enhancement modes."""

    ALL_INCLUSIVE = "all-inclusive"
    STATUTORY_ONLY = "statutory-only"


class BenefitKind(str, Enum):
    """Kinds of enhancement that can be layered on top of a provider quote.

    Values match the keys the reasoning service uses in its responses.
    """

    THIRTEENTH_SALARY = "thirteenth_salary"
    FOURTEENTH_SALARY = "fourteenth_salary"
    VACATION_BONUS = "vacation_bonus"
    SEVERANCE_PROVISION = "severance_provision"
    PROBATION_PROVISION = "probation_provision"
    TERMINATION_COSTS = "termination_costs"
    TRANSPORTATION_ALLOWANCE = "transportation_allowance"
    REMOTE_WORK_ALLOWANCE = "remote_work_allowance"
    MEAL_VOUCHERS = "meal_vouchers"
    EMPLOYER_CONTRIBUTIONS = "employer_contributions"
    MEDICAL_EXAM = "medical_exam"
    LOCAL_OFFICE_BENEFITS = "local_office_benefits"


# Kinds that are contract-termination contingencies rather than monthly obligations
TERMINATION_KINDS = frozenset(
    {
        BenefitKind.SEVERANCE_PROVISION,
        BenefitKind.PROBATION_PROVISION,
        BenefitKind.TERMINATION_COSTS,
    }
)

# Kinds that are optional unless the legal text flags them mandatory
ALLOWANCE_KINDS = frozenset(
    {
        BenefitKind.TRANSPORTATION_ALLOWANCE,
        BenefitKind.REMOTE_WORK_ALLOWANCE,
        BenefitKind.MEAL_VOUCHERS,
    }
)


class IncludedBenefitKind(str, Enum):
    """Fixed taxonomy for line items a provider quote already includes."""

    THIRTEENTH_SALARY = "thirteenth_salary"
    FOURTEENTH_SALARY = "fourteenth_salary"
    VACATION_BONUS = "vacation_bonus"
    TRANSPORT_ALLOWANCE = "transport_allowance"
    REMOTE_WORK_ALLOWANCE = "remote_work_allowance"
    MEAL_VOUCHERS = "meal_vouchers"
    SOCIAL_SECURITY = "social_security"
    HEALTH_INSURANCE = "health_insurance"


# Provider coverage that offsets each legally required enhancement
COVERAGE_FOR_BENEFIT: Dict[BenefitKind, IncludedBenefitKind] = {
    BenefitKind.THIRTEENTH_SALARY: IncludedBenefitKind.THIRTEENTH_SALARY,
    BenefitKind.FOURTEENTH_SALARY: IncludedBenefitKind.FOURTEENTH_SALARY,
    BenefitKind.VACATION_BONUS: IncludedBenefitKind.VACATION_BONUS,
    BenefitKind.TRANSPORTATION_ALLOWANCE: IncludedBenefitKind.TRANSPORT_ALLOWANCE,
    BenefitKind.REMOTE_WORK_ALLOWANCE: IncludedBenefitKind.REMOTE_WORK_ALLOWANCE,
    BenefitKind.MEAL_VOUCHERS: IncludedBenefitKind.MEAL_VOUCHERS,
    BenefitKind.EMPLOYER_CONTRIBUTIONS: IncludedBenefitKind.SOCIAL_SECURITY,
}


class Frequency(str, Enum):
    """Payment frequency of an included line item."""

    MONTHLY = "monthly"
    YEARLY = "yearly"


class EnhancementSource(str, Enum):
    """Which computation path produced an enhancement record."""

    REASONING = "reasoning"
    DETERMINISTIC = "deterministic"
    LOCAL_OFFICE = "local_office"


class RawProviderQuote(BaseModel):
    """A provider response exactly as the provider returned it."""

    kind: Literal["raw"] = "raw"
    provider: ProviderKind
    payload: Dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": True}


class NormalizedQuote(BaseModel):
    """Provider quote mapped onto the common shape.

    Produced once per raw quote by the normalizers. ``breakdown`` holds the
    recognized cost categories under provider-specific keys, and
    ``original_response`` keeps the raw payload for inclusion extraction.
    """

    kind: Literal["normalized"] = "normalized"
    provider: str = Field(..., description="Provider identifier")
    base_cost: float = Field(0.0, description="Monthly gross salary")
    currency: str = Field("", description="ISO currency code of all amounts")
    country: str = Field("", description="Country name or code")
    monthly_total: float = Field(0.0, description="Monthly employer cost")
    breakdown: Dict[str, float] = Field(default_factory=dict)
    original_response: Dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": True}


QuoteInput = Annotated[Union[RawProviderQuote, NormalizedQuote], Field(discriminator="kind")]


class IncludedBenefit(BaseModel):
    """One benefit category a provider quote already covers."""

    amount: float = Field(..., ge=0)
    frequency: Frequency = Frequency.MONTHLY
    description: Optional[str] = None

    model_config = {"frozen": True}

    @property
    def monthly_amount(self) -> float:
        """Amount expressed per month."""
        if self.frequency == Frequency.YEARLY:
            return self.amount / 12
        return self.amount


class StandardizedBenefitData(BaseModel):
    """Provider inclusions classified into the fixed benefit taxonomy."""

    provider: str
    base_salary: float
    currency: str
    country: str
    monthly_total: float
    included_benefits: Dict[IncludedBenefitKind, IncludedBenefit] = Field(default_factory=dict)
    total_monthly_benefits: float = 0.0
    extraction_confidence: float = Field(..., ge=0.0, le=1.0)
    extracted_at: datetime

    model_config = {"frozen": True}

    def covered_monthly(self, kind: IncludedBenefitKind) -> float:
        """Return the monthly amount covered for a category (0 if absent)."""
        benefit = self.included_benefits.get(kind)
        return benefit.monthly_amount if benefit else 0.0


def _parse_local_amount(value: Any) -> float:
    """Parse a caller-entered local office amount ("N/A" and "no" count as 0)."""
    if isinstance(value, str) and value.strip().lower() in ("", "n/a", "no", "none"):
        return 0.0
    return max(0.0, parse_money(value))


class LocalOfficeInfo(BaseModel):
    """Local office costs supplied by the caller.

    All amounts are expressed in ``currency``. Recurring fields are monthly,
    the medical test, drug test and background check are one-time costs.
    """

    currency: Optional[str] = None
    meal_voucher: float = 0.0
    transportation: float = 0.0
    wfh: float = 0.0
    health_insurance: float = 0.0
    monthly_payments_to_local_office: float = 0.0
    vat: float = 0.0
    pre_employment_medical_test: float = 0.0
    drug_test: float = 0.0
    background_check: float = 0.0

    @field_validator(
        "meal_voucher",
        "transportation",
        "wfh",
        "health_insurance",
        "monthly_payments_to_local_office",
        "vat",
        "pre_employment_medical_test",
        "drug_test",
        "background_check",
        mode="before",
    )
    @classmethod
    def parse_amount(cls, v: Any) -> float:
        """Accept numbers or formatted strings."""
        return _parse_local_amount(v)

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, v: Optional[str]) -> Optional[str]:
        """Normalize currency code to upper case."""
        if v is None:
            return None
        stripped = v.strip().upper()
        return stripped or None


class FormData(BaseModel):
    """Request data describing the employee being quoted."""

    country: str = Field(..., min_length=1, description="Country name or ISO code")
    base_salary: float = Field(0.0, ge=0, description="Monthly base salary")
    currency: str = Field("", description="Currency of the base salary")
    contract_duration: int = Field(12, ge=1, description="Contract length in months")
    employment_type: str = Field("full-time")
    quote_type: QuoteType = QuoteType.ALL_INCLUSIVE
    local_office_info: Optional[LocalOfficeInfo] = None

    @field_validator("country")
    @classmethod
    def strip_country(cls, v: str) -> str:
        """Strip whitespace from country."""
        stripped = v.strip()
        if not stripped:
            raise ValueError("country cannot be empty or whitespace-only")
        return stripped

    @field_validator("base_salary", mode="before")
    @classmethod
    def parse_salary(cls, v: Any) -> float:
        """Accept formatted salary strings such as "5,000"."""
        return parse_money(v)

    @field_validator("contract_duration", mode="before")
    @classmethod
    def parse_contract_duration(cls, v: Any) -> int:
        """Parse contract months, defaulting to 12 and flooring at 1."""
        if v is None or v == "":
            return 12
        try:
            months = int(float(v))
        except (TypeError, ValueError):
            return 12
        return max(1, months)

    @field_validator("employment_type")
    @classmethod
    def default_employment_type(cls, v: str) -> str:
        """Fall back to full-time for blank values."""
        return v.strip() or "full-time"

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, v: str) -> str:
        """Normalize currency code to upper case."""
        return v.strip().upper()


class EnhancementRecord(BaseModel):
    """One enhancement layered on top of a provider quote.

    ``monthly_amount`` is the delta between the legally required monthly
    amount and what the provider already covers. Records flagged
    ``is_already_included`` contribute nothing to the total.
    """

    kind: BenefitKind
    monthly_amount: float = 0.0
    yearly_amount: float = 0.0
    total_amount: float = 0.0
    explanation: str = ""
    confidence: float = 0.5
    is_already_included: bool = False
    is_mandatory: bool = True
    source: EnhancementSource = EnhancementSource.DETERMINISTIC
    components: Dict[str, float] = Field(default_factory=dict)

    model_config = {"frozen": True}

    @property
    def counted_amount(self) -> float:
        """Monthly amount that counts toward the enhancement total."""
        return 0.0 if self.is_already_included else self.monthly_amount


class MonthlyCostBreakdown(BaseModel):
    """Monthly totals of an enhanced quote."""

    base_cost: float
    enhancements: float
    total: float

    model_config = {"frozen": True}


class OverlapAnalysis(BaseModel):
    """How provider coverage relates to legal requirements."""

    provider_coverage: List[str] = Field(default_factory=list)
    missing_requirements: List[str] = Field(default_factory=list)
    double_counting_risks: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)

    model_config = {"frozen": True}


class EnhancedQuote(BaseModel):
    """Validated enhancement result for one provider quote."""

    provider: str
    base_quote: NormalizedQuote
    quote_type: QuoteType
    enhancements: Dict[BenefitKind, EnhancementRecord] = Field(default_factory=dict)
    total_enhancement: float
    final_total: float
    monthly_cost_breakdown: MonthlyCostBreakdown
    overall_confidence: float
    explanations: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    overlap_analysis: OverlapAnalysis = Field(default_factory=OverlapAnalysis)
    calculated_at: datetime
    base_currency: str

    model_config = {"frozen": True}


class EnhancementErrorRecord(BaseModel):
    """Per-provider error captured by the multi-provider fan-out."""

    code: str
    message: str
    provider: str


class ProviderComparison(BaseModel):
    """Cost comparison across successfully enhanced providers."""

    cheapest: Optional[str] = None
    most_expensive: Optional[str] = None
    average_cost: float = 0.0
    provider_totals: Dict[str, float] = Field(default_factory=dict)
    recommendations: List[str] = Field(default_factory=list)


class MultiProviderResult(BaseModel):
    """Result of enhancing every provider quote for one request."""

    enhancements: Dict[str, EnhancedQuote] = Field(default_factory=dict)
    comparison: ProviderComparison = Field(default_factory=ProviderComparison)
    processing_time: float = Field(0.0, description="Wall time in milliseconds")
    errors: Dict[str, List[EnhancementErrorRecord]] = Field(default_factory=dict)
