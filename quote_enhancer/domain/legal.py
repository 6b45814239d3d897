"""Legal requirement, legal profile, and legal baseline models.

All numeric fields are non-negative and percentages are expressed on a
0-100 scale. The parsers clamp their output so these constraints hold for
any input text.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from .models import BenefitKind, QuoteType


class TerminationCosts(BaseModel):
    """Termination-related durations."""

    notice_period_days: int = Field(0, ge=0)
    severance_months: float = Field(0.0, ge=0)
    probation_period_days: int = Field(0, ge=0)


class MandatorySalaries(BaseModel):
    """Extra statutory salary payments."""

    has_13th_salary: bool = False
    has_14th_salary: bool = False
    monthly_multiplier_13th: Optional[float] = Field(None, ge=0)
    monthly_multiplier_14th: Optional[float] = Field(None, ge=0)


class Bonuses(BaseModel):
    """Statutory bonuses expressed as a share of annual salary."""

    vacation_bonus_percentage: Optional[float] = Field(None, ge=0, le=100)


class Allowances(BaseModel):
    """Monthly allowance amounts defined in the legal document.

    ``currency`` is the currency code detected next to the amounts in the
    legal text, or None when the text carries no code.
    """

    meal_voucher_amount: Optional[float] = Field(None, ge=0)
    meal_voucher_mandatory: bool = False
    transportation_amount: Optional[float] = Field(None, ge=0)
    transportation_mandatory: bool = False
    remote_work_amount: Optional[float] = Field(None, ge=0)
    remote_work_mandatory: bool = False
    currency: Optional[str] = None


class Contributions(BaseModel):
    """Contribution rates keyed by normalized description."""

    employer_rates: Dict[str, float] = Field(default_factory=dict)
    employee_rates: Dict[str, float] = Field(default_factory=dict)

    @field_validator("employer_rates", "employee_rates")
    @classmethod
    def validate_rates(cls, v: Dict[str, float]) -> Dict[str, float]:
        """Ensure every rate is a percentage between 0 and 100."""
        for key, rate in v.items():
            if not 0 <= rate <= 100:
                raise ValueError(f"Contribution rate for '{key}' must be between 0 and 100, got: {rate}")
        return v

    @property
    def employer_total(self) -> float:
        """Sum of employer contribution rates."""
        return sum(self.employer_rates.values())


class LegalRequirements(BaseModel):
    """Structured requirements parsed from a country legal document."""

    termination_costs: TerminationCosts = Field(default_factory=TerminationCosts)
    mandatory_salaries: MandatorySalaries = Field(default_factory=MandatorySalaries)
    bonuses: Bonuses = Field(default_factory=Bonuses)
    allowances: Allowances = Field(default_factory=Allowances)
    contributions: Contributions = Field(default_factory=Contributions)


class LegalAvailability(BaseModel):
    """Which legal sections a country document carries."""

    termination: bool = False
    payroll: bool = False
    contributions: bool = False
    common_benefits: bool = False
    remote_work: bool = False
    leave: bool = False


class LegalProfile(BaseModel):
    """Compact per-country profile of mandatory costs for one request shape."""

    id: str
    country_code: str
    country_name: str
    quote_type: QuoteType
    employment_type: str
    contract_months: int = Field(..., ge=1)
    requirements: LegalRequirements
    summary: str
    formulas: str

    model_config = {"frozen": True}


class BaselineItem(BaseModel):
    """Legally required monthly amount for one benefit kind.

    This is the requirement before provider coverage is subtracted.
    """

    kind: BenefitKind
    monthly_amount: float = Field(0.0, ge=0)
    mandatory: bool = True
    formula: str = ""
    explanation: str = ""
    confidence: float = Field(0.8, ge=0.0, le=1.0)
    components: Dict[str, float] = Field(default_factory=dict)

    model_config = {"frozen": True}


class LegalBaseline(BaseModel):
    """Monthly legal baseline for a country, salary and contract shape."""

    country_code: str
    currency: str
    base_salary_monthly: float
    contract_months: int
    quote_type: QuoteType
    items: Dict[BenefitKind, BaselineItem] = Field(default_factory=dict)
    source: str = "deterministic"
    warnings: List[str] = Field(default_factory=list)

    model_config = {"frozen": True}

    @property
    def total_monthly(self) -> float:
        """Sum of all baseline items."""
        return sum(item.monthly_amount for item in self.items.values())
