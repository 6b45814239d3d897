"""Reasoning service boundary.

The engine can delegate two computations to an external asynchronous
reasoning service: per-quote enhancement deltas and a legal baseline
pre-pass. This module defines the abstract interface, the payloads sent and
the Pydantic models every response is validated against. A response that
fails validation counts as a failed attempt.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from quote_enhancer.domain.legal import LegalBaseline, LegalProfile
from quote_enhancer.domain.models import NormalizedQuote, QuoteType, StandardizedBenefitData


class ReasoningService(ABC):
    """Abstract asynchronous reasoning service.

    Implementations wrap whatever model or API performs the reasoning. Both
    compute methods take a JSON-compatible payload and return the decoded
    JSON response; any exception they raise is treated as a failed attempt.
    """

    @abstractmethod
    async def compute_enhancements(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Compute per-benefit deltas for one quote (see build_enhancement_payload)."""
        pass

    @abstractmethod
    async def build_legal_baseline(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Compute the legal baseline for one country (see build_baseline_payload)."""
        pass

    async def health_check(self) -> bool:
        return True


class ReasoningEnhancementItem(BaseModel):
    """One benefit in a reasoning response; monthly_amount wins over amount."""

    monthly_amount: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    amount: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    explanation: str = ""
    confidence: float = Field(0.7, ge=0.0, le=1.0)
    already_included: bool = False
    mandatory: Optional[bool] = None

    @property
    def resolved_monthly(self) -> float:
        if self.monthly_amount is not None:
            return self.monthly_amount
        return self.amount or 0.0


class ReasoningAnalysis(BaseModel):
    provider_coverage: List[str] = Field(default_factory=list)
    missing_requirements: List[str] = Field(default_factory=list)
    double_counting_risks: List[str] = Field(default_factory=list)


class ReasoningResponse(BaseModel):
    """Validated compute_enhancements() response."""

    enhancements: Dict[str, ReasoningEnhancementItem] = Field(default_factory=dict)
    analysis: ReasoningAnalysis = Field(default_factory=ReasoningAnalysis)
    confidence_scores: Dict[str, float] = Field(default_factory=dict)
    warnings: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


class PrepassBaselineItem(BaseModel):
    """One legally required item from the baseline pre-pass."""

    key: str = Field(..., min_length=1)
    name: str = ""
    category: str = ""
    mandatory: bool = True
    formula: str = ""
    monthly_amount_local: float = Field(..., ge=0, allow_inf_nan=False)


class PrepassBaselineResponse(BaseModel):
    """Validated build_legal_baseline() response."""

    items: List[PrepassBaselineItem] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


def build_enhancement_payload(
    provider: str,
    quote: NormalizedQuote,
    quote_type: QuoteType,
    contract_months: int,
    extracted: StandardizedBenefitData,
    profile: LegalProfile,
) -> Dict[str, Any]:
    return {
        "provider": provider,
        "base_quote": quote.model_dump(mode="json", exclude={"original_response"}),
        "quote_type": quote_type.value,
        "contract_duration_months": contract_months,
        "extracted_benefits": extracted.model_dump(mode="json"),
        "legal_profile": {
            "id": profile.id,
            "country_code": profile.country_code,
            "country_name": profile.country_name,
            "summary": profile.summary,
            "formulas": profile.formulas,
        },
    }


def build_baseline_payload(
    profile: LegalProfile,
    base_salary: float,
    currency: str,
    legal_text: str,
    legal_currency: Optional[str],
    deterministic_baseline: Optional[LegalBaseline] = None,
) -> Dict[str, Any]:
    """Build the legal baseline pre-pass payload.

    Amounts in the response are expected in ``currency``.
    """
    payload: Dict[str, Any] = {
        "country_code": profile.country_code,
        "country_name": profile.country_name,
        "base_salary_monthly": base_salary,
        "currency": currency,
        "contract_months": profile.contract_months,
        "quote_type": profile.quote_type.value,
        "employment_type": profile.employment_type,
        "legal_profile": {"summary": profile.summary, "formulas": profile.formulas},
        "legal_text": legal_text,
        "legal_currency": legal_currency,
    }
    if deterministic_baseline is not None:
        payload["reference_baseline"] = {
            kind.value: item.monthly_amount for kind, item in deterministic_baseline.items.items()
        }
    return payload
