"""Domain models shared across the enhancement pipeline."""

from .exceptions import QuoteEnhancementError
from .legal import (
    Allowances,
    BaselineItem,
    Bonuses,
    Contributions,
    LegalAvailability,
    LegalBaseline,
    LegalProfile,
    LegalRequirements,
    MandatorySalaries,
    TerminationCosts,
)
from .models import (
    ALLOWANCE_KINDS,
    COVERAGE_FOR_BENEFIT,
    TERMINATION_KINDS,
    BenefitKind,
    EnhancedQuote,
    EnhancementErrorRecord,
    EnhancementRecord,
    EnhancementSource,
    FormData,
    Frequency,
    IncludedBenefit,
    IncludedBenefitKind,
    LocalOfficeInfo,
    MonthlyCostBreakdown,
    MultiProviderResult,
    NormalizedQuote,
    OverlapAnalysis,
    ProviderComparison,
    ProviderKind,
    QuoteInput,
    QuoteType,
    RawProviderQuote,
    StandardizedBenefitData,
)

__all__ = [
    "ALLOWANCE_KINDS",
    "COVERAGE_FOR_BENEFIT",
    "TERMINATION_KINDS",
    "Allowances",
    "BaselineItem",
    "BenefitKind",
    "Bonuses",
    "Contributions",
    "EnhancedQuote",
    "EnhancementErrorRecord",
    "EnhancementRecord",
    "EnhancementSource",
    "FormData",
    "Frequency",
    "IncludedBenefit",
    "IncludedBenefitKind",
    "LegalAvailability",
    "LegalBaseline",
    "LegalProfile",
    "LegalRequirements",
    "LocalOfficeInfo",
    "MandatorySalaries",
    "MonthlyCostBreakdown",
    "MultiProviderResult",
    "NormalizedQuote",
    "OverlapAnalysis",
    "ProviderComparison",
    "ProviderKind",
    "QuoteEnhancementError",
    "QuoteInput",
    "QuoteType",
    "RawProviderQuote",
    "StandardizedBenefitData",
    "TerminationCosts",
]
