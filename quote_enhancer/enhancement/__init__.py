"""Enhancement engine: legal baselines, deltas, merging and comparison."""

from .calculator import DeltaResult, build_baseline, compute_deltas
from .comparison import generate_comparison
from .engine import EnhancementEngine, validate_enhanced_quote
from .exceptions import InvalidEnhancedQuoteError, NoLegalProfileError, ReasoningServiceError
from .local_office import build_local_office_record
from .merge import excluded_for_quote_type, filter_for_quote_type, merge_records, total_enhancement
from .monitor import PerformanceMonitor
from .reasoning import ReasoningService

__all__ = [
    "DeltaResult",
    "EnhancementEngine",
    "InvalidEnhancedQuoteError",
    "NoLegalProfileError",
    "PerformanceMonitor",
    "ReasoningService",
    "ReasoningServiceError",
    "build_baseline",
    "build_local_office_record",
    "compute_deltas",
    "excluded_for_quote_type",
    "filter_for_quote_type",
    "generate_comparison",
    "merge_records",
    "total_enhancement",
    "validate_enhanced_quote",
]
