"""Provider quote normalizers."""

from .base import BaseNormalizer, normalize_breakdown_key
from .deel import DeelNormalizer
from .exceptions import MalformedQuoteError, UnsupportedProviderError
from .factory import get_normalizer, normalize, resolve_provider
from .generic import CostListNormalizer, RipplingNormalizer, SkuadNormalizer, VelocityNormalizer
from .oyster import OysterNormalizer
from .quotes import compare_quotes, get_quote_summary, validate_normalized_quote
from .remote import RemoteNormalizer
from .rivermate import RivermateNormalizer

__all__ = [
    "BaseNormalizer",
    "CostListNormalizer",
    "DeelNormalizer",
    "MalformedQuoteError",
    "OysterNormalizer",
    "RemoteNormalizer",
    "RipplingNormalizer",
    "RivermateNormalizer",
    "SkuadNormalizer",
    "UnsupportedProviderError",
    "VelocityNormalizer",
    "compare_quotes",
    "get_normalizer",
    "get_quote_summary",
    "normalize",
    "normalize_breakdown_key",
    "resolve_provider",
    "validate_normalized_quote",
]
