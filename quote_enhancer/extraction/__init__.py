"""Classification of provider quote line items into included benefits."""

from .extractor import ProviderInclusionsExtractor
from .patterns import categorize, is_fee

__all__ = ["ProviderInclusionsExtractor", "categorize", "is_fee"]
