"""Custom exceptions for quote normalizers."""

from quote_enhancer.domain.exceptions import QuoteEnhancementError


class UnsupportedProviderError(QuoteEnhancementError):
    """No normalizer exists for the requested provider kind.

    Fatal for that provider and never retried.
    """

    code = "UNSUPPORTED_PROVIDER"


class MalformedQuoteError(QuoteEnhancementError):
    """A normalized quote is missing provider, currency or country, or has no positive total."""

    code = "MALFORMED_QUOTE"
