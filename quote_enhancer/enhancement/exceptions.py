"""Custom exceptions for the enhancement engine."""

from quote_enhancer.domain.exceptions import QuoteEnhancementError


class NoLegalProfileError(QuoteEnhancementError):
    """No legal document exists for the quote's country.

    Fatal for that country; propagates to single-provider callers.
    """

    code = "NO_LEGAL_PROFILE"

    def __init__(self, message: str, provider: str = "", country_code: str = "") -> None:
        super().__init__(message, provider)
        self.country_code = country_code


class ReasoningServiceError(QuoteEnhancementError):
    """The reasoning service failed on every attempt.

    Triggers the deterministic fallback; only surfaces if that fails too.
    """

    code = "REASONING_SERVICE_ERROR"

    def __init__(self, message: str, provider: str = "", attempts: int = 0) -> None:
        super().__init__(message, provider)
        self.attempts = attempts


class InvalidEnhancedQuoteError(QuoteEnhancementError):
    """A computed EnhancedQuote violates its invariants.

    The quote is never returned or cached in that state.
    """

    code = "INVALID_ENHANCED_QUOTE"
