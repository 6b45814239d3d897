"""Custom exceptions for currency conversion backends."""

from quote_enhancer.domain.exceptions import QuoteEnhancementError


class CurrencyConversionError(QuoteEnhancementError):
    """A rate could not be fetched or parsed.

    Raised inside backends only. CurrencyProvider.convert_currency() wraps it
    into an unsuccessful ConversionResult, so callers never see it.
    """

    code = "CURRENCY_CONVERSION_ERROR"

    def __init__(self, message: str, status_code: int = 0, url: str = "") -> None:
        """Initialize conversion error.

        Args:
            message: Human-readable error message
            status_code: HTTP status code, if the failure was an HTTP error
            url: URL that failed, if any
        """
        super().__init__(message)
        self.status_code = status_code
        self.url = url
