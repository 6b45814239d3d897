"""Base exception shared by every enhancement-pipeline error."""


class QuoteEnhancementError(Exception):
    """Base exception for all quote enhancement errors.

    Every subclass carries a stable ``code`` string. The multi-provider
    fan-out converts caught errors into per-provider error records using this
    code, so callers can branch on it without parsing messages.
    """

    code = "ENHANCEMENT_ERROR"

    def __init__(self, message: str, provider: str = "") -> None:
        """Initialize error.

        Args:
            message: Human-readable error message
            provider: Provider the error relates to, if known
        """
        super().__init__(message)
        self.message = message
        self.provider = provider
