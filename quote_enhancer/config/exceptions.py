"""Configuration errors raised by the loader, environment and CLI inputs."""

from pathlib import Path
from typing import Iterable, Optional, Union

from quote_enhancer.domain.exceptions import QuoteEnhancementError


class ConfigurationError(QuoteEnhancementError):
    """
    Invalid configuration file, environment variable or input file.

    Every problem found in one validation pass is collected in ``errors``;
    str() renders the message, the numbered errors and any suggestions.

    Attributes:
        errors: Specific validation problems
        suggestions: Hints for fixing them
        source: File path or "environment" the problem came from
    """

    code = "CONFIGURATION_ERROR"

    def __init__(
        self,
        message: str,
        errors: Optional[Iterable[str]] = None,
        suggestions: Optional[Iterable[str]] = None,
        source: Optional[Union[str, Path]] = None,
    ):
        self.errors = list(errors or [])
        self.suggestions = list(suggestions or [])
        self.source = str(source) if source is not None else None
        super().__init__(message)

    def __str__(self) -> str:
        lines = [self.message if self.source is None else f"{self.message} ({self.source})"]

        if self.errors:
            lines.append("\nValidation Errors:")
            lines.extend(f"  {i}. {error}" for i, error in enumerate(self.errors, 1))

        if self.suggestions:
            lines.append("\nSuggestions:")
            lines.extend(f"  - {suggestion}" for suggestion in self.suggestions)

        return "\n".join(lines)
