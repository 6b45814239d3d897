"""Environment variable loading and validation."""

import os
from typing import Any, Dict, Optional

from .exceptions import ConfigurationError
from .models import CurrencyProviderKind, LogFormat, LogLevel


class EnvironmentConfig:
    """Environment variable configuration holder."""

    def __init__(
        self,
        legal_data_dir: Optional[str] = None,
        exchangerate_api_key: Optional[str] = None,
        currency_provider: Optional[str] = None,
        log_level: Optional[str] = None,
        log_format: Optional[str] = None,
        environment: Optional[str] = None,
    ):
        self.legal_data_dir = legal_data_dir
        self.exchangerate_api_key = exchangerate_api_key
        self.currency_provider = currency_provider
        self.log_level = log_level
        self.log_format = log_format
        self.environment = environment

    def as_overrides(self) -> Dict[str, Any]:
        """Return the set values as a nested config dictionary."""
        overrides: Dict[str, Any] = {}
        if self.environment:
            overrides["environment"] = self.environment
        if self.legal_data_dir:
            overrides.setdefault("legal_data", {})["data_dir"] = self.legal_data_dir
        if self.currency_provider:
            overrides.setdefault("currency", {})["provider"] = self.currency_provider
        if self.exchangerate_api_key:
            overrides.setdefault("currency", {})["api_key"] = self.exchangerate_api_key
        if self.log_level:
            overrides.setdefault("logging", {})["level"] = self.log_level
        if self.log_format:
            overrides.setdefault("logging", {})["format"] = self.log_format
        return overrides


def load_environment_config() -> EnvironmentConfig:
    """
    Load and validate environment variables.

    Optional environment variables:
    - LEGAL_DATA_DIR: Directory holding country legal documents
    - EXCHANGERATE_API_KEY: Key for the Exchangerate-API v6 endpoint
    - CURRENCY_PROVIDER: exchangerate-api, exchangerate-host or papaya
    - LOG_LEVEL: DEBUG, INFO, WARNING, ERROR or CRITICAL
    - LOG_FORMAT: json or key-value
    - ENVIRONMENT: Deployment environment name

    Returns:
        EnvironmentConfig with validated values

    Raises:
        ConfigurationError: If any variable holds an invalid value
    """
    errors = []

    log_level = os.getenv("LOG_LEVEL")
    log_format = os.getenv("LOG_FORMAT")
    currency_provider = os.getenv("CURRENCY_PROVIDER")

    if log_level:
        log_level = log_level.strip().upper()
        valid_levels = [level.value for level in LogLevel]
        if log_level not in valid_levels:
            errors.append(f"Invalid LOG_LEVEL: '{log_level}'. Must be one of: {', '.join(valid_levels)}")

    if log_format:
        log_format = log_format.strip().lower()
        valid_formats = [fmt.value for fmt in LogFormat]
        if log_format not in valid_formats:
            errors.append(f"Invalid LOG_FORMAT: '{log_format}'. Must be one of: {', '.join(valid_formats)}")

    if currency_provider:
        currency_provider = currency_provider.strip().lower()
        valid_providers = [kind.value for kind in CurrencyProviderKind]
        if currency_provider not in valid_providers:
            errors.append(
                f"Invalid CURRENCY_PROVIDER: '{currency_provider}'. Must be one of: {', '.join(valid_providers)}"
            )

    if errors:
        raise ConfigurationError(
            "Environment variable validation failed",
            errors=errors,
            source="environment",
            suggestions=[
                "Copy .env.example to .env and adjust the values",
                "Unset variables you do not need; every variable is optional",
            ],
        )

    return EnvironmentConfig(
        legal_data_dir=(os.getenv("LEGAL_DATA_DIR") or "").strip() or None,
        exchangerate_api_key=(os.getenv("EXCHANGERATE_API_KEY") or "").strip() or None,
        currency_provider=currency_provider or None,
        log_level=log_level or None,
        log_format=log_format or None,
        environment=(os.getenv("ENVIRONMENT") or "").strip() or None,
    )
