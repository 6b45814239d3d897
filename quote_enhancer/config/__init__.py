"""Configuration management for the quote enhancer."""

from .duration import DurationParseError, parse_duration
from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .loader import load_config
from .models import (
    CacheConfig,
    CurrencyConfig,
    CurrencyProviderKind,
    EnhancementConfig,
    EnhancerConfig,
    LegalDataConfig,
    LogFormat,
    LoggingConfig,
    LogLevel,
)

__all__ = [
    # Loader functions
    "load_config",
    "load_environment_config",
    "parse_duration",
    # Configuration models
    "EnhancerConfig",
    "LegalDataConfig",
    "CacheConfig",
    "CurrencyConfig",
    "EnhancementConfig",
    "LoggingConfig",
    "EnvironmentConfig",
    # Enums
    "CurrencyProviderKind",
    "LogLevel",
    "LogFormat",
    # Exceptions
    "ConfigurationError",
    "DurationParseError",
]
