"""Configuration schema models using Pydantic."""

from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .duration import DurationParseError, parse_duration, validate_duration_range

MIN_TTL_SECONDS = 10
MAX_TTL_SECONDS = 86400


class CurrencyProviderKind(str, Enum):
    """Supported currency conversion backends."""

    EXCHANGERATE_API = "exchangerate-api"
    EXCHANGERATE_HOST = "exchangerate-host"
    PAPAYA = "papaya"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


def _ttl_seconds(value: str, label: str) -> int:
    try:
        seconds = parse_duration(value)
        validate_duration_range(seconds, MIN_TTL_SECONDS, MAX_TTL_SECONDS, label=label)
        return seconds
    except DurationParseError as e:
        raise ValueError(str(e)) from e


class LegalDataConfig(BaseModel):
    """Location and naming of country legal documents."""

    data_dir: str = Field("data/legal", min_length=1, description="Directory holding legal JSON documents")
    file_prefix: str = Field("papaya_global_data_", description="File name prefix before the country code")
    aliases: Dict[str, str] = Field(
        default_factory=lambda: {"UK": "GB", "EL": "GR"},
        description="Non-standard country code to ISO code mapping",
    )

    @field_validator("data_dir")
    @classmethod
    def strip_data_dir(cls, v: str) -> str:
        """Strip whitespace from data_dir."""
        stripped = v.strip()
        if not stripped:
            raise ValueError("data_dir cannot be empty")
        return stripped

    @field_validator("aliases")
    @classmethod
    def upper_aliases(cls, v: Dict[str, str]) -> Dict[str, str]:
        """Normalize alias codes to upper case."""
        return {key.strip().upper(): value.strip().upper() for key, value in v.items()}


class CacheConfig(BaseModel):
    """Lifetimes and size cap of the enhancement cache."""

    enhancement_ttl: str = Field("30m", description="Lifetime of cached enhanced quotes")
    extraction_ttl: str = Field("1h", description="Lifetime of cached benefit extractions")
    baseline_ttl: str = Field("30m", description="Lifetime of cached legal baselines")
    max_entries: int = Field(100, ge=1, le=100000, description="Maximum entries per cache store")

    # Computed fields
    enhancement_ttl_seconds: Optional[int] = None
    extraction_ttl_seconds: Optional[int] = None
    baseline_ttl_seconds: Optional[int] = None

    @model_validator(mode="after")
    def compute_ttl_seconds(self):
        """Parse every TTL string into seconds."""
        self.enhancement_ttl_seconds = _ttl_seconds(self.enhancement_ttl, "enhancement_ttl")
        self.extraction_ttl_seconds = _ttl_seconds(self.extraction_ttl, "extraction_ttl")
        self.baseline_ttl_seconds = _ttl_seconds(self.baseline_ttl, "baseline_ttl")
        return self


class CurrencyConfig(BaseModel):
    """Currency conversion backend selection."""

    provider: CurrencyProviderKind = Field(
        CurrencyProviderKind.EXCHANGERATE_API, description="Conversion backend"
    )
    request_timeout: Optional[int] = Field(
        None, ge=1, le=60, description="HTTP timeout in seconds (backend default if unset)"
    )
    rate_ttl: Optional[str] = Field(None, description="Rate cache lifetime (backend default if unset)")
    api_key: Optional[str] = Field(None, description="Exchangerate-API key, usually from the environment")

    # Computed field
    rate_ttl_seconds: Optional[int] = None

    @model_validator(mode="after")
    def compute_rate_ttl(self):
        """Parse rate_ttl into seconds when set."""
        if self.rate_ttl is not None:
            self.rate_ttl_seconds = _ttl_seconds(self.rate_ttl, "rate_ttl")
        return self

    model_config = {"use_enum_values": True}


class EnhancementConfig(BaseModel):
    """Enhancement engine policies."""

    reasoning_max_attempts: int = Field(
        2, ge=1, le=5, description="Attempts per reasoning call before falling back"
    )
    severance_fallback_months: float = Field(
        3.0,
        ge=0,
        le=24,
        description="Severance months assumed when termination text is unparseable (0 disables)",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(LogFormat.KEY_VALUE, description="Log output format (json or key-value)")

    model_config = {"use_enum_values": True}


class EnhancerConfig(BaseModel):
    """Root configuration object for the quote enhancer."""

    environment: str = Field("development", description="Deployment environment name")
    legal_data: LegalDataConfig = Field(default_factory=LegalDataConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    currency: CurrencyConfig = Field(default_factory=CurrencyConfig)
    enhancement: EnhancementConfig = Field(default_factory=EnhancementConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
