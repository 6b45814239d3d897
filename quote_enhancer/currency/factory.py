"""Factory function for instantiating currency conversion backends."""

from typing import Callable, Optional

import httpx

from quote_enhancer.config.exceptions import ConfigurationError
from quote_enhancer.config.models import CurrencyConfig
from quote_enhancer.logging import get_logger

from .base import CurrencyProvider
from .exchangerate_api import ExchangerateApiProvider
from .exchangerate_host import ExchangerateHostProvider
from .papaya import PapayaProvider

logger = get_logger(__name__, component="currency")

PROVIDER_MAP = {
    "exchangerate-api": ExchangerateApiProvider,
    "exchangerate-host": ExchangerateHostProvider,
    "papaya": PapayaProvider,
}


def get_currency_provider(
    currency_config: Optional[CurrencyConfig] = None,
    client: Optional[httpx.AsyncClient] = None,
    clock: Optional[Callable[[], float]] = None,
) -> CurrencyProvider:
    """Instantiate the configured currency backend.

    Args:
        currency_config: Backend selection, timeout and rate TTL (defaults if None)
        client: Optional shared AsyncClient
        clock: Optional monotonic clock for the rate cache

    Returns:
        CurrencyProvider instance

    Raises:
        ConfigurationError: If the backend name is not supported

    Example:
        >>> provider = get_currency_provider(CurrencyConfig(provider="papaya"))
        >>> provider.get_name()
        'Papaya Global'
    """
    currency_config = currency_config or CurrencyConfig()
    kind = getattr(currency_config.provider, "value", currency_config.provider)
    provider_class = PROVIDER_MAP.get(kind)

    if provider_class is None:
        raise ConfigurationError(
            f"Unknown currency provider: {kind}",
            suggestions=[f"Supported providers: {', '.join(sorted(PROVIDER_MAP))}"],
        )

    kwargs = {
        "timeout": currency_config.request_timeout,
        "rate_ttl": currency_config.rate_ttl_seconds,
        "client": client,
        "clock": clock,
    }
    if provider_class is ExchangerateApiProvider:
        kwargs["api_key"] = currency_config.api_key

    logger.debug(
        f"Creating {provider_class.__name__}",
        extra={"event": "currency.provider.created", "backend": kind},
    )
    return provider_class(**kwargs)
