"""Factory functions for resolving provider normalizers."""

import logging
from typing import Any, Mapping, Union

from quote_enhancer.domain.models import NormalizedQuote, ProviderKind

from .base import BaseNormalizer
from .deel import DeelNormalizer
from .exceptions import UnsupportedProviderError
from .generic import RipplingNormalizer, SkuadNormalizer, VelocityNormalizer
from .oyster import OysterNormalizer
from .remote import RemoteNormalizer
from .rivermate import RivermateNormalizer

logger = logging.getLogger(__name__)

NORMALIZER_MAP = {
    ProviderKind.DEEL: DeelNormalizer,
    ProviderKind.REMOTE: RemoteNormalizer,
    ProviderKind.RIVERMATE: RivermateNormalizer,
    ProviderKind.OYSTER: OysterNormalizer,
    ProviderKind.RIPPLING: RipplingNormalizer,
    ProviderKind.SKUAD: SkuadNormalizer,
    ProviderKind.VELOCITY: VelocityNormalizer,
}


def resolve_provider(provider: Union[str, ProviderKind]) -> ProviderKind:
    """Resolve a provider identifier to a ProviderKind.

    Args:
        provider: Provider name (case-insensitive) or ProviderKind

    Returns:
        Matching ProviderKind

    Raises:
        UnsupportedProviderError: If the provider is not supported
    """
    if isinstance(provider, ProviderKind):
        return provider
    try:
        return ProviderKind(str(provider).strip().lower())
    except ValueError:
        supported = ", ".join(kind.value for kind in ProviderKind)
        raise UnsupportedProviderError(
            f"Unsupported provider: {provider}. Supported providers: {supported}",
            provider=str(provider),
        ) from None


def get_normalizer(provider: Union[str, ProviderKind]) -> BaseNormalizer:
    """Instantiate the normalizer for a provider.

    Raises:
        UnsupportedProviderError: If no normalizer exists for the provider
    """
    kind = resolve_provider(provider)
    normalizer_class = NORMALIZER_MAP.get(kind)
    if normalizer_class is None:
        raise UnsupportedProviderError(f"No normalizer registered for provider: {kind.value}", provider=kind.value)
    return normalizer_class()


def normalize(provider: Union[str, ProviderKind], raw_quote: Mapping[str, Any]) -> NormalizedQuote:
    """Normalize a raw provider quote.

    Dispatches on the provider kind only, never on the shape of the payload.

    Args:
        provider: Provider the quote came from
        raw_quote: Provider response payload

    Returns:
        NormalizedQuote

    Raises:
        UnsupportedProviderError: If the provider is not supported

    Example:
        >>> quote = normalize("oyster", {"salary": 1000, "currency": "EUR", "country": "Spain", "total": 1300})
        >>> quote.monthly_total
        1300.0
    """
    normalizer = get_normalizer(provider)
    if not isinstance(raw_quote, Mapping):
        raw_quote = {}
    normalized = normalizer.normalize(raw_quote)
    logger.debug(
        "Normalized provider quote",
        extra={
            "event": "normalizer.quote.normalized",
            "provider": normalized.provider,
            "monthly_total": normalized.monthly_total,
            "breakdown_keys": len(normalized.breakdown),
        },
    )
    return normalized
