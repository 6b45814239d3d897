"""Currency conversion backends behind one CurrencyProvider interface."""

from .base import CurrencyProvider
from .exceptions import CurrencyConversionError
from .exchangerate_api import ExchangerateApiProvider
from .exchangerate_host import ExchangerateHostProvider
from .factory import PROVIDER_MAP, get_currency_provider
from .models import ConversionData, ConversionResult, CurrencyInfo
from .papaya import PapayaProvider, extract_rate
from .rates import RateCache, rate_key

__all__ = [
    "ConversionData",
    "ConversionResult",
    "CurrencyConversionError",
    "CurrencyInfo",
    "CurrencyProvider",
    "ExchangerateApiProvider",
    "ExchangerateHostProvider",
    "PROVIDER_MAP",
    "PapayaProvider",
    "RateCache",
    "extract_rate",
    "get_currency_provider",
    "rate_key",
]
