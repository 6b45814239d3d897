"""Base class for currency conversion backends.

Every backend implements one contract, convert_currency(), which never
raises: failures are returned as ConversionResult(success=False, error=...).
Backends only implement _fetch_rate() for a single currency pair; caching,
in-flight de-duplication and short-circuits live here.
"""

import math
import re
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

import httpx

from quote_enhancer.logging import get_logger

from .exceptions import CurrencyConversionError
from .models import ConversionData, ConversionResult, CurrencyInfo
from .rates import RateCache, rate_key

logger = get_logger(__name__, component="currency")

_CURRENCY_CODE = re.compile(r"^[A-Z]{3}$")


class CurrencyProvider(ABC):
    """Base class for all currency conversion backends.

    Attributes:
        timeout: HTTP request timeout in seconds
        rates: Pair-keyed TTL rate cache owned by this backend
    """

    name = "base"
    DEFAULT_TIMEOUT = 5.0
    DEFAULT_RATE_TTL = 600.0

    def __init__(
        self,
        timeout: Optional[float] = None,
        rate_ttl: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        """Initialize backend.

        Args:
            timeout: HTTP request timeout in seconds (backend default if None)
            rate_ttl: Rate cache lifetime in seconds (backend default if None)
            client: Shared AsyncClient; a short-lived client is opened per
                request when omitted
            clock: Monotonic clock used by the rate cache
        """
        self.timeout = timeout if timeout is not None else self.DEFAULT_TIMEOUT
        self.rates = RateCache(rate_ttl if rate_ttl is not None else self.DEFAULT_RATE_TTL, clock=clock)
        self._client = client

    def get_name(self) -> str:
        return self.name

    async def convert_currency(self, amount: float, source_currency: str, target_currency: str) -> ConversionResult:
        """Convert an amount between two currencies.

        Same-currency pairs return rate "1" without a network call. Negative
        amounts return target_amount -1.

        Args:
            amount: Amount in source currency
            source_currency: ISO 4217 source code
            target_currency: ISO 4217 target code

        Returns:
            ConversionResult; success is False on any failure
        """
        source = (source_currency or "").strip().upper()
        target = (target_currency or "").strip().upper()

        if source == target:
            return self._success("1", source, target, amount, amount)

        for code in (source, target):
            if not _CURRENCY_CODE.match(code):
                return ConversionResult(success=False, error=f"Invalid currency code: '{code}'")

        if amount < 0:
            return self._success("0", source, target, amount, -1)

        try:
            rate = await self.rates.get_or_fetch(rate_key(source, target), lambda: self._fetch_rate(source, target))
        except CurrencyConversionError as e:
            logger.warning(
                f"{self.name} conversion {source}->{target} failed: {e.message}",
                extra={"event": "currency.rate.failed", "backend": self.name, "pair": rate_key(source, target)},
            )
            return ConversionResult(success=False, error=e.message)
        except Exception as e:
            logger.error(
                f"Unexpected error converting {source}->{target} with {self.name}: {e}",
                exc_info=True,
                extra={"event": "currency.rate.error", "backend": self.name, "pair": rate_key(source, target)},
            )
            return ConversionResult(success=False, error=f"Unknown error occurred with {self.name}: {e}")

        return self._success(self._format_rate(rate), source, target, amount, amount * rate)

    @abstractmethod
    async def _fetch_rate(self, source: str, target: str) -> float:
        """Fetch the rate for one pair.

        Implementations must return a finite positive rate or raise
        CurrencyConversionError.
        """
        pass

    async def _get(self, url: str, params: Optional[Dict[str, Any]] = None, headers: Optional[Dict[str, str]] = None) -> httpx.Response:
        """Issue a GET request and translate transport and status errors.

        Raises:
            CurrencyConversionError: On timeout, connection failure or non-2xx status
        """
        request_headers = {"Accept": "application/json"}
        request_headers.update(headers or {})
        try:
            if self._client is not None:
                response = await self._client.get(url, params=params, headers=request_headers, timeout=self.timeout)
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.get(url, params=params, headers=request_headers, timeout=self.timeout)
        except httpx.TimeoutException as e:
            raise CurrencyConversionError(f"{self.name} request timed out after {self.timeout}s", url=url) from e
        except httpx.HTTPError as e:
            raise CurrencyConversionError(f"{self.name} request failed: {e}", url=url) from e

        if not response.is_success:
            raise CurrencyConversionError(
                f"{self.name} error: {response.status_code} - {response.text[:200]}",
                status_code=response.status_code,
                url=url,
            )

        logger.debug(
            f"{self.name} responded {response.status_code}",
            extra={"event": "currency.rate.fetched", "backend": self.name, "status_code": response.status_code},
        )
        return response

    def _json(self, response: httpx.Response) -> Dict[str, Any]:
        try:
            body = response.json()
        except ValueError as e:
            raise CurrencyConversionError(f"{self.name} returned malformed JSON") from e
        if not isinstance(body, dict):
            raise CurrencyConversionError(f"{self.name} returned an unexpected body")
        return body

    def validate_rate(self, rate: Any, source: str, target: str) -> float:
        """Return rate as float if finite and positive.

        Raises:
            CurrencyConversionError: For missing, non-finite or non-positive rates
        """
        if isinstance(rate, bool) or not isinstance(rate, (int, float)):
            raise CurrencyConversionError(f"{self.name} returned no rate for {source} -> {target}")
        if not math.isfinite(rate) or rate <= 0:
            raise CurrencyConversionError(f"{self.name} returned an invalid rate for {source} -> {target}: {rate}")
        return float(rate)

    @staticmethod
    def _format_rate(rate: float) -> str:
        return repr(rate) if rate != int(rate) else str(int(rate))

    @staticmethod
    def _success(rate: str, source: str, target: str, source_amount: float, target_amount: float) -> ConversionResult:
        return ConversionResult(
            success=True,
            data=ConversionData(
                exchange_rate=rate,
                source_currency=CurrencyInfo.from_code(source),
                target_currency=CurrencyInfo.from_code(target),
                source_amount=source_amount,
                target_amount=target_amount,
            ),
        )
