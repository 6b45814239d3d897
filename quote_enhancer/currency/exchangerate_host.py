"""Exchangerate.host backend."""

from .base import CurrencyProvider
from .exceptions import CurrencyConversionError

CONVERT_URL = "https://api.exchangerate.host/convert"


class ExchangerateHostProvider(CurrencyProvider):
    """Currency backend for exchangerate.host.

    Rates are fetched by converting one unit, so one cached rate serves every
    amount for the pair.
    """

    name = "Exchangerate.host"
    DEFAULT_TIMEOUT = 10.0
    DEFAULT_RATE_TTL = 600.0

    async def _fetch_rate(self, source: str, target: str) -> float:
        response = await self._get(CONVERT_URL, params={"from": source, "to": target, "amount": 1})
        body = self._json(response)
        if body.get("success") is False:
            raise CurrencyConversionError(f"Invalid response from {self.name}")

        info = body.get("info")
        rate = info.get("rate") if isinstance(info, dict) else None
        if rate is None:
            rate = body.get("result")
        return self.validate_rate(rate, source, target)
