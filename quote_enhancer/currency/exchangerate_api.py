"""Exchangerate-API backend.

Uses the v6 pair endpoint when an API key is configured and falls back to
the keyless v4 ``latest`` endpoint otherwise.
"""

from typing import Optional

from .base import CurrencyProvider

V6_PAIR_URL = "https://v6.exchangerate-api.com/v6/{api_key}/pair/{source}/{target}"
V4_LATEST_URL = "https://api.exchangerate-api.com/v4/latest/{source}"


class ExchangerateApiProvider(CurrencyProvider):
    """Currency backend for exchangerate-api.com."""

    name = "Exchangerate-API"
    DEFAULT_TIMEOUT = 5.0
    DEFAULT_RATE_TTL = 600.0

    def __init__(self, api_key: Optional[str] = None, **kwargs) -> None:
        super().__init__(**kwargs)
        self.api_key = (api_key or "").strip() or None

    async def _fetch_rate(self, source: str, target: str) -> float:
        if self.api_key:
            response = await self._get(V6_PAIR_URL.format(api_key=self.api_key, source=source, target=target))
            rate = self._json(response).get("conversion_rate")
            if isinstance(rate, (int, float)) and not isinstance(rate, bool) and rate > 0:
                return self.validate_rate(rate, source, target)

        response = await self._get(V4_LATEST_URL.format(source=source))
        rates = self._json(response).get("rates")
        rate = rates.get(target) if isinstance(rates, dict) else None
        return self.validate_rate(rate, source, target)
