"""Papaya Global public rate endpoint backend.

The endpoint answers with plain text that sometimes carries descriptive
text before the number; the last numeric token is the rate.
"""

import re

from .base import CurrencyProvider
from .exceptions import CurrencyConversionError
from .rates import rate_key

PAPAYA_URL = "https://www.papayaglobal.com/wp-content/plugins/wp-create-react-app/json.php"
PAPAYA_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko)",
    "Referer": "https://www.papayaglobal.com/",
}

_NUMBER = re.compile(r"-?\d+(?:\.\d+)?(?:[eE][-+]?\d+)?")


def extract_rate(body: str) -> float:
    """Parse the last numeric token of a response body (decimal comma accepted).

    Raises:
        CurrencyConversionError: If no number is present
    """
    matches = _NUMBER.findall(body.replace(",", ".", 1).strip())
    if not matches:
        raise CurrencyConversionError(f"No numeric rate found in Papaya response: {body[:100]}")
    return float(matches[-1])


class PapayaProvider(CurrencyProvider):
    """Currency backend for Papaya Global's public converter."""

    name = "Papaya Global"
    DEFAULT_TIMEOUT = 5.0
    DEFAULT_RATE_TTL = 300.0

    async def _fetch_rate(self, source: str, target: str) -> float:
        response = await self._get(
            PAPAYA_URL,
            params={"query": rate_key(source, target), "from": source, "to": target},
            headers=PAPAYA_HEADERS,
        )
        return self.validate_rate(extract_rate(response.text), source, target)
