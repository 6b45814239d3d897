"""Currency conversion result models."""

from typing import Optional

from pydantic import BaseModel


class CurrencyInfo(BaseModel):
    """Currency descriptor; name and symbol default to the code."""

    code: str
    name: str
    symbol: str

    @classmethod
    def from_code(cls, code: str) -> "CurrencyInfo":
        return cls(code=code, name=code, symbol=code)


class ConversionData(BaseModel):
    """Successful conversion details.

    ``target_amount`` is -1 when the source amount was negative, which
    callers treat as "skip".
    """

    exchange_rate: str
    source_currency: CurrencyInfo
    target_currency: CurrencyInfo
    source_amount: float
    target_amount: float


class ConversionResult(BaseModel):
    """Outcome of convert_currency(); exactly one of data or error is set."""

    success: bool
    data: Optional[ConversionData] = None
    error: Optional[str] = None

    model_config = {"frozen": True}
