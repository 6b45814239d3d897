"""Request-scoped logging fields.

Fields such as request_id, provider, country_code and quote_type live in a
ContextVar. asyncio tasks copy the context they were created in, so every
provider enhanced by one ``enhance_all_providers`` call logs the same
request_id while keeping its own provider field.
"""

import uuid
from contextvars import ContextVar, Token
from typing import Any, Dict, Optional

REQUEST_FIELDS = ("request_id", "provider", "country_code", "quote_type")

LogContextVar: ContextVar[Dict[str, Any]] = ContextVar("quote_log_context", default={})


def new_request_id() -> str:
    """Return a short random id correlating the logs of one request."""
    return uuid.uuid4().hex[:12]


def get_log_context() -> Dict[str, Any]:
    """Get a copy of the current logging context."""
    return dict(LogContextVar.get())


def push_log_context(**fields: Any) -> Token:
    """Merge fields into the logging context.

    Fields whose value is None are ignored, so optional values such as an
    unresolved country code can be passed through unchanged.

    Returns:
        Token for pop_log_context()
    """
    merged = dict(LogContextVar.get())
    merged.update({key: value for key, value in fields.items() if value is not None})
    return LogContextVar.set(merged)


def pop_log_context(token: Token) -> None:
    LogContextVar.reset(token)


def clear_log_context() -> None:
    """Drop every field (used by tests)."""
    LogContextVar.set({})


class log_context:
    """Scope logging fields to a block.

    Example:
        >>> with log_context(provider="deel", country_code="BR"):
        ...     logger.info("Enhancing quote")
    """

    def __init__(self, **fields: Any):
        self.fields = fields
        self._token: Optional[Token] = None

    def __enter__(self) -> "log_context":
        self._token = push_log_context(**self.fields)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        if self._token is not None:
            pop_log_context(self._token)
            self._token = None
        return False
