"""Structured logging for the enhancement engine.

Modules log through ``get_logger(__name__, component=...)`` and pass a dotted
``event`` name in ``extra``; configure_logging() installs the formatter.
"""

import logging
from typing import Any, Optional, Union

from .config import configure_logging
from .context import log_context


class ComponentLoggerAdapter(logging.LoggerAdapter):
    """Adapter injecting fixed fields (component, backend, ...) into every record."""

    def process(self, msg, kwargs):
        # per-call extra wins over adapter fields
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def get_logger(
    name: str, component: Optional[str] = None, **fields: Any
) -> Union[logging.Logger, ComponentLoggerAdapter]:
    """Get a logger, tagged with a component and fixed fields when given.

    Example:
        >>> logger = get_logger(__name__, component="enhancement")
        >>> logger.info("Quote enhanced", extra={"event": "enhancement.quote.completed"})
    """
    logger = logging.getLogger(name)
    if component:
        fields = {"component": component, **fields}
    if fields:
        return ComponentLoggerAdapter(logger, fields)
    return logger


__all__ = ["ComponentLoggerAdapter", "configure_logging", "get_logger", "log_context"]
