"""Logging setup for processes hosting the dispatch engine."""

import logging
import sys
from typing import TextIO

from ride_dispatch.core.correlation import CorrelationFilter

from .context import ContextFilter
from .filters import DefaultCorrelationFilter, PIIFilter
from .formatters import DevFormatter, JSONFormatter

HANDLER_NAME = "ride_dispatch"

_QUIET_LOGGERS = ("sqlalchemy.engine", "redis", "opentelemetry")


def setup_logging(
    level: str = "INFO",
    json_output: bool = False,
    environment: str = "development",
    stream: TextIO | None = None,
) -> logging.Handler:
    """Install the dispatch handler on the root logger and return it.

    A handler installed by an earlier call is replaced. Handlers added by
    the host application are left in place.
    """
    root_logger = logging.getLogger()
    for existing in [h for h in root_logger.handlers if h.get_name() == HANDLER_NAME]:
        root_logger.removeHandler(existing)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(JSONFormatter(environment) if json_output else DevFormatter())

    # Order matters: correlation must be resolved before the "-" default applies
    handler.addFilter(PIIFilter())
    handler.addFilter(ContextFilter())
    handler.addFilter(CorrelationFilter())
    handler.addFilter(DefaultCorrelationFilter())

    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level.upper()))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return handler


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
