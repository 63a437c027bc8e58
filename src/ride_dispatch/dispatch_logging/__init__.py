"""Logging with structured formatters, PII masking and ride/driver context."""

from .context import (
    ContextFilter,
    current_fields,
    log_context,
    log_driver_context,
    log_ride_context,
)
from .filters import DefaultCorrelationFilter, PIIFilter
from .formatters import DevFormatter, JSONFormatter
from .setup import HANDLER_NAME, get_logger, setup_logging

__all__ = [
    "setup_logging",
    "get_logger",
    "HANDLER_NAME",
    "log_context",
    "log_ride_context",
    "log_driver_context",
    "current_fields",
    "JSONFormatter",
    "DevFormatter",
    "PIIFilter",
    "DefaultCorrelationFilter",
    "ContextFilter",
]
