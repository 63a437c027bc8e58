"""Structured fields attached to every log record inside a block.

Fields live in a context variable rather than thread-local storage, so a
block's fields follow the operation into executors and event loops.
"""

import logging
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from types import MappingProxyType
from typing import Any

_EMPTY: Mapping[str, Any] = MappingProxyType({})

_fields: ContextVar[Mapping[str, Any]] = ContextVar("log_fields", default=_EMPTY)


def current_fields() -> Mapping[str, Any]:
    """Read-only view of the fields active in this context."""
    return _fields.get()


class ContextFilter(logging.Filter):
    """Copies active context fields onto records that do not set them already."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _fields.get().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


@contextmanager
def log_context(**fields: Any) -> Iterator[None]:
    """Add fields for the duration of the block; inner blocks override outer ones.

    Fields reach log records through ContextFilter, which setup_logging
    attaches to its handler.
    """
    token = _fields.set(MappingProxyType({**_fields.get(), **fields}))
    try:
        yield
    finally:
        _fields.reset(token)


@contextmanager
def log_ride_context(ride_id: str, **fields: Any) -> Iterator[None]:
    with log_context(ride_id=ride_id, **fields):
        yield


@contextmanager
def log_driver_context(driver_id: str, **fields: Any) -> Iterator[None]:
    with log_context(driver_id=driver_id, **fields):
        yield
