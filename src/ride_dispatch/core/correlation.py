"""Correlation ids tying one operation's log lines and relayed events together.

Ride operations correlate on the ride id, so every line about a ride can be
found with one search. Driver-only operations get a fresh id per call.
"""

import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

current_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def new_correlation_id() -> str:
    return uuid.uuid4().hex[:16]


class CorrelationFilter(logging.Filter):
    """Stamps records with the correlation id of the enclosing operation, if any."""

    def filter(self, record: logging.LogRecord) -> bool:
        correlation_id = current_correlation_id.get()
        if correlation_id is not None:
            record.correlation_id = correlation_id
        return True


@contextmanager
def with_correlation(correlation_id: str | None = None) -> Iterator[str]:
    """Run a block under a correlation id, generating one if none is given.

    Yields the id in effect. Usage:
        with with_correlation(ride.ride_id):
            logger.info("Accepting ride")  # carries correlation_id=<ride id>
    """
    correlation_id = correlation_id or new_correlation_id()
    token = current_correlation_id.set(correlation_id)
    try:
        yield correlation_id
    finally:
        current_correlation_id.reset(token)


def get_current_correlation_id() -> str | None:
    return current_correlation_id.get()
