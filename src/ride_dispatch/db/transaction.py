"""Session and transaction boundaries for the SQL stores.

Every repository call runs in its own short unit of work and no session
outlives a call, so one store instance can be shared by all worker threads.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ride_dispatch.core.exceptions import StorageError, ValidationError

logger = logging.getLogger(__name__)


@contextmanager
def transaction(session: Session) -> Iterator[Session]:
    """Commit on success, roll back on any exception."""
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise


@contextmanager
def storage_errors(operation: str, duplicate: str | None = None, **details: Any) -> Iterator[None]:
    """Translate database failures raised by one store operation.

    When ``duplicate`` is given, a unique-constraint violation becomes a
    ValidationError with that message. Any other SQLAlchemy error becomes a
    StorageError chained to the original.
    """
    try:
        yield
    except IntegrityError as e:
        if duplicate is None:
            logger.error(f"Storage operation {operation} failed: {e}")
            raise StorageError(f"{operation} failed", details={"operation": operation}) from e
        raise ValidationError(duplicate, details={"operation": operation, **details}) from e
    except SQLAlchemyError as e:
        logger.error(f"Storage operation {operation} failed: {e}")
        raise StorageError(f"{operation} failed", details={"operation": operation}) from e


@contextmanager
def unit_of_work(
    session_factory: sessionmaker[Session],
    operation: str,
    duplicate: str | None = None,
    **details: Any,
) -> Iterator[Session]:
    """Open a session for one write, committing on exit.

    Usage:
        with unit_of_work(self._session_factory, "ride.add") as session:
            session.add(record)
    """
    with storage_errors(operation, duplicate, **details), session_factory() as session:
        with transaction(session):
            yield session
