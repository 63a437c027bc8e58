"""Core utilities: exception hierarchy, correlation and keyed locks."""

from .exceptions import (
    DispatchError,
    DriverNotFound,
    DriverUnavailable,
    InvalidOneTimeCode,
    InvalidTransition,
    NotFoundError,
    PermanentError,
    ReceiptNotFound,
    RideNotFound,
    RideUnavailable,
    StateError,
    StorageError,
    TransientError,
    ValidationError,
)

__all__ = [
    "DispatchError",
    "DriverNotFound",
    "DriverUnavailable",
    "InvalidOneTimeCode",
    "InvalidTransition",
    "NotFoundError",
    "PermanentError",
    "ReceiptNotFound",
    "RideNotFound",
    "RideUnavailable",
    "StateError",
    "StorageError",
    "TransientError",
    "ValidationError",
]
