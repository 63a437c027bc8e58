"""Standardized exception hierarchy for the dispatch engine."""

from typing import Any


class DispatchError(Exception):
    """Base exception for all dispatch errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    @property
    def kind(self) -> str:
        return type(self).__name__


class TransientError(DispatchError):
    """Errors that may succeed on retry by the caller."""

    pass


class StorageError(TransientError):
    """Ride, driver or receipt persistence failed."""

    pass


class PermanentError(DispatchError):
    """Errors that will not succeed on retry."""

    pass


class ValidationError(PermanentError):
    """Invalid input or data format."""

    pass


class NotFoundError(PermanentError):
    """Requested entity does not exist."""

    pass


class RideNotFound(NotFoundError):
    def __init__(self, ride_id: str):
        super().__init__(f"Ride {ride_id} not found", details={"ride_id": ride_id})


class DriverNotFound(NotFoundError):
    def __init__(self, driver_id: str):
        super().__init__(f"Driver {driver_id} not found", details={"driver_id": driver_id})


class ReceiptNotFound(NotFoundError):
    def __init__(self, ride_id: str):
        super().__init__(f"No receipt for ride {ride_id}", details={"ride_id": ride_id})


class StateError(PermanentError):
    """Operation not allowed in the entity's current state."""

    pass


class InvalidTransition(StateError):
    """Attempted ride state change is not legal from the current state."""

    def __init__(self, ride_id: str, current: str, requested: str):
        super().__init__(
            f"Ride {ride_id} cannot move from {current} to {requested}",
            details={"ride_id": ride_id, "current_state": current, "requested_state": requested},
        )
        self.current_state = current
        self.requested_state = requested


class RideUnavailable(StateError):
    """Ride lost to another driver, already terminal, or missing."""

    def __init__(self, ride_id: str, current: str | None = None):
        super().__init__(
            f"Ride {ride_id} is not available",
            details={"ride_id": ride_id, "current_state": current},
        )
        self.current_state = current


class DriverUnavailable(StateError):
    """Driver is already serving another ride."""

    def __init__(self, driver_id: str, current: str):
        super().__init__(
            f"Driver {driver_id} is {current}",
            details={"driver_id": driver_id, "current_state": current},
        )
        self.current_state = current


class InvalidOneTimeCode(StateError):
    """Supplied trip-start code does not match the assigned code."""

    def __init__(self, ride_id: str):
        super().__init__(
            f"Invalid one-time code for ride {ride_id}",
            details={"ride_id": ride_id, "current_state": "assigned"},
        )
        self.current_state = "assigned"
