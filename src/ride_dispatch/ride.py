"""Ride state machine and models."""

from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field

from ride_dispatch.core.exceptions import InvalidTransition
from ride_dispatch.geo import Coordinate
from ride_dispatch.pricing.fare import FareBreakdown, Tier, calculate_fare


def utc_now() -> datetime:
    return datetime.now(UTC)


class RideStatus(str, Enum):
    """Ride lifecycle states."""

    REQUESTED = "requested"
    ASSIGNED = "assigned"
    STARTED = "started"
    PAUSED = "paused"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES


class PaymentMethod(str, Enum):
    CARD = "card"
    CASH = "cash"
    WALLET = "wallet"


TERMINAL_STATES = frozenset({RideStatus.COMPLETED, RideStatus.CANCELLED})

VALID_TRANSITIONS: dict[RideStatus, set[RideStatus]] = {
    RideStatus.REQUESTED: {RideStatus.ASSIGNED, RideStatus.CANCELLED},
    RideStatus.ASSIGNED: {RideStatus.STARTED, RideStatus.CANCELLED},
    RideStatus.STARTED: {RideStatus.PAUSED, RideStatus.COMPLETED},
    RideStatus.PAUSED: {RideStatus.STARTED},
    RideStatus.COMPLETED: set(),
    RideStatus.CANCELLED: set(),
}


class Ride(BaseModel):
    """A single ride and the transitions that are legal from its status.

    Transition methods mutate the instance in place. Callers that need
    compare-and-swap semantics work on a copy (see RideStore).
    """

    ride_id: str = Field(default_factory=lambda: str(uuid4()))
    rider_id: str
    driver_id: str | None = None
    pickup: Coordinate
    destination: Coordinate
    tier: Tier = Tier.ECONOMY
    payment_method: PaymentMethod = PaymentMethod.CARD
    distance_km: float = Field(ge=0)
    surge_factor: float = Field(default=1.0, ge=1.0)
    price: int = Field(ge=0)
    status: RideStatus = RideStatus.REQUESTED
    one_time_code: str | None = None
    cancellation_reason: str | None = None
    created_at: datetime = Field(default_factory=utc_now)
    assigned_at: datetime | None = None
    started_at: datetime | None = None
    paused_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None

    def fare_breakdown(self) -> FareBreakdown:
        """Re-derive the fare this ride was priced with."""
        return calculate_fare(self.distance_km, self.tier, self.surge_factor)

    def can_transition_to(self, new_status: RideStatus) -> bool:
        return new_status in VALID_TRANSITIONS[self.status]

    def _check_transition(self, new_status: RideStatus) -> None:
        if not self.can_transition_to(new_status):
            raise InvalidTransition(self.ride_id, self.status.value, new_status.value)

    def assign(self, driver_id: str, one_time_code: str, at: datetime | None = None) -> None:
        self._check_transition(RideStatus.ASSIGNED)
        self.driver_id = driver_id
        self.one_time_code = one_time_code
        self.assigned_at = at or utc_now()
        self.status = RideStatus.ASSIGNED

    def start(self, at: datetime | None = None) -> None:
        """Begin the trip. The code check belongs to DispatchCoordinator."""
        # STARTED is also reachable from PAUSED, but only through resume()
        if self.status != RideStatus.ASSIGNED:
            raise InvalidTransition(self.ride_id, self.status.value, RideStatus.STARTED.value)
        self.one_time_code = None
        self.started_at = at or utc_now()
        self.status = RideStatus.STARTED

    def pause(self, at: datetime | None = None) -> None:
        self._check_transition(RideStatus.PAUSED)
        self.paused_at = at or utc_now()
        self.status = RideStatus.PAUSED

    def resume(self) -> None:
        if self.status != RideStatus.PAUSED:
            raise InvalidTransition(self.ride_id, self.status.value, RideStatus.STARTED.value)
        self.paused_at = None
        self.status = RideStatus.STARTED

    def complete(self, at: datetime | None = None) -> None:
        self._check_transition(RideStatus.COMPLETED)
        self.completed_at = at or utc_now()
        self.status = RideStatus.COMPLETED

    def cancel(self, reason: str, at: datetime | None = None) -> None:
        self._check_transition(RideStatus.CANCELLED)
        self.one_time_code = None
        self.cancellation_reason = reason
        self.cancelled_at = at or utc_now()
        self.status = RideStatus.CANCELLED
