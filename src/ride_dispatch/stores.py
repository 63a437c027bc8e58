"""Storage contracts for rides and drivers, with in-memory implementations.

Stores hand out copies. A ride is only ever changed by building an
updated copy and swapping it in with compare_and_swap, which succeeds only
if the stored status still equals the status the caller read.
"""

import threading
from typing import Protocol

from ride_dispatch.core.exceptions import ValidationError
from ride_dispatch.driver import Driver
from ride_dispatch.ride import Ride, RideStatus


class RideStore(Protocol):
    def add(self, ride: Ride) -> None: ...

    def get(self, ride_id: str) -> Ride | None: ...

    def compare_and_swap(self, ride_id: str, expected_status: RideStatus, updated: Ride) -> bool:
        """Atomically replace the ride if its stored status is expected_status."""
        ...

    def list_by_status(self, status: RideStatus) -> list[Ride]: ...


class DriverStore(Protocol):
    def get(self, driver_id: str) -> Driver | None: ...

    def save(self, driver: Driver) -> None: ...


class InMemoryRideStore:
    """Dict-backed ride store.

    Thread-safe: compare_and_swap checks and replaces under one lock, so two
    concurrent claims on the same requested ride cannot both succeed.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._rides: dict[str, Ride] = {}

    def add(self, ride: Ride) -> None:
        with self._lock:
            if ride.ride_id in self._rides:
                raise ValidationError(
                    f"Ride {ride.ride_id} already exists", details={"ride_id": ride.ride_id}
                )
            self._rides[ride.ride_id] = ride.model_copy(deep=True)

    def get(self, ride_id: str) -> Ride | None:
        with self._lock:
            ride = self._rides.get(ride_id)
            return ride.model_copy(deep=True) if ride else None

    def compare_and_swap(self, ride_id: str, expected_status: RideStatus, updated: Ride) -> bool:
        with self._lock:
            current = self._rides.get(ride_id)
            if current is None or current.status != expected_status:
                return False
            self._rides[ride_id] = updated.model_copy(deep=True)
            return True

    def list_by_status(self, status: RideStatus) -> list[Ride]:
        with self._lock:
            return [r.model_copy(deep=True) for r in self._rides.values() if r.status == status]

    def clear(self) -> None:
        with self._lock:
            self._rides.clear()


class InMemoryDriverStore:
    """Dict-backed driver store. Thread-safe."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._drivers: dict[str, Driver] = {}

    def get(self, driver_id: str) -> Driver | None:
        with self._lock:
            driver = self._drivers.get(driver_id)
            return driver.model_copy(deep=True) if driver else None

    def save(self, driver: Driver) -> None:
        with self._lock:
            self._drivers[driver.driver_id] = driver.model_copy(deep=True)

    def clear(self) -> None:
        with self._lock:
            self._drivers.clear()
