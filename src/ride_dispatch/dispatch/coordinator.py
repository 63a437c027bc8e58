"""Race-free driver assignment and one-time-code trip start."""

import logging
import secrets
from collections.abc import Callable

from ride_dispatch.core.exceptions import (
    DriverUnavailable,
    InvalidOneTimeCode,
    InvalidTransition,
    RideNotFound,
    RideUnavailable,
)
from ride_dispatch.core.locks import KeyedLocks
from ride_dispatch.driver import Driver, DriverStatus
from ride_dispatch.pricing.demand_metrics import DemandMetricsStore
from ride_dispatch.ride import Ride, RideStatus
from ride_dispatch.stores import DriverStore, RideStore

logger = logging.getLogger(__name__)

ONE_TIME_CODE_DIGITS = 4


def generate_one_time_code() -> str:
    """Uniformly random 4-digit code shown to the rider and typed in by the driver.

    Only a low-stakes identity check between the two parties, not a secret.
    """
    return f"{secrets.randbelow(10**ONE_TIME_CODE_DIGITS):0{ONE_TIME_CODE_DIGITS}d}"


class DispatchCoordinator:
    """Resolves concurrent driver claims on the same requested ride.

    The ride's requested -> assigned step is a single compare-and-swap on the
    ride store, so among any number of concurrent accepts at most one wins,
    regardless of which process they run in. The per-driver lock stops one
    driver from winning two rides at once.
    """

    def __init__(
        self,
        rides: RideStore,
        drivers: DriverStore,
        metrics: DemandMetricsStore,
        driver_locks: KeyedLocks | None = None,
        code_generator: Callable[[], str] = generate_one_time_code,
    ) -> None:
        self._rides = rides
        self._drivers = drivers
        self._metrics = metrics
        self._driver_locks = driver_locks if driver_locks is not None else KeyedLocks()
        self._code_generator = code_generator

    def accept(self, ride_id: str, driver_id: str) -> Ride:
        """Claim a requested ride for a driver.

        Raises:
            RideUnavailable: The ride is missing, already assigned or terminal.
            DriverUnavailable: The driver is already serving another ride.
        """
        ride = self._rides.get(ride_id)
        if ride is None or ride.status != RideStatus.REQUESTED:
            raise RideUnavailable(ride_id, ride.status.value if ride else None)

        with self._driver_locks.hold(driver_id):
            driver = self._drivers.get(driver_id) or Driver(driver_id=driver_id)
            if driver.status == DriverStatus.BUSY:
                raise DriverUnavailable(driver_id, driver.status.value)
            was_available = driver.is_available

            ride.assign(driver_id, self._code_generator())
            if not self._rides.compare_and_swap(ride_id, RideStatus.REQUESTED, ride):
                current = self._rides.get(ride_id)
                logger.info(f"Driver {driver_id} lost the claim on ride {ride_id}")
                raise RideUnavailable(ride_id, current.status.value if current else None)

            # The ride is claimed from here on; counters follow even if the save fails
            try:
                driver.status = DriverStatus.BUSY
                self._drivers.save(driver)
            finally:
                self._metrics.decrement_pending_rides()
                if was_available:
                    self._metrics.decrement_available_drivers()

        logger.info(f"Ride accepted: ride_id={ride_id} driver_id={driver_id}")
        return ride

    def start_trip(self, ride_id: str, code: str) -> Ride:
        """Start an assigned ride once the driver presents the rider's code.

        A wrong code leaves the ride untouched and may be retried.

        Raises:
            RideNotFound: No such ride.
            InvalidTransition: The ride is not in the assigned state.
            InvalidOneTimeCode: The code does not match.
        """
        ride = self._rides.get(ride_id)
        if ride is None:
            raise RideNotFound(ride_id)
        if ride.status != RideStatus.ASSIGNED:
            raise InvalidTransition(ride_id, ride.status.value, RideStatus.STARTED.value)
        if ride.one_time_code is None or code != ride.one_time_code:
            logger.warning(f"Invalid one-time code for ride {ride_id}")
            raise InvalidOneTimeCode(ride_id)

        ride.start()
        if not self._rides.compare_and_swap(ride_id, RideStatus.ASSIGNED, ride):
            current = self._rides.get(ride_id)
            raise InvalidTransition(
                ride_id,
                current.status.value if current else "missing",
                RideStatus.STARTED.value,
            )

        logger.info(f"Trip started: ride_id={ride_id}")
        return ride
