"""Ride lifecycle operations exposed to the calling layer (HTTP, sockets, jobs)."""

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from ride_dispatch.core.correlation import with_correlation
from ride_dispatch.core.exceptions import (
    DriverNotFound,
    DriverUnavailable,
    InvalidTransition,
    ReceiptNotFound,
    RideNotFound,
    StorageError,
    ValidationError,
)
from ride_dispatch.core.locks import KeyedLocks
from ride_dispatch.dispatch import DispatchCoordinator, generate_one_time_code
from ride_dispatch.dispatch_logging import log_driver_context, log_ride_context
from ride_dispatch.driver import Driver, DriverStatus
from ride_dispatch.geo import Coordinate, DistanceFunction, distance
from ride_dispatch.payment import PaymentGateway, mock_payment_gateway
from ride_dispatch.pricing import DemandMetricsStore, SurgePricingCalculator, Tier, calculate_fare
from ride_dispatch.pubsub import (
    TOPIC_DRIVER_LOCATION_UPDATED,
    TOPIC_RIDE_REQUESTED,
    TOPIC_RIDE_STATUS_UPDATED,
    EventBroadcaster,
)
from ride_dispatch.ratings import InMemoryRatingStore, Rating, RatingService, RatingStore
from ride_dispatch.receipts import PaymentStatus, Receipt, ReceiptIssuer
from ride_dispatch.ride import PaymentMethod, Ride, RideStatus
from ride_dispatch.stores import DriverStore, RideStore

logger = logging.getLogger(__name__)


class RideService:
    """Entry point for every ride and driver operation.

    Thread-safe: each ride has its own lock covering its state change and
    the event published for it, so subscribers see one ride's statuses in
    transition order. Driver locks are always taken after ride locks.
    """

    def __init__(
        self,
        rides: RideStore,
        drivers: DriverStore,
        metrics: DemandMetricsStore,
        broadcaster: EventBroadcaster,
        receipts: ReceiptIssuer,
        ratings: RatingStore | None = None,
        distance_fn: DistanceFunction = distance,
        payment_gateway: PaymentGateway = mock_payment_gateway,
        code_generator: Callable[[], str] = generate_one_time_code,
        default_tier: Tier | str = Tier.ECONOMY,
        default_payment_method: PaymentMethod | str = PaymentMethod.CARD,
    ) -> None:
        self._rides = rides
        self._drivers = drivers
        self._metrics = metrics
        self._broadcaster = broadcaster
        self._receipts = receipts
        self._distance = distance_fn
        self._payment_gateway = payment_gateway
        self._default_tier = Tier(default_tier)
        self._default_payment_method = PaymentMethod(default_payment_method)
        self._ride_locks = KeyedLocks()
        self._driver_locks = KeyedLocks()

        self.pricing = SurgePricingCalculator(metrics)
        self.dispatch = DispatchCoordinator(
            rides,
            drivers,
            metrics,
            driver_locks=self._driver_locks,
            code_generator=code_generator,
        )
        self.ratings = RatingService(
            rides, drivers, ratings or InMemoryRatingStore(), driver_locks=self._driver_locks
        )

    @contextmanager
    def _ride_scope(self, ride_id: str, driver_id: str | None = None) -> Iterator[None]:
        fields = {"driver_id": driver_id} if driver_id else {}
        with with_correlation(ride_id), log_ride_context(ride_id, **fields):
            with self._ride_locks.hold(ride_id):
                yield

    @contextmanager
    def _driver_scope(self, driver_id: str) -> Iterator[None]:
        with with_correlation(), log_driver_context(driver_id), self._driver_locks.hold(driver_id):
            yield

    # Rider operations

    def request_ride(
        self,
        rider_id: str,
        pickup: Coordinate,
        destination: Coordinate,
        tier: Tier | str | None = None,
        payment_method: PaymentMethod | str | None = None,
    ) -> Ride:
        """Price and open a new ride; the service defaults fill in tier and payment method."""
        try:
            tier = Tier(tier or self._default_tier)
            payment_method = PaymentMethod(payment_method or self._default_payment_method)
        except ValueError as e:
            raise ValidationError(str(e), details={"rider_id": rider_id}) from e

        distance_km = self._distance(pickup, destination)
        surge_factor = self.pricing.calculate_surge_factor(tier)
        fare = calculate_fare(distance_km, tier, surge_factor)

        ride = Ride(
            rider_id=rider_id,
            pickup=pickup,
            destination=destination,
            tier=tier,
            payment_method=payment_method,
            distance_km=distance_km,
            surge_factor=surge_factor,
            price=fare.total_fare,
        )

        with self._ride_scope(ride.ride_id):
            self._rides.add(ride)
            self._metrics.increment_pending_rides()
            self._publish(TOPIC_RIDE_REQUESTED, ride)
            logger.info(
                f"Ride created: tier={tier.value} surge_factor={surge_factor} price={ride.price}"
            )
        return ride

    def get_ride(self, ride_id: str) -> Ride:
        return self._require_ride(ride_id)

    def cancel(self, ride_id: str, reason: str = "User cancelled") -> Ride:
        with self._ride_scope(ride_id):
            ride, previous = self._transition(
                ride_id, RideStatus.CANCELLED, lambda r: r.cancel(reason)
            )
            if previous == RideStatus.REQUESTED:
                self._metrics.decrement_pending_rides()
            try:
                if ride.driver_id:
                    self._free_driver(ride.driver_id)
            finally:
                self._publish(TOPIC_RIDE_STATUS_UPDATED, ride)
            logger.info(f"Ride cancelled: reason={reason}")
        return ride

    # Driver operations

    def accept(self, ride_id: str, driver_id: str) -> Ride:
        with self._ride_scope(ride_id, driver_id=driver_id):
            try:
                ride = self.dispatch.accept(ride_id, driver_id)
            except StorageError:
                # The claim may have landed before the failure
                claimed = self._rides.get(ride_id)
                if (
                    claimed
                    and claimed.status == RideStatus.ASSIGNED
                    and claimed.driver_id == driver_id
                ):
                    self._publish(TOPIC_RIDE_STATUS_UPDATED, claimed)
                raise
            self._publish(TOPIC_RIDE_STATUS_UPDATED, ride)
        return ride

    def start(self, ride_id: str, code: str) -> Ride:
        with self._ride_scope(ride_id):
            ride = self.dispatch.start_trip(ride_id, code)
            self._publish(TOPIC_RIDE_STATUS_UPDATED, ride)
        return ride

    def pause(self, ride_id: str) -> Ride:
        with self._ride_scope(ride_id):
            ride, _ = self._transition(ride_id, RideStatus.PAUSED, lambda r: r.pause())
            self._publish(TOPIC_RIDE_STATUS_UPDATED, ride)
            logger.info("Trip paused")
        return ride

    def resume(self, ride_id: str) -> Ride:
        with self._ride_scope(ride_id):
            ride, _ = self._transition(ride_id, RideStatus.STARTED, lambda r: r.resume())
            self._publish(TOPIC_RIDE_STATUS_UPDATED, ride)
            logger.info("Trip resumed")
        return ride

    def end(self, ride_id: str) -> Ride:
        with self._ride_scope(ride_id):
            ride, _ = self._transition(ride_id, RideStatus.COMPLETED, lambda r: r.complete())
            try:
                if ride.driver_id:
                    self._free_driver(ride.driver_id)
                self._issue_receipt(ride)
            finally:
                self._publish(TOPIC_RIDE_STATUS_UPDATED, ride)
            logger.info(f"Trip ended: total_fare={ride.price}")
        return ride

    def report_driver_location(self, driver_id: str, location: Coordinate) -> Driver:
        """Record a driver's position; an unknown or offline driver comes online."""
        with self._driver_scope(driver_id):
            driver = self._drivers.get(driver_id) or Driver(driver_id=driver_id)
            if driver.status == DriverStatus.OFFLINE:
                driver.status = DriverStatus.ONLINE
                self._metrics.increment_available_drivers()
            driver.location = location
            self._drivers.save(driver)
        self._publish(TOPIC_DRIVER_LOCATION_UPDATED, driver)
        return driver

    def go_online(self, driver_id: str) -> Driver:
        with self._driver_scope(driver_id):
            driver = self._drivers.get(driver_id) or Driver(driver_id=driver_id)
            if driver.status == DriverStatus.OFFLINE:
                driver.status = DriverStatus.ONLINE
                self._drivers.save(driver)
                self._metrics.increment_available_drivers()
                logger.info(f"Driver {driver_id} online")
        return driver

    def go_offline(self, driver_id: str) -> Driver:
        with self._driver_scope(driver_id):
            driver = self._require_driver(driver_id)
            if driver.status == DriverStatus.BUSY:
                raise DriverUnavailable(driver_id, driver.status.value)
            if driver.status == DriverStatus.ONLINE:
                driver.status = DriverStatus.OFFLINE
                self._drivers.save(driver)
                self._metrics.decrement_available_drivers()
                logger.info(f"Driver {driver_id} offline")
        return driver

    def get_driver(self, driver_id: str) -> Driver:
        return self._require_driver(driver_id)

    # Receipts, payment and ratings

    def get_receipt(self, ride_id: str) -> Receipt:
        """Return a ride's receipt, issuing it now if the ride completed without one."""
        receipt = self._receipts.get(ride_id)
        if receipt is not None:
            return receipt

        ride = self._rides.get(ride_id)
        if ride is None or ride.status != RideStatus.COMPLETED:
            raise ReceiptNotFound(ride_id)
        with self._ride_scope(ride_id):
            receipt = self._receipts.get(ride_id)
            if receipt is None:
                logger.warning("Completed ride has no receipt, issuing it now")
                self._issue_receipt(ride)
                receipt = self._receipts.get(ride_id)
        if receipt is None:
            raise ReceiptNotFound(ride_id)
        return receipt

    def process_payment(self, ride_id: str) -> Receipt:
        """Charge a completed ride's fare through the payment gateway.

        A receipt that is already paid is returned as is, so a retried call
        never charges twice.
        """
        with self._ride_scope(ride_id):
            ride = self._require_ride(ride_id)
            if ride.status != RideStatus.COMPLETED:
                raise ValidationError(
                    "Can only pay for completed rides",
                    details={"ride_id": ride_id, "current_state": ride.status.value},
                )
            receipt = self.get_receipt(ride_id)
            if receipt.payment_status == PaymentStatus.COMPLETED:
                return receipt

            try:
                transaction_id = self._payment_gateway(ride_id, receipt.total_fare)
            except Exception:
                logger.exception("Payment gateway failed")
                self._receipts.update_payment_status(ride_id, PaymentStatus.FAILED, None)
                raise

            logger.info(f"Payment processed: amount={receipt.total_fare}")
            return self._receipts.update_payment_status(
                ride_id, PaymentStatus.COMPLETED, transaction_id
            )

    def submit_rating(self, ride_id: str, rating: int, comment: str | None = None) -> Rating:
        with with_correlation(ride_id):
            return self.ratings.submit_rating(ride_id, rating, comment)

    # Internals

    def _require_ride(self, ride_id: str) -> Ride:
        ride = self._rides.get(ride_id)
        if ride is None:
            raise RideNotFound(ride_id)
        return ride

    def _require_driver(self, driver_id: str) -> Driver:
        driver = self._drivers.get(driver_id)
        if driver is None:
            raise DriverNotFound(driver_id)
        return driver

    def _transition(
        self, ride_id: str, target: RideStatus, apply: Callable[[Ride], None]
    ) -> tuple[Ride, RideStatus]:
        """Apply one state-machine step and swap it into the store.

        Returns the updated ride and the status it moved out of.
        """
        ride = self._require_ride(ride_id)
        previous = ride.status
        apply(ride)
        if not self._rides.compare_and_swap(ride_id, previous, ride):
            current = self._require_ride(ride_id)
            raise InvalidTransition(ride_id, current.status.value, target.value)
        return ride, previous

    def _issue_receipt(self, ride: Ride) -> None:
        try:
            self._receipts.record(ride.ride_id, ride.fare_breakdown())
        except ValidationError:
            # Issued concurrently by another process sharing the store
            logger.info("Receipt already issued")

    def _free_driver(self, driver_id: str) -> None:
        with self._driver_locks.hold(driver_id):
            driver = self._drivers.get(driver_id) or Driver(driver_id=driver_id)
            driver.status = DriverStatus.ONLINE
            self._drivers.save(driver)
            self._metrics.increment_available_drivers()

    def _publish(self, topic: str, payload: Ride | Driver) -> None:
        self._broadcaster.publish(topic, payload.model_copy(deep=True))
