"""Post-trip driver ratings."""

import logging
import threading
from datetime import datetime
from typing import Protocol
from uuid import uuid4

from pydantic import BaseModel, Field

from ride_dispatch.core.exceptions import DriverNotFound, RideNotFound, ValidationError
from ride_dispatch.core.locks import KeyedLocks
from ride_dispatch.ride import RideStatus, utc_now
from ride_dispatch.stores import DriverStore, RideStore

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


class Rating(BaseModel):
    rating_id: str = Field(default_factory=lambda: str(uuid4()))
    ride_id: str
    driver_id: str
    rider_id: str
    rating: int = Field(ge=MIN_RATING, le=MAX_RATING)
    comment: str | None = None
    created_at: datetime = Field(default_factory=utc_now)


class RatingStore(Protocol):
    def add(self, rating: Rating) -> None:
        """Store a rating; raises ValidationError if the ride is already rated."""
        ...

    def get_by_ride(self, ride_id: str) -> Rating | None: ...


class InMemoryRatingStore:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._ratings: dict[str, Rating] = {}

    def add(self, rating: Rating) -> None:
        with self._lock:
            if rating.ride_id in self._ratings:
                raise ValidationError(
                    "Rating already submitted for this ride", details={"ride_id": rating.ride_id}
                )
            self._ratings[rating.ride_id] = rating.model_copy()

    def get_by_ride(self, ride_id: str) -> Rating | None:
        with self._lock:
            rating = self._ratings.get(ride_id)
            return rating.model_copy() if rating else None


class RatingService:
    """Records one rider rating per completed ride and keeps driver averages."""

    def __init__(
        self,
        rides: RideStore,
        drivers: DriverStore,
        ratings: RatingStore,
        driver_locks: KeyedLocks | None = None,
    ) -> None:
        self._rides = rides
        self._drivers = drivers
        self._ratings = ratings
        self._driver_locks = driver_locks if driver_locks is not None else KeyedLocks()

    def submit_rating(self, ride_id: str, rating: int, comment: str | None = None) -> Rating:
        if not MIN_RATING <= rating <= MAX_RATING:
            raise ValidationError(
                f"Rating must be between {MIN_RATING} and {MAX_RATING}",
                details={"ride_id": ride_id, "rating": rating},
            )

        ride = self._rides.get(ride_id)
        if ride is None:
            raise RideNotFound(ride_id)
        if ride.status != RideStatus.COMPLETED:
            raise ValidationError(
                "Can only rate completed rides",
                details={"ride_id": ride_id, "current_state": ride.status.value},
            )
        if ride.driver_id is None:
            raise ValidationError("No driver assigned to this ride", details={"ride_id": ride_id})

        record = Rating(
            ride_id=ride_id,
            driver_id=ride.driver_id,
            rider_id=ride.rider_id,
            rating=rating,
            comment=comment,
        )
        self._ratings.add(record)

        with self._driver_locks.hold(ride.driver_id):
            driver = self._drivers.get(ride.driver_id)
            if driver is None:
                raise DriverNotFound(ride.driver_id)
            driver.record_rating(rating)
            self._drivers.save(driver)

        logger.info(
            f"Rating submitted: ride_id={ride_id} driver_id={ride.driver_id} rating={rating} "
            f"new_average={driver.average_rating}"
        )
        return record

    def get_rating(self, ride_id: str) -> Rating | None:
        return self._ratings.get_by_ride(ride_id)
