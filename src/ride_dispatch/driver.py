"""Driver availability model."""

from enum import Enum

from pydantic import BaseModel, Field

from ride_dispatch.geo import Coordinate


class DriverStatus(str, Enum):
    ONLINE = "online"
    BUSY = "busy"
    OFFLINE = "offline"


class Driver(BaseModel):
    driver_id: str
    name: str = ""
    location: Coordinate | None = None
    status: DriverStatus = DriverStatus.OFFLINE
    average_rating: float = Field(default=0.0, ge=0.0, le=5.0)
    total_ratings: int = Field(default=0, ge=0)

    def model_post_init(self, __context: object) -> None:
        if not self.name:
            self.name = f"Driver {self.driver_id}"

    @property
    def is_available(self) -> bool:
        return self.status == DriverStatus.ONLINE

    def record_rating(self, rating: int) -> None:
        """Fold a new 1-5 rating into the running average (one decimal)."""
        total = self.average_rating * self.total_ratings + rating
        self.total_ratings += 1
        self.average_rating = round(total / self.total_ratings, 1)
