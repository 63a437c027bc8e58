from collections.abc import Callable
from pathlib import Path

import pytest

from ride_dispatch.db import init_database
from ride_dispatch.pricing import InMemoryDemandMetrics, Tier
from ride_dispatch.pubsub import ALL_TOPICS, EventBroadcaster
from ride_dispatch.ratings import InMemoryRatingStore
from ride_dispatch.receipts import InMemoryReceiptIssuer
from ride_dispatch.ride import Ride
from ride_dispatch.service import RideService
from ride_dispatch.stores import InMemoryDriverStore, InMemoryRideStore

PICKUP = (12.9716, 77.5946)
DESTINATION = (12.9352, 77.6245)
FIXED_CODE = "4821"


def make_ride(**overrides) -> Ride:
    """A requested 10 km economy ride priced without surge."""
    fields = {
        "rider_id": "rider_1",
        "pickup": PICKUP,
        "destination": DESTINATION,
        "tier": Tier.ECONOMY,
        "distance_km": 10.0,
        "surge_factor": 1.0,
        "price": 170,
    }
    fields.update(overrides)
    return Ride(**fields)


def fixed_distance(km: float) -> Callable[[tuple[float, float], tuple[float, float]], float]:
    """Distance function stub that always reports the same trip length."""
    return lambda a, b: km


class EventRecorder:
    """Collects every event published on a broadcaster."""

    def __init__(self, broadcaster: EventBroadcaster) -> None:
        self.events: list[tuple[str, object]] = []
        for topic in ALL_TOPICS:
            broadcaster.subscribe(topic, self._record)

    def _record(self, topic: str, payload: object) -> None:
        self.events.append((topic, payload))

    def topics(self) -> list[str]:
        return [topic for topic, _ in self.events]

    def statuses(self, ride_id: str) -> list[str]:
        return [
            payload.status.value
            for _, payload in self.events
            if getattr(payload, "ride_id", None) == ride_id
        ]


@pytest.fixture
def metrics() -> InMemoryDemandMetrics:
    return InMemoryDemandMetrics()


@pytest.fixture
def ride_store() -> InMemoryRideStore:
    return InMemoryRideStore()


@pytest.fixture
def driver_store() -> InMemoryDriverStore:
    return InMemoryDriverStore()


@pytest.fixture
def receipts() -> InMemoryReceiptIssuer:
    return InMemoryReceiptIssuer()


@pytest.fixture
def broadcaster() -> EventBroadcaster:
    return EventBroadcaster()


@pytest.fixture
def recorder(broadcaster: EventBroadcaster) -> EventRecorder:
    return EventRecorder(broadcaster)


@pytest.fixture
def service(
    ride_store: InMemoryRideStore,
    driver_store: InMemoryDriverStore,
    metrics: InMemoryDemandMetrics,
    broadcaster: EventBroadcaster,
    receipts: InMemoryReceiptIssuer,
) -> RideService:
    """Ride service pricing every trip at 10 km with a known start code."""
    return RideService(
        rides=ride_store,
        drivers=driver_store,
        metrics=metrics,
        broadcaster=broadcaster,
        receipts=receipts,
        ratings=InMemoryRatingStore(),
        distance_fn=fixed_distance(10.0),
        payment_gateway=lambda ride_id, amount: "txn_test123",
        code_generator=lambda: FIXED_CODE,
    )


@pytest.fixture
def temp_sqlite_db(tmp_path: Path) -> Path:
    """Temporary SQLite database for persistence tests."""
    return tmp_path / "test_dispatch.db"


@pytest.fixture
def session_factory(temp_sqlite_db: Path):
    return init_database(f"sqlite:///{temp_sqlite_db}")
