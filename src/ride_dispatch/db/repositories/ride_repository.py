"""Ride persistence with an atomic conditional status update."""

from typing import Any

from sqlalchemy import select, update
from sqlalchemy.orm import Session, sessionmaker

from ride_dispatch.pricing.fare import Tier
from ride_dispatch.ride import PaymentMethod, Ride, RideStatus

from ..schema import RideRecord
from ..transaction import storage_errors, unit_of_work
from ..utils import from_db_time, to_db_time


class SqlRideStore:
    """RideStore backed by a relational database.

    compare_and_swap is one UPDATE ... WHERE status = :expected statement,
    so the database decides the winner when several processes claim the
    same ride.
    """

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    def add(self, ride: Ride) -> None:
        with unit_of_work(
            self._session_factory,
            "ride.add",
            duplicate=f"Ride {ride.ride_id} already exists",
            ride_id=ride.ride_id,
        ) as session:
            session.add(RideRecord(**self._to_columns(ride)))

    def get(self, ride_id: str) -> Ride | None:
        with storage_errors("ride.get"), self._session_factory() as session:
            record = session.get(RideRecord, ride_id)
            return self._to_domain(record) if record else None

    def compare_and_swap(self, ride_id: str, expected_status: RideStatus, updated: Ride) -> bool:
        columns = self._to_columns(updated)
        del columns["ride_id"]
        stmt = (
            update(RideRecord)
            .where(RideRecord.ride_id == ride_id, RideRecord.status == expected_status.value)
            .values(**columns)
        )
        with unit_of_work(self._session_factory, "ride.compare_and_swap") as session:
            return session.execute(stmt).rowcount == 1

    def list_by_status(self, status: RideStatus) -> list[Ride]:
        stmt = (
            select(RideRecord)
            .where(RideRecord.status == status.value)
            .order_by(RideRecord.created_at)
        )
        with storage_errors("ride.list_by_status"), self._session_factory() as session:
            return [self._to_domain(r) for r in session.execute(stmt).scalars().all()]

    def _to_columns(self, ride: Ride) -> dict[str, Any]:
        return {
            "ride_id": ride.ride_id,
            "rider_id": ride.rider_id,
            "driver_id": ride.driver_id,
            "pickup_lat": ride.pickup[0],
            "pickup_lng": ride.pickup[1],
            "dest_lat": ride.destination[0],
            "dest_lng": ride.destination[1],
            "tier": ride.tier.value,
            "payment_method": ride.payment_method.value,
            "distance_km": ride.distance_km,
            "surge_factor": ride.surge_factor,
            "price": ride.price,
            "status": ride.status.value,
            "one_time_code": ride.one_time_code,
            "cancellation_reason": ride.cancellation_reason,
            "created_at": to_db_time(ride.created_at),
            "assigned_at": to_db_time(ride.assigned_at),
            "started_at": to_db_time(ride.started_at),
            "paused_at": to_db_time(ride.paused_at),
            "completed_at": to_db_time(ride.completed_at),
            "cancelled_at": to_db_time(ride.cancelled_at),
        }

    def _to_domain(self, record: RideRecord) -> Ride:
        """Convert ORM model to domain model."""
        return Ride(
            ride_id=record.ride_id,
            rider_id=record.rider_id,
            driver_id=record.driver_id,
            pickup=(record.pickup_lat, record.pickup_lng),
            destination=(record.dest_lat, record.dest_lng),
            tier=Tier(record.tier),
            payment_method=PaymentMethod(record.payment_method),
            distance_km=record.distance_km,
            surge_factor=record.surge_factor,
            price=record.price,
            status=RideStatus(record.status),
            one_time_code=record.one_time_code,
            cancellation_reason=record.cancellation_reason,
            created_at=from_db_time(record.created_at),
            assigned_at=from_db_time(record.assigned_at),
            started_at=from_db_time(record.started_at),
            paused_at=from_db_time(record.paused_at),
            completed_at=from_db_time(record.completed_at),
            cancelled_at=from_db_time(record.cancelled_at),
        )
