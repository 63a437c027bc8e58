"""Rating persistence."""

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from ride_dispatch.ratings import Rating

from ..schema import RatingRecord
from ..transaction import storage_errors, unit_of_work
from ..utils import from_db_time, to_db_time


class SqlRatingStore:
    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    def add(self, rating: Rating) -> None:
        record = RatingRecord(
            rating_id=rating.rating_id,
            ride_id=rating.ride_id,
            driver_id=rating.driver_id,
            rider_id=rating.rider_id,
            rating=rating.rating,
            comment=rating.comment,
            created_at=to_db_time(rating.created_at),
        )
        with unit_of_work(
            self._session_factory,
            "rating.add",
            duplicate="Rating already submitted for this ride",
            ride_id=rating.ride_id,
        ) as session:
            session.add(record)

    def get_by_ride(self, ride_id: str) -> Rating | None:
        stmt = select(RatingRecord).where(RatingRecord.ride_id == ride_id)
        with storage_errors("rating.get_by_ride"), self._session_factory() as session:
            record = session.execute(stmt).scalar_one_or_none()
            if record is None:
                return None
            return Rating(
                rating_id=record.rating_id,
                ride_id=record.ride_id,
                driver_id=record.driver_id,
                rider_id=record.rider_id,
                rating=record.rating,
                comment=record.comment,
                created_at=from_db_time(record.created_at),
            )
