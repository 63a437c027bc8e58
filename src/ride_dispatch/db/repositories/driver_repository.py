"""Driver persistence."""

from sqlalchemy.orm import Session, sessionmaker

from ride_dispatch.driver import Driver, DriverStatus

from ..schema import DriverRecord
from ..transaction import storage_errors, unit_of_work


class SqlDriverStore:
    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    def get(self, driver_id: str) -> Driver | None:
        with storage_errors("driver.get"), self._session_factory() as session:
            record = session.get(DriverRecord, driver_id)
            return self._to_domain(record) if record else None

    def save(self, driver: Driver) -> None:
        """Insert or update the driver row."""
        lat, lng = driver.location if driver.location else (None, None)
        record = DriverRecord(
            driver_id=driver.driver_id,
            name=driver.name,
            lat=lat,
            lng=lng,
            status=driver.status.value,
            average_rating=driver.average_rating,
            total_ratings=driver.total_ratings,
        )
        with unit_of_work(self._session_factory, "driver.save") as session:
            session.merge(record)

    def _to_domain(self, record: DriverRecord) -> Driver:
        location = None
        if record.lat is not None and record.lng is not None:
            location = (record.lat, record.lng)
        return Driver(
            driver_id=record.driver_id,
            name=record.name,
            location=location,
            status=DriverStatus(record.status),
            average_rating=record.average_rating,
            total_ratings=record.total_ratings,
        )
