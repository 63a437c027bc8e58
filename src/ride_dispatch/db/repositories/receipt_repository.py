"""Receipt persistence."""

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from ride_dispatch.core.exceptions import ReceiptNotFound
from ride_dispatch.pricing.fare import FareBreakdown
from ride_dispatch.receipts import PaymentStatus, Receipt

from ..schema import ReceiptRecord
from ..transaction import storage_errors, unit_of_work
from ..utils import from_db_time, to_db_time

logger = logging.getLogger(__name__)


class SqlReceiptIssuer:
    """ReceiptIssuer backed by the receipts table (one row per ride)."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    def record(self, ride_id: str, fare: FareBreakdown) -> str:
        receipt = Receipt.from_fare(ride_id, fare)
        record = ReceiptRecord(
            receipt_id=receipt.receipt_id,
            ride_id=ride_id,
            base_fare=receipt.base_fare,
            distance_fare=receipt.distance_fare,
            surge_fare=receipt.surge_fare,
            total_fare=receipt.total_fare,
            surge_factor=receipt.surge_factor,
            payment_status=receipt.payment_status.value,
            transaction_id=None,
            created_at=to_db_time(receipt.created_at),
        )
        with unit_of_work(
            self._session_factory,
            "receipt.record",
            duplicate=f"Receipt already issued for ride {ride_id}",
            ride_id=ride_id,
        ) as session:
            session.add(record)

        logger.info(f"Receipt generated: ride_id={ride_id} receipt_id={receipt.receipt_id}")
        return receipt.receipt_id

    def get(self, ride_id: str) -> Receipt | None:
        stmt = select(ReceiptRecord).where(ReceiptRecord.ride_id == ride_id)
        with storage_errors("receipt.get"), self._session_factory() as session:
            record = session.execute(stmt).scalar_one_or_none()
            return self._to_domain(record) if record else None

    def update_payment_status(
        self, ride_id: str, status: PaymentStatus, transaction_id: str | None
    ) -> Receipt:
        stmt = select(ReceiptRecord).where(ReceiptRecord.ride_id == ride_id)
        with unit_of_work(self._session_factory, "receipt.update_payment_status") as session:
            record = session.execute(stmt).scalar_one_or_none()
            if record is None:
                raise ReceiptNotFound(ride_id)
            record.payment_status = status.value
            record.transaction_id = transaction_id
            receipt = self._to_domain(record)

        logger.info(f"Receipt payment status updated: ride_id={ride_id} status={status.value}")
        return receipt

    def _to_domain(self, record: ReceiptRecord) -> Receipt:
        return Receipt(
            receipt_id=record.receipt_id,
            ride_id=record.ride_id,
            base_fare=record.base_fare,
            distance_fare=record.distance_fare,
            surge_fare=record.surge_fare,
            total_fare=record.total_fare,
            surge_factor=record.surge_factor,
            payment_status=PaymentStatus(record.payment_status),
            transaction_id=record.transaction_id,
            created_at=from_db_time(record.created_at),
        )
