"""Receipt issuing for completed rides."""

import logging
import threading
from datetime import datetime
from enum import Enum
from typing import Protocol
from uuid import uuid4

from pydantic import BaseModel, Field

from ride_dispatch.core.exceptions import ReceiptNotFound, ValidationError
from ride_dispatch.pricing.fare import FareBreakdown
from ride_dispatch.ride import utc_now

logger = logging.getLogger(__name__)


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class Receipt(BaseModel):
    receipt_id: str = Field(default_factory=lambda: str(uuid4()))
    ride_id: str
    base_fare: int
    distance_fare: int
    surge_fare: int
    total_fare: int
    surge_factor: float
    payment_status: PaymentStatus = PaymentStatus.PENDING
    transaction_id: str | None = None
    created_at: datetime = Field(default_factory=utc_now)

    @classmethod
    def from_fare(
        cls, ride_id: str, fare: FareBreakdown, transaction_id: str | None = None
    ) -> "Receipt":
        return cls(
            ride_id=ride_id,
            base_fare=fare.base_fare,
            distance_fare=fare.distance_fare,
            surge_fare=fare.surge_fare,
            total_fare=fare.total_fare,
            surge_factor=fare.surge_factor,
            payment_status=PaymentStatus.COMPLETED if transaction_id else PaymentStatus.PENDING,
            transaction_id=transaction_id,
        )


class ReceiptIssuer(Protocol):
    def record(self, ride_id: str, fare: FareBreakdown) -> str:
        """Store the immutable fare breakdown for a ride, returning the receipt id."""
        ...

    def get(self, ride_id: str) -> Receipt | None: ...

    def update_payment_status(
        self, ride_id: str, status: PaymentStatus, transaction_id: str | None
    ) -> Receipt: ...


class InMemoryReceiptIssuer:
    """One receipt per ride, kept in process memory. Thread-safe."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._receipts: dict[str, Receipt] = {}

    def record(self, ride_id: str, fare: FareBreakdown) -> str:
        with self._lock:
            if ride_id in self._receipts:
                raise ValidationError(
                    f"Receipt already issued for ride {ride_id}", details={"ride_id": ride_id}
                )
            receipt = Receipt.from_fare(ride_id, fare)
            self._receipts[ride_id] = receipt

        logger.info(f"Receipt generated: ride_id={ride_id} receipt_id={receipt.receipt_id}")
        return receipt.receipt_id

    def get(self, ride_id: str) -> Receipt | None:
        with self._lock:
            receipt = self._receipts.get(ride_id)
            return receipt.model_copy() if receipt else None

    def update_payment_status(
        self, ride_id: str, status: PaymentStatus, transaction_id: str | None
    ) -> Receipt:
        with self._lock:
            receipt = self._receipts.get(ride_id)
            if receipt is None:
                raise ReceiptNotFound(ride_id)
            receipt = receipt.model_copy(
                update={"payment_status": status, "transaction_id": transaction_id}
            )
            self._receipts[ride_id] = receipt

        logger.info(f"Receipt payment status updated: ride_id={ride_id} status={status.value}")
        return receipt.model_copy()
