from unittest.mock import Mock

import pytest

from ride_dispatch.core.exceptions import RideNotFound, ValidationError
from ride_dispatch.payment import mock_payment_gateway
from ride_dispatch.pricing import InMemoryDemandMetrics
from ride_dispatch.pubsub import EventBroadcaster
from ride_dispatch.ratings import InMemoryRatingStore
from ride_dispatch.receipts import InMemoryReceiptIssuer, PaymentStatus
from ride_dispatch.service import RideService
from ride_dispatch.stores import InMemoryDriverStore, InMemoryRideStore
from tests.conftest import DESTINATION, FIXED_CODE, PICKUP, fixed_distance


def completed_ride(service, driver_id="driver_1"):
    ride = service.request_ride("rider_1", PICKUP, DESTINATION)
    service.accept(ride.ride_id, driver_id)
    service.start(ride.ride_id, FIXED_CODE)
    return service.end(ride.ride_id)


def service_with_gateway(gateway) -> RideService:
    return RideService(
        rides=InMemoryRideStore(),
        drivers=InMemoryDriverStore(),
        metrics=InMemoryDemandMetrics(),
        broadcaster=EventBroadcaster(),
        receipts=InMemoryReceiptIssuer(),
        ratings=InMemoryRatingStore(),
        distance_fn=fixed_distance(10.0),
        payment_gateway=gateway,
        code_generator=lambda: FIXED_CODE,
    )


class TestMockGateway:
    def test_transaction_id_format(self):
        transaction_id = mock_payment_gateway("ride_1", 170)

        assert transaction_id.startswith("txn_")
        assert len(transaction_id) == 13

    def test_transaction_ids_differ(self):
        assert mock_payment_gateway("r", 1) != mock_payment_gateway("r", 1)


class TestProcessPayment:
    def test_receipt_pending_until_paid(self, service):
        ride = completed_ride(service)

        assert service.get_receipt(ride.ride_id).payment_status == PaymentStatus.PENDING

    def test_charges_total_fare(self):
        gateway = Mock(return_value="txn_abc")
        service = service_with_gateway(gateway)
        ride = completed_ride(service)

        receipt = service.process_payment(ride.ride_id)

        gateway.assert_called_once_with(ride.ride_id, 170)
        assert receipt.payment_status == PaymentStatus.COMPLETED
        assert receipt.transaction_id == "txn_abc"

    def test_paying_twice_charges_once(self):
        gateway = Mock(return_value="txn_abc")
        service = service_with_gateway(gateway)
        ride = completed_ride(service)

        service.process_payment(ride.ride_id)
        receipt = service.process_payment(ride.ride_id)

        gateway.assert_called_once()
        assert receipt.transaction_id == "txn_abc"

    def test_gateway_failure_marks_receipt_failed(self):
        gateway = Mock(side_effect=RuntimeError("card declined"))
        service = service_with_gateway(gateway)
        ride = completed_ride(service)

        with pytest.raises(RuntimeError):
            service.process_payment(ride.ride_id)

        assert service.get_receipt(ride.ride_id).payment_status == PaymentStatus.FAILED

    def test_failed_payment_can_be_retried(self):
        gateway = Mock(side_effect=[RuntimeError("timeout"), "txn_retry"])
        service = service_with_gateway(gateway)
        ride = completed_ride(service)

        with pytest.raises(RuntimeError):
            service.process_payment(ride.ride_id)
        receipt = service.process_payment(ride.ride_id)

        assert receipt.payment_status == PaymentStatus.COMPLETED
        assert receipt.transaction_id == "txn_retry"

    def test_unfinished_ride_cannot_be_paid(self, service):
        ride = service.request_ride("rider_1", PICKUP, DESTINATION)

        with pytest.raises(ValidationError):
            service.process_payment(ride.ride_id)

    def test_missing_ride(self, service):
        with pytest.raises(RideNotFound):
            service.process_payment("missing")


class TestRatings:
    def test_rating_updates_driver_average(self, service):
        first = completed_ride(service)
        second = completed_ride(service)

        service.submit_rating(first.ride_id, 5)
        service.submit_rating(second.ride_id, 4)

        driver = service.get_driver("driver_1")
        assert driver.total_ratings == 2
        assert driver.average_rating == 4.5

    def test_rating_stored_with_ride(self, service):
        ride = completed_ride(service)

        service.submit_rating(ride.ride_id, 3, "ok")

        stored = service.ratings.get_rating(ride.ride_id)
        assert stored.rating == 3
        assert stored.comment == "ok"
        assert stored.rider_id == "rider_1"

    @pytest.mark.parametrize("value", [0, 6, -1])
    def test_out_of_range_rejected(self, service, value):
        ride = completed_ride(service)

        with pytest.raises(ValidationError):
            service.submit_rating(ride.ride_id, value)

    def test_only_completed_rides(self, service):
        ride = service.request_ride("rider_1", PICKUP, DESTINATION)
        service.accept(ride.ride_id, "driver_1")

        with pytest.raises(ValidationError):
            service.submit_rating(ride.ride_id, 5)

    def test_one_rating_per_ride(self, service):
        ride = completed_ride(service)
        service.submit_rating(ride.ride_id, 5)

        with pytest.raises(ValidationError):
            service.submit_rating(ride.ride_id, 1)

        assert service.get_driver("driver_1").total_ratings == 1

    def test_missing_ride(self, service):
        with pytest.raises(RideNotFound):
            service.submit_rating("missing", 5)
