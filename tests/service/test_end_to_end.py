"""Full rider/driver scenario through the public service API."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from ride_dispatch.core.exceptions import InvalidOneTimeCode, RideUnavailable
from ride_dispatch.pubsub import TOPIC_RIDE_STATUS_UPDATED
from ride_dispatch.receipts import PaymentStatus
from ride_dispatch.ride import RideStatus
from tests.conftest import DESTINATION, FIXED_CODE, PICKUP


class TestRideScenario:
    def test_request_race_start_end(self, service, broadcaster, recorder):
        rider_updates = []
        ride = service.request_ride("rider_1", PICKUP, DESTINATION, tier="economy")
        broadcaster.subscribe(
            TOPIC_RIDE_STATUS_UPDATED,
            lambda topic, payload: rider_updates.append(payload.status.value),
            ride_id=ride.ride_id,
        )
        assert ride.price == 170

        service.report_driver_location("driver_a", (12.970, 77.590))
        service.report_driver_location("driver_b", (12.975, 77.595))

        def claim(driver_id):
            try:
                return service.accept(ride.ride_id, driver_id)
            except RideUnavailable as e:
                return e

        with ThreadPoolExecutor(max_workers=2) as executor:
            results = list(executor.map(claim, ["driver_a", "driver_b"]))

        winners = [r for r in results if not isinstance(r, Exception)]
        losers = [r for r in results if isinstance(r, RideUnavailable)]
        assert len(winners) == 1
        assert len(losers) == 1
        winner = winners[0].driver_id

        with pytest.raises(InvalidOneTimeCode):
            service.start(ride.ride_id, "0000")
        assert service.get_ride(ride.ride_id).status == RideStatus.ASSIGNED

        service.start(ride.ride_id, FIXED_CODE)
        ended = service.end(ride.ride_id)

        assert ended.status == RideStatus.COMPLETED
        assert ended.driver_id == winner
        assert service.get_receipt(ride.ride_id).total_fare == 170
        assert recorder.statuses(ride.ride_id) == [
            "requested",
            "assigned",
            "started",
            "completed",
        ]
        assert rider_updates == ["assigned", "started", "completed"]

    def test_pay_and_rate_after_trip(self, service):
        ride = service.request_ride("rider_1", PICKUP, DESTINATION)
        service.accept(ride.ride_id, "driver_1")
        service.start(ride.ride_id, FIXED_CODE)
        service.pause(ride.ride_id)
        service.resume(ride.ride_id)
        service.end(ride.ride_id)

        receipt = service.process_payment(ride.ride_id)
        rating = service.submit_rating(ride.ride_id, 5, "Smooth ride")

        assert receipt.payment_status == PaymentStatus.COMPLETED
        assert receipt.transaction_id == "txn_test123"
        assert rating.driver_id == "driver_1"
        assert service.get_driver("driver_1").average_rating == 5.0

    def test_demand_counters_settle(self, service, metrics):
        service.report_driver_location("driver_1", (12.97, 77.59))
        ride = service.request_ride("rider_1", PICKUP, DESTINATION)
        assert metrics.snapshot().pending_ride_count == 1

        service.accept(ride.ride_id, "driver_1")
        service.start(ride.ride_id, FIXED_CODE)
        service.end(ride.ride_id)

        snapshot = metrics.snapshot()
        assert snapshot.pending_ride_count == 0
        assert snapshot.available_driver_count == 1
