import random
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock, patch

import pytest
import redis

from ride_dispatch.pricing import InMemoryDemandMetrics, RedisDemandMetrics
from ride_dispatch.pricing.demand_metrics import AVAILABLE_DRIVERS_KEY, PENDING_RIDES_KEY


@pytest.mark.unit
class TestInMemoryDemandMetrics:
    def test_starts_at_zero(self):
        snapshot = InMemoryDemandMetrics().snapshot()

        assert snapshot.pending_ride_count == 0
        assert snapshot.available_driver_count == 0

    def test_increment_and_decrement(self):
        metrics = InMemoryDemandMetrics()
        metrics.increment_pending_rides()
        metrics.increment_pending_rides()
        metrics.decrement_pending_rides()
        metrics.increment_available_drivers()

        snapshot = metrics.snapshot()
        assert snapshot.pending_ride_count == 1
        assert snapshot.available_driver_count == 1

    def test_decrement_clamped_at_zero(self):
        metrics = InMemoryDemandMetrics()
        metrics.decrement_pending_rides()
        metrics.decrement_available_drivers()

        snapshot = metrics.snapshot()
        assert snapshot.pending_ride_count == 0
        assert snapshot.available_driver_count == 0

    def test_random_sequences_never_negative(self):
        rng = random.Random(7)
        metrics = InMemoryDemandMetrics()
        operations = [
            metrics.increment_pending_rides,
            metrics.decrement_pending_rides,
            metrics.increment_available_drivers,
            metrics.decrement_available_drivers,
        ]

        for _ in range(2000):
            rng.choice(operations)()
            snapshot = metrics.snapshot()
            assert snapshot.pending_ride_count >= 0
            assert snapshot.available_driver_count >= 0

    def test_concurrent_increments_not_lost(self):
        metrics = InMemoryDemandMetrics()

        with ThreadPoolExecutor(max_workers=8) as executor:
            for _ in range(1000):
                executor.submit(metrics.increment_pending_rides)

        assert metrics.snapshot().pending_ride_count == 1000

    def test_clear(self):
        metrics = InMemoryDemandMetrics(pending_rides=3, available_drivers=4)
        metrics.clear()

        assert metrics.snapshot().pending_ride_count == 0


class TestRedisDemandMetrics:
    @pytest.fixture
    def client(self):
        client = MagicMock(spec=redis.Redis)
        client.register_script.return_value = MagicMock()
        return client

    def test_increment_uses_incr(self, client):
        metrics = RedisDemandMetrics(client)

        metrics.increment_pending_rides()
        metrics.increment_available_drivers()

        client.incr.assert_any_call(PENDING_RIDES_KEY)
        client.incr.assert_any_call(AVAILABLE_DRIVERS_KEY)

    def test_decrement_uses_clamped_script(self, client):
        metrics = RedisDemandMetrics(client)
        script = client.register_script.return_value

        metrics.decrement_pending_rides()

        script.assert_called_once_with(keys=[PENDING_RIDES_KEY])

    def test_snapshot_reads_both_keys(self, client):
        client.mget.return_value = ["4", None]

        snapshot = RedisDemandMetrics(client).snapshot()

        client.mget.assert_called_once_with(PENDING_RIDES_KEY, AVAILABLE_DRIVERS_KEY)
        assert snapshot.pending_ride_count == 4
        assert snapshot.available_driver_count == 0

    def test_snapshot_never_negative(self, client):
        client.mget.return_value = ["-3", "2"]

        snapshot = RedisDemandMetrics(client).snapshot()

        assert snapshot.pending_ride_count == 0

    def test_update_failure_is_logged_not_raised(self, client, caplog):
        client.incr.side_effect = redis.ConnectionError("down")

        RedisDemandMetrics(client).increment_pending_rides()

        assert "Failed to increment" in caplog.text

    def test_snapshot_failure_propagates(self, client):
        client.mget.side_effect = redis.ConnectionError("down")

        with pytest.raises(redis.ConnectionError):
            RedisDemandMetrics(client).snapshot()

    def test_from_config(self):
        with patch("ride_dispatch.pricing.demand_metrics.redis.Redis") as redis_cls:
            RedisDemandMetrics.from_config(
                {"host": "cache", "port": 6380, "db": 1, "password": None, "ssl": False}
            )

        redis_cls.assert_called_once_with(
            host="cache",
            port=6380,
            db=1,
            password=None,
            ssl=False,
            decode_responses=True,
        )
