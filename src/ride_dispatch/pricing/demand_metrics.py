"""Demand counters feeding the surge calculation.

Counters are a pricing signal only: reads are best-effort snapshots and
may be stale relative to concurrent ride creation.
"""

import logging
import threading
from typing import Protocol

import redis
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

PENDING_RIDES_KEY = "pending_rides_count"
AVAILABLE_DRIVERS_KEY = "available_drivers_count"

# Decrement only while positive so the counter never goes below zero.
_CLAMPED_DECR_SCRIPT = """
local current = tonumber(redis.call('GET', KEYS[1]) or '0')
if current > 0 then
    return redis.call('DECR', KEYS[1])
end
return current
"""


class DemandSnapshot(BaseModel):
    pending_ride_count: int = Field(ge=0)
    available_driver_count: int = Field(ge=0)


class DemandMetricsStore(Protocol):
    def increment_pending_rides(self) -> None: ...

    def decrement_pending_rides(self) -> None: ...

    def increment_available_drivers(self) -> None: ...

    def decrement_available_drivers(self) -> None: ...

    def snapshot(self) -> DemandSnapshot: ...


class InMemoryDemandMetrics:
    """Process-local demand counters.

    Thread-safe: every read-modify-write is done under a single lock.
    """

    def __init__(self, pending_rides: int = 0, available_drivers: int = 0) -> None:
        self._lock = threading.Lock()
        self._pending_rides = max(pending_rides, 0)
        self._available_drivers = max(available_drivers, 0)

    def increment_pending_rides(self) -> None:
        with self._lock:
            self._pending_rides += 1

    def decrement_pending_rides(self) -> None:
        with self._lock:
            if self._pending_rides > 0:
                self._pending_rides -= 1

    def increment_available_drivers(self) -> None:
        with self._lock:
            self._available_drivers += 1

    def decrement_available_drivers(self) -> None:
        with self._lock:
            if self._available_drivers > 0:
                self._available_drivers -= 1

    def snapshot(self) -> DemandSnapshot:
        with self._lock:
            return DemandSnapshot(
                pending_ride_count=self._pending_rides,
                available_driver_count=self._available_drivers,
            )

    def clear(self) -> None:
        with self._lock:
            self._pending_rides = 0
            self._available_drivers = 0


class RedisDemandMetrics:
    """Demand counters shared across processes through Redis.

    Counter updates are fire-and-forget: a Redis failure is logged and the
    ride operation that triggered it still succeeds. Snapshot reads raise so
    the surge calculator can fall back to no surge.
    """

    def __init__(self, client: "redis.Redis") -> None:
        self._client = client
        self._clamped_decr = client.register_script(_CLAMPED_DECR_SCRIPT)

    @classmethod
    def from_config(cls, config: dict) -> "RedisDemandMetrics":
        client = redis.Redis(
            host=config["host"],
            port=config["port"],
            db=config["db"],
            password=config.get("password"),
            ssl=config.get("ssl", False),
            decode_responses=True,
        )
        return cls(client)

    def _incr(self, key: str) -> None:
        try:
            self._client.incr(key)
        except redis.RedisError as e:
            logger.error(f"Failed to increment {key}: {e}")

    def _decr(self, key: str) -> None:
        try:
            self._clamped_decr(keys=[key])
        except redis.RedisError as e:
            logger.error(f"Failed to decrement {key}: {e}")

    def increment_pending_rides(self) -> None:
        self._incr(PENDING_RIDES_KEY)

    def decrement_pending_rides(self) -> None:
        self._decr(PENDING_RIDES_KEY)

    def increment_available_drivers(self) -> None:
        self._incr(AVAILABLE_DRIVERS_KEY)

    def decrement_available_drivers(self) -> None:
        self._decr(AVAILABLE_DRIVERS_KEY)

    def snapshot(self) -> DemandSnapshot:
        pending, available = self._client.mget(PENDING_RIDES_KEY, AVAILABLE_DRIVERS_KEY)
        return DemandSnapshot(
            pending_ride_count=max(int(pending or 0), 0),
            available_driver_count=max(int(available or 0), 0),
        )
