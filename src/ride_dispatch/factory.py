"""Builds a RideService from settings, choosing storage and metrics backends."""

import logging

from ride_dispatch.dispatch_logging import setup_logging
from ride_dispatch.pricing import DemandMetricsStore, InMemoryDemandMetrics, RedisDemandMetrics
from ride_dispatch.pubsub import EventBroadcaster, EventRelay, RedisEventRelay
from ride_dispatch.ratings import InMemoryRatingStore
from ride_dispatch.receipts import InMemoryReceiptIssuer
from ride_dispatch.service import RideService
from ride_dispatch.settings import Settings, get_settings
from ride_dispatch.stores import InMemoryDriverStore, InMemoryRideStore

logger = logging.getLogger(__name__)


def create_demand_metrics(settings: Settings) -> DemandMetricsStore:
    if settings.dispatch.metrics_backend == "redis":
        return RedisDemandMetrics.from_config(settings.redis.model_dump())
    return InMemoryDemandMetrics()


def create_broadcaster(settings: Settings) -> EventBroadcaster:
    relays: list[EventRelay] = []
    if settings.dispatch.relay_events_to_redis:
        relays.append(RedisEventRelay.from_config(settings.redis.model_dump()))
    return EventBroadcaster(relays=relays)


def create_ride_service(settings: Settings | None = None) -> RideService:
    """Wire a RideService for the configured backends."""
    settings = settings or get_settings()
    metrics = create_demand_metrics(settings)
    broadcaster = create_broadcaster(settings)

    if settings.dispatch.store_backend == "sql":
        from ride_dispatch.db import (
            SqlDriverStore,
            SqlRatingStore,
            SqlReceiptIssuer,
            SqlRideStore,
            init_database,
        )

        session_factory = init_database(settings.database.url, echo=settings.database.echo)
        service = RideService(
            rides=SqlRideStore(session_factory),
            drivers=SqlDriverStore(session_factory),
            metrics=metrics,
            broadcaster=broadcaster,
            receipts=SqlReceiptIssuer(session_factory),
            ratings=SqlRatingStore(session_factory),
            default_tier=settings.dispatch.default_tier,
            default_payment_method=settings.dispatch.default_payment_method,
        )
    else:
        service = RideService(
            rides=InMemoryRideStore(),
            drivers=InMemoryDriverStore(),
            metrics=metrics,
            broadcaster=broadcaster,
            receipts=InMemoryReceiptIssuer(),
            ratings=InMemoryRatingStore(),
            default_tier=settings.dispatch.default_tier,
            default_payment_method=settings.dispatch.default_payment_method,
        )

    logger.info(
        "Ride service ready (store=%s, metrics=%s, redis_relay=%s)",
        settings.dispatch.store_backend,
        settings.dispatch.metrics_backend,
        settings.dispatch.relay_events_to_redis,
    )
    return service


def bootstrap(settings: Settings | None = None) -> RideService:
    """Configure logging, then build the service. Entry point for host processes."""
    settings = settings or get_settings()
    setup_logging(
        level=settings.logging.level,
        json_output=settings.logging.format == "json",
        environment=settings.logging.environment,
    )
    return create_ride_service(settings)
