"""Real-time propagation of ride and driver state changes."""

from .broadcaster import EventBroadcaster, EventRelay, SubscriberDisconnected, Subscription
from .channels import (
    ALL_TOPICS,
    TOPIC_DRIVER_LOCATION_UPDATED,
    TOPIC_RIDE_REQUESTED,
    TOPIC_RIDE_STATUS_UPDATED,
    entity_channel,
)
from .redis_relay import RedisEventRelay

__all__ = [
    "ALL_TOPICS",
    "EventBroadcaster",
    "EventRelay",
    "RedisEventRelay",
    "SubscriberDisconnected",
    "Subscription",
    "TOPIC_DRIVER_LOCATION_UPDATED",
    "TOPIC_RIDE_REQUESTED",
    "TOPIC_RIDE_STATUS_UPDATED",
    "entity_channel",
]
