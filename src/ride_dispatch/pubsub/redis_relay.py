"""Redis pub/sub fan-out for processes outside the dispatch engine."""

import json
import logging
from datetime import UTC, datetime
from typing import Any

import redis
from opentelemetry import trace
from redis.exceptions import RedisError

from ride_dispatch.core.correlation import get_current_correlation_id

from .channels import TOPIC_ENTITY_FIELDS, entity_channel, validate_topic

logger = logging.getLogger(__name__)

_tracer = trace.get_tracer(__name__)


class RedisEventRelay:
    """Mirrors broadcast events onto Redis pub/sub.

    Every event goes to its topic channel and to the channel of the ride (or
    driver, for location updates) it concerns, e.g. ``ride_status_updated:<ride_id>``.
    A socket gateway serving one rider subscribes to the ride channel only.

    Messages are envelopes::

        {"topic": ..., "entity_id": ..., "correlation_id": ..., "published_at": ..., "data": {...}}

    Both channels are written in one pipeline round trip. Redis failures are
    logged and dropped; the in-process subscribers have already been served.
    """

    def __init__(self, client: redis.Redis):
        self._client = client

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "RedisEventRelay":
        client = redis.Redis(
            host=config["host"],
            port=config["port"],
            db=config["db"],
            password=config.get("password"),
            ssl=config.get("ssl", False),
            decode_responses=True,
        )
        return cls(client)

    def channels_for(self, topic: str, message: dict[str, Any]) -> list[str]:
        entity_id = message.get(TOPIC_ENTITY_FIELDS[topic])
        if entity_id is None:
            return [topic]
        return [topic, entity_channel(topic, entity_id)]

    def publish_sync(self, topic: str, message: dict[str, Any]) -> None:
        validate_topic(topic)
        entity_id = message.get(TOPIC_ENTITY_FIELDS[topic])
        correlation_id = get_current_correlation_id()
        envelope = {
            "topic": topic,
            "entity_id": entity_id,
            "correlation_id": correlation_id,
            "published_at": datetime.now(UTC).isoformat(),
            "data": message,
        }
        body = json.dumps(envelope, default=str)
        channels = self.channels_for(topic, message)

        with _tracer.start_as_current_span("redis.publish") as span:
            span.set_attribute("db.system", "redis")
            span.set_attribute("messaging.destination", topic)
            if entity_id is not None:
                span.set_attribute(TOPIC_ENTITY_FIELDS[topic], entity_id)
            if correlation_id:
                span.set_attribute("correlation_id", correlation_id)

            try:
                pipe = self._client.pipeline(transaction=False)
                for channel in channels:
                    pipe.publish(channel, body)
                pipe.execute()
            except RedisError as e:
                span.record_exception(e)
                logger.error(f"Failed to relay {topic} for {entity_id}: {e}")

    def close(self) -> None:
        self._client.close()
