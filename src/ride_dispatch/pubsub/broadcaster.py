"""In-process topic-keyed publish/subscribe for ride and driver updates."""

import logging
import threading
from collections.abc import Callable
from typing import Any, Protocol

from pydantic import BaseModel

from .channels import ALL_TOPICS, validate_topic

logger = logging.getLogger(__name__)

EventHandler = Callable[[str, BaseModel], None]


class SubscriberDisconnected(Exception):
    """Raised by a handler whose consumer has gone away."""


class EventRelay(Protocol):
    def publish_sync(self, channel: str, message: dict[str, Any]) -> None: ...


class Subscription:
    """A subscriber's membership on one topic.

    When ride_id is set only payloads for that ride are delivered, which is
    how a rider follows a single trip while drivers watch the whole topic.
    """

    def __init__(
        self,
        broadcaster: "EventBroadcaster",
        topic: str,
        handler: EventHandler,
        ride_id: str | None = None,
    ) -> None:
        self.topic = topic
        self.ride_id = ride_id
        self._handler = handler
        self._broadcaster = broadcaster
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def matches(self, payload: BaseModel) -> bool:
        if self.ride_id is None:
            return True
        return getattr(payload, "ride_id", None) == self.ride_id

    def deliver(self, payload: BaseModel) -> None:
        self._handler(self.topic, payload)

    def close(self) -> None:
        if self._active:
            self._active = False
            self._broadcaster._remove(self)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class EventBroadcaster:
    """Fans each published state change out to every current subscriber.

    Delivery is synchronous on the publishing thread, so callers that
    publish while holding a ride's lock get per-ride ordering for free.
    Delivery is fire-and-forget: subscriber failures never reach the
    publisher, and nothing is kept for subscribers that join later.

    Thread-safe: the subscription table is guarded by a lock; handlers are
    invoked outside it so they may subscribe or unsubscribe.
    """

    def __init__(self, relays: list[EventRelay] | None = None) -> None:
        self._lock = threading.Lock()
        self._subscriptions: dict[str, list[Subscription]] = {topic: [] for topic in ALL_TOPICS}
        self._relays = list(relays or [])

    def subscribe(
        self, topic: str, handler: EventHandler, ride_id: str | None = None
    ) -> Subscription:
        validate_topic(topic)
        subscription = Subscription(self, topic, handler, ride_id=ride_id)
        with self._lock:
            self._subscriptions[topic].append(subscription)
        return subscription

    def publish(self, topic: str, payload: BaseModel) -> int:
        """Deliver payload to the topic's subscribers; returns how many received it."""
        validate_topic(topic)
        with self._lock:
            targets = [s for s in self._subscriptions[topic] if s.matches(payload)]

        delivered = 0
        for subscription in targets:
            if not subscription.active:
                continue
            try:
                subscription.deliver(payload)
                delivered += 1
            except SubscriberDisconnected:
                logger.debug(f"Dropping disconnected subscriber on {topic}")
                subscription.close()
            except Exception:
                logger.exception(f"Subscriber failed handling {topic}")

        if self._relays:
            message = payload.model_dump(mode="json")
            for relay in self._relays:
                relay.publish_sync(topic, message)

        return delivered

    def subscriber_count(self, topic: str) -> int:
        validate_topic(topic)
        with self._lock:
            return len(self._subscriptions[topic])

    def _remove(self, subscription: Subscription) -> None:
        with self._lock:
            subscribers = self._subscriptions[subscription.topic]
            if subscription in subscribers:
                subscribers.remove(subscription)
