"""Topic definitions for ride and driver state changes."""

TOPIC_DRIVER_LOCATION_UPDATED = "driver_location_updated"
TOPIC_RIDE_REQUESTED = "ride_requested"
TOPIC_RIDE_STATUS_UPDATED = "ride_status_updated"

ALL_TOPICS = [
    TOPIC_DRIVER_LOCATION_UPDATED,
    TOPIC_RIDE_REQUESTED,
    TOPIC_RIDE_STATUS_UPDATED,
]


def validate_topic(topic: str) -> None:
    if topic not in ALL_TOPICS:
        raise ValueError(f"Topic '{topic}' is not a valid topic. Valid topics: {ALL_TOPICS}")


# Payload field naming the entity a topic's events belong to
TOPIC_ENTITY_FIELDS = {
    TOPIC_DRIVER_LOCATION_UPDATED: "driver_id",
    TOPIC_RIDE_REQUESTED: "ride_id",
    TOPIC_RIDE_STATUS_UPDATED: "ride_id",
}


def entity_channel(topic: str, entity_id: str) -> str:
    """Channel carrying one ride's (or one driver's) events on a topic."""
    validate_topic(topic)
    return f"{topic}:{entity_id}"
