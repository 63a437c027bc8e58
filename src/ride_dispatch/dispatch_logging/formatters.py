"""Log formatters for JSON and human-readable output."""

import json
import logging
from datetime import UTC, datetime
from typing import Any

CONTEXT_FIELDS = ("ride_id", "driver_id", "rider_id", "correlation_id")


def context_fields(record: logging.LogRecord) -> dict[str, Any]:
    """Ride/driver context carried by a record, in a stable order."""
    return {
        field: getattr(record, field)
        for field in CONTEXT_FIELDS
        if getattr(record, field, None) is not None
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per line for log shipping."""

    def __init__(self, environment: str = "development", service: str = "ride-dispatch"):
        super().__init__()
        self.environment = environment
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service,
            "env": self.environment,
        }
        log_data.update(context_fields(record))

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class DevFormatter(logging.Formatter):
    """Single-line format for terminals; appends whichever context fields are set."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s [%(levelname)8s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = {k: v for k, v in context_fields(record).items() if v != "-"}
        if not fields:
            return line
        # Keep the context on the message line, ahead of any traceback
        head, sep, tail = line.partition("\n")
        context = " ".join(f"{k}={v}" for k, v in fields.items())
        return f"{head} [{context}]{sep}{tail}"
