"""Log filters for rider privacy and correlation id defaults."""

import logging
import re


class PIIFilter(logging.Filter):
    """Masks rider PII in log messages.

    Emails and phone numbers are replaced outright. Coordinates are cut to
    two decimals (roughly 1 km), so a log shows the area of a pickup but not
    the door. One-time codes written as ``code=NNNN`` are hidden.
    """

    EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+")
    PHONE_PATTERN = re.compile(r"\+?\d{2,3}[-.\s]\d{3,4}[-.\s]?\d{4}")
    COORDINATE_PATTERN = re.compile(r"(-?\d{1,3}\.\d{2})\d+")
    CODE_PATTERN = re.compile(r"\b((?:one_time_)?code)=\d{4}\b")

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = self.mask(record.msg)
        return True

    @classmethod
    def mask(cls, message: str) -> str:
        if "@" in message:
            message = cls.EMAIL_PATTERN.sub("[EMAIL]", message)
        if any(c.isdigit() for c in message):
            message = cls.PHONE_PATTERN.sub("[PHONE]", message)
            message = cls.CODE_PATTERN.sub(r"\1=[CODE]", message)
            message = cls.COORDINATE_PATTERN.sub(r"\1", message)
        return message


class DefaultCorrelationFilter(logging.Filter):
    """Fills correlation_id with "-" for records logged outside any operation.

    Runs after CorrelationFilter so formatters can always reference the field.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "correlation_id"):
            record.correlation_id = "-"
        return True
