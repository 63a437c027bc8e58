"""SQL persistence backend."""

from .database import init_database
from .repositories import SqlDriverStore, SqlRatingStore, SqlReceiptIssuer, SqlRideStore

__all__ = [
    "SqlDriverStore",
    "SqlRatingStore",
    "SqlReceiptIssuer",
    "SqlRideStore",
    "init_database",
]
