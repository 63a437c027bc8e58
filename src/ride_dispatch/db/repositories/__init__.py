from .driver_repository import SqlDriverStore
from .rating_repository import SqlRatingStore
from .receipt_repository import SqlReceiptIssuer
from .ride_repository import SqlRideStore

__all__ = ["SqlDriverStore", "SqlRatingStore", "SqlReceiptIssuer", "SqlRideStore"]
