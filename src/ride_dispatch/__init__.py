"""Ride lifecycle and dispatch engine."""

from ride_dispatch.factory import bootstrap, create_ride_service
from ride_dispatch.service import RideService

__version__ = "0.1.0"

__all__ = ["RideService", "bootstrap", "create_ride_service"]
