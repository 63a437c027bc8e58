"""Great-circle distance between pickup and destination.

The dispatch engine consumes distance as a pure function of two
(latitude, longitude) pairs. Any callable with the DistanceFunction
signature can be injected in its place (e.g. a road-network router).
"""

from collections.abc import Callable
from math import atan2, cos, radians, sin, sqrt

EARTH_RADIUS_KM = 6371.0

Coordinate = tuple[float, float]
DistanceFunction = Callable[[Coordinate, Coordinate], float]


def haversine_distance_km(
    lat1: float,
    lon1: float,
    lat2: float,
    lon2: float,
) -> float:
    """Calculate the great-circle distance between two points in kilometers.

    Args:
        lat1: Latitude of first point in degrees
        lon1: Longitude of first point in degrees
        lat2: Latitude of second point in degrees
        lon2: Longitude of second point in degrees

    Returns:
        Distance between the two points in kilometers
    """
    lat1, lon1, lat2, lon2 = map(radians, [lat1, lon1, lat2, lon2])
    dlat = lat2 - lat1
    dlon = lon2 - lon1

    a = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    c = 2 * atan2(sqrt(a), sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def distance(point_a: Coordinate, point_b: Coordinate) -> float:
    """Distance in kilometers between two (lat, lng) coordinates."""
    return haversine_distance_km(point_a[0], point_a[1], point_b[0], point_b[1])
