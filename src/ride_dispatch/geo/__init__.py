from .distance import EARTH_RADIUS_KM, Coordinate, DistanceFunction, distance, haversine_distance_km

__all__ = [
    "EARTH_RADIUS_KM",
    "Coordinate",
    "DistanceFunction",
    "distance",
    "haversine_distance_km",
]
