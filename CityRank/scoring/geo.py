"""
Great-circle distance and proximity scoring.
"""

import math

EARTH_RADIUS_KM = 6371.0

# Proximity score used when the client location is unknown
NEUTRAL_PROXIMITY = 0.5


def distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Haversine distance in kilometers between two points given in degrees.
    """
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (math.sin(d_lat / 2) ** 2 +
         math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) *
         math.sin(d_lon / 2) ** 2)
    # Rounding can push a marginally past 1 for antipodal points
    a = min(1.0, max(0.0, a))
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def proximity_score(distance: float, max_distance_km: float = 1000) -> float:
    """Linear decay from 1.0 at 0 km to 0.0 at ``max_distance_km`` and beyond."""
    return max(0.0, 1.0 - distance / max_distance_km)
