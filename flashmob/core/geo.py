"""
Great-circle distance helpers
"""

import math
from dataclasses import dataclass

EARTH_RADIUS_MILES = 3959.0


@dataclass(frozen=True)
class Coordinates:
    lat: float
    lng: float


def distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Haversine distance between two points, in miles
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    # Rounding can push `a` a hair past 1.0 for antipodal points
    a = min(1.0, max(0.0, a))
    return 2 * EARTH_RADIUS_MILES * math.asin(math.sqrt(a))


def distance_between(a: Coordinates, b: Coordinates) -> float:
    return distance(a.lat, a.lng, b.lat, b.lng)
