"""
Address geocoding backed by a city lookup table
"""

import logging
import re

from flashmob.config import settings
from flashmob.core.exceptions import ValidationError
from flashmob.core.geo import Coordinates

logger = logging.getLogger(__name__)

# City centres for every city that has seeded venues
CITY_COORDINATES = {
    "warrensburg": Coordinates(38.7628, -93.7360),
    "kansas city": Coordinates(39.0997, -94.5786),
    "overland park": Coordinates(38.9822, -94.6708),
    "olathe": Coordinates(38.8814, -94.8191),
    "new york": Coordinates(40.7128, -74.0060),
    "los angeles": Coordinates(34.0522, -118.2437),
    "chicago": Coordinates(41.8781, -87.6298),
    "houston": Coordinates(29.7604, -95.3698),
    "phoenix": Coordinates(33.4484, -112.0740),
    "tempe": Coordinates(33.4255, -111.9400),
    "seattle": Coordinates(47.6062, -122.3321),
    "boston": Coordinates(42.3601, -71.0589),
    "cambridge": Coordinates(42.3736, -71.1097),
    "san francisco": Coordinates(37.7749, -122.4194),
    "denver": Coordinates(39.7392, -104.9903),
}

# Longest names first so "kansas city" wins over any shorter overlap
_CITY_NAMES = sorted(CITY_COORDINATES, key=len, reverse=True)


def lookup_city(address: str):
    """Return the coordinates of the first known city named in the address, or None"""
    normalized = " ".join(address.lower().split())
    for city in _CITY_NAMES:
        if re.search(rf"\b{re.escape(city)}\b", normalized):
            return CITY_COORDINATES[city]
    return None


def geocode(address: str) -> Coordinates:
    """
    Resolve an address to coordinates.

    Unknown addresses fall back to the configured default point unless
    GEOCODER_STRICT is enabled, in which case they are rejected.
    """
    if not address or not address.strip():
        raise ValidationError("Address is required", field="address")

    coordinates = lookup_city(address)
    if coordinates is not None:
        return coordinates

    if settings.GEOCODER_STRICT:
        raise ValidationError("Could not geocode address", field="address")

    logger.warning(f"Could not geocode address {address!r}, using default location")
    return Coordinates(settings.DEFAULT_LAT, settings.DEFAULT_LNG)
