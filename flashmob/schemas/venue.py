"""
Venue schemas
"""

from typing import Optional

from flashmob.schemas.base import BaseSchema


class VenueResponse(BaseSchema):
    id: str
    name: str
    address: str
    lat: float
    lng: float
    category: str
    wifi_quality: Optional[int] = None
    noise_level: Optional[int] = None
    study_rating: Optional[float] = None


class NearbyVenueResponse(VenueResponse):
    distance: float


class RecommendedVenueResponse(NearbyVenueResponse):
    is_favorite: bool = False
