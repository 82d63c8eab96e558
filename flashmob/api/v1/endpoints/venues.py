"""
Venue directory endpoints
"""

from typing import Any, List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from flashmob.core.database import get_session
from flashmob.core.security import get_current_user
from flashmob.models.user import User
from flashmob.schemas.venue import VenueResponse, NearbyVenueResponse, RecommendedVenueResponse
from flashmob.services.venue_service import venue_service

router = APIRouter()


def _with_distance(item: dict) -> dict:
    data = VenueResponse.model_validate(item["venue"]).model_dump()
    data["distance"] = round(item["distance"], 2)
    if "is_favorite" in item:
        data["is_favorite"] = item["is_favorite"]
    return data


@router.get("/", response_model=List[VenueResponse])
async def list_venues(
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user)
) -> Any:
    """
    Full venue catalogue
    """
    return await venue_service.list_all(db)


@router.get("/nearby", response_model=List[NearbyVenueResponse])
async def nearby_venues(
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lng: Optional[float] = Query(None, ge=-180, le=180),
    radius: Optional[float] = Query(None, ge=0),
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user)
) -> Any:
    """
    Venues within radius miles, nearest first.
    Defaults to the caller's location and max-distance preference.
    """
    lat = current_user.lat if lat is None else lat
    lng = current_user.lng if lng is None else lng
    radius = current_user.max_distance if radius is None else radius

    matches = await venue_service.list_nearby(db, lat, lng, radius)
    return [_with_distance(item) for item in matches]


@router.get("/recommended", response_model=List[RecommendedVenueResponse])
async def recommended_venues(
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user)
) -> Any:
    """
    Nearby venues with the caller's favourites first
    """
    matches = await venue_service.recommend(db, current_user)
    return [_with_distance(item) for item in matches]


@router.get("/{venue_id}", response_model=VenueResponse)
async def get_venue(
    venue_id: str,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user)
) -> Any:
    return await venue_service.get_by_id(db, venue_id)
