"""
Venue directory: catalogue lookups and proximity search
"""

from typing import List, Optional
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from flashmob.core.exceptions import NotFoundError, ValidationError
from flashmob.core.geo import distance
from flashmob.models.user import User
from flashmob.models.venue import Venue

logger = logging.getLogger(__name__)


class VenueService:
    """Read-only queries over the seeded venue catalogue"""

    async def list_all(self, db: AsyncSession) -> List[Venue]:
        result = await db.execute(select(Venue).order_by(Venue.id))
        return list(result.scalars().all())

    async def get_by_id(self, db: AsyncSession, venue_id: str) -> Venue:
        venue = await db.get(Venue, venue_id)
        if not venue:
            raise NotFoundError("Venue", venue_id)
        return venue

    async def list_nearby(
        self,
        db: AsyncSession,
        lat: float,
        lng: float,
        radius_miles: float
    ) -> List[dict]:
        """
        Venues within radius_miles of (lat, lng), nearest first.

        Each result is {"venue": Venue, "distance": miles}; the full matching
        set is returned.
        """
        if radius_miles < 0:
            raise ValidationError("Radius must not be negative", field="radius")

        matches = []
        for venue in await self.list_all(db):
            miles = distance(lat, lng, venue.lat, venue.lng)
            if miles <= radius_miles:
                matches.append({"venue": venue, "distance": miles})

        matches.sort(key=lambda item: item["distance"])
        return matches

    async def recommend(
        self,
        db: AsyncSession,
        user: User,
        radius_miles: Optional[float] = None
    ) -> List[dict]:
        """
        Venues near the user within their max-distance preference, favourites first
        """
        radius = radius_miles if radius_miles is not None else user.max_distance
        nearby = await self.list_nearby(db, user.lat, user.lng, radius)

        favorites = set(user.favorite_venues)
        # sort() is stable, so distance order holds within each group
        nearby.sort(key=lambda item: item["venue"].id not in favorites)
        for item in nearby:
            item["is_favorite"] = item["venue"].id in favorites
        return nearby


venue_service = VenueService()
