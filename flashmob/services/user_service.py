"""
User accounts, profiles and study preferences
"""

from typing import List, Optional
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from flashmob.core.database import db_manager
from flashmob.core.exceptions import AuthenticationError, ConflictError, ValidationError
from flashmob.core.security import get_password_hash, verify_password
from flashmob.models.study_session import StudySession, SessionParticipant, CLOSED_STATUSES
from flashmob.models.user import User, default_preferences
from flashmob.models.venue import Venue
from flashmob.schemas.user import UserCreate, UserUpdate, PreferencesUpdate
from flashmob.services.geocoding import geocode

logger = logging.getLogger(__name__)


async def active_session_ids(db: AsyncSession, user_id: int) -> List[str]:
    """
    Sessions the user currently belongs to, derived from participant records
    """
    stmt = (
        select(SessionParticipant.session_id)
        .join(StudySession, StudySession.id == SessionParticipant.session_id)
        .where(
            SessionParticipant.user_id == user_id,
            StudySession.status.not_in(CLOSED_STATUSES),
        )
        .order_by(StudySession.start_time)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


class UserService:

    def __init__(self):
        self.db_manager = db_manager
        self.logger = logging.getLogger(__name__)

    async def get_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def register(self, db: AsyncSession, data: UserCreate) -> User:
        email = data.email.lower()
        if await self.get_by_email(db, email):
            raise ConflictError("Email already registered", code="EMAIL_EXISTS")

        coordinates = geocode(data.address)
        preferences = default_preferences()
        if data.preferences is not None:
            preferences = await self._merge_preferences(db, preferences, data.preferences)

        user = User(
            email=email,
            password_hash=get_password_hash(data.password),
            name=data.name,
            address=data.address.strip(),
            lat=coordinates.lat,
            lng=coordinates.lng,
            is_admin=False,
            is_suspended=False,
            preferences=preferences,
        )

        try:
            async with self.db_manager.transaction(db):
                db.add(user)
        except IntegrityError:
            # Lost a race with a concurrent registration for the same email
            raise ConflictError("Email already registered", code="EMAIL_EXISTS")

        self.logger.info(f"User {user.id} registered")
        return user

    async def authenticate(self, db: AsyncSession, email: str, password: str) -> User:
        user = await self.get_by_email(db, email)
        if not user or not verify_password(password, user.password_hash):
            raise AuthenticationError("Incorrect email or password")
        if user.is_suspended:
            raise AuthenticationError("User account is suspended")
        return user

    async def update_profile(self, db: AsyncSession, user: User, data: UserUpdate) -> User:
        """
        Update name and/or address; a new address is geocoded again
        """
        async with self.db_manager.transaction(db):
            if data.name is not None:
                user.name = data.name
            if data.address is not None and data.address.strip() != user.address:
                coordinates = geocode(data.address)
                user.address = data.address.strip()
                user.lat = coordinates.lat
                user.lng = coordinates.lng
                self.logger.info(f"User {user.id} moved, coordinates recomputed")
        return user

    async def _merge_preferences(
        self,
        db: AsyncSession,
        current: dict,
        update: PreferencesUpdate
    ) -> dict:
        preferences = dict(current)

        if update.subjects is not None:
            # De-duplicate, keeping first occurrence order
            preferences["subjects"] = list(dict.fromkeys(s.strip() for s in update.subjects if s.strip()))

        if update.max_distance is not None:
            if update.max_distance <= 0:
                raise ValidationError("Max distance must be positive", field="max_distance")
            preferences["max_distance"] = float(update.max_distance)

        if update.favorite_venues is not None:
            favorites = list(dict.fromkeys(update.favorite_venues))
            if favorites:
                result = await db.execute(select(Venue.id).where(Venue.id.in_(favorites)))
                unknown = set(favorites) - set(result.scalars().all())
                if unknown:
                    raise ValidationError(
                        f"Unknown venue ids: {', '.join(sorted(unknown))}",
                        field="favorite_venues"
                    )
            preferences["favorite_venues"] = favorites

        return preferences

    async def update_preferences(self, db: AsyncSession, user: User, update: PreferencesUpdate) -> User:
        preferences = await self._merge_preferences(db, user.preferences or default_preferences(), update)
        async with self.db_manager.transaction(db):
            # Assign a new dict so the JSON column is flagged dirty
            user.preferences = preferences
        return user


user_service = UserService()
