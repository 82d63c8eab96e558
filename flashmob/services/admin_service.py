"""
Platform administration: user management and dashboard statistics
"""

from typing import Dict, List
import logging

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from flashmob.config import settings
from flashmob.core import access
from flashmob.core.database import db_manager
from flashmob.core.exceptions import NotFoundError, ValidationError
from flashmob.core.security import get_password_hash
from flashmob.models.join_request import JoinRequest, JoinRequestStatus
from flashmob.models.study_session import StudySession, SessionStatus
from flashmob.models.user import User, default_preferences
from flashmob.models.venue import Venue
from flashmob.services.geocoding import geocode

logger = logging.getLogger(__name__)


class AdminService:
    """Operations reserved for platform admins"""

    def __init__(self):
        self.db_manager = db_manager
        self.logger = logging.getLogger(__name__)

    async def list_users(self, db: AsyncSession, admin: User) -> List[User]:
        access.require_admin(admin)
        result = await db.execute(select(User).order_by(User.id))
        return list(result.scalars().all())

    async def suspend_user(self, db: AsyncSession, admin: User, user_id: int, suspended: bool = True) -> User:
        access.require_admin(admin)
        if user_id == admin.id:
            raise ValidationError("Admins cannot suspend themselves", field="user_id")

        async with self.db_manager.transaction(db):
            user = await db.get(User, user_id)
            if not user:
                raise NotFoundError("User", user_id)
            user.is_suspended = suspended

        self.logger.info(f"User {user_id} {'suspended' if suspended else 'reinstated'} by admin {admin.id}")
        return user

    async def stats(self, db: AsyncSession, admin: User) -> Dict[str, int]:
        access.require_admin(admin)

        async def count(stmt) -> int:
            return (await db.execute(stmt)).scalar() or 0

        return {
            "total_users": await count(select(func.count(User.id))),
            "total_sessions": await count(select(func.count(StudySession.id))),
            "active_sessions": await count(
                select(func.count(StudySession.id)).where(StudySession.status == SessionStatus.ACTIVE)
            ),
            "pending_sessions": await count(
                select(func.count(StudySession.id)).where(
                    StudySession.status == SessionStatus.PENDING_ADMIN_APPROVAL
                )
            ),
            "total_venues": await count(select(func.count(Venue.id))),
            "pending_join_requests": await count(
                select(func.count(JoinRequest.id)).where(JoinRequest.status == JoinRequestStatus.PENDING)
            ),
        }

    async def ensure_admin_user(self, db: AsyncSession) -> User:
        """
        Create the bootstrap admin from settings, or promote the existing account
        """
        if not settings.ADMIN_PASSWORD:
            raise ValidationError("ADMIN_PASSWORD is not configured", field="ADMIN_PASSWORD")

        email = settings.ADMIN_EMAIL.lower()
        result = await db.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()

        async with self.db_manager.transaction(db):
            if user is None:
                coordinates = geocode("Warrensburg, MO")
                user = User(
                    email=email,
                    password_hash=get_password_hash(settings.ADMIN_PASSWORD),
                    name=settings.ADMIN_NAME,
                    address="Warrensburg, MO",
                    lat=coordinates.lat,
                    lng=coordinates.lng,
                    is_admin=True,
                    is_suspended=False,
                    preferences=default_preferences(),
                )
                db.add(user)
                self.logger.info(f"Created admin user {email}")
            elif not user.is_admin:
                user.is_admin = True
                self.logger.info(f"Promoted {email} to admin")

        return user


admin_service = AdminService()
