"""
Study session aggregate: lifecycle state machine, membership and queries
"""

from datetime import datetime
from typing import List, Optional
import logging

from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from flashmob.config import settings
from flashmob.core import access
from flashmob.core.clock import to_utc, utcnow
from flashmob.core.database import db_manager
from flashmob.core.exceptions import (
    NotFoundError,
    ValidationError,
    InvalidStateError,
    NotParticipantError,
    CheckinWindowClosedError,
)
from flashmob.core.geo import distance
from flashmob.core.ids import generate_id, SESSION_SEQUENCE
from flashmob.core.locks import session_locks
from flashmob.core.metrics import record_session_transition, record_checkin
from flashmob.models.join_request import JoinRequest
from flashmob.models.message import SessionMessage
from flashmob.models.study_session import (
    StudySession,
    SessionParticipant,
    SessionStatus,
    ParticipantRole,
    CANCELLABLE_STATUSES,
    PUBLIC_STATUSES,
)
from flashmob.models.user import User
from flashmob.schemas.session import SessionCreate
from flashmob.services.checkin import checkin_window, is_checkin_open
from flashmob.services.venue_service import venue_service

logger = logging.getLogger(__name__)

# Visible by id only to admins and members
RESTRICTED_STATUSES = (SessionStatus.PENDING_ADMIN_APPROVAL, SessionStatus.REJECTED)


async def load_session_for_update(db: AsyncSession, session_id: str) -> StudySession:
    """
    Load a session with a row lock, refreshing anything already in the identity map
    """
    stmt = (
        select(StudySession)
        .where(StudySession.id == session_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    session = (await db.execute(stmt)).scalar_one_or_none()
    if not session:
        raise NotFoundError("Session", session_id)
    return session


async def count_participants(db: AsyncSession, session_id: str) -> int:
    stmt = select(func.count(SessionParticipant.id)).where(
        SessionParticipant.session_id == session_id
    )
    return (await db.execute(stmt)).scalar() or 0


class SessionService:
    """
    Session lifecycle operations.

    Every mutation holds the per-session lock for the whole read-check-write
    sequence and runs as a single transaction.
    """

    def __init__(self):
        self.db_manager = db_manager
        self.locks = session_locks
        self.logger = logging.getLogger(__name__)

    def _validate_bounds(self, duration: int, max_participants: int) -> None:
        if not settings.SESSION_MIN_DURATION <= duration <= settings.SESSION_MAX_DURATION:
            raise ValidationError(
                f"Duration must be between {settings.SESSION_MIN_DURATION} "
                f"and {settings.SESSION_MAX_DURATION} minutes",
                field="duration"
            )
        if not settings.SESSION_MIN_PARTICIPANTS <= max_participants <= settings.SESSION_MAX_PARTICIPANTS:
            raise ValidationError(
                f"Max participants must be between {settings.SESSION_MIN_PARTICIPANTS} "
                f"and {settings.SESSION_MAX_PARTICIPANTS}",
                field="max_participants"
            )

    async def create(
        self,
        db: AsyncSession,
        creator: User,
        data: SessionCreate,
        now: Optional[datetime] = None
    ) -> StudySession:
        """
        Create a session in pending_admin_approval with the creator as host
        """
        self._validate_bounds(data.duration, data.max_participants)

        now = to_utc(now or utcnow())
        start_time = to_utc(data.start_time)
        if start_time <= now:
            raise ValidationError("Start time must be in the future", field="start_time")

        location = data.location
        venue_name = location.venue_name
        lat, lng = location.lat, location.lng
        if location.venue_id:
            venue = await venue_service.get_by_id(db, location.venue_id)
            venue_name = venue_name or venue.name
            if lat is None or lng is None:
                lat, lng = venue.lat, venue.lng
        elif lat is None or lng is None:
            raise ValidationError("Location needs a venue or coordinates", field="location")

        async with self.db_manager.transaction(db):
            session_id = await generate_id(db, SESSION_SEQUENCE, now)
            session = StudySession(
                id=session_id,
                creator_id=creator.id,
                subject=data.subject,
                topic=data.topic,
                venue_id=location.venue_id,
                venue_name=venue_name,
                lat=lat,
                lng=lng,
                meeting_spot=location.meeting_spot,
                start_time=start_time,
                duration=data.duration,
                max_participants=data.max_participants,
                status=SessionStatus.PENDING_ADMIN_APPROVAL,
                admin_approved=False,
            )
            session.participants.append(
                SessionParticipant(user_id=creator.id, role=ParticipantRole.HOST, joined_at=now)
            )
            db.add(session)

        record_session_transition("created")
        self.logger.info(f"Session {session.id} created by user {creator.id}")
        return session

    async def _review(self, db: AsyncSession, admin: User, session_id: str, approve: bool) -> StudySession:
        access.require_admin(admin)

        async with self.locks.hold(session_id):
            async with self.db_manager.transaction(db):
                session = await load_session_for_update(db, session_id)
                if session.status != SessionStatus.PENDING_ADMIN_APPROVAL:
                    raise InvalidStateError(
                        f"Session is not pending approval (status: {session.status.value})",
                        details={"session_id": session_id, "status": session.status.value}
                    )

                session.status = SessionStatus.ACTIVE if approve else SessionStatus.REJECTED
                session.admin_approved = approve
                session.admin_reviewed_by = admin.id
                session.admin_reviewed_at = utcnow()

        transition = "approved" if approve else "rejected"
        record_session_transition(transition)
        self.logger.info(f"Session {session_id} {transition} by admin {admin.id}")
        return session

    async def approve(self, db: AsyncSession, admin: User, session_id: str) -> StudySession:
        return await self._review(db, admin, session_id, approve=True)

    async def reject(self, db: AsyncSession, admin: User, session_id: str) -> StudySession:
        return await self._review(db, admin, session_id, approve=False)

    async def cancel(self, db: AsyncSession, user: User, session_id: str) -> StudySession:
        async with self.locks.hold(session_id):
            async with self.db_manager.transaction(db):
                session = await load_session_for_update(db, session_id)
                access.require_host(session, user)
                if session.status not in CANCELLABLE_STATUSES:
                    raise InvalidStateError(
                        f"Session cannot be cancelled (status: {session.status.value})",
                        details={"session_id": session_id, "status": session.status.value}
                    )
                session.status = SessionStatus.CANCELLED

        record_session_transition("cancelled")
        self.logger.info(f"Session {session_id} cancelled by host {user.id}")
        return session

    async def delete_by_admin(self, db: AsyncSession, admin: User, session_id: str) -> None:
        """
        Destroy a session in any status, with its participants, join requests and messages
        """
        access.require_admin(admin)

        async with self.locks.hold(session_id):
            async with self.db_manager.transaction(db):
                await load_session_for_update(db, session_id)
                await db.execute(delete(SessionParticipant).where(SessionParticipant.session_id == session_id))
                await db.execute(delete(JoinRequest).where(JoinRequest.session_id == session_id))
                await db.execute(delete(SessionMessage).where(SessionMessage.session_id == session_id))
                await db.execute(delete(StudySession).where(StudySession.id == session_id))

        record_session_transition("deleted")
        self.logger.info(f"Session {session_id} deleted by admin {admin.id}")

    async def remove_participant(
        self,
        db: AsyncSession,
        host: User,
        session_id: str,
        user_id: int
    ) -> StudySession:
        """
        Remove a member. Removing someone who is not a member is a no-op.
        """
        async with self.locks.hold(session_id):
            async with self.db_manager.transaction(db):
                session = await load_session_for_update(db, session_id)
                access.require_host(session, host)
                if user_id == session.creator_id:
                    raise ValidationError("The host cannot be removed from the session", field="user_id")

                record = next((p for p in session.participants if p.user_id == user_id), None)
                if record is None:
                    self.logger.debug(f"User {user_id} is not in session {session_id}, nothing to remove")
                    return session
                session.participants.remove(record)

        self.logger.info(f"User {user_id} removed from session {session_id} by host {host.id}")
        return session

    async def checkin(
        self,
        db: AsyncSession,
        user: User,
        session_id: str,
        now: Optional[datetime] = None
    ) -> SessionParticipant:
        now = to_utc(now or utcnow())

        async with self.locks.hold(session_id):
            async with self.db_manager.transaction(db):
                session = await load_session_for_update(db, session_id)
                record = next((p for p in session.participants if p.user_id == user.id), None)
                if record is None:
                    record_checkin("not_participant")
                    raise NotParticipantError(session_id)

                if not is_checkin_open(session, now):
                    record_checkin("window_closed")
                    opens_at, closes_at = checkin_window(session)
                    raise CheckinWindowClosedError(opens_at, closes_at)

                if record.checked_in:
                    # Keep the first check-in time
                    return record
                record.checked_in = True
                record.checked_in_at = now

        record_checkin("ok")
        self.logger.info(f"User {user.id} checked in to session {session_id}")
        return record

    async def list_all(self, db: AsyncSession, user: User) -> List[StudySession]:
        stmt = select(StudySession)
        if not user.is_admin:
            stmt = stmt.where(StudySession.status.in_(PUBLIC_STATUSES))
        stmt = stmt.order_by(StudySession.start_time)
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def list_nearby(
        self,
        db: AsyncSession,
        user: User,
        lat: Optional[float] = None,
        lng: Optional[float] = None,
        radius_miles: Optional[float] = None,
        subject: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> List[dict]:
        """
        Upcoming active sessions within the radius, as {"session", "distance"} items.

        The point defaults to the caller's coordinates and the radius to their
        max-distance preference.
        """
        lat = user.lat if lat is None else lat
        lng = user.lng if lng is None else lng
        radius = user.max_distance if radius_miles is None else radius_miles
        now = to_utc(now or utcnow())

        stmt = select(StudySession).where(
            StudySession.status == SessionStatus.ACTIVE,
            StudySession.start_time > now,
        )
        if subject:
            stmt = stmt.where(func.lower(StudySession.subject) == subject.lower())
        stmt = stmt.order_by(StudySession.start_time)

        matches = []
        for session in (await db.execute(stmt)).scalars().all():
            miles = distance(lat, lng, session.lat, session.lng)
            if miles <= radius:
                matches.append({"session": session, "distance": miles})
                if len(matches) >= settings.NEARBY_SESSIONS_LIMIT:
                    break
        return matches

    async def list_mine(self, db: AsyncSession, user: User) -> List[StudySession]:
        stmt = (
            select(StudySession)
            .join(SessionParticipant, SessionParticipant.session_id == StudySession.id)
            .where(SessionParticipant.user_id == user.id)
            .order_by(StudySession.start_time)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def get_by_id(self, db: AsyncSession, user: User, session_id: str) -> StudySession:
        session = await db.get(StudySession, session_id)
        if not session:
            raise NotFoundError("Session", session_id)

        if session.status in RESTRICTED_STATUSES:
            if not (user.is_admin or access.is_member(session, user)):
                raise NotFoundError("Session", session_id)
        return session

    async def list_pending_for_admin(self, db: AsyncSession, admin: User) -> List[dict]:
        """
        Sessions awaiting review, newest first, each with its creator
        """
        access.require_admin(admin)

        stmt = (
            select(StudySession, User)
            .join(User, User.id == StudySession.creator_id)
            .where(StudySession.status == SessionStatus.PENDING_ADMIN_APPROVAL)
            .order_by(StudySession.created_at.desc(), StudySession.id.desc())
        )
        result = await db.execute(stmt)
        return [{"session": session, "creator": creator} for session, creator in result.all()]


session_service = SessionService()
