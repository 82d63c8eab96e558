"""
Join-request workflow layered on the session aggregate
"""

from typing import List
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from flashmob.core import access
from flashmob.core.clock import utcnow
from flashmob.core.database import db_manager
from flashmob.core.exceptions import (
    NotFoundError,
    InvalidStateError,
    AlreadyProcessedError,
    SessionFullError,
    AlreadyMemberError,
    DuplicatePendingRequestError,
)
from flashmob.core.ids import generate_id, JOIN_REQUEST_SEQUENCE
from flashmob.core.locks import session_locks
from flashmob.core.metrics import record_join_outcome
from flashmob.models.join_request import JoinRequest, JoinRequestStatus
from flashmob.models.study_session import (
    StudySession,
    SessionParticipant,
    SessionStatus,
    ParticipantRole,
)
from flashmob.models.user import User
from flashmob.services.session_service import load_session_for_update, count_participants

logger = logging.getLogger(__name__)


class JoinRequestService:
    """
    Request, approve and reject membership of a session.

    Capacity is always re-counted under the session lock at approval time,
    never trusted from when the request was made.
    """

    def __init__(self):
        self.db_manager = db_manager
        self.locks = session_locks
        self.logger = logging.getLogger(__name__)

    def _require_active(self, session: StudySession) -> None:
        if session.status != SessionStatus.ACTIVE:
            raise InvalidStateError(
                "Session is not active",
                details={"session_id": session.id, "status": session.status.value}
            )

    async def _ensure_capacity(self, db: AsyncSession, session: StudySession) -> None:
        if await count_participants(db, session.id) >= session.max_participants:
            record_join_outcome("session_full")
            self.logger.warning(f"Session {session.id} is full ({session.max_participants} participants)")
            raise SessionFullError(session.id, session.max_participants)

    async def _load_request(self, db: AsyncSession, session_id: str, request_id: str) -> JoinRequest:
        stmt = (
            select(JoinRequest)
            .where(JoinRequest.id == request_id, JoinRequest.session_id == session_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        join_request = (await db.execute(stmt)).scalar_one_or_none()
        if not join_request:
            raise NotFoundError("Join request", request_id)
        return join_request

    async def request(self, db: AsyncSession, user: User, session_id: str) -> JoinRequest:
        async with self.locks.hold(session_id):
            async with self.db_manager.transaction(db):
                session = await load_session_for_update(db, session_id)
                self._require_active(session)
                await self._ensure_capacity(db, session)

                if access.is_member(session, user):
                    record_join_outcome("already_member")
                    raise AlreadyMemberError(session_id)

                pending = await db.execute(
                    select(JoinRequest.id).where(
                        JoinRequest.session_id == session_id,
                        JoinRequest.user_id == user.id,
                        JoinRequest.status == JoinRequestStatus.PENDING,
                    )
                )
                if pending.first() is not None:
                    record_join_outcome("duplicate_pending")
                    raise DuplicatePendingRequestError(session_id)

                join_request = JoinRequest(
                    id=await generate_id(db, JOIN_REQUEST_SEQUENCE),
                    session_id=session_id,
                    user_id=user.id,
                    status=JoinRequestStatus.PENDING,
                )
                db.add(join_request)

        record_join_outcome("requested")
        self.logger.info(f"Join request {join_request.id} created by user {user.id} for session {session_id}")
        return join_request

    async def _review(
        self,
        db: AsyncSession,
        host: User,
        session_id: str,
        request_id: str,
        approve: bool
    ) -> JoinRequest:
        async with self.locks.hold(session_id):
            async with self.db_manager.transaction(db):
                session = await load_session_for_update(db, session_id)
                access.require_host(session, host)

                join_request = await self._load_request(db, session_id, request_id)
                if join_request.status != JoinRequestStatus.PENDING:
                    raise AlreadyProcessedError(request_id, join_request.status.value)

                if approve:
                    self._require_active(session)
                    await self._ensure_capacity(db, session)
                    if join_request.user_id not in session.participant_ids:
                        session.participants.append(
                            SessionParticipant(
                                user_id=join_request.user_id,
                                role=ParticipantRole.PARTICIPANT,
                                joined_at=utcnow(),
                            )
                        )

                join_request.status = JoinRequestStatus.APPROVED if approve else JoinRequestStatus.REJECTED
                join_request.reviewed_by = host.id
                join_request.reviewed_at = utcnow()

        outcome = "approved" if approve else "rejected"
        record_join_outcome(outcome)
        self.logger.info(f"Join request {request_id} {outcome} by host {host.id} for session {session_id}")
        return join_request

    async def approve(self, db: AsyncSession, host: User, session_id: str, request_id: str) -> JoinRequest:
        return await self._review(db, host, session_id, request_id, approve=True)

    async def reject(self, db: AsyncSession, host: User, session_id: str, request_id: str) -> JoinRequest:
        return await self._review(db, host, session_id, request_id, approve=False)

    async def list_pending(self, db: AsyncSession, host: User, session_id: str) -> List[dict]:
        """
        Pending requests for a session, oldest first, each with the requesting user
        """
        session = await db.get(StudySession, session_id)
        if not session:
            raise NotFoundError("Session", session_id)
        access.require_host(session, host)

        stmt = (
            select(JoinRequest, User)
            .join(User, User.id == JoinRequest.user_id)
            .where(
                JoinRequest.session_id == session_id,
                JoinRequest.status == JoinRequestStatus.PENDING,
            )
            .order_by(JoinRequest.created_at, JoinRequest.id)
        )
        result = await db.execute(stmt)
        return [{"request": join_request, "user": user} for join_request, user in result.all()]


join_request_service = JoinRequestService()
