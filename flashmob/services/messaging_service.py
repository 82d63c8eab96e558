"""
Session-scoped chat log
"""

from typing import List
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from flashmob.config import settings
from flashmob.core import access
from flashmob.core.database import db_manager
from flashmob.core.exceptions import (
    NotFoundError,
    NotParticipantError,
    EmptyMessageError,
    MessageTooLongError,
)
from flashmob.core.ids import generate_id, MESSAGE_SEQUENCE
from flashmob.models.message import SessionMessage
from flashmob.models.study_session import StudySession
from flashmob.models.user import User

logger = logging.getLogger(__name__)


class MessagingService:

    def __init__(self):
        self.db_manager = db_manager
        self.logger = logging.getLogger(__name__)

    async def _member_session(self, db: AsyncSession, user: User, session_id: str) -> StudySession:
        session = await db.get(StudySession, session_id)
        if not session:
            raise NotFoundError("Session", session_id)
        if not access.is_member(session, user):
            raise NotParticipantError(session_id)
        return session

    def clean_body(self, body: str) -> str:
        text = (body or "").strip()
        if not text:
            raise EmptyMessageError()
        if len(text) > settings.MESSAGE_MAX_LENGTH:
            raise MessageTooLongError(settings.MESSAGE_MAX_LENGTH)
        return text

    async def post(self, db: AsyncSession, user: User, session_id: str, body: str) -> dict:
        """
        Append a message; only session members may post
        """
        await self._member_session(db, user, session_id)
        text = self.clean_body(body)

        async with self.db_manager.transaction(db):
            message = SessionMessage(
                id=await generate_id(db, MESSAGE_SEQUENCE),
                session_id=session_id,
                author_id=user.id,
                body=text,
            )
            db.add(message)

        self.logger.debug(f"Message {message.id} posted to session {session_id} by user {user.id}")
        return {"message": message, "author_name": user.name}

    async def list(self, db: AsyncSession, user: User, session_id: str) -> List[dict]:
        """
        Messages oldest first, with author names looked up at read time
        """
        await self._member_session(db, user, session_id)

        stmt = (
            select(SessionMessage, User.name)
            .join(User, User.id == SessionMessage.author_id)
            .where(SessionMessage.session_id == session_id)
            .order_by(SessionMessage.created_at, SessionMessage.id)
        )
        result = await db.execute(stmt)
        return [{"message": message, "author_name": name} for message, name in result.all()]


messaging_service = MessagingService()
