"""
Database models
"""

from flashmob.models.user import User
from flashmob.models.venue import Venue
from flashmob.models.study_session import (
    StudySession,
    SessionParticipant,
    SessionStatus,
    ParticipantRole,
)
from flashmob.models.join_request import JoinRequest, JoinRequestStatus
from flashmob.models.message import SessionMessage
from flashmob.models.id_sequence import IdSequence

__all__ = [
    "User",
    "Venue",
    "StudySession",
    "SessionParticipant",
    "SessionStatus",
    "ParticipantRole",
    "JoinRequest",
    "JoinRequestStatus",
    "SessionMessage",
    "IdSequence"
]
