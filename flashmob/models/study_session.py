"""
Study session and participant models
"""

from datetime import timedelta
from sqlalchemy import (
    Column, String, Integer, Float, Text, Boolean, DateTime, ForeignKey, Enum,
    UniqueConstraint, func
)
from sqlalchemy.orm import relationship
import enum

from flashmob.core.clock import utcnow
from flashmob.models.base import BaseModel


class SessionStatus(str, enum.Enum):
    PENDING_ADMIN_APPROVAL = "pending_admin_approval"
    ACTIVE = "active"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REJECTED = "rejected"


# Statuses that drop a session from its members' active list
CLOSED_STATUSES = (SessionStatus.CANCELLED, SessionStatus.REJECTED)
# Statuses a host may still cancel from
CANCELLABLE_STATUSES = (
    SessionStatus.PENDING_ADMIN_APPROVAL,
    SessionStatus.ACTIVE,
    SessionStatus.IN_PROGRESS,
)
# Statuses listed to non-admin callers
PUBLIC_STATUSES = (SessionStatus.ACTIVE, SessionStatus.IN_PROGRESS, SessionStatus.COMPLETED)


class ParticipantRole(str, enum.Enum):
    HOST = "host"
    PARTICIPANT = "participant"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class StudySession(BaseModel):
    """
    A scheduled, capacity-bounded study meetup tied to a venue
    """
    __tablename__ = "study_sessions"

    id = Column(String(20), primary_key=True)
    creator_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    subject = Column(String(100), nullable=False, index=True)
    topic = Column(Text, nullable=False)

    # Embedded location
    venue_id = Column(String(20), ForeignKey("venues.id"), nullable=True)
    venue_name = Column(String(255))
    lat = Column(Float, nullable=False)
    lng = Column(Float, nullable=False)
    meeting_spot = Column(String(255))

    start_time = Column(DateTime(timezone=True), nullable=False, index=True)
    duration = Column(Integer, nullable=False)  # minutes
    max_participants = Column(Integer, nullable=False)
    status = Column(
        Enum(SessionStatus, values_callable=_enum_values, native_enum=False, length=32),
        default=SessionStatus.PENDING_ADMIN_APPROVAL,
        nullable=False,
        index=True
    )

    admin_approved = Column(Boolean, default=False, nullable=False)
    admin_reviewed_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    admin_reviewed_at = Column(DateTime(timezone=True), nullable=True)

    participants = relationship(
        "SessionParticipant",
        back_populates="session",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
        order_by="SessionParticipant.joined_at",
    )

    @property
    def participant_ids(self) -> list:
        return [p.user_id for p in self.participants]

    @property
    def end_time(self):
        return self.start_time + timedelta(minutes=self.duration)

    @property
    def location(self) -> dict:
        return {
            "venue_id": self.venue_id,
            "venue_name": self.venue_name,
            "coordinates": {"lat": self.lat, "lng": self.lng},
            "meeting_spot": self.meeting_spot,
        }

    def __repr__(self):
        return f"<StudySession(id={self.id}, subject={self.subject}, status={self.status})>"


class SessionParticipant(BaseModel):
    """
    Membership record, one per user per session
    """
    __tablename__ = "session_participants"
    __table_args__ = (
        UniqueConstraint("session_id", "user_id", name="uq_session_participant"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(
        String(20),
        ForeignKey("study_sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    role = Column(
        Enum(ParticipantRole, values_callable=_enum_values, native_enum=False, length=20),
        default=ParticipantRole.PARTICIPANT,
        nullable=False
    )
    checked_in = Column(Boolean, default=False, nullable=False)
    checked_in_at = Column(DateTime(timezone=True), nullable=True)
    joined_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    session = relationship("StudySession", back_populates="participants")

    def __repr__(self):
        return f"<SessionParticipant(session_id={self.session_id}, user_id={self.user_id}, role={self.role})>"
