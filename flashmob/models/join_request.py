"""
Join request model
"""

from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Enum, Index, text
import enum

from flashmob.models.base import BaseModel


class JoinRequestStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class JoinRequest(BaseModel):
    """
    A user's ask to become a participant, gated by host approval
    """
    __tablename__ = "join_requests"
    __table_args__ = (
        # At most one pending request per (session, user)
        Index(
            "uq_join_request_pending",
            "session_id",
            "user_id",
            unique=True,
            sqlite_where=text("status = 'pending'"),
            postgresql_where=text("status = 'pending'"),
        ),
    )

    id = Column(String(20), primary_key=True)
    session_id = Column(
        String(20),
        ForeignKey("study_sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(
        Enum(
            JoinRequestStatus,
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
            native_enum=False,
            length=20
        ),
        default=JoinRequestStatus.PENDING,
        nullable=False,
        index=True
    )
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    reviewed_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    def __repr__(self):
        return f"<JoinRequest(id={self.id}, session_id={self.session_id}, user_id={self.user_id}, status={self.status})>"
