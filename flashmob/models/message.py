"""
Session chat message model
"""

from sqlalchemy import Column, String, Integer, Text, ForeignKey

from flashmob.models.base import BaseModel


class SessionMessage(BaseModel):
    """
    Append-only chat entry scoped to one session
    """
    __tablename__ = "session_messages"

    id = Column(String(32), primary_key=True)
    session_id = Column(
        String(20),
        ForeignKey("study_sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    author_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    body = Column(Text, nullable=False)

    def __repr__(self):
        return f"<SessionMessage(id={self.id}, session_id={self.session_id}, author_id={self.author_id})>"
