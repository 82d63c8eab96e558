"""
Join request schemas
"""

from typing import Optional
from datetime import datetime

from flashmob.models.join_request import JoinRequestStatus
from flashmob.schemas.base import TimestampSchema
from flashmob.schemas.user import UserSummary


class JoinRequestResponse(TimestampSchema):
    id: str
    session_id: str
    user_id: int
    status: JoinRequestStatus
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[int] = None


class PendingJoinRequestResponse(JoinRequestResponse):
    user: UserSummary
