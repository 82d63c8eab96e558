"""
Session chat schemas
"""

from pydantic import BaseModel
from datetime import datetime

from flashmob.schemas.base import BaseSchema


class MessageCreate(BaseModel):
    # Length is enforced after trimming, by the messaging service
    body: str


class MessageResponse(BaseSchema):
    id: str
    session_id: str
    author_id: int
    author_name: str
    body: str
    created_at: datetime
