"""
Study session schemas
"""

from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from flashmob.models.study_session import SessionStatus, ParticipantRole
from flashmob.schemas.base import BaseSchema, TimestampSchema
from flashmob.schemas.user import UserSummary


class LocationInput(BaseModel):
    """Where a session meets: a catalogue venue, raw coordinates, or both"""
    venue_id: Optional[str] = Field(None, max_length=20)
    venue_name: Optional[str] = Field(None, max_length=255)
    lat: Optional[float] = Field(None, ge=-90, le=90)
    lng: Optional[float] = Field(None, ge=-180, le=180)
    meeting_spot: Optional[str] = Field(None, max_length=255)


class SessionCreate(BaseModel):
    """
    Session creation schema.

    duration and max_participants are range-checked by the service so that
    violations surface as VALIDATION_ERROR rather than a 422.
    """
    subject: str = Field(..., min_length=1, max_length=100)
    topic: str = Field(..., min_length=1, max_length=2000)
    location: LocationInput
    start_time: datetime
    duration: int
    max_participants: int

    class Config:
        json_schema_extra = {
            "example": {
                "subject": "Calculus",
                "topic": "Integration by parts practice",
                "location": {"venue_id": "V001", "meeting_spot": "Second floor, table 4"},
                "start_time": "2030-05-01T18:00:00Z",
                "duration": 90,
                "max_participants": 5
            }
        }


class Coordinates(BaseSchema):
    lat: float
    lng: float


class LocationResponse(BaseSchema):
    venue_id: Optional[str] = None
    venue_name: Optional[str] = None
    coordinates: Coordinates
    meeting_spot: Optional[str] = None


class ParticipantResponse(BaseSchema):
    user_id: int
    role: ParticipantRole
    checked_in: bool
    checked_in_at: Optional[datetime] = None
    joined_at: datetime


class CheckinResponse(ParticipantResponse):
    session_id: str


class SessionResponse(TimestampSchema):
    id: str
    creator_id: int
    subject: str
    topic: str
    location: LocationResponse
    start_time: datetime
    end_time: datetime
    duration: int
    max_participants: int
    status: SessionStatus
    admin_approved: bool
    admin_reviewed_by: Optional[int] = None
    admin_reviewed_at: Optional[datetime] = None
    participant_ids: List[int] = []


class SessionDetail(SessionResponse):
    participants: List[ParticipantResponse] = []


class NearbySessionResponse(SessionResponse):
    distance: float


class PendingSessionResponse(SessionResponse):
    creator: UserSummary
