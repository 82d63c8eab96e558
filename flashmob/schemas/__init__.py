"""
Pydantic schemas
"""

from flashmob.schemas.base import BaseSchema, TimestampSchema
from flashmob.schemas.response import ErrorResponse, ErrorDetail, HealthResponse, MessageResponse
from flashmob.schemas.user import (
    UserCreate,
    UserUpdate,
    UserResponse,
    UserProfile,
    UserSummary,
    Preferences,
    PreferencesUpdate,
    Token,
    SuspendRequest,
)
from flashmob.schemas.venue import VenueResponse, NearbyVenueResponse, RecommendedVenueResponse
from flashmob.schemas.session import (
    SessionCreate,
    LocationInput,
    SessionResponse,
    SessionDetail,
    NearbySessionResponse,
    PendingSessionResponse,
    ParticipantResponse,
    CheckinResponse,
)
from flashmob.schemas.join_request import JoinRequestResponse, PendingJoinRequestResponse
from flashmob.schemas.message import MessageCreate, MessageResponse as ChatMessageResponse
from flashmob.schemas.admin import StatsResponse

__all__ = [
    "BaseSchema",
    "TimestampSchema",
    "ErrorResponse",
    "ErrorDetail",
    "HealthResponse",
    "MessageResponse",
    "UserCreate",
    "UserUpdate",
    "UserResponse",
    "UserProfile",
    "UserSummary",
    "Preferences",
    "PreferencesUpdate",
    "Token",
    "SuspendRequest",
    "VenueResponse",
    "NearbyVenueResponse",
    "RecommendedVenueResponse",
    "SessionCreate",
    "LocationInput",
    "SessionResponse",
    "SessionDetail",
    "NearbySessionResponse",
    "PendingSessionResponse",
    "ParticipantResponse",
    "CheckinResponse",
    "JoinRequestResponse",
    "PendingJoinRequestResponse",
    "MessageCreate",
    "ChatMessageResponse",
    "StatsResponse"
]
