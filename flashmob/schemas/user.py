"""
User schemas
"""

from pydantic import BaseModel, EmailStr, Field
from typing import List, Optional
from datetime import datetime

from flashmob.schemas.base import BaseSchema, TimestampSchema


class PreferencesUpdate(BaseModel):
    """Partial update of study preferences; omitted fields are kept"""
    subjects: Optional[List[str]] = None
    max_distance: Optional[float] = None
    favorite_venues: Optional[List[str]] = None


class Preferences(BaseSchema):
    subjects: List[str] = []
    max_distance: float = 5.0
    favorite_venues: List[str] = []


class UserCreate(BaseModel):
    """User registration schema"""
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=72)
    name: str = Field(..., min_length=1, max_length=255)
    address: str = Field(..., min_length=1, max_length=500)
    preferences: Optional[PreferencesUpdate] = None

    class Config:
        json_schema_extra = {
            "example": {
                "email": "student@flashmob.com",
                "password": "Study123!",
                "name": "Sam Student",
                "address": "100 E South St, Warrensburg, MO",
                "preferences": {"subjects": ["Calculus"], "max_distance": 10}
            }
        }


class UserUpdate(BaseModel):
    """Profile update schema"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    address: Optional[str] = Field(None, min_length=1, max_length=500)


class UserSummary(BaseSchema):
    """Display info attached to other resources"""
    user_id: int
    name: str
    email: EmailStr


class UserResponse(TimestampSchema):
    """User response schema"""
    id: int
    email: EmailStr
    name: str
    address: str
    lat: float
    lng: float
    is_admin: bool
    is_suspended: bool
    preferences: Preferences


class UserProfile(UserResponse):
    """Own profile, including current memberships"""
    active_sessions: List[str] = []


class Token(BaseModel):
    """Access token response"""
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class SuspendRequest(BaseModel):
    suspended: bool = True
