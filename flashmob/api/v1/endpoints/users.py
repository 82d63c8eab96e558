"""
User profile endpoints
"""

from typing import Any, List
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from flashmob.core.database import get_session
from flashmob.core.security import get_current_user
from flashmob.models.user import User
from flashmob.schemas.session import SessionResponse
from flashmob.schemas.user import UserProfile, UserUpdate, UserResponse, PreferencesUpdate
from flashmob.services.session_service import session_service
from flashmob.services.user_service import user_service, active_session_ids

router = APIRouter()


async def _profile(db: AsyncSession, user: User) -> dict:
    return {
        **UserResponse.model_validate(user).model_dump(),
        "active_sessions": await active_session_ids(db, user.id)
    }


@router.get("/me", response_model=UserProfile)
async def get_current_user_profile(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Get current user profile with active sessions
    """
    return await _profile(db, current_user)


@router.put("/me", response_model=UserProfile)
async def update_current_user(
    user_update: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Update name and/or address
    """
    user = await user_service.update_profile(db, current_user, user_update)
    return await _profile(db, user)


@router.put("/preferences", response_model=UserProfile)
async def update_preferences(
    preferences: PreferencesUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Update subjects, max travel distance and favourite venues
    """
    user = await user_service.update_preferences(db, current_user, preferences)
    return await _profile(db, user)


@router.get("/me/sessions", response_model=List[SessionResponse])
async def get_my_sessions(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Sessions the current user participates in
    """
    return await session_service.list_mine(db, current_user)
