"""
Platform admin endpoints
"""

from typing import Any, List
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from flashmob.core.database import get_session
from flashmob.core.security import get_current_admin
from flashmob.models.user import User
from flashmob.schemas.admin import StatsResponse
from flashmob.schemas.user import UserResponse, SuspendRequest
from flashmob.services.admin_service import admin_service

router = APIRouter()


@router.get("/users", response_model=List[UserResponse])
async def list_users(
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session)
) -> Any:
    return await admin_service.list_users(db, admin)


@router.post("/users/{user_id}/suspend", response_model=UserResponse)
async def suspend_user(
    user_id: int,
    body: SuspendRequest = SuspendRequest(),
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Suspend (or with {"suspended": false} reinstate) a user account
    """
    return await admin_service.suspend_user(db, admin, user_id, body.suspended)


@router.get("/stats", response_model=StatsResponse)
async def get_stats(
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Dashboard counters
    """
    return await admin_service.stats(db, admin)
