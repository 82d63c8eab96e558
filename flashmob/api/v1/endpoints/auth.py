"""
Authentication endpoints
"""

from typing import Any
from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from flashmob.core.database import get_session
from flashmob.core.security import create_access_token
from flashmob.schemas.user import UserCreate, UserResponse, Token
from flashmob.services.user_service import user_service

router = APIRouter()


@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserCreate,
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Register a new user; the address is geocoded to a home location
    """
    user = await user_service.register(db, user_data)

    return {
        "access_token": create_access_token(user),
        "token_type": "bearer",
        "user": UserResponse.model_validate(user)
    }


@router.post("/login", response_model=Token)
async def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    OAuth2 compatible token login
    """
    user = await user_service.authenticate(db, form_data.username, form_data.password)

    return {
        "access_token": create_access_token(user),
        "token_type": "bearer",
        "user": UserResponse.model_validate(user)
    }
