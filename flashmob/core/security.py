"""
Security utilities for authentication and authorization
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import logging
import time

from flashmob.config import settings
from flashmob.core.database import get_session
from flashmob.core.exceptions import AuthenticationError
from flashmob.core import access
from flashmob.models.user import User

logger = logging.getLogger(__name__)

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# OAuth2 scheme
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_PREFIX}/auth/login")


class SecurityManager:
    """
    Security manager for authentication and authorization
    """

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        """
        Verify a plain password against a hashed password
        """
        try:
            return pwd_context.verify(plain_password, hashed_password)
        except ValueError:
            # bcrypt rejects inputs over 72 bytes
            return False

    @staticmethod
    def hash_password(password: str) -> str:
        """
        Hash a password
        """
        return pwd_context.hash(password)

    @staticmethod
    def create_access_token(
        data: Dict[str, Any],
        expires_delta: Optional[timedelta] = None
    ) -> str:
        """
        Create a JWT access token
        """
        to_encode = data.copy()
        if expires_delta:
            expire = datetime.now(timezone.utc) + expires_delta
        else:
            expire = datetime.now(timezone.utc) + timedelta(
                minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES
            )

        to_encode.update({
            "exp": expire,
            "type": "access",
            "iat": time.time(),
        })

        return jwt.encode(
            to_encode,
            settings.JWT_SECRET_KEY,
            algorithm=settings.JWT_ALGORITHM
        )

    @staticmethod
    def decode_token(token: str) -> Dict[str, Any]:
        """
        Decode and verify a JWT token
        """
        try:
            return jwt.decode(
                token,
                settings.JWT_SECRET_KEY,
                algorithms=[settings.JWT_ALGORITHM]
            )
        except JWTError as e:
            logger.info(f"JWT decode error: {e}")
            raise AuthenticationError("Could not validate credentials")

    @staticmethod
    def verify_identity(token: str) -> Dict[str, Any]:
        """
        Resolve a bearer token to {user_id, email}
        """
        payload = SecurityManager.decode_token(token)
        if payload.get("type") != "access":
            raise AuthenticationError("Invalid token type")

        sub = payload.get("sub")
        try:
            user_id = int(sub)
        except (TypeError, ValueError):
            raise AuthenticationError("Could not validate credentials")

        return {"user_id": user_id, "email": payload.get("email")}


# Create global security manager
security_manager = SecurityManager()

verify_password = security_manager.verify_password
get_password_hash = security_manager.hash_password


def create_access_token(user: User) -> str:
    """
    Issue an access token for a user
    """
    return security_manager.create_access_token({"sub": str(user.id), "email": user.email})


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_session)
) -> User:
    """
    Get current user from JWT token
    """
    identity = security_manager.verify_identity(token)

    result = await db.execute(select(User).where(User.id == identity["user_id"]))
    user = result.scalar_one_or_none()

    if not user:
        raise AuthenticationError("User not found")
    if user.is_suspended:
        raise AuthenticationError("User account is suspended")

    return user


async def get_current_admin(current_user: User = Depends(get_current_user)) -> User:
    """
    Require admin role for endpoint
    """
    return access.require_admin(current_user)
