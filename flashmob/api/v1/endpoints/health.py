"""
Health check endpoints
"""

from typing import Any
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import text

from flashmob.config import settings
from flashmob.core.database import get_session
from flashmob.core.redis import get_redis
from flashmob.schemas.response import HealthResponse

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/live")
async def liveness() -> Any:
    """
    Kubernetes liveness probe
    """
    return {"status": "alive", "service": "flashmob-api"}


@router.get("/ready", response_model=HealthResponse)
async def readiness(db: AsyncSession = Depends(get_session)) -> Any:
    """
    Kubernetes readiness probe - checks the database, and Redis when it backs the session locks
    """
    checks = {"database": False}

    try:
        result = await db.execute(text("SELECT 1"))
        checks["database"] = result.scalar() == 1
    except Exception as e:
        logger.warning(f"Database readiness check failed: {e}")

    if settings.SESSION_LOCK_BACKEND == "redis":
        checks["redis"] = False
        try:
            redis_client = await get_redis()
            await redis_client.ping()
            checks["redis"] = True
        except Exception as e:
            logger.warning(f"Redis readiness check failed: {e}")

    return {
        "status": "ready" if all(checks.values()) else "not ready",
        "checks": checks,
        "version": settings.APP_VERSION
    }
