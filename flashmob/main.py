"""
Main FastAPI application
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
import logging
import time
from prometheus_client import make_asgi_app
import uuid

from flashmob.config import settings
from flashmob.core.database import init_db, close_db
from flashmob.core.redis import init_redis, close_redis
from flashmob.core.exceptions import FlashmobException
from flashmob.core.logging import setup_logging
from flashmob.core.metrics import REQUEST_COUNT, REQUEST_DURATION
from flashmob.core.seeding import seed_on_startup
from flashmob.schemas.response import ErrorResponse, ErrorDetail
from flashmob.api.v1.endpoints import auth, users, sessions, venues, admin, health

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager
    """
    # Startup
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    await init_db()

    # Redis is only needed when it backs the per-session locks
    if settings.SESSION_LOCK_BACKEND == "redis":
        await init_redis()

    if settings.SEED_ON_STARTUP:
        await seed_on_startup()

    yield

    # Shutdown
    logger.info("Shutting down application")
    await close_db()
    if settings.SESSION_LOCK_BACKEND == "redis":
        await close_redis()


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    description="Location-aware study session coordination",
    version=settings.APP_VERSION,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    openapi_url="/openapi.json" if settings.DEBUG else None,
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request tracking middleware
@app.middleware("http")
async def track_requests(request: Request, call_next):
    """
    Track request metrics and add request ID
    """
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id

    start_time = time.time()
    response = await call_next(request)
    duration = time.time() - start_time

    # Label by route template so ids don't explode label cardinality
    route = request.scope.get("route")
    endpoint = getattr(route, "path", request.url.path)

    REQUEST_COUNT.labels(
        method=request.method,
        endpoint=endpoint,
        status=response.status_code
    ).inc()

    REQUEST_DURATION.labels(
        method=request.method,
        endpoint=endpoint
    ).observe(duration)

    response.headers["X-Request-ID"] = request_id
    response.headers["X-Process-Time"] = str(duration)

    return response


def error_response(status_code: int, code: str, message: str, details: dict = None) -> JSONResponse:
    body = ErrorResponse(error=ErrorDetail(code=code, message=message, details=details or {}))
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


# Exception handlers
@app.exception_handler(FlashmobException)
async def flashmob_exception_handler(request: Request, exc: FlashmobException):
    if exc.status_code >= 500:
        logger.error(f"{exc.code}: {exc.message}", extra={"request_id": getattr(request.state, "request_id", None)})
    else:
        logger.info(
            f"{request.method} {request.url.path} -> {exc.code}: {exc.message}",
            extra={"request_id": getattr(request.state, "request_id", None)}
        )
    return error_response(exc.status_code, exc.code, exc.message, exc.details)


@app.exception_handler(404)
async def not_found_handler(request: Request, exc):
    return error_response(404, "NOT_FOUND", "The requested resource was not found")


@app.exception_handler(500)
async def internal_error_handler(request: Request, exc):
    logger.error(f"Internal server error: {exc}", exc_info=True)
    return error_response(500, "INTERNAL_ERROR", "An internal server error occurred")


@app.get("/health/live")
async def liveness():
    """Kubernetes liveness probe"""
    return {"status": "alive"}


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.APP_ENV,
        "api_docs": "/docs" if settings.DEBUG else None
    }


# Include routers
app.include_router(
    auth.router,
    prefix=f"{settings.API_PREFIX}/auth",
    tags=["Authentication"]
)

app.include_router(
    users.router,
    prefix=f"{settings.API_PREFIX}/users",
    tags=["Users"]
)

app.include_router(
    sessions.router,
    prefix=f"{settings.API_PREFIX}/sessions",
    tags=["Sessions"]
)

app.include_router(
    venues.router,
    prefix=f"{settings.API_PREFIX}/venues",
    tags=["Venues"]
)

app.include_router(
    admin.router,
    prefix=f"{settings.API_PREFIX}/admin",
    tags=["Admin"]
)

app.include_router(
    health.router,
    prefix=f"{settings.API_PREFIX}/health",
    tags=["Health"]
)

# Mount Prometheus metrics endpoint
if settings.PROMETHEUS_ENABLED:
    metrics_app = make_asgi_app()
    app.mount("/metrics", metrics_app)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "flashmob.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
