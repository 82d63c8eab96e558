"""
Application configuration management
"""

from typing import Annotated, List, Optional
from pydantic_settings import BaseSettings, NoDecode
from pydantic import field_validator


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "FlashMob Learning"
    APP_VERSION: str = "1.0.0"
    APP_ENV: str = "development"
    DEBUG: bool = False  # Default to production-safe
    SECRET_KEY: str  # Must be provided via environment
    API_PREFIX: str = "/api/v1"

    @field_validator('SECRET_KEY')
    @classmethod
    def validate_secret_key(cls, v: str) -> str:
        if not v or v == "your-secret-key-change-in-production":
            raise ValueError("SECRET_KEY must be set to a secure value in production")
        if len(v) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters long")
        return v

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Database
    DATABASE_URL: str  # Must be provided via environment

    @field_validator('DATABASE_URL')
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        if v.startswith('postgresql://'):
            v = v.replace('postgresql://', 'postgresql+asyncpg://', 1)
        return v
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 40
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 3600
    DB_ECHO: bool = False

    # Redis
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_MAX_CONNECTIONS: int = 50

    # JWT
    JWT_SECRET_KEY: str  # Must be provided via environment
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7

    # CORS
    # NoDecode lets a comma-separated env value reach parse_cors_origins
    CORS_ORIGINS: Annotated[List[str], NoDecode] = ["http://localhost:3000", "http://localhost:5173"]

    # Monitoring
    PROMETHEUS_ENABLED: bool = True
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"

    # Study sessions
    SESSION_MIN_DURATION: int = 30
    SESSION_MAX_DURATION: int = 180
    SESSION_MIN_PARTICIPANTS: int = 3
    SESSION_MAX_PARTICIPANTS: int = 8
    CHECKIN_OPENS_MINUTES_BEFORE: int = 15
    NEARBY_SESSIONS_LIMIT: int = 20
    MESSAGE_MAX_LENGTH: int = 500
    DEFAULT_MAX_DISTANCE_MILES: float = 5.0

    # Per-session locking: "local" (single process) or "redis" (multi-worker)
    SESSION_LOCK_BACKEND: str = "local"
    SESSION_LOCK_TTL_SECONDS: int = 30
    SESSION_LOCK_TIMEOUT_SECONDS: float = 10.0

    # Geocoding
    GEOCODER_STRICT: bool = False
    DEFAULT_LAT: float = 38.7625
    DEFAULT_LNG: float = -93.7344

    # Bootstrap admin
    ADMIN_EMAIL: str = "admin@flashmob.com"
    ADMIN_PASSWORD: Optional[str] = None
    ADMIN_NAME: str = "Platform Admin"
    SEED_ON_STARTUP: bool = True

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    @field_validator("SESSION_LOCK_BACKEND")
    @classmethod
    def validate_lock_backend(cls, v: str) -> str:
        if v not in ("local", "redis"):
            raise ValueError("SESSION_LOCK_BACKEND must be 'local' or 'redis'")
        return v

    @property
    def is_testing(self) -> bool:
        return self.APP_ENV == "testing"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


# Create global settings instance
settings = Settings()
