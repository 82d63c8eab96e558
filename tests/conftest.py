"""
Test configuration and fixtures
Each test gets its own SQLite file database; the API client runs the app
in-process over ASGITransport with get_session pointed at that database.
"""

import itertools
import os
from datetime import timedelta
from typing import AsyncGenerator
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

# Set test environment before anything reads settings
os.environ["APP_ENV"] = "testing"
os.environ["SECRET_KEY"] = "test-secret-key-that-is-at-least-32-characters"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret-key-that-is-at-least-32-chars"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./flashmob_test.db"
os.environ["SESSION_LOCK_BACKEND"] = "local"
os.environ["SEED_ON_STARTUP"] = "false"
os.environ["LOG_FORMAT"] = "text"

# Import all models BEFORE creating fixtures (create_all needs them registered)
from flashmob.core.database import Base
from flashmob.core.clock import utcnow
from flashmob.core.security import create_access_token, get_password_hash
from flashmob.core.seeding import seed_venues
from flashmob.models.user import User, default_preferences
from flashmob.schemas.session import SessionCreate, LocationInput
from flashmob.services.geocoding import geocode
from flashmob.services.session_service import session_service

TEST_PASSWORD = "Study123!"
WARRENSBURG = "100 E South St, Warrensburg, MO"


@pytest.fixture(scope="session")
def password_hash() -> str:
    """bcrypt is slow; hash the shared test password once"""
    return get_password_hash(TEST_PASSWORD)


@pytest_asyncio.fixture
async def test_engine(tmp_path):
    """Fresh file-backed database per test"""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'flashmob.db'}",
        echo=False,
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(test_engine):
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for tests"""
    async with session_maker() as session:
        try:
            yield session
        finally:
            if session.in_transaction():
                await session.rollback()


@pytest_asyncio.fixture
async def client(session_maker):
    """Create test client with dependency override"""
    from flashmob.main import app
    from flashmob.core.database import get_session

    async def override_get_session():
        async with session_maker() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session

    try:
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def venues(session_maker):
    """Seed the bundled venue catalogue"""
    async with session_maker() as db:
        await seed_venues(db)


@pytest.fixture
def user_factory(session_maker, password_hash):
    """
    Create users directly in the database.
    Built in their own session so the returned objects are detached and stay
    readable after a service call rolls back the test session.
    """
    counter = itertools.count(1)

    async def create(
        name: str = None,
        address: str = WARRENSBURG,
        is_admin: bool = False,
        preferences: dict = None
    ) -> User:
        n = next(counter)
        coordinates = geocode(address)
        user = User(
            email=f"user{n}_{uuid4().hex[:8]}@example.com",
            password_hash=password_hash,
            name=name or f"Student {n}",
            address=address,
            lat=coordinates.lat,
            lng=coordinates.lng,
            is_admin=is_admin,
            is_suspended=False,
            preferences=preferences or default_preferences(),
        )
        async with session_maker() as db:
            db.add(user)
            await db.commit()
        return user

    return create


@pytest_asyncio.fixture
async def admin(user_factory) -> User:
    return await user_factory(name="Admin", is_admin=True)


@pytest_asyncio.fixture
async def host(user_factory) -> User:
    return await user_factory(name="Host")


@pytest.fixture
def make_session(session_maker, venues):
    """Create a study session through the service, optionally approving it"""

    async def create(
        creator: User,
        approve_with: User = None,
        max_participants: int = 5,
        duration: int = 60,
        start_in: timedelta = timedelta(days=1),
        subject: str = "Calculus",
        venue_id: str = "V001"
    ):
        data = SessionCreate(
            subject=subject,
            topic="Exam prep",
            location=LocationInput(venue_id=venue_id, meeting_spot="Front desk"),
            start_time=utcnow() + start_in,
            duration=duration,
            max_participants=max_participants,
        )
        async with session_maker() as db:
            session = await session_service.create(db, creator, data)
            if approve_with is not None:
                session = await session_service.approve(db, approve_with, session.id)
        return session

    return create


@pytest.fixture
def auth_headers():
    """Bearer header for a user"""

    def build(user: User) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user)}"}

    return build
