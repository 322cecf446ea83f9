"""
Shared pytest configuration for the API tests.

Tests run against an in-memory SQLite database (aiosqlite) so they need no
running PostgreSQL. Every test gets a fresh schema.
"""

import os

# Must be set before the app modules are imported: they read these at import time
os.environ["ENV"] = "test"
os.environ["ENABLE_EMAIL"] = "false"

from datetime import date  # noqa: E402

import pytest_asyncio  # noqa: E402
from httpx import AsyncClient, ASGITransport  # noqa: E402
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from tournament_api.database.db import Base, get_db_session  # noqa: E402
from tournament_api.database.models import UserRole  # noqa: E402
from tournament_api.services import (  # noqa: E402
    auth_service,
    team_service,
    tournament_service,
    user_service,
)

TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create a fresh in-memory database for one test."""
    # StaticPool keeps the single in-memory connection alive for every session
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_maker(test_engine):
    """Session factory bound to the test engine, configured like the app's."""
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def db_session(session_maker):
    """Database session for service-level tests."""
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_maker):
    """HTTP client for the app with get_db_session pointed at the test database."""
    from tournament_api.api.main import app

    async def override_get_db_session():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_get_db_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# ============================================================================
# Data helpers
# ============================================================================


async def _create_account(session, username: str, email: str, role: UserRole = UserRole.GUEST,
                         password: str = "password123") -> dict:
    """Create a user and return it with a session token."""
    user = await user_service.create_user(
        session,
        username=username,
        email=email,
        password_hash=auth_service.hash_password(password),
        role=role,
    )
    user["token"] = auth_service.create_session_token(user)
    return user


@pytest_asyncio.fixture
async def admin_user(db_session):
    """An admin account with a token."""
    return await _create_account(db_session, "admin", "admin@example.com", UserRole.ADMIN)


@pytest_asyncio.fixture
async def guest_user(db_session):
    """A guest account with a token."""
    return await _create_account(db_session, "guest", "guest@example.com")


@pytest_asyncio.fixture
async def admin_headers(admin_user):
    return {"Authorization": f"Bearer {admin_user['token']}"}


@pytest_asyncio.fixture
async def guest_headers(guest_user):
    return {"Authorization": f"Bearer {guest_user['token']}"}


@pytest_asyncio.fixture
async def tournament(db_session):
    """Tournament T1 running through January 2024."""
    return await tournament_service.create_tournament(
        db_session, "T1", date(2024, 1, 1), date(2024, 2, 1)
    )


@pytest_asyncio.fixture
async def group_teams(db_session, tournament):
    """Teams A, B and C entered into T1, group G1."""
    teams = {}
    for name in ("A", "B", "C"):
        teams[name] = await team_service.create_team(
            db_session, name, tournament_id=tournament["id"], group_label="G1"
        )
    return teams

