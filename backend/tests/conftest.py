"""Pytest configuration and shared fixtures for API tests."""

import os
import tempfile

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import text

# Test settings must be in the environment before fittrack.config is imported
_DB_FILE = os.path.join(tempfile.mkdtemp(prefix="fittrack-tests-"), "test.db")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_DB_FILE}")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("RATE_LIMIT_DEFAULT", "10000/minute")
os.environ.setdefault("RATE_LIMIT_AI_ENABLED", "false")
os.environ.setdefault("GOOGLE_GEMINI_API_KEY", "test-gemini-key")

from fittrack.core.auth import create_access_token, hash_password
from fittrack.db.base import Base
from fittrack.db.session import async_session_maker, engine, init_db
from fittrack.main import app
from fittrack.models.user import User

pytest_plugins = ["pytest_asyncio"]


@pytest_asyncio.fixture(scope="session")
async def ensure_db():
    """Create tables once per test session (no scheduler, no lifespan)."""
    await init_db()
    yield
    from fittrack.services.http_client import close_http_client

    await close_http_client()
    await engine.dispose()


async def _clear_all():
    """Delete every row, children first, so tests start clean."""
    async with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            await conn.execute(text(f"DELETE FROM {table.name}"))


@pytest_asyncio.fixture
async def client(ensure_db):
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def clean_db(ensure_db):
    await _clear_all()
    yield


async def _create_user(email: str, password: str = "password123") -> tuple[int, str, str]:
    async with async_session_maker() as session:
        user = User(email=email, password_hash=hash_password(password), display_name="Tester")
        session.add(user)
        await session.commit()
        await session.refresh(user)
        return user.id, user.email, create_access_token(user.id, user.email)


@pytest_asyncio.fixture
async def test_user(clean_db, client):
    """(user_id, email, access_token) for a committed user."""
    return await _create_user("test@test.com")


@pytest_asyncio.fixture
async def other_user(test_user):
    return await _create_user("other@test.com")


@pytest.fixture
def auth_headers(test_user):
    _, __, token = test_user
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def other_headers(other_user):
    _, __, token = other_user
    return {"Authorization": f"Bearer {token}"}


def make_session_body(day: str, exercises: list[dict], category: str = "push", **extra) -> dict:
    return {"date": day, "category": category, "exercises": exercises, **extra}


def strength(name: str, weight: float | None = None, sets: int | None = 3, reps: int | None = 10, **extra) -> dict:
    return {
        "exercise_name": name,
        "exercise_type": "strength",
        "sets": sets,
        "reps": reps,
        "weight_kg": weight,
        **extra,
    }
