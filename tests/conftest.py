"""Shared test fixtures.

Every test gets a fresh in-memory SQLite database built from the ORM metadata.
Redis is replaced by an AsyncMock so published events can be asserted on.
"""

from __future__ import annotations

import random
from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from dojoxp.config import Settings
from dojoxp.db import models  # noqa: F401
from dojoxp.db.base import Base
from dojoxp.db.models import GauntletChallenge, Student

# Tuesday, mid-month, mid-ISO-week
NOW = datetime(2026, 3, 10, 12, 0, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """In-memory database with the full schema."""
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Get a direct database session for service calls and assertions."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def settings() -> Settings:
    """Default settings, independent of the environment."""
    return Settings(_env_file=None)


@pytest.fixture
def make_student(db_session: AsyncSession) -> Callable[..., Awaitable[Student]]:
    """Factory: insert and commit a student. Defaults to a free, unverified student created at NOW."""

    async def _make(**kwargs) -> Student:
        kwargs.setdefault("name", "Test Student")
        kwargs.setdefault("created_at", NOW)
        kwargs.setdefault("updated_at", NOW)
        student = Student(**kwargs)
        db_session.add(student)
        await db_session.commit()
        return student

    return _make


@pytest_asyncio.fixture
async def student(make_student) -> Student:
    return await make_student()


@pytest_asyncio.fixture
async def gauntlet_challenge(db_session: AsyncSession) -> GauntletChallenge:
    """A DESC (higher is better) reps challenge."""
    challenge = GauntletChallenge(name="Push-up Power", day_of_week="MONDAY", score_type="REPS", sort_order="DESC")
    db_session.add(challenge)
    await db_session.commit()
    return challenge


@pytest_asyncio.fixture
async def timed_challenge(db_session: AsyncSession) -> GauntletChallenge:
    """An ASC (lower is better) timed challenge."""
    challenge = GauntletChallenge(
        name="Shuttle Sprint", day_of_week="THURSDAY", score_type="SECONDS", sort_order="ASC", display_order=4
    )
    db_session.add(challenge)
    await db_session.commit()
    return challenge


@pytest.fixture
def mock_redis() -> MagicMock:
    """Redis stand-in; ``publish`` is awaited by the notification path."""
    redis = MagicMock()
    redis.publish = AsyncMock(return_value=1)
    redis.ping = AsyncMock(return_value=True)
    return redis


class FixedRandom(random.Random):
    """Random source that always draws the same value."""

    def __init__(self, value: float) -> None:
        super().__init__()
        self.value = value

    def random(self) -> float:
        return self.value


@pytest.fixture
def never_sampled() -> FixedRandom:
    """Spot-check draw that never samples (always above any sane rate)."""
    return FixedRandom(0.99)


@pytest.fixture
def always_sampled() -> FixedRandom:
    """Spot-check draw that always samples."""
    return FixedRandom(0.0)


@pytest_asyncio.fixture
async def client(session_factory, mock_redis, never_sampled, monkeypatch) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP test client backed by the in-memory database."""
    from dojoxp.dependencies import get_db, get_redis_dep, get_rng
    from dojoxp.main import create_app

    monkeypatch.setattr("dojoxp.health.router.get_redis", lambda: mock_redis)

    app = create_app()

    async def _get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    async def _get_redis() -> AsyncGenerator[object, None]:
        yield mock_redis

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_redis_dep] = _get_redis
    app.dependency_overrides[get_rng] = lambda: never_sampled

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
