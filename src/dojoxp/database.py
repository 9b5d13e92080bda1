"""Async SQLAlchemy engine, session management and the ledger transaction unit."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import inspect
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from dojoxp.errors import Misconfiguration, StoreFailure

logger = logging.getLogger(__name__)

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None

REQUIRED_TABLES = frozenset({
    "students",
    "xp_transactions",
    "habit_logs",
    "quiz_submissions",
    "family_challenge_logs",
    "trust_challenge_submissions",
    "gauntlet_challenges",
    "gauntlet_submissions",
    "gauntlet_personal_bests",
    "video_submissions",
})


async def init_db(
    url: str,
    isolation_level: str = "SERIALIZABLE",
    pool_size: int = 10,
    echo: bool = False,
) -> None:
    """Create the ledger engine.

    Every pooled connection runs at ``isolation_level``; the gates rely on it
    together with the per-student row lock.
    """
    global _engine, _session_factory  # noqa: PLW0603
    _engine = create_async_engine(
        url,
        isolation_level=isolation_level,
        pool_size=pool_size,
        max_overflow=pool_size // 2,
        pool_pre_ping=True,
        echo=echo,
    )
    _session_factory = async_sessionmaker(_engine, class_=AsyncSession, expire_on_commit=False)
    logger.info("Ledger database engine ready (isolation=%s, pool=%d)", isolation_level, pool_size)


async def close_db() -> None:
    global _engine, _session_factory  # noqa: PLW0603
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None


def get_engine() -> AsyncEngine:
    if _engine is None:
        raise Misconfiguration("Ledger database is not initialized; call init_db() at startup")
    return _engine


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """One session per request (FastAPI dependency)."""
    if _session_factory is None:
        raise Misconfiguration("Ledger database is not initialized; call init_db() at startup")
    async with _session_factory() as session:
        yield session


async def verify_schema(engine: AsyncEngine) -> None:
    """Fail fast when the migrated schema is incomplete.

    Runs once at startup. Request paths assume every table exists.
    """
    async with engine.connect() as conn:
        present = await conn.run_sync(lambda sync_conn: set(inspect(sync_conn).get_table_names()))
    missing = sorted(REQUIRED_TABLES - present)
    if missing:
        raise Misconfiguration(
            f"Database schema is incomplete (missing: {', '.join(missing)}). Run 'alembic upgrade head'."
        )


@asynccontextmanager
async def ledger_transaction(db: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Run the enclosed block as one atomic unit and commit it.

    Integrity violations roll back and propagate so gates can resolve them as
    duplicates. Any other driver error rolls back and surfaces as a retryable
    StoreFailure. Cancellation also rolls back, so a dropped client never
    leaves a half-applied mutation.
    """
    try:
        yield db
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise
    except DBAPIError as exc:
        await db.rollback()
        logger.warning("Ledger transaction aborted: %s", exc.orig)
        raise StoreFailure("Ledger transaction aborted; the request can be retried") from exc
    except BaseException:
        await db.rollback()
        raise
