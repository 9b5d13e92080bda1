"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from dojoxp.activities.router import router as activities_router
from dojoxp.config import get_settings
from dojoxp.database import close_db, get_engine, init_db, verify_schema
from dojoxp.health.router import router as health_router
from dojoxp.ledger.router import router as ledger_router
from dojoxp.middleware import setup_middleware
from dojoxp.moderation.router import router as moderation_router
from dojoxp.redis_client import close_redis, init_redis

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(
        settings.database_url,
        settings.database_isolation_level,
        pool_size=settings.database_pool_size,
        echo=settings.debug,
    )

    # Schema comes from migrations; refuse to serve against a partial one
    if settings.verify_schema_on_startup:
        await verify_schema(get_engine())

    await init_redis(settings.redis_url)
    logger.info("dojoxp %s started (%s)", settings.app_version, settings.environment)

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Dojo XP Ledger API",
        description="XP ledger, activity rewards and video proof moderation for martial arts clubs",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(activities_router)
    app.include_router(moderation_router)
    app.include_router(ledger_router)

    return app


app = create_app()
