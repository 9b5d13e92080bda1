"""Liveness, readiness and version probes."""

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from dojoxp.config import get_settings
from dojoxp.dependencies import get_db
from dojoxp.redis_client import get_redis

router = APIRouter(tags=["Health"])

logger = structlog.get_logger()


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(db: AsyncSession = Depends(get_db)) -> dict[str, object]:  # noqa: B008
    """Readiness: the ledger database must answer; the event bus is reported separately.

    A Redis outage only delays decision e-mails, so it degrades readiness
    instead of failing it.
    """
    checks: dict[str, str] = {}

    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as exc:
        logger.warning("readiness_database_failed", error=str(exc))
        checks["database"] = f"error: {exc}"

    bus = get_redis()
    if bus is None:
        checks["event_bus"] = "disabled"
    else:
        try:
            await bus.ping()
            checks["event_bus"] = "ok"
        except Exception as exc:
            logger.warning("readiness_event_bus_failed", error=str(exc))
            checks["event_bus"] = f"error: {exc}"

    if checks["database"] != "ok":
        status = "unavailable"
    elif checks["event_bus"] == "ok":
        status = "ready"
    else:
        status = "degraded"
    return {"status": status, "checks": checks}


@router.get("/version")
async def version() -> dict[str, str]:
    settings = get_settings()
    return {
        "version": settings.app_version,
        "environment": settings.environment,
    }
