"""Content fingerprint heuristics for video proofs.

Checks run in a fixed priority order and the first match wins; flags are
never combined. The core only ever sees the caller-supplied content hash,
never raw media.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from dojoxp.config import Settings, get_settings
from dojoxp.db.models import AiFlag, VideoSubmission
from dojoxp.periods import utcnow


@dataclass(frozen=True)
class FingerprintResult:
    flag: AiFlag
    reason: str | None = None


async def check_content(
    db: AsyncSession,
    student_id: uuid.UUID,
    content_hash: str,
    duration_seconds: float | None,
    now: datetime | None = None,
    settings: Settings | None = None,
) -> FingerprintResult:
    """Flag a new submission before it is stored.

    1. same hash anywhere in the lookback window -> red
    2. too many submissions by the student in the rate window -> yellow
    3. very short video -> yellow
    """
    settings = settings or get_settings()
    if now is None:
        now = utcnow()

    lookback_start = now - timedelta(days=settings.fingerprint_lookback_days)
    duplicate = await db.execute(
        select(VideoSubmission.id)
        .where(
            VideoSubmission.content_hash == content_hash,
            VideoSubmission.created_at >= lookback_start,
        )
        .limit(1)
    )
    if duplicate.scalar_one_or_none() is not None:
        return FingerprintResult(AiFlag.RED, "duplicate content")

    rate_start = now - timedelta(minutes=settings.rate_window_minutes)
    recent = await db.execute(
        select(func.count()).select_from(VideoSubmission).where(
            VideoSubmission.student_id == student_id,
            VideoSubmission.created_at >= rate_start,
        )
    )
    if recent.scalar_one() >= settings.rate_limit_submissions:
        return FingerprintResult(AiFlag.YELLOW, "high submission rate")

    if duration_seconds is not None and duration_seconds < settings.min_video_duration_seconds:
        return FingerprintResult(AiFlag.YELLOW, "video very short")

    return FingerprintResult(AiFlag.GREEN)
