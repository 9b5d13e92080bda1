"""Family challenges: one per challenge per day, N distinct rewarded challenges per day."""

from __future__ import annotations

import math
import uuid
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from dojoxp.activities.catalog import FAMILY_CHALLENGES
from dojoxp.activities.gate import ActivityResult, complete_once, parse_uuid, require_text
from dojoxp.config import Settings, get_settings
from dojoxp.db.models import FamilyChallengeLog, Student
from dojoxp.errors import NotFound, ValidationError
from dojoxp.periods import utc_day, utcnow


def family_reward(base_xp: int, won: bool, loss_ratio: float) -> int:
    """Win = full XP, loss = ``loss_ratio`` of it rounded half up."""
    if won:
        return base_xp
    return math.floor(base_xp * loss_ratio + 0.5)


async def submit_family_challenge(
    db: AsyncSession,
    student_id: uuid.UUID | str,
    challenge_id: str,
    won: bool,
    now: datetime | None = None,
    settings: Settings | None = None,
) -> ActivityResult:
    """Record a family challenge. Past the daily limit the log is kept with 0 XP."""
    settings = settings or get_settings()
    sid = parse_uuid(student_id, "student_id")
    challenge_id = require_text(challenge_id, "challenge_id", 64)
    challenge = FAMILY_CHALLENGES.get(challenge_id)
    if challenge is None:
        raise ValidationError(f"Unknown family challenge {challenge_id!r}")
    if now is None:
        now = utcnow()
    today = utc_day(now)

    lookup = select(FamilyChallengeLog).where(
        FamilyChallengeLog.student_id == sid,
        FamilyChallengeLog.challenge_id == challenge_id,
        FamilyChallengeLog.log_date == today,
    )

    async def build(_student: Student) -> tuple[FamilyChallengeLog, bool]:
        done_today = await db.execute(
            select(func.count()).select_from(FamilyChallengeLog).where(
                FamilyChallengeLog.student_id == sid,
                FamilyChallengeLog.log_date == today,
            )
        )
        capped = done_today.scalar_one() >= settings.family_daily_limit
        xp = 0 if capped else family_reward(int(challenge["base_xp"]), won, settings.family_loss_ratio)
        return FamilyChallengeLog(
            student_id=sid,
            challenge_id=challenge_id,
            log_date=today,
            won=won,
            xp_awarded=xp,
            created_at=now,
        ), capped

    result = await complete_once(db, sid, lookup=lookup, build=build, reason="family_challenge", now=now)

    if result.duplicate:
        result.message = "You already completed this family challenge today!"
    elif result.capped:
        result.message = (
            f"Family challenge done! Daily limit of {settings.family_daily_limit} rewarded challenges reached."
        )
    else:
        result.message = f"Family challenge completed! +{result.awarded} XP earned."
    return result


async def family_status(
    db: AsyncSession,
    student_id: uuid.UUID | str,
    now: datetime | None = None,
    settings: Settings | None = None,
) -> dict:
    """Family challenges completed today and the remaining rewarded allowance."""
    settings = settings or get_settings()
    sid = parse_uuid(student_id, "student_id")
    today = utc_day(now)

    exists = await db.execute(select(Student.id).where(Student.id == sid))
    if exists.scalar_one_or_none() is None:
        raise NotFound(f"Student {sid} not found")

    result = await db.execute(
        select(FamilyChallengeLog.challenge_id, FamilyChallengeLog.xp_awarded)
        .where(FamilyChallengeLog.student_id == sid, FamilyChallengeLog.log_date == today)
        .order_by(FamilyChallengeLog.created_at, FamilyChallengeLog.id)
    )
    rows = result.all()
    return {
        "completed_challenges": [row.challenge_id for row in rows],
        "xp_today": sum(row.xp_awarded for row in rows),
        "daily_limit": settings.family_daily_limit,
        "remaining": max(settings.family_daily_limit - len(rows), 0),
    }
