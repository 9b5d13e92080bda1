"""Habit check-offs: one per habit per UTC day, under a daily XP cap."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from dojoxp.activities.gate import ActivityResult, complete_once, parse_uuid, require_text
from dojoxp.config import Settings, get_settings
from dojoxp.db.models import HabitLog, Student
from dojoxp.errors import NotFound
from dojoxp.ledger.reconciliation import lifetime_xp
from dojoxp.ledger.streak_service import get_current_streak
from dojoxp.periods import utc_day, utcnow

logger = logging.getLogger(__name__)


async def _habit_xp_on(db: AsyncSession, student_id: uuid.UUID, day) -> int:
    result = await db.execute(
        select(func.coalesce(func.sum(HabitLog.xp_awarded), 0)).where(
            HabitLog.student_id == student_id,
            HabitLog.log_date == day,
        )
    )
    return int(result.scalar_one())


async def check_habit(
    db: AsyncSession,
    student_id: uuid.UUID | str,
    habit_name: str,
    now: datetime | None = None,
    settings: Settings | None = None,
) -> ActivityResult:
    """Complete a habit for today. Past the daily cap the log is kept with 0 XP."""
    settings = settings or get_settings()
    sid = parse_uuid(student_id, "student_id")
    habit_name = require_text(habit_name, "habit_name", 100)
    if now is None:
        now = utcnow()
    today = utc_day(now)

    lookup = select(HabitLog).where(
        HabitLog.student_id == sid,
        HabitLog.habit_name == habit_name,
        HabitLog.log_date == today,
    )

    async def build(student: Student) -> tuple[HabitLog, bool]:
        earned_today = await _habit_xp_on(db, sid, today)
        cap = settings.habit_daily_cap(student.is_premium)
        xp = min(settings.habit_xp, max(cap - earned_today, 0))
        log = HabitLog(
            student_id=sid,
            habit_name=habit_name,
            log_date=today,
            xp_awarded=xp,
            created_at=now,
        )
        return log, xp < settings.habit_xp

    result = await complete_once(db, sid, lookup=lookup, build=build, reason="habit", now=now)

    if result.duplicate:
        result.message = "You already completed this habit today!"
    elif result.capped:
        cap = settings.habit_daily_cap(await _is_premium(db, sid))
        result.message = f"Habit done! Daily Dojo Limit reached (Max {cap} XP)."
        logger.info("Habit %r for %s recorded at daily cap", habit_name, sid)
    else:
        result.message = f"Habit completed! +{result.awarded} XP earned."
    return result


async def _is_premium(db: AsyncSession, student_id: uuid.UUID) -> bool:
    result = await db.execute(select(Student.is_premium).where(Student.id == student_id))
    premium = result.scalar_one_or_none()
    if premium is None:
        raise NotFound(f"Student {student_id} not found")
    return premium


async def habit_status(
    db: AsyncSession,
    student_id: uuid.UUID | str,
    now: datetime | None = None,
    settings: Settings | None = None,
) -> dict:
    """Today's habit progress with the reconciled balance and current streak."""
    settings = settings or get_settings()
    sid = parse_uuid(student_id, "student_id")
    today = utc_day(now)
    premium = await _is_premium(db, sid)

    result = await db.execute(
        select(HabitLog.habit_name, HabitLog.xp_awarded)
        .where(HabitLog.student_id == sid, HabitLog.log_date == today)
        .order_by(HabitLog.created_at, HabitLog.id)
    )
    rows = result.all()

    return {
        "completed_habits": [row.habit_name for row in rows],
        "xp_today": sum(row.xp_awarded for row in rows),
        "daily_xp_cap": settings.habit_daily_cap(premium),
        "total_xp": await lifetime_xp(db, sid),
        "streak": await get_current_streak(db, sid, now),
    }
