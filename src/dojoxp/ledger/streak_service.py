"""Daily activity streaks derived from completion-record dates."""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from datetime import date, datetime, timedelta

from sqlalchemy import select, union
from sqlalchemy.ext.asyncio import AsyncSession

from dojoxp.db.models import FamilyChallengeLog, HabitLog, QuizSubmission, TrustChallengeSubmission
from dojoxp.periods import utc_day

MAX_STREAK_DAYS = 365


def calculate_streak(dates: Iterable[date], today: date) -> int:
    """Count consecutive active days ending today (or yesterday, if today is still open).

    Returns 0 when neither today nor yesterday has activity. Stops at the
    first gap or after MAX_STREAK_DAYS.
    """
    active = set(dates)
    yesterday = today - timedelta(days=1)
    if today in active:
        check = today
    elif yesterday in active:
        check = yesterday
    else:
        return 0

    streak = 0
    while check in active and streak < MAX_STREAK_DAYS:
        streak += 1
        check -= timedelta(days=1)
    return streak


async def get_activity_dates(db: AsyncSession, student_id: uuid.UUID) -> set[date]:
    """Distinct UTC dates with at least one daily completion record."""
    stmt = union(
        select(HabitLog.log_date.label("d")).where(HabitLog.student_id == student_id),
        select(QuizSubmission.quiz_date.label("d")).where(QuizSubmission.student_id == student_id),
        select(FamilyChallengeLog.log_date.label("d")).where(FamilyChallengeLog.student_id == student_id),
        select(TrustChallengeSubmission.log_date.label("d")).where(TrustChallengeSubmission.student_id == student_id),
    )
    result = await db.execute(stmt)
    dates = set()
    for value in result.scalars():
        # SQLite hands compound-select dates back as ISO strings
        dates.add(date.fromisoformat(value) if isinstance(value, str) else value)
    return dates


async def get_current_streak(db: AsyncSession, student_id: uuid.UUID, now: datetime | None = None) -> int:
    """Current streak for a student as of ``now`` (UTC)."""
    dates = await get_activity_dates(db, student_id)
    return calculate_streak(dates, utc_day(now))
