"""Daily quiz: exactly one attempt per student per UTC day."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dojoxp.activities.gate import ActivityResult, complete_once, parse_uuid
from dojoxp.config import Settings, get_settings
from dojoxp.db.models import QuizSubmission, Student
from dojoxp.periods import utc_day, utcnow


async def submit_quiz(
    db: AsyncSession,
    student_id: uuid.UUID | str,
    is_correct: bool,
    now: datetime | None = None,
    settings: Settings | None = None,
) -> ActivityResult:
    """Record today's quiz attempt. Correct and incorrect answers pay fixed amounts."""
    settings = settings or get_settings()
    sid = parse_uuid(student_id, "student_id")
    if now is None:
        now = utcnow()
    today = utc_day(now)

    lookup = select(QuizSubmission).where(
        QuizSubmission.student_id == sid,
        QuizSubmission.quiz_date == today,
    )

    async def build(_student: Student) -> tuple[QuizSubmission, bool]:
        xp = settings.quiz_correct_xp if is_correct else settings.quiz_incorrect_xp
        return QuizSubmission(
            student_id=sid,
            quiz_date=today,
            is_correct=is_correct,
            xp_awarded=xp,
            created_at=now,
        ), False

    result = await complete_once(db, sid, lookup=lookup, build=build, reason="daily_quiz", now=now)

    if result.duplicate:
        result.message = "You already completed today's challenge! Come back tomorrow."
    elif is_correct:
        result.message = f"Excellent! You earned {result.awarded} XP!"
    else:
        result.message = f"Good try! You earned {result.awarded} XP for participating."
    return result
