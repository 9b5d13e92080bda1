"""Self-reported arena challenges (honor system, no video proof)."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dojoxp.activities.catalog import arena_challenge_xp
from dojoxp.activities.gate import ActivityResult, complete_once, parse_uuid, require_text
from dojoxp.db.models import Student, TrustChallengeSubmission
from dojoxp.errors import ValidationError
from dojoxp.periods import utc_day, utcnow


async def submit_trust_challenge(
    db: AsyncSession,
    student_id: uuid.UUID | str,
    challenge_type: str,
    score: int | None = None,
    now: datetime | None = None,
) -> ActivityResult:
    """One rewarded self-report per challenge type per UTC day."""
    sid = parse_uuid(student_id, "student_id")
    challenge_type = require_text(challenge_type, "challenge_type", 64)
    xp = arena_challenge_xp(challenge_type)
    if xp is None:
        raise ValidationError(f"Unknown challenge type {challenge_type!r}")
    if score is not None and score < 0:
        raise ValidationError("score must be non-negative")
    if now is None:
        now = utcnow()
    today = utc_day(now)

    lookup = select(TrustChallengeSubmission).where(
        TrustChallengeSubmission.student_id == sid,
        TrustChallengeSubmission.challenge_type == challenge_type,
        TrustChallengeSubmission.log_date == today,
    )

    async def build(_student: Student) -> tuple[TrustChallengeSubmission, bool]:
        return TrustChallengeSubmission(
            student_id=sid,
            challenge_type=challenge_type,
            log_date=today,
            score=score,
            xp_awarded=xp,
            created_at=now,
        ), False

    result = await complete_once(db, sid, lookup=lookup, build=build, reason="trust_challenge", now=now)

    if result.duplicate:
        result.message = "Already completed today. Come back tomorrow!"
    else:
        result.message = f"Challenge complete! +{result.awarded} XP earned."
    return result
