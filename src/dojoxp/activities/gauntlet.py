"""Weekly gauntlet: one scored submission per challenge per ISO week.

A first submission in a week pays local XP into ``total_xp`` and global points
into ``global_xp``. Personal bests are tracked per (student, challenge) across
weeks and updated in the same transaction as the submission.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dojoxp.activities.gate import ActivityResult, complete_once, parse_uuid
from dojoxp.config import Settings, get_settings
from dojoxp.db.models import GauntletChallenge, GauntletPersonalBest, GauntletSubmission, Student
from dojoxp.errors import NotFound, ValidationError
from dojoxp.ledger.xp_service import apply_global_delta
from dojoxp.periods import get_monday, get_week_iso, get_week_number, utcnow

logger = logging.getLogger(__name__)


def is_better(score: float, best: float, sort_order: str) -> bool:
    """ASC challenges are timed (lower wins); DESC challenges count reps (higher wins)."""
    if sort_order == "ASC":
        return score < best
    return score > best


async def _get_active_challenge(db: AsyncSession, challenge_id: uuid.UUID) -> GauntletChallenge:
    result = await db.execute(
        select(GauntletChallenge).where(
            GauntletChallenge.id == challenge_id,
            GauntletChallenge.is_active.is_(True),
        )
    )
    challenge = result.scalar_one_or_none()
    if challenge is None:
        raise NotFound(f"Gauntlet challenge {challenge_id} not found")
    return challenge


async def submit_gauntlet(
    db: AsyncSession,
    student_id: uuid.UUID | str,
    challenge_id: uuid.UUID | str,
    score: float,
    now: datetime | None = None,
    settings: Settings | None = None,
) -> ActivityResult:
    """Record this week's gauntlet score and pay local XP plus global points."""
    settings = settings or get_settings()
    sid = parse_uuid(student_id, "student_id")
    cid = parse_uuid(challenge_id, "challenge_id")
    if score is None or score < 0:
        raise ValidationError("score must be a non-negative number")
    if now is None:
        now = utcnow()
    week_iso = get_week_iso(now)

    challenge = await _get_active_challenge(db, cid)
    challenge_name, sort_order = challenge.name, challenge.sort_order

    lookup = select(GauntletSubmission).where(
        GauntletSubmission.student_id == sid,
        GauntletSubmission.challenge_id == cid,
        GauntletSubmission.week_iso == week_iso,
    )

    async def build(_student: Student) -> tuple[GauntletSubmission, bool]:
        pb_result = await db.execute(
            select(GauntletPersonalBest).where(
                GauntletPersonalBest.student_id == sid,
                GauntletPersonalBest.challenge_id == cid,
            )
        )
        pb = pb_result.scalar_one_or_none()
        if pb is None:
            db.add(GauntletPersonalBest(student_id=sid, challenge_id=cid, best_score=score, achieved_at=now))
            personal_best = True
        elif is_better(score, pb.best_score, sort_order):
            pb.best_score = score
            pb.achieved_at = now
            personal_best = True
        else:
            personal_best = False

        return GauntletSubmission(
            student_id=sid,
            challenge_id=cid,
            week_iso=week_iso,
            week_number=get_week_number(now),
            score=score,
            xp_awarded=settings.gauntlet_local_xp,
            global_points_awarded=settings.gauntlet_global_points,
            is_personal_best=personal_best,
            created_at=now,
        ), False

    async def award_global(submission: GauntletSubmission) -> None:
        await apply_global_delta(db, sid, submission.global_points_awarded, "gauntlet", now)

    result = await complete_once(
        db,
        sid,
        lookup=lookup,
        build=build,
        reason="gauntlet",
        after_insert=award_global,
        now=now,
    )

    if result.duplicate:
        result.message = f"You already submitted {challenge_name} this week!"
    elif result.record.is_personal_best:
        logger.info("New personal best for %s on %s: %s", sid, challenge_name, score)
        result.message = f"New personal best! +{result.awarded} XP earned."
    else:
        result.message = f"Gauntlet complete! +{result.awarded} XP earned."
    return result


async def gauntlet_status(
    db: AsyncSession,
    student_id: uuid.UUID | str,
    now: datetime | None = None,
) -> dict:
    """This week's gauntlet submissions and all-time personal bests."""
    sid = parse_uuid(student_id, "student_id")
    if now is None:
        now = utcnow()
    week_iso = get_week_iso(now)

    exists = await db.execute(select(Student.id).where(Student.id == sid))
    if exists.scalar_one_or_none() is None:
        raise NotFound(f"Student {sid} not found")

    subs = await db.execute(
        select(GauntletSubmission, GauntletChallenge.name)
        .join(GauntletChallenge, GauntletChallenge.id == GauntletSubmission.challenge_id)
        .where(GauntletSubmission.student_id == sid, GauntletSubmission.week_iso == week_iso)
        .order_by(GauntletChallenge.display_order)
    )
    pbs = await db.execute(
        select(GauntletPersonalBest, GauntletChallenge.name)
        .join(GauntletChallenge, GauntletChallenge.id == GauntletPersonalBest.challenge_id)
        .where(GauntletPersonalBest.student_id == sid)
        .order_by(GauntletChallenge.display_order)
    )

    return {
        "week_iso": week_iso,
        "week_start": get_monday(now),
        "submissions": [
            {
                "challenge_id": sub.challenge_id,
                "challenge_name": name,
                "score": sub.score,
                "xp_awarded": sub.xp_awarded,
                "global_points_awarded": sub.global_points_awarded,
                "is_personal_best": sub.is_personal_best,
            }
            for sub, name in subs.all()
        ],
        "personal_bests": [
            {
                "challenge_id": pb.challenge_id,
                "challenge_name": name,
                "best_score": pb.best_score,
                "achieved_at": pb.achieved_at,
            }
            for pb, name in pbs.all()
        ],
    }
