"""Video proof submission and coach decisions.

Submission decides synchronously between auto-approval and manual review:

- red or yellow fingerprint -> PENDING, whatever the tier
- green, verified/trusted -> spot-check draw; sampled -> PENDING, else APPROVED
- green, unverified -> PENDING

Every XP change goes through ``apply_delta`` inside one ledger transaction.
The decision event is published only after that transaction commits.
"""

from __future__ import annotations

import logging
import random
import uuid
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dojoxp.activities.catalog import arena_challenge_xp
from dojoxp.activities.gate import lock_student, parse_uuid, require_text
from dojoxp.config import Settings, get_settings
from dojoxp.database import ledger_transaction
from dojoxp.db.models import AiFlag, Student, VideoStatus, VideoSubmission
from dojoxp.errors import NotFound, ValidationError
from dojoxp.ledger.xp_service import apply_delta
from dojoxp.moderation.fingerprint import check_content
from dojoxp.moderation.notifications import publish_video_decision
from dojoxp.moderation.trust_tier import (
    apply_approval,
    apply_rejection,
    can_auto_approve,
    validate_transition,
)
from dojoxp.periods import utcnow

logger = logging.getLogger(__name__)

_system_rng = random.SystemRandom()

DECISIONS = {
    "approved": VideoStatus.APPROVED,
    "rejected": VideoStatus.REJECTED,
}


def route_submission(flag: str, tier: str, rng: random.Random, spot_check_rate: float) -> tuple[str, bool]:
    """Initial (status, is_spot_check) for a new video.

    Only a green flag from a verified or trusted student can skip review, and
    even then one independent draw sends it to a coach at ``spot_check_rate``.
    """
    if flag != AiFlag.GREEN or not can_auto_approve(tier):
        return VideoStatus.PENDING, False
    if rng.random() < spot_check_rate:
        return VideoStatus.PENDING, True
    return VideoStatus.APPROVED, False


async def submit_video(
    db: AsyncSession,
    redis: object,
    student_id: uuid.UUID | str,
    challenge_id: str,
    content_hash: str,
    storage_key: str,
    duration_seconds: float | None = None,
    rng: random.Random | None = None,
    now: datetime | None = None,
    settings: Settings | None = None,
) -> tuple[VideoSubmission, int]:
    """Create a video submission and moderate it. Returns (submission, xp_applied)."""
    settings = settings or get_settings()
    rng = rng or _system_rng
    sid = parse_uuid(student_id, "student_id")
    challenge_id = require_text(challenge_id, "challenge_id", 64)
    content_hash = require_text(content_hash, "content_hash", 128)
    storage_key = require_text(storage_key, "storage_key", 500)
    if duration_seconds is not None and duration_seconds < 0:
        raise ValidationError("duration_seconds must be non-negative")
    base_xp = arena_challenge_xp(challenge_id)
    if base_xp is None:
        raise ValidationError(f"Unknown challenge type {challenge_id!r}")
    if now is None:
        now = utcnow()

    xp_applied = 0
    async with ledger_transaction(db):
        student = await lock_student(db, sid)
        fingerprint = await check_content(db, sid, content_hash, duration_seconds, now, settings)

        video = VideoSubmission(
            student_id=sid,
            challenge_id=challenge_id,
            content_hash=content_hash,
            storage_key=storage_key,
            duration_seconds=duration_seconds,
            status=VideoStatus.PENDING,
            ai_flag=fingerprint.flag,
            ai_flag_reason=fingerprint.reason,
            xp_awarded=base_xp * settings.video_xp_multiplier,
            created_at=now,
            updated_at=now,
        )

        status, spot_check = route_submission(fingerprint.flag, student.trust_tier, rng, settings.spot_check_rate)
        if spot_check:
            video.is_spot_check = True
            student.last_spot_check_at = now
            logger.info("Spot-check: video from %s routed to manual review", sid)
        elif status == VideoStatus.APPROVED:
            video.status = VideoStatus.APPROVED
            video.auto_approved = True
            video.decided_at = now
            xp_applied = video.xp_awarded
        elif fingerprint.flag != AiFlag.GREEN:
            logger.info("Video from %s flagged %s (%s)", sid, fingerprint.flag, fingerprint.reason)

        db.add(video)
        await db.flush()

        if xp_applied:
            await apply_delta(db, sid, xp_applied, "video_proof", now)
            tier = apply_approval(student, settings)
            logger.info("Auto-approved video %s for %s (tier %s)", video.id, sid, tier)

    if video.auto_approved:
        await publish_video_decision(redis, video, xp_applied)
    return video, xp_applied


async def decide_video(
    db: AsyncSession,
    redis: object,
    video_id: uuid.UUID | str,
    decision: str,
    notes: str | None = None,
    now: datetime | None = None,
    settings: Settings | None = None,
) -> tuple[VideoSubmission, int]:
    """Apply a coach decision to a PENDING video. Returns (submission, xp_applied).

    Raises TerminalStateError when the video was already approved or rejected.
    """
    vid = parse_uuid(video_id, "video_id")
    target = DECISIONS.get((decision or "").strip().lower())
    if target is None:
        raise ValidationError("decision must be 'approved' or 'rejected'")
    if now is None:
        now = utcnow()

    xp_applied = 0
    async with ledger_transaction(db):
        result = await db.execute(
            select(VideoSubmission).where(VideoSubmission.id == vid).with_for_update()
        )
        video = result.scalar_one_or_none()
        if video is None:
            raise NotFound(f"Video {vid} not found")
        validate_transition(video.status, target)

        student = await lock_student(db, video.student_id)
        if target == VideoStatus.APPROVED:
            xp_applied = video.xp_awarded
            await apply_delta(db, student.id, xp_applied, "video_proof", now)
            apply_approval(student, settings)
        else:
            video.xp_awarded = 0
            apply_rejection(student)

        video.status = target
        video.coach_notes = notes
        video.decided_at = now
        video.updated_at = now

    logger.info("Video %s %s (+%d XP); student %s now %s", vid, target, xp_applied, student.id, student.trust_tier)
    await publish_video_decision(redis, video, xp_applied)
    return video, xp_applied


async def list_pending(
    db: AsyncSession,
    club_id: uuid.UUID | str | None = None,
    limit: int = 50,
) -> list[VideoSubmission]:
    """Manual review queue, oldest first. Scoped to one club when ``club_id`` is given."""
    stmt = select(VideoSubmission).where(VideoSubmission.status == VideoStatus.PENDING)
    if club_id is not None:
        cid = parse_uuid(club_id, "club_id")
        stmt = stmt.join(Student, Student.id == VideoSubmission.student_id).where(Student.club_id == cid)
    result = await db.execute(stmt.order_by(VideoSubmission.created_at, VideoSubmission.id).limit(limit))
    return list(result.scalars())


async def list_student_videos(
    db: AsyncSession,
    student_id: uuid.UUID | str,
    limit: int = 50,
) -> list[VideoSubmission]:
    """A student's own submissions in every status, newest first."""
    sid = parse_uuid(student_id, "student_id")
    exists = await db.execute(select(Student.id).where(Student.id == sid))
    if exists.scalar_one_or_none() is None:
        raise NotFound(f"Student {sid} not found")

    result = await db.execute(
        select(VideoSubmission)
        .where(VideoSubmission.student_id == sid)
        .order_by(VideoSubmission.created_at.desc(), VideoSubmission.id.desc())
        .limit(limit)
    )
    return list(result.scalars())
