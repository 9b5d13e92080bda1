"""Outbound moderation events, published after the ledger transaction commits."""

from __future__ import annotations

import json
import logging

from dojoxp.config import get_settings
from dojoxp.db.models import VideoSubmission

logger = logging.getLogger(__name__)


async def publish_video_decision(redis: object, video: VideoSubmission, xp_applied: int) -> None:
    """Broadcast a "video decision made" event for the external emailer.

    Delivery is best effort: failures are logged and never reach the caller.
    """
    if redis is None:
        return
    try:
        await redis.publish(  # type: ignore[union-attr]
            get_settings().video_decision_channel,
            json.dumps({
                "video_id": str(video.id),
                "student_id": str(video.student_id),
                "challenge_id": video.challenge_id,
                "status": str(video.status),
                "xp_applied": xp_applied,
                "coach_notes": video.coach_notes,
            }),
        )
    except Exception:
        logger.warning("Failed to publish video_decision for %s", video.id, exc_info=True)
