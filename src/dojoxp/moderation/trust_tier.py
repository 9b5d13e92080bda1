"""Trust-tier rules and the video status state machine.

A student's tier is derived from consecutive coach approvals. Approvals only
ever move the tier up across fixed thresholds; any rejection drops it straight
back to unverified.
"""

from __future__ import annotations

from dojoxp.config import Settings, get_settings
from dojoxp.db.models import Student, TrustTier, VideoStatus
from dojoxp.errors import TerminalStateError

VALID_TRANSITIONS: dict[str, list[str]] = {
    VideoStatus.PENDING: [VideoStatus.APPROVED, VideoStatus.REJECTED],
    VideoStatus.APPROVED: [],
    VideoStatus.REJECTED: [],
}

AUTO_APPROVE_TIERS = frozenset({TrustTier.VERIFIED, TrustTier.TRUSTED})


def validate_transition(current_status: str, target_status: str) -> None:
    """Validate a status transition. Raises TerminalStateError if invalid."""
    valid = VALID_TRANSITIONS.get(current_status, [])
    if target_status not in valid:
        raise TerminalStateError(
            f"Invalid transition: {current_status} -> {target_status}. "
            f"Valid transitions: {[str(v) for v in valid]}"
        )


def tier_for_streak(streak: int, current: str, settings: Settings | None = None) -> str:
    """Tier after an approval brings the streak to ``streak``. Never downgrades."""
    settings = settings or get_settings()
    if streak >= settings.trusted_streak_threshold:
        return TrustTier.TRUSTED
    if streak >= settings.verified_streak_threshold:
        return TrustTier.VERIFIED
    return current


def can_auto_approve(tier: str) -> bool:
    return tier in AUTO_APPROVE_TIERS


def apply_approval(student: Student, settings: Settings | None = None) -> str:
    """Count one approval and upgrade the tier. Returns the new tier."""
    student.approval_streak += 1
    student.trust_tier = tier_for_streak(student.approval_streak, student.trust_tier, settings)
    return student.trust_tier


def apply_rejection(student: Student) -> None:
    """Reset trust after a rejection."""
    student.approval_streak = 0
    student.rejection_count += 1
    student.trust_tier = TrustTier.UNVERIFIED
