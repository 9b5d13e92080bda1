"""Ledger read API endpoints — 3 routes.

Every balance shown here is reconciled; the cached columns are never returned raw.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dojoxp.activities.gate import parse_uuid
from dojoxp.db.models import Student
from dojoxp.dependencies import get_db
from dojoxp.errors import NotFound
from dojoxp.ledger.reconciliation import club_leaderboard, global_score, lifetime_xp, monthly_xp, xp_history
from dojoxp.ledger.schemas import (
    LeaderboardEntry,
    LeaderboardResponse,
    StudentXPResponse,
    XPHistoryEntry,
    XPHistoryResponse,
)
from dojoxp.ledger.streak_service import get_current_streak

router = APIRouter(prefix="/api/v1", tags=["Ledger"])


@router.get("/students/{student_id}/xp", response_model=StudentXPResponse)
async def get_student_xp(student_id: str, db: AsyncSession = Depends(get_db)):
    """Reconciled lifetime, monthly and global XP plus the current streak."""
    sid = parse_uuid(student_id, "student_id")
    result = await db.execute(select(Student.trust_tier).where(Student.id == sid))
    tier = result.scalar_one_or_none()
    if tier is None:
        raise NotFound(f"Student {sid} not found")

    return StudentXPResponse(
        student_id=sid,
        total_xp=await lifetime_xp(db, sid),
        monthly_xp=await monthly_xp(db, sid),
        global_xp=await global_score(db, sid),
        streak=await get_current_streak(db, sid),
        trust_tier=tier,
    )


@router.get("/students/{student_id}/xp/history", response_model=XPHistoryResponse)
async def get_xp_history(
    student_id: str,
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """Paginated XP audit trail, newest first."""
    sid = parse_uuid(student_id, "student_id")
    entries, total = await xp_history(db, sid, page=page, per_page=per_page)
    return XPHistoryResponse(
        entries=[
            XPHistoryEntry(amount=e.amount, type=e.type, reason=e.reason, created_at=e.created_at)
            for e in entries
        ],
        total=total,
        page=page,
        per_page=per_page,
    )


@router.get("/clubs/{club_id}/leaderboard", response_model=LeaderboardResponse)
async def get_club_leaderboard(club_id: str, db: AsyncSession = Depends(get_db)):
    """Club ranking by reconciled lifetime XP."""
    cid = parse_uuid(club_id, "club_id")
    entries = await club_leaderboard(db, cid)
    return LeaderboardResponse(
        club_id=cid,
        entries=[LeaderboardEntry(**e) for e in entries],
    )
