"""Activity completion API endpoints — 8 routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from dojoxp.activities.family import family_status, submit_family_challenge
from dojoxp.activities.gate import ActivityResult
from dojoxp.activities.gauntlet import gauntlet_status, submit_gauntlet
from dojoxp.activities.habits import check_habit, habit_status
from dojoxp.activities.quiz import submit_quiz
from dojoxp.activities.schemas import (
    ActivityResponse,
    FamilyChallengeRequest,
    FamilyStatusResponse,
    GauntletRequest,
    GauntletStatusResponse,
    GauntletSubmissionEntry,
    HabitRequest,
    HabitStatusResponse,
    PersonalBestEntry,
    QuizRequest,
    TrustChallengeRequest,
)
from dojoxp.activities.trust import submit_trust_challenge
from dojoxp.dependencies import get_db

router = APIRouter(prefix="/api/v1/activities", tags=["Activities"])


def _activity_response(result: ActivityResult) -> ActivityResponse:
    return ActivityResponse(
        awarded=result.awarded,
        new_balance=result.new_balance,
        capped=result.capped,
        duplicate=result.duplicate,
        message=result.message,
    )


# ── Completions ──


@router.post("/habits", response_model=ActivityResponse)
async def complete_habit(body: HabitRequest, db: AsyncSession = Depends(get_db)):
    """Check off a habit for today."""
    return _activity_response(await check_habit(db, body.student_id, body.habit_name))


@router.post("/quiz", response_model=ActivityResponse)
async def complete_quiz(body: QuizRequest, db: AsyncSession = Depends(get_db)):
    """Submit today's quiz answer."""
    return _activity_response(await submit_quiz(db, body.student_id, body.is_correct))


@router.post("/family", response_model=ActivityResponse)
async def complete_family_challenge(body: FamilyChallengeRequest, db: AsyncSession = Depends(get_db)):
    """Record a parent-vs-kid challenge."""
    return _activity_response(
        await submit_family_challenge(db, body.student_id, body.challenge_id, body.won)
    )


@router.post("/trust", response_model=ActivityResponse)
async def complete_trust_challenge(body: TrustChallengeRequest, db: AsyncSession = Depends(get_db)):
    """Self-report an arena challenge."""
    return _activity_response(
        await submit_trust_challenge(db, body.student_id, body.challenge_type, body.score)
    )


@router.post("/gauntlet", response_model=ActivityResponse)
async def complete_gauntlet(body: GauntletRequest, db: AsyncSession = Depends(get_db)):
    """Submit this week's gauntlet score."""
    return _activity_response(
        await submit_gauntlet(db, body.student_id, body.challenge_id, body.score)
    )


# ── Status ──


@router.get("/habits/status", response_model=HabitStatusResponse)
async def get_habit_status(student_id: str = Query(...), db: AsyncSession = Depends(get_db)):
    return HabitStatusResponse(**await habit_status(db, student_id))


@router.get("/family/status", response_model=FamilyStatusResponse)
async def get_family_status(student_id: str = Query(...), db: AsyncSession = Depends(get_db)):
    return FamilyStatusResponse(**await family_status(db, student_id))


@router.get("/gauntlet/status", response_model=GauntletStatusResponse)
async def get_gauntlet_status(student_id: str = Query(...), db: AsyncSession = Depends(get_db)):
    """This week's gauntlet submissions and personal bests."""
    status = await gauntlet_status(db, student_id)
    return GauntletStatusResponse(
        week_iso=status["week_iso"],
        week_start=status["week_start"],
        submissions=[GauntletSubmissionEntry(**s) for s in status["submissions"]],
        personal_bests=[PersonalBestEntry(**pb) for pb in status["personal_bests"]],
    )
