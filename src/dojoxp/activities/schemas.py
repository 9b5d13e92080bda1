"""Request/response schemas for activity completion endpoints."""

from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, Field

# Identifiers arrive as plain strings and are parsed by the gates, so a
# malformed id maps to the engine's ValidationError (400) rather than a 422.


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class HabitRequest(BaseModel):
    """Check off one habit for today."""

    student_id: str
    habit_name: str = Field(..., max_length=100)


class QuizRequest(BaseModel):
    student_id: str
    is_correct: bool


class FamilyChallengeRequest(BaseModel):
    student_id: str
    challenge_id: str
    won: bool = False


class TrustChallengeRequest(BaseModel):
    """Self-reported arena challenge."""

    student_id: str
    challenge_type: str
    score: int | None = Field(None, ge=0)


class GauntletRequest(BaseModel):
    student_id: str
    challenge_id: str
    score: float = Field(..., ge=0)


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class ActivityResponse(BaseModel):
    """Outcome of a completion. Duplicates and caps are not errors."""

    awarded: int
    new_balance: int
    capped: bool = False
    duplicate: bool = False
    message: str = ""


class HabitStatusResponse(BaseModel):
    completed_habits: list[str]
    xp_today: int
    daily_xp_cap: int
    total_xp: int
    streak: int


class FamilyStatusResponse(BaseModel):
    completed_challenges: list[str]
    xp_today: int
    daily_limit: int
    remaining: int


class GauntletSubmissionEntry(BaseModel):
    challenge_id: uuid.UUID
    challenge_name: str
    score: float
    xp_awarded: int
    global_points_awarded: int
    is_personal_best: bool


class PersonalBestEntry(BaseModel):
    challenge_id: uuid.UUID
    challenge_name: str
    best_score: float
    achieved_at: datetime


class GauntletStatusResponse(BaseModel):
    week_iso: str
    week_start: date
    submissions: list[GauntletSubmissionEntry]
    personal_bests: list[PersonalBestEntry]
