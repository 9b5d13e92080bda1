"""Pydantic response models for ledger read endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel


# --- XP ---


class StudentXPResponse(BaseModel):
    student_id: uuid.UUID
    total_xp: int
    monthly_xp: int
    global_xp: int
    streak: int
    trust_tier: str


class XPHistoryEntry(BaseModel):
    amount: int
    type: str
    reason: str
    created_at: datetime


class XPHistoryResponse(BaseModel):
    entries: list[XPHistoryEntry]
    total: int
    page: int
    per_page: int


# --- Leaderboard ---


class LeaderboardEntry(BaseModel):
    rank: int
    student_id: uuid.UUID
    name: str
    total_xp: int
    monthly_xp: int


class LeaderboardResponse(BaseModel):
    club_id: uuid.UUID
    entries: list[LeaderboardEntry]
