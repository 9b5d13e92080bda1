"""Request/response schemas for video proof endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class VideoSubmitRequest(BaseModel):
    """A video proof. Media lives in object storage; only its hash and key are sent."""

    student_id: str
    challenge_id: str
    content_hash: str = Field(..., max_length=128)
    storage_key: str = Field(..., max_length=500)
    duration_seconds: float | None = Field(None, ge=0)


class VideoDecisionRequest(BaseModel):
    decision: str
    notes: str | None = Field(None, max_length=2000)


class VideoResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    student_id: uuid.UUID
    challenge_id: str
    content_hash: str
    storage_key: str
    duration_seconds: float | None = None
    status: str
    ai_flag: str
    ai_flag_reason: str | None = None
    is_spot_check: bool = False
    auto_approved: bool = False
    xp_awarded: int = 0
    coach_notes: str | None = None
    decided_at: datetime | None = None
    created_at: datetime


class VideoResultResponse(BaseModel):
    """Submission or decision outcome with the XP actually applied."""

    video: VideoResponse
    xp_applied: int


class VideoListResponse(BaseModel):
    videos: list[VideoResponse]
    total: int
