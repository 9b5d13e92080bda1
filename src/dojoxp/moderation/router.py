"""Video proof API endpoints — 4 routes."""

from __future__ import annotations

import random

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from dojoxp.dependencies import get_db, get_redis_dep, get_rng
from dojoxp.moderation.schemas import (
    VideoDecisionRequest,
    VideoListResponse,
    VideoResponse,
    VideoResultResponse,
    VideoSubmitRequest,
)
from dojoxp.moderation.video_service import decide_video, list_pending, list_student_videos, submit_video

router = APIRouter(prefix="/api/v1/videos", tags=["Videos"])


@router.post("", response_model=VideoResultResponse, status_code=201)
async def create_video(
    body: VideoSubmitRequest,
    db: AsyncSession = Depends(get_db),
    redis: object = Depends(get_redis_dep),
    rng: random.Random = Depends(get_rng),
):
    """Submit a video proof for moderation."""
    video, xp_applied = await submit_video(
        db,
        redis,
        body.student_id,
        body.challenge_id,
        body.content_hash,
        body.storage_key,
        body.duration_seconds,
        rng=rng,
    )
    return VideoResultResponse(video=VideoResponse.model_validate(video), xp_applied=xp_applied)


@router.get("/pending", response_model=VideoListResponse)
async def get_pending_videos(
    club_id: str | None = Query(None, description="Limit the queue to one club's students"),
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
):
    """Manual review queue, oldest first."""
    videos = await list_pending(db, club_id=club_id, limit=limit)
    return VideoListResponse(
        videos=[VideoResponse.model_validate(v) for v in videos],
        total=len(videos),
    )


@router.get("/student/{student_id}", response_model=VideoListResponse)
async def get_student_videos(
    student_id: str,
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
):
    """A student's own video proofs, newest first."""
    videos = await list_student_videos(db, student_id, limit=limit)
    return VideoListResponse(
        videos=[VideoResponse.model_validate(v) for v in videos],
        total=len(videos),
    )


@router.post("/{video_id}/decision", response_model=VideoResultResponse)
async def post_video_decision(
    video_id: str,
    body: VideoDecisionRequest,
    db: AsyncSession = Depends(get_db),
    redis: object = Depends(get_redis_dep),
):
    """Approve or reject a pending video."""
    video, xp_applied = await decide_video(db, redis, video_id, body.decision, body.notes)
    return VideoResultResponse(video=VideoResponse.model_validate(video), xp_applied=xp_applied)
