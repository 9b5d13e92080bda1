"""ORM models for the XP ledger, activity completion records and video moderation.

Tables are created by Alembic migrations at deploy time (see alembic/versions).
``students.total_xp`` / ``students.global_xp`` are caches owned by
``dojoxp.ledger.xp_service``; ``xp_transactions`` is append-only.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from enum import StrEnum

from sqlalchemy import (
    BigInteger,
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from dojoxp.db.base import Base
from dojoxp.periods import utcnow

# BIGSERIAL on PostgreSQL; SQLite only autoincrements INTEGER PRIMARY KEY.
BigIntPK = BigInteger().with_variant(Integer, "sqlite")


class TransactionType(StrEnum):
    EARN = "EARN"
    SPEND = "SPEND"
    PTS_EARN = "PTS_EARN"
    GLOBAL_EARN = "GLOBAL_EARN"


class TrustTier(StrEnum):
    UNVERIFIED = "unverified"
    VERIFIED = "verified"
    TRUSTED = "trusted"


class VideoStatus(StrEnum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class AiFlag(StrEnum):
    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"


# ---------------------------------------------------------------------------
# Ledger store
# ---------------------------------------------------------------------------


class Student(Base):
    """One row per student. Balance fields are ledger-owned caches."""

    __tablename__ = "students"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    club_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="New Student")
    is_premium: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    total_xp: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0, server_default="0")
    global_xp: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0, server_default="0")
    trust_tier: Mapped[str] = mapped_column(
        String(16), nullable=False, default=TrustTier.UNVERIFIED, server_default=TrustTier.UNVERIFIED.value
    )
    approval_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    rejection_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    last_spot_check_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )


class XpTransaction(Base):
    """Immutable XP audit trail. ``amount`` is a magnitude; ``type`` carries the sign."""

    __tablename__ = "xp_transactions"
    __table_args__ = (
        Index("idx_xp_transactions_student_type_created", "student_id", "type", "created_at"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    student_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("students.id", ondelete="CASCADE"), nullable=False
    )
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    type: Mapped[str] = mapped_column(String(16), nullable=False)
    reason: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )


# ---------------------------------------------------------------------------
# Activity completion records (existence = idempotency proof)
# ---------------------------------------------------------------------------


class HabitLog(Base):
    __tablename__ = "habit_logs"
    __table_args__ = (
        UniqueConstraint("student_id", "habit_name", "log_date", name="habit_logs_student_habit_day_key"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    student_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("students.id", ondelete="CASCADE"), nullable=False
    )
    habit_name: Mapped[str] = mapped_column(String(100), nullable=False)
    log_date: Mapped[date] = mapped_column(Date, nullable=False)
    xp_awarded: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )


class QuizSubmission(Base):
    __tablename__ = "quiz_submissions"
    __table_args__ = (
        UniqueConstraint("student_id", "quiz_date", name="quiz_submissions_student_day_key"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    student_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("students.id", ondelete="CASCADE"), nullable=False
    )
    quiz_date: Mapped[date] = mapped_column(Date, nullable=False)
    is_correct: Mapped[bool] = mapped_column(Boolean, nullable=False)
    xp_awarded: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )


class FamilyChallengeLog(Base):
    __tablename__ = "family_challenge_logs"
    __table_args__ = (
        UniqueConstraint("student_id", "challenge_id", "log_date", name="family_logs_student_challenge_day_key"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    student_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("students.id", ondelete="CASCADE"), nullable=False
    )
    challenge_id: Mapped[str] = mapped_column(String(64), nullable=False)
    log_date: Mapped[date] = mapped_column(Date, nullable=False)
    won: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    xp_awarded: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )


class TrustChallengeSubmission(Base):
    """Self-reported arena challenge (proof type TRUST)."""

    __tablename__ = "trust_challenge_submissions"
    __table_args__ = (
        UniqueConstraint("student_id", "challenge_type", "log_date", name="trust_submissions_student_type_day_key"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    student_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("students.id", ondelete="CASCADE"), nullable=False
    )
    challenge_type: Mapped[str] = mapped_column(String(64), nullable=False)
    log_date: Mapped[date] = mapped_column(Date, nullable=False)
    score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    xp_awarded: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )


# ---------------------------------------------------------------------------
# Gauntlet (weekly)
# ---------------------------------------------------------------------------


class GauntletChallenge(Base):
    __tablename__ = "gauntlet_challenges"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    day_of_week: Mapped[str] = mapped_column(String(9), nullable=False)
    score_type: Mapped[str] = mapped_column(String(16), nullable=False, default="REPS")
    # DESC: higher score is better. ASC: lower is better (timed events).
    sort_order: Mapped[str] = mapped_column(String(4), nullable=False, default="DESC")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default="1")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )


class GauntletSubmission(Base):
    __tablename__ = "gauntlet_submissions"
    __table_args__ = (
        UniqueConstraint("student_id", "challenge_id", "week_iso", name="gauntlet_submissions_student_challenge_week_key"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    student_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("students.id", ondelete="CASCADE"), nullable=False
    )
    challenge_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("gauntlet_challenges.id", ondelete="CASCADE"), nullable=False
    )
    week_iso: Mapped[str] = mapped_column(String(10), nullable=False)
    week_number: Mapped[int] = mapped_column(Integer, nullable=False)
    score: Mapped[float] = mapped_column(Float, nullable=False)
    xp_awarded: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    global_points_awarded: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    is_personal_best: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )


class GauntletPersonalBest(Base):
    __tablename__ = "gauntlet_personal_bests"
    __table_args__ = (
        UniqueConstraint("student_id", "challenge_id", name="gauntlet_pb_student_challenge_key"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    student_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("students.id", ondelete="CASCADE"), nullable=False
    )
    challenge_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("gauntlet_challenges.id", ondelete="CASCADE"), nullable=False
    )
    best_score: Mapped[float] = mapped_column(Float, nullable=False)
    achieved_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )


# ---------------------------------------------------------------------------
# Video proofs
# ---------------------------------------------------------------------------


class VideoSubmission(Base):
    """Coach-moderated video proof. APPROVED and REJECTED are terminal."""

    __tablename__ = "video_submissions"
    __table_args__ = (
        Index("idx_video_submissions_hash_created", "content_hash", "created_at"),
        Index("idx_video_submissions_student_created", "student_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("students.id", ondelete="CASCADE"), nullable=False
    )
    challenge_id: Mapped[str] = mapped_column(String(64), nullable=False)
    content_hash: Mapped[str] = mapped_column(String(128), nullable=False)
    storage_key: Mapped[str] = mapped_column(String(500), nullable=False)
    duration_seconds: Mapped[float | None] = mapped_column(Float, nullable=True)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=VideoStatus.PENDING, server_default=VideoStatus.PENDING.value
    )
    ai_flag: Mapped[str] = mapped_column(String(8), nullable=False, default=AiFlag.GREEN)
    ai_flag_reason: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_spot_check: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    auto_approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    xp_awarded: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    coach_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    decided_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
