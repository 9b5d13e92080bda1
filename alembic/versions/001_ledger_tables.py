"""Ledger and daily activity tables.

Creates students, the append-only xp_transactions log and one completion
table per daily activity family. Unique keys on the completion tables are the
idempotency guarantee for the reward gates.

Revision ID: 001_ledger_tables
Revises: None
Create Date: 2026-10-05
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_ledger_tables"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Students ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS students (
            id UUID PRIMARY KEY,
            club_id UUID,
            name VARCHAR(255) NOT NULL DEFAULT 'New Student',
            is_premium BOOLEAN NOT NULL DEFAULT false,
            total_xp BIGINT NOT NULL DEFAULT 0,
            global_xp BIGINT NOT NULL DEFAULT 0,
            trust_tier VARCHAR(16) NOT NULL DEFAULT 'unverified',
            approval_streak INTEGER NOT NULL DEFAULT 0,
            rejection_count INTEGER NOT NULL DEFAULT 0,
            last_spot_check_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT students_trust_tier_check
                CHECK (trust_tier IN ('unverified', 'verified', 'trusted')),
            CONSTRAINT students_counters_check
                CHECK (approval_streak >= 0 AND rejection_count >= 0)
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_students_club_id ON students(club_id)")

    # --- XP Transactions (append-only) ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS xp_transactions (
            id BIGSERIAL PRIMARY KEY,
            student_id UUID NOT NULL REFERENCES students(id) ON DELETE CASCADE,
            amount INTEGER NOT NULL CHECK (amount > 0),
            type VARCHAR(16) NOT NULL
                CHECK (type IN ('EARN', 'SPEND', 'PTS_EARN', 'GLOBAL_EARN')),
            reason VARCHAR(64) NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_xp_transactions_student_type_created
        ON xp_transactions(student_id, type, created_at)
    """)

    # --- Habit logs ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS habit_logs (
            id BIGSERIAL PRIMARY KEY,
            student_id UUID NOT NULL REFERENCES students(id) ON DELETE CASCADE,
            habit_name VARCHAR(100) NOT NULL,
            log_date DATE NOT NULL,
            xp_awarded INTEGER NOT NULL DEFAULT 0,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT habit_logs_student_habit_day_key UNIQUE (student_id, habit_name, log_date)
        )
    """)

    # --- Daily quiz ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS quiz_submissions (
            id BIGSERIAL PRIMARY KEY,
            student_id UUID NOT NULL REFERENCES students(id) ON DELETE CASCADE,
            quiz_date DATE NOT NULL,
            is_correct BOOLEAN NOT NULL,
            xp_awarded INTEGER NOT NULL DEFAULT 0,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT quiz_submissions_student_day_key UNIQUE (student_id, quiz_date)
        )
    """)

    # --- Family challenges ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS family_challenge_logs (
            id BIGSERIAL PRIMARY KEY,
            student_id UUID NOT NULL REFERENCES students(id) ON DELETE CASCADE,
            challenge_id VARCHAR(64) NOT NULL,
            log_date DATE NOT NULL,
            won BOOLEAN NOT NULL DEFAULT false,
            xp_awarded INTEGER NOT NULL DEFAULT 0,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT family_logs_student_challenge_day_key UNIQUE (student_id, challenge_id, log_date)
        )
    """)

    # --- Trust (self-reported) challenges ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS trust_challenge_submissions (
            id BIGSERIAL PRIMARY KEY,
            student_id UUID NOT NULL REFERENCES students(id) ON DELETE CASCADE,
            challenge_type VARCHAR(64) NOT NULL,
            log_date DATE NOT NULL,
            score INTEGER,
            xp_awarded INTEGER NOT NULL DEFAULT 0,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT trust_submissions_student_type_day_key UNIQUE (student_id, challenge_type, log_date)
        )
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS trust_challenge_submissions CASCADE")
    op.execute("DROP TABLE IF EXISTS family_challenge_logs CASCADE")
    op.execute("DROP TABLE IF EXISTS quiz_submissions CASCADE")
    op.execute("DROP TABLE IF EXISTS habit_logs CASCADE")
    op.execute("DROP TABLE IF EXISTS xp_transactions CASCADE")
    op.execute("DROP TABLE IF EXISTS students CASCADE")
