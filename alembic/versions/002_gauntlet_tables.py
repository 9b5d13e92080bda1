"""Weekly gauntlet tables.

Creates gauntlet_challenges, gauntlet_submissions (one per student, challenge
and ISO week) and gauntlet_personal_bests, and seeds the default week.

Revision ID: 002_gauntlet_tables
Revises: 001_ledger_tables
Create Date: 2026-10-05
"""

from collections.abc import Sequence

from alembic import op

revision: str = "002_gauntlet_tables"
down_revision: str | None = "001_ledger_tables"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE IF NOT EXISTS gauntlet_challenges (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            name VARCHAR(100) NOT NULL,
            day_of_week VARCHAR(9) NOT NULL,
            score_type VARCHAR(16) NOT NULL DEFAULT 'REPS',
            sort_order VARCHAR(4) NOT NULL DEFAULT 'DESC' CHECK (sort_order IN ('ASC', 'DESC')),
            is_active BOOLEAN NOT NULL DEFAULT true,
            display_order INTEGER NOT NULL DEFAULT 1,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS gauntlet_submissions (
            id BIGSERIAL PRIMARY KEY,
            student_id UUID NOT NULL REFERENCES students(id) ON DELETE CASCADE,
            challenge_id UUID NOT NULL REFERENCES gauntlet_challenges(id) ON DELETE CASCADE,
            week_iso VARCHAR(10) NOT NULL,
            week_number INTEGER NOT NULL,
            score DOUBLE PRECISION NOT NULL,
            xp_awarded INTEGER NOT NULL DEFAULT 0,
            global_points_awarded INTEGER NOT NULL DEFAULT 0,
            is_personal_best BOOLEAN NOT NULL DEFAULT false,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT gauntlet_submissions_student_challenge_week_key
                UNIQUE (student_id, challenge_id, week_iso)
        )
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS gauntlet_personal_bests (
            id BIGSERIAL PRIMARY KEY,
            student_id UUID NOT NULL REFERENCES students(id) ON DELETE CASCADE,
            challenge_id UUID NOT NULL REFERENCES gauntlet_challenges(id) ON DELETE CASCADE,
            best_score DOUBLE PRECISION NOT NULL,
            achieved_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT gauntlet_pb_student_challenge_key UNIQUE (student_id, challenge_id)
        )
    """)

    op.execute("""
        INSERT INTO gauntlet_challenges (name, day_of_week, score_type, sort_order, display_order) VALUES
            ('Push-up Power', 'MONDAY', 'REPS', 'DESC', 1),
            ('Plank Endurance', 'TUESDAY', 'SECONDS', 'DESC', 2),
            ('Kick Speed', 'WEDNESDAY', 'REPS', 'DESC', 3),
            ('Shuttle Sprint', 'THURSDAY', 'SECONDS', 'ASC', 4),
            ('Burpee Blitz', 'FRIDAY', 'REPS', 'DESC', 5)
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS gauntlet_personal_bests CASCADE")
    op.execute("DROP TABLE IF EXISTS gauntlet_submissions CASCADE")
    op.execute("DROP TABLE IF EXISTS gauntlet_challenges CASCADE")
