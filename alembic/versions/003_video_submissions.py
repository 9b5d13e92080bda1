"""Video proof submissions.

Revision ID: 003_video_submissions
Revises: 002_gauntlet_tables
Create Date: 2026-10-06
"""

from collections.abc import Sequence

from alembic import op

revision: str = "003_video_submissions"
down_revision: str | None = "002_gauntlet_tables"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE IF NOT EXISTS video_submissions (
            id UUID PRIMARY KEY,
            student_id UUID NOT NULL REFERENCES students(id) ON DELETE CASCADE,
            challenge_id VARCHAR(64) NOT NULL,
            content_hash VARCHAR(128) NOT NULL,
            storage_key VARCHAR(500) NOT NULL,
            duration_seconds DOUBLE PRECISION,
            status VARCHAR(16) NOT NULL DEFAULT 'PENDING'
                CHECK (status IN ('PENDING', 'APPROVED', 'REJECTED')),
            ai_flag VARCHAR(8) NOT NULL CHECK (ai_flag IN ('green', 'yellow', 'red')),
            ai_flag_reason VARCHAR(255),
            is_spot_check BOOLEAN NOT NULL DEFAULT false,
            auto_approved BOOLEAN NOT NULL DEFAULT false,
            xp_awarded INTEGER NOT NULL DEFAULT 0,
            coach_notes TEXT,
            decided_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_video_submissions_hash_created
        ON video_submissions(content_hash, created_at)
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_video_submissions_student_created
        ON video_submissions(student_id, created_at)
    """)
    # Review queue
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_video_submissions_pending
        ON video_submissions(created_at) WHERE status = 'PENDING'
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS video_submissions CASCADE")
