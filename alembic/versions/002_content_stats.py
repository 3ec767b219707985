"""Per-video interaction counters.

Revision ID: 002_content_stats
Revises: 001_rewards_tables
Create Date: 2026-10-20
"""

from collections.abc import Sequence

from alembic import op

revision: str = "002_content_stats"
down_revision: str | None = "001_rewards_tables"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE IF NOT EXISTS content_stats (
            content_id VARCHAR(128) PRIMARY KEY,
            watches INTEGER NOT NULL DEFAULT 0,
            likes INTEGER NOT NULL DEFAULT 0,
            dislikes INTEGER NOT NULL DEFAULT 0
        )
    """)

    # Backfill from the interactions already recorded
    op.execute("""
        INSERT INTO content_stats (content_id, watches, likes, dislikes)
        SELECT content_id,
               COUNT(*) FILTER (WHERE kind = 'watch'),
               COUNT(*) FILTER (WHERE kind = 'like'),
               COUNT(*) FILTER (WHERE kind = 'dislike')
        FROM interaction_records
        GROUP BY content_id
        ON CONFLICT (content_id) DO NOTHING
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS content_stats CASCADE")
