"""Rewards and engagement tables.

Creates users, interaction_records, points_ledger, redemption_records,
point_requests and channels.

Revision ID: 001_rewards_tables
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_rewards_tables"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Users ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id VARCHAR(128) PRIMARY KEY,
            display_name VARCHAR(128),
            email VARCHAR(320),
            points_balance INTEGER NOT NULL DEFAULT 0,
            has_followed BOOLEAN NOT NULL DEFAULT false,
            pwa_installed BOOLEAN NOT NULL DEFAULT false,
            pwa_installed_at TIMESTAMPTZ,
            courses_completed INTEGER NOT NULL DEFAULT 0,
            tests_taken INTEGER NOT NULL DEFAULT 0,
            last_login TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT users_points_balance_non_negative_check CHECK (points_balance >= 0)
        )
    """)

    # --- Interaction records (dedup store) ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS interaction_records (
            id BIGSERIAL PRIMARY KEY,
            user_id VARCHAR(128) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            content_id VARCHAR(128) NOT NULL,
            kind VARCHAR(16) NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT interaction_records_user_id_content_id_key UNIQUE (user_id, content_id)
        )
    """)

    # --- Points ledger ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS points_ledger (
            id BIGSERIAL PRIMARY KEY,
            user_id VARCHAR(128) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            amount INTEGER NOT NULL,
            source VARCHAR(32) NOT NULL,
            source_id VARCHAR(128),
            description VARCHAR(256),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_points_ledger_user_created
        ON points_ledger(user_id, created_at DESC)
    """)

    # --- Redemptions ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS redemption_records (
            id BIGSERIAL PRIMARY KEY,
            user_id VARCHAR(128) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            user_name VARCHAR(128) NOT NULL,
            user_email VARCHAR(320) NOT NULL,
            payout_destination VARCHAR(64) NOT NULL,
            points_spent INTEGER NOT NULL,
            amount_payable NUMERIC(10, 2) NOT NULL,
            status VARCHAR(16) NOT NULL DEFAULT 'pending',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_redemption_records_created
        ON redemption_records(created_at DESC)
    """)

    # --- Extra point requests ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS point_requests (
            id BIGSERIAL PRIMARY KEY,
            user_id VARCHAR(128) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            user_name VARCHAR(128) NOT NULL,
            user_email VARCHAR(320) NOT NULL,
            status VARCHAR(16) NOT NULL DEFAULT 'pending',
            points_awarded INTEGER,
            requested_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            awarded_at TIMESTAMPTZ
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_point_requests_status
        ON point_requests(status, requested_at DESC)
    """)

    # --- Channels ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS channels (
            slug VARCHAR(64) PRIMARY KEY,
            followers INTEGER NOT NULL DEFAULT 0
        )
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS channels CASCADE")
    op.execute("DROP TABLE IF EXISTS point_requests CASCADE")
    op.execute("DROP TABLE IF EXISTS redemption_records CASCADE")
    op.execute("DROP TABLE IF EXISTS points_ledger CASCADE")
    op.execute("DROP TABLE IF EXISTS interaction_records CASCADE")
    op.execute("DROP TABLE IF EXISTS users CASCADE")
