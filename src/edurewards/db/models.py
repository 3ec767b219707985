"""ORM models for the rewards and engagement tables.

Column layout matches the Alembic migrations in alembic/versions.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from edurewards.db.base import Base, BigIntPK


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class User(Base):
    """Platform user, keyed by the identity provider's uid."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("points_balance >= 0", name="points_balance_non_negative"),
    )

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    display_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    points_balance: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    has_followed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    pwa_installed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    pwa_installed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    courses_completed: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    tests_taken: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    last_login: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


# ---------------------------------------------------------------------------
# Rewards
# ---------------------------------------------------------------------------


class InteractionRecord(Base):
    """First rewarded interaction per (user, content): UNIQUE pair blocks re-awards."""

    __tablename__ = "interaction_records"
    __table_args__ = (
        UniqueConstraint("user_id", "content_id", name="interaction_records_user_id_content_id_key"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(128), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    content_id: Mapped[str] = mapped_column(String(128), nullable=False)
    kind: Mapped[str] = mapped_column(String(16), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class PointsLedgerEntry(Base):
    """Immutable log of every signed balance adjustment."""

    __tablename__ = "points_ledger"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(128), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    source: Mapped[str] = mapped_column(String(32), nullable=False)
    source_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    description: Mapped[str | None] = mapped_column(String(256), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class RedemptionRecord(Base):
    """Cash-out request, written in the same transaction as its debit."""

    __tablename__ = "redemption_records"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(128), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    user_name: Mapped[str] = mapped_column(String(128), nullable=False)
    user_email: Mapped[str] = mapped_column(String(320), nullable=False)
    payout_destination: Mapped[str] = mapped_column(String(64), nullable=False)
    points_spent: Mapped[int] = mapped_column(Integer, nullable=False)
    amount_payable: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending", server_default="pending")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class PointRequest(Base):
    """User request for an admin-granted points top-up."""

    __tablename__ = "point_requests"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(128), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    user_name: Mapped[str] = mapped_column(String(128), nullable=False)
    user_email: Mapped[str] = mapped_column(String(320), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending", server_default="pending")
    points_awarded: Mapped[int | None] = mapped_column(Integer, nullable=True)
    requested_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    awarded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class Channel(Base):
    """Followable channel with a denormalized follower counter."""

    __tablename__ = "channels"

    slug: Mapped[str] = mapped_column(String(64), primary_key=True)
    followers: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")


class ContentStats(Base):
    """Per-video interaction counters, bumped only by rewarded interactions."""

    __tablename__ = "content_stats"

    content_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    watches: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    likes: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    dislikes: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
