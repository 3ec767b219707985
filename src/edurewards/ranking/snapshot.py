"""Engagement snapshot: a read-only bulk view of every user's activity metrics."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from edurewards.db.models import User


class EngagementRecord(BaseModel):
    uid: str
    display_name: str | None = None
    points_balance: int = Field(default=0, ge=0)
    courses_completed: int = Field(default=0, ge=0)
    tests_taken: int = Field(default=0, ge=0)
    last_login: datetime | None = None


EngagementSnapshot = list[EngagementRecord]


async def build_snapshot(db: AsyncSession) -> EngagementSnapshot:
    """Read all users in creation order.

    Ends the read transaction before returning so that slow ranking work
    downstream holds no database resources.
    """
    result = await db.execute(
        select(
            User.id,
            User.display_name,
            User.points_balance,
            User.courses_completed,
            User.tests_taken,
            User.last_login,
        ).order_by(User.created_at, User.id)
    )
    snapshot = [
        EngagementRecord(
            uid=row.id,
            display_name=row.display_name,
            points_balance=row.points_balance,
            courses_completed=row.courses_completed,
            tests_taken=row.tests_taken,
            last_login=row.last_login,
        )
        for row in result
    ]
    await db.commit()
    return snapshot
