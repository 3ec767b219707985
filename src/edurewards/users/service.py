"""User provisioning and engagement counters."""

from __future__ import annotations

from datetime import datetime, timezone

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from edurewards.db.dialect import upsert_insert
from edurewards.db.models import User
from edurewards.rewards.errors import UserNotFound
from edurewards.rewards.transaction import unit_of_work

logger = structlog.get_logger()


async def get_user_by_id(db: AsyncSession, user_id: str) -> User | None:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_or_create_user(
    db: AsyncSession,
    uid: str,
    display_name: str | None = None,
    email: str | None = None,
) -> tuple[User, bool]:
    """
    Get the user for an authenticated uid, creating it on first sign-in.

    Refreshes last_login and fills in profile fields the token carries.

    Returns:
        Tuple of (user, created) where created is True if a new user was made.
    """
    now = datetime.now(timezone.utc)
    async with unit_of_work(db, "get_or_create_user"):
        stmt = (
            upsert_insert(db, User)
            .values(id=uid, display_name=display_name, email=email, created_at=now, last_login=now)
            .on_conflict_do_nothing(index_elements=["id"])
        )
        created = (await db.execute(stmt)).rowcount == 1

        user = await get_user_by_id(db, uid)
        if user is None:
            raise UserNotFound(uid)
        if not created:
            if display_name and not user.display_name:
                user.display_name = display_name
            if email and not user.email:
                user.email = email
            user.last_login = now

    if created:
        logger.info("user_created", user_id=uid)
    return user, created


async def track_pwa_install(db: AsyncSession, user_id: str) -> None:
    """Record that the user installed the web app."""
    async with unit_of_work(db, "track_pwa_install"):
        result = await db.execute(
            update(User)
            .where(User.id == user_id)
            .values(pwa_installed=True, pwa_installed_at=datetime.now(timezone.utc))
        )
        if result.rowcount == 0:
            raise UserNotFound(user_id)
    logger.info("pwa_install_tracked", user_id=user_id)


async def _increment_counter(db: AsyncSession, user_id: str, column: str) -> None:
    async with unit_of_work(db, f"increment_{column}"):
        field = getattr(User, column)
        result = await db.execute(update(User).where(User.id == user_id).values({field: field + 1}))
        if result.rowcount == 0:
            raise UserNotFound(user_id)


async def record_course_completed(db: AsyncSession, user_id: str) -> None:
    await _increment_counter(db, user_id, "courses_completed")


async def record_test_taken(db: AsyncSession, user_id: str) -> None:
    await _increment_counter(db, user_id, "tests_taken")
