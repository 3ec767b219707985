"""Points ledger: atomic balance adjustments with an append-only history.

Balance changes are single UPDATE statements evaluated by the database
(increment, or decrement guarded by ``points_balance >= amount``), so
concurrent requests for the same user never lose updates and the balance
never goes negative.

``credit``/``debit`` only flush; the ``award_*`` operations own their
transaction through ``unit_of_work``.
"""

from __future__ import annotations

from datetime import datetime, timezone

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from edurewards.db.dialect import upsert_insert
from edurewards.db.models import Channel, PointsLedgerEntry, User
from edurewards.rewards.constants import POINTS
from edurewards.rewards.errors import AlreadyRecorded, InsufficientBalance, UserNotFound
from edurewards.rewards.interactions import record_interaction
from edurewards.rewards.transaction import unit_of_work

logger = structlog.get_logger()


async def get_balance(db: AsyncSession, user_id: str) -> int:
    result = await db.execute(select(User.points_balance).where(User.id == user_id))
    balance = result.scalar_one_or_none()
    if balance is None:
        raise UserNotFound(user_id)
    return balance


async def lock_user(db: AsyncSession, user_id: str) -> None:
    """Row-lock the user for the rest of the transaction (no-op lock on SQLite)."""
    result = await db.execute(select(User.id).where(User.id == user_id).with_for_update())
    if result.scalar_one_or_none() is None:
        raise UserNotFound(user_id)


def _ledger_entry(
    user_id: str,
    amount: int,
    source: str,
    source_id: str | None,
    description: str | None,
) -> PointsLedgerEntry:
    return PointsLedgerEntry(
        user_id=user_id,
        amount=amount,
        source=source,
        source_id=source_id,
        description=description,
        created_at=datetime.now(timezone.utc),
    )


async def credit(
    db: AsyncSession,
    user_id: str,
    amount: int,
    source: str,
    source_id: str | None = None,
    description: str | None = None,
) -> None:
    """Add `amount` (> 0) to the user's balance. Does not commit."""
    if amount <= 0:
        msg = f"Credit amount must be positive, got {amount}"
        raise ValueError(msg)

    result = await db.execute(
        update(User)
        .where(User.id == user_id)
        .values(points_balance=User.points_balance + amount)
    )
    if result.rowcount == 0:
        raise UserNotFound(user_id)

    db.add(_ledger_entry(user_id, amount, source, source_id, description))
    await db.flush()
    logger.info("points_credited", user_id=user_id, amount=amount, source=source, source_id=source_id)


async def debit(
    db: AsyncSession,
    user_id: str,
    amount: int,
    source: str = "debit",
    source_id: str | None = None,
    description: str | None = None,
) -> None:
    """Subtract `amount` (> 0) from the balance, or raise InsufficientBalance. Does not commit."""
    if amount <= 0:
        msg = f"Debit amount must be positive, got {amount}"
        raise ValueError(msg)

    result = await db.execute(
        update(User)
        .where(User.id == user_id, User.points_balance >= amount)
        .values(points_balance=User.points_balance - amount)
    )
    if result.rowcount == 0:
        # Either the user is missing or the guard rejected the debit.
        available = await get_balance(db, user_id)
        raise InsufficientBalance(user_id, required=amount, available=available)

    db.add(_ledger_entry(user_id, -amount, source, source_id, description))
    await db.flush()
    logger.info("points_debited", user_id=user_id, amount=amount, source=source, source_id=source_id)


# ---------------------------------------------------------------------------
# Engagement awards
# ---------------------------------------------------------------------------


async def award_interaction(db: AsyncSession, user_id: str, content_id: str, kind: str) -> int:
    """Award points for the first interaction with a content item.

    Returns the points awarded, or 0 if the pair was already rewarded.
    The interaction record and the credit commit together.
    """
    try:
        async with unit_of_work(db, f"award_{kind}"):
            await lock_user(db, user_id)
            await record_interaction(db, user_id, content_id, kind)
            amount = POINTS[kind]
            await credit(
                db,
                user_id,
                amount,
                source=kind,
                source_id=content_id,
                description=f"{kind.capitalize()} on {content_id}",
            )
    except AlreadyRecorded:
        logger.info("interaction_already_rewarded", user_id=user_id, content_id=content_id, kind=kind)
        return 0
    return amount


async def award_watch(db: AsyncSession, user_id: str, content_id: str) -> int:
    return await award_interaction(db, user_id, content_id, "watch")


async def award_reaction(db: AsyncSession, user_id: str, content_id: str, kind: str) -> int:
    """Like/dislike. Shares the per-pair dedup with watch."""
    if kind not in ("like", "dislike"):
        msg = f"Unknown reaction: {kind}"
        raise ValueError(msg)
    return await award_interaction(db, user_id, content_id, kind)


async def award_follow_bonus(db: AsyncSession, user_id: str, channel_slug: str) -> int:
    """Grant the one-time follow bonus. Returns 10 on the first follow, 0 after.

    Flag flip and balance increment are the same UPDATE, so the flag can
    never be set without the credit.
    """
    amount = POINTS["follow"]
    async with unit_of_work(db, "award_follow"):
        result = await db.execute(
            update(User)
            .where(User.id == user_id, User.has_followed.is_(False))
            .values(
                has_followed=True,
                points_balance=User.points_balance + amount,
            )
        )
        if result.rowcount == 0:
            # Distinguish "already followed" from "no such user".
            await get_balance(db, user_id)
            return 0

        stmt = upsert_insert(db, Channel).values(slug=channel_slug, followers=1)
        stmt = stmt.on_conflict_do_update(
            index_elements=["slug"],
            set_={"followers": Channel.followers + 1},
        )
        await db.execute(stmt)
        db.add(_ledger_entry(user_id, amount, "follow", channel_slug, f"Followed {channel_slug}"))

    logger.info("follow_bonus_awarded", user_id=user_id, channel=channel_slug, amount=amount)
    return amount


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------


async def get_history(
    db: AsyncSession,
    user_id: str,
    page: int = 1,
    per_page: int = 50,
) -> tuple[list[PointsLedgerEntry], int]:
    """Ledger entries newest first, plus the total count."""
    total_result = await db.execute(
        select(func.count()).select_from(PointsLedgerEntry).where(PointsLedgerEntry.user_id == user_id)
    )
    total = total_result.scalar_one()

    offset = (page - 1) * per_page
    result = await db.execute(
        select(PointsLedgerEntry)
        .where(PointsLedgerEntry.user_id == user_id)
        .order_by(PointsLedgerEntry.created_at.desc(), PointsLedgerEntry.id.desc())
        .offset(offset)
        .limit(per_page)
    )
    return list(result.scalars().all()), total
