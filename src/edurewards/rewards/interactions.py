"""Interaction dedup store: at most one rewarded interaction per (user, content)."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from edurewards.db.dialect import upsert_insert
from edurewards.db.models import ContentStats, InteractionRecord
from edurewards.rewards.constants import INTERACTION_KINDS
from edurewards.rewards.errors import AlreadyRecorded


async def has_interacted(db: AsyncSession, user_id: str, content_id: str) -> bool:
    """True if any interaction of any kind exists for the pair."""
    result = await db.execute(
        select(InteractionRecord.id).where(
            InteractionRecord.user_id == user_id,
            InteractionRecord.content_id == content_id,
        )
    )
    return result.first() is not None


async def record_interaction(db: AsyncSession, user_id: str, content_id: str, kind: str) -> None:
    """Insert the pair's interaction record, or raise AlreadyRecorded.

    A single INSERT ... ON CONFLICT DO NOTHING against the unique
    (user_id, content_id) key, so concurrent callers cannot both win.
    The per-video counter for `kind` moves in the same transaction.
    Does not commit.
    """
    if kind not in INTERACTION_KINDS:
        msg = f"Unknown interaction kind: {kind}"
        raise ValueError(msg)

    stmt = (
        upsert_insert(db, InteractionRecord)
        .values(
            user_id=user_id,
            content_id=content_id,
            kind=kind,
            created_at=datetime.now(timezone.utc),
        )
        .on_conflict_do_nothing(index_elements=["user_id", "content_id"])
    )
    result = await db.execute(stmt)
    if result.rowcount == 0:
        raise AlreadyRecorded(f"{user_id}:{content_id}")

    await _bump_content_stats(db, content_id, kind)


_STATS_COLUMNS = {"watch": "watches", "like": "likes", "dislike": "dislikes"}


async def _bump_content_stats(db: AsyncSession, content_id: str, kind: str) -> None:
    column = _STATS_COLUMNS[kind]
    stmt = (
        upsert_insert(db, ContentStats)
        .values(content_id=content_id, **{column: 1})
        .on_conflict_do_update(
            index_elements=["content_id"],
            set_={column: getattr(ContentStats, column) + 1},
        )
    )
    await db.execute(stmt)


async def get_content_stats(db: AsyncSession, content_id: str) -> ContentStats:
    """Counters for a video; all zero if nobody has interacted with it yet."""
    result = await db.execute(
        select(ContentStats).where(ContentStats.content_id == content_id).execution_options(populate_existing=True)
    )
    stats = result.scalar_one_or_none()
    if stats is None:
        return ContentStats(content_id=content_id, watches=0, likes=0, dislikes=0)
    return stats
