"""Redemption processor: exchange the fixed threshold for a cash payout."""

from __future__ import annotations

from datetime import datetime, timezone

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from edurewards.db.models import RedemptionRecord
from edurewards.rewards.constants import (
    REDEMPTION_AMOUNT,
    REDEMPTION_STATUS_PENDING,
    REDEMPTION_THRESHOLD,
)
from edurewards.rewards.ledger import debit
from edurewards.rewards.transaction import unit_of_work

logger = structlog.get_logger()


async def redeem(
    db: AsyncSession,
    user_id: str,
    payout_destination: str,
    user_name: str,
    user_email: str,
) -> RedemptionRecord:
    """Debit exactly REDEMPTION_THRESHOLD points and create the redemption record.

    Debit, ledger entry and record commit as one transaction: either the
    user has a pending redemption and 1000 fewer points, or nothing changed.

    Raises:
        InsufficientBalance: balance below the threshold.
        UserNotFound: unknown user.
        StorageFailure: the store failed; nothing was written.
    """
    if not payout_destination:
        msg = "payout_destination is required"
        raise ValueError(msg)

    async with unit_of_work(db, "redeem"):
        await debit(
            db,
            user_id,
            REDEMPTION_THRESHOLD,
            source="redemption",
            description=f"Redeemed {REDEMPTION_THRESHOLD} points",
        )
        record = RedemptionRecord(
            user_id=user_id,
            user_name=user_name,
            user_email=user_email,
            payout_destination=payout_destination,
            points_spent=REDEMPTION_THRESHOLD,
            amount_payable=REDEMPTION_AMOUNT,
            status=REDEMPTION_STATUS_PENDING,
            created_at=datetime.now(timezone.utc),
        )
        db.add(record)
        await db.flush()

    logger.info(
        "points_redeemed",
        user_id=user_id,
        redemption_id=record.id,
        points=REDEMPTION_THRESHOLD,
        amount=str(REDEMPTION_AMOUNT),
    )
    return record


async def list_redemptions(
    db: AsyncSession,
    page: int = 1,
    per_page: int = 50,
) -> tuple[list[RedemptionRecord], int]:
    """All redemptions, newest first (admin view)."""
    total = (await db.execute(select(func.count()).select_from(RedemptionRecord))).scalar_one()
    result = await db.execute(
        select(RedemptionRecord)
        .order_by(RedemptionRecord.created_at.desc(), RedemptionRecord.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
    )
    return list(result.scalars().all()), total
