"""Extra-point requests: users ask, admins award a chosen amount."""

from __future__ import annotations

from datetime import datetime, timezone

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from edurewards.db.models import PointRequest
from edurewards.rewards.constants import POINT_REQUEST_AWARDED, POINT_REQUEST_PENDING
from edurewards.rewards.errors import AlreadyRecorded, RequestNotFound
from edurewards.rewards.ledger import credit, lock_user
from edurewards.rewards.transaction import unit_of_work

logger = structlog.get_logger()


async def request_extra_points(
    db: AsyncSession,
    user_id: str,
    user_name: str,
    user_email: str,
) -> PointRequest:
    async with unit_of_work(db, "request_extra_points"):
        await lock_user(db, user_id)
        request = PointRequest(
            user_id=user_id,
            user_name=user_name,
            user_email=user_email,
            status=POINT_REQUEST_PENDING,
            requested_at=datetime.now(timezone.utc),
        )
        db.add(request)
        await db.flush()

    logger.info("point_request_created", user_id=user_id, request_id=request.id)
    return request


async def award_extra_points(db: AsyncSession, request_id: int, points: int) -> PointRequest:
    """Credit `points` to the requester and mark the request awarded, atomically."""
    if points <= 0:
        msg = "Points must be a positive number."
        raise ValueError(msg)

    async with unit_of_work(db, "award_extra_points"):
        result = await db.execute(
            select(PointRequest).where(PointRequest.id == request_id).with_for_update()
        )
        request = result.scalar_one_or_none()
        if request is None:
            raise RequestNotFound(f"point request {request_id} not found")
        if request.status == POINT_REQUEST_AWARDED:
            raise AlreadyRecorded(f"point request {request_id} already awarded")

        await credit(
            db,
            request.user_id,
            points,
            source="admin_award",
            source_id=str(request_id),
            description="Extra points awarded by admin",
        )
        request.status = POINT_REQUEST_AWARDED
        request.points_awarded = points
        request.awarded_at = datetime.now(timezone.utc)

    logger.info("point_request_awarded", request_id=request_id, user_id=request.user_id, points=points)
    return request


async def list_point_requests(db: AsyncSession, status: str | None = None) -> list[PointRequest]:
    stmt = select(PointRequest).order_by(PointRequest.requested_at.desc(), PointRequest.id.desc())
    if status is not None:
        stmt = stmt.where(PointRequest.status == status)
    result = await db.execute(stmt)
    return list(result.scalars().all())
