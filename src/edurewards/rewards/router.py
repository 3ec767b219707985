"""Rewards API endpoints: earning, history, redemption, extra-point requests."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from edurewards.auth.dependencies import get_current_user, require_admin
from edurewards.config import get_settings
from edurewards.database import get_session
from edurewards.db.models import User
from edurewards.rewards.constants import (
    POINT_REQUEST_AWARDED,
    POINT_REQUEST_PENDING,
    REDEMPTION_AMOUNT,
    REDEMPTION_THRESHOLD,
)
from edurewards.rewards.interactions import get_content_stats
from edurewards.rewards.ledger import (
    award_follow_bonus,
    award_reaction,
    award_watch,
    get_balance,
    get_history,
)
from edurewards.rewards.point_requests import award_extra_points, list_point_requests, request_extra_points
from edurewards.rewards.redemption import list_redemptions, redeem
from edurewards.rewards.schemas import (
    AwardPointsRequest,
    AwardResponse,
    ContentStatsResponse,
    PointRequestListResponse,
    PointRequestResponse,
    PointsHistoryEntry,
    PointsHistoryResponse,
    ReactionRequest,
    RedeemRequest,
    RedemptionListResponse,
    RedemptionResponse,
    RewardsSummaryResponse,
)

router = APIRouter(prefix="/api/v1", tags=["Rewards"])

_UNKNOWN = "N/A"


# ── Balance & history ──


@router.get("/rewards/me", response_model=RewardsSummaryResponse)
async def get_my_rewards(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Current balance and progress toward the next redemption."""
    balance = await get_balance(db, user.id)
    return RewardsSummaryResponse(
        points_balance=balance,
        has_followed=user.has_followed,
        redemption_threshold=REDEMPTION_THRESHOLD,
        redemption_amount=REDEMPTION_AMOUNT,
        points_to_next_redemption=max(0, REDEMPTION_THRESHOLD - balance),
    )


@router.get("/rewards/me/history", response_model=PointsHistoryResponse)
async def get_my_history(
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    entries, total = await get_history(db, user.id, page, per_page)
    return PointsHistoryResponse(
        entries=[PointsHistoryEntry.model_validate(e) for e in entries],
        total=total,
        page=page,
        per_page=per_page,
    )


# ── Earning ──


async def _award_response(db: AsyncSession, user_id: str, awarded: int, reason: str) -> AwardResponse:
    message = f"+{awarded} points for {reason}!" if awarded else "No additional reward for this item."
    return AwardResponse(
        points_awarded=awarded,
        points_balance=await get_balance(db, user_id),
        message=message,
    )


@router.post("/rewards/videos/{content_id}/watch", response_model=AwardResponse)
async def watch_video(
    content_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Award watch points, once per video."""
    # A repeat award rolls the session back, which expires `user`.
    user_id = user.id
    awarded = await award_watch(db, user_id, content_id)
    return await _award_response(db, user_id, awarded, "watching")


@router.post("/rewards/videos/{content_id}/reaction", response_model=AwardResponse)
async def react_to_video(
    content_id: str,
    body: ReactionRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Award feedback points for a like or dislike, once per video."""
    user_id = user.id
    awarded = await award_reaction(db, user_id, content_id, body.kind)
    return await _award_response(db, user_id, awarded, "your feedback")


@router.get("/rewards/videos/{content_id}/stats", response_model=ContentStatsResponse)
async def video_stats(
    content_id: str,
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Rewarded watch, like and dislike counts for a video."""
    return ContentStatsResponse.model_validate(await get_content_stats(db, content_id))


@router.post("/rewards/follow", response_model=AwardResponse)
async def follow_channel(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """One-time follow bonus."""
    user_id = user.id
    awarded = await award_follow_bonus(db, user_id, get_settings().follow_channel_slug)
    return await _award_response(db, user_id, awarded, "following")


# ── Redemption ──


@router.post("/rewards/redeem", response_model=RedemptionResponse, status_code=201)
async def redeem_points(
    body: RedeemRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Exchange 1000 points for a pending payout."""
    record = await redeem(
        db,
        user.id,
        body.payout_destination,
        user_name=user.display_name or _UNKNOWN,
        user_email=user.email or _UNKNOWN,
    )
    return RedemptionResponse.model_validate(record)


@router.post("/rewards/point-requests", response_model=PointRequestResponse, status_code=201)
async def create_point_request(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Ask an admin for extra points."""
    request = await request_extra_points(
        db,
        user.id,
        user_name=user.display_name or _UNKNOWN,
        user_email=user.email or _UNKNOWN,
    )
    return PointRequestResponse.model_validate(request)


# ── Admin ──


@router.get("/admin/redemptions", response_model=RedemptionListResponse)
async def admin_list_redemptions(
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=100),
    _admin: dict[str, Any] = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    records, total = await list_redemptions(db, page, per_page)
    return RedemptionListResponse(
        redemptions=[RedemptionResponse.model_validate(r) for r in records],
        total=total,
        page=page,
        per_page=per_page,
    )


@router.get("/admin/point-requests", response_model=PointRequestListResponse)
async def admin_list_point_requests(
    status: str | None = Query(None, pattern=f"^({POINT_REQUEST_PENDING}|{POINT_REQUEST_AWARDED})$"),
    _admin: dict[str, Any] = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    requests = await list_point_requests(db, status)
    return PointRequestListResponse(requests=[PointRequestResponse.model_validate(r) for r in requests])


@router.post("/admin/point-requests/{request_id}/award", response_model=PointRequestResponse)
async def admin_award_points(
    request_id: int,
    body: AwardPointsRequest,
    _admin: dict[str, Any] = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    request = await award_extra_points(db, request_id, body.points)
    return PointRequestResponse.model_validate(request)
