"""Pydantic request/response models for rewards endpoints."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


# --- Balance ---


class RewardsSummaryResponse(BaseModel):
    points_balance: int
    has_followed: bool
    redemption_threshold: int
    redemption_amount: Decimal
    points_to_next_redemption: int


class PointsHistoryEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    amount: int
    source: str
    source_id: str | None = None
    description: str | None = None
    created_at: datetime


class PointsHistoryResponse(BaseModel):
    entries: list[PointsHistoryEntry]
    total: int
    page: int
    per_page: int


# --- Awards ---


class ReactionRequest(BaseModel):
    kind: Literal["like", "dislike"]


class AwardResponse(BaseModel):
    points_awarded: int
    points_balance: int
    message: str


class ContentStatsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    content_id: str
    watches: int
    likes: int
    dislikes: int


# --- Redemption ---


class RedeemRequest(BaseModel):
    payout_destination: str = Field(..., pattern=r"^\d{10,15}$", description="Wallet phone number")


class RedemptionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    user_name: str
    user_email: str
    payout_destination: str
    points_spent: int
    amount_payable: Decimal
    status: str
    created_at: datetime


class RedemptionListResponse(BaseModel):
    redemptions: list[RedemptionResponse]
    total: int
    page: int
    per_page: int


# --- Extra point requests ---


class PointRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    user_name: str
    user_email: str
    status: str
    points_awarded: int | None = None
    requested_at: datetime
    awarded_at: datetime | None = None


class PointRequestListResponse(BaseModel):
    requests: list[PointRequestResponse]


class AwardPointsRequest(BaseModel):
    points: int = Field(..., gt=0)
