"""Pydantic response models for user endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class UserProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    display_name: str | None = None
    email: str | None = None
    points_balance: int
    has_followed: bool
    pwa_installed: bool
    courses_completed: int
    tests_taken: int
    last_login: datetime | None = None


class SuccessResponse(BaseModel):
    success: bool = True
