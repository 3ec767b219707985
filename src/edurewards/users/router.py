"""User profile and engagement-tracking endpoints."""

from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from edurewards.auth.dependencies import get_current_user, require_admin
from edurewards.database import get_session
from edurewards.db.models import User
from edurewards.rewards.errors import UserNotFound
from edurewards.users.schemas import SuccessResponse, UserProfileResponse
from edurewards.users.service import (
    get_user_by_id,
    record_course_completed,
    record_test_taken,
    track_pwa_install,
)

router = APIRouter(prefix="/api/v1/users", tags=["Users"])

# Course and test counters feed the leaderboard, so only the platform
# (an admin token) reports them, never the student.
admin_router = APIRouter(prefix="/api/v1/admin/users", tags=["Users"])


@router.get("/me", response_model=UserProfileResponse)
async def get_me(user: User = Depends(get_current_user)):
    return UserProfileResponse.model_validate(user)


@router.post("/me/pwa-install", response_model=SuccessResponse)
async def pwa_installed(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Record that the user installed the web app."""
    await track_pwa_install(db, user.id)
    return SuccessResponse()


async def _profile(db: AsyncSession, uid: str) -> UserProfileResponse:
    user = await get_user_by_id(db, uid)
    if user is None:
        raise UserNotFound(uid)
    await db.refresh(user)
    return UserProfileResponse.model_validate(user)


@admin_router.post("/{uid}/courses-completed", response_model=UserProfileResponse)
async def course_completed(
    uid: str,
    _admin: dict[str, Any] = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    await record_course_completed(db, uid)
    return await _profile(db, uid)


@admin_router.post("/{uid}/tests-taken", response_model=UserProfileResponse)
async def test_taken(
    uid: str,
    _admin: dict[str, Any] = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    await record_test_taken(db, uid)
    return await _profile(db, uid)
