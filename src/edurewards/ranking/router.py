"""Leaderboard endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from edurewards.auth.dependencies import require_admin
from edurewards.config import get_settings
from edurewards.database import get_session
from edurewards.dependencies import get_cache, get_oracle
from edurewards.ranking.oracles import RankingOracle
from edurewards.ranking.service import get_top_students, invalidate_top_students

router = APIRouter(prefix="/api/v1/leaderboard", tags=["Leaderboard"])


class TopStudentsResponse(BaseModel):
    top_student_uids: list[str]


@router.get("/top-students", response_model=TopStudentsResponse)
async def top_students(
    n: int | None = Query(None, ge=1, le=100),
    refresh: bool = Query(False),
    _admin: dict[str, Any] = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
    redis: object | None = Depends(get_cache),
    oracle: RankingOracle = Depends(get_oracle),
):
    """Fixed-width top-N ranking; empty strings pad pools smaller than N."""
    settings = get_settings()
    size = n or settings.leaderboard_size
    if refresh:
        await invalidate_top_students(redis, size)
    uids = await get_top_students(
        db,
        redis,
        oracle,
        n=size,
        cache_ttl=settings.leaderboard_cache_ttl_seconds,
    )
    return TopStudentsResponse(top_student_uids=uids)
