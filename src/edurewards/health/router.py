"""Health, readiness, and version endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from edurewards.config import get_settings
from edurewards.database import get_session
from edurewards.redis_client import get_redis_or_none, ping_redis

router = APIRouter()


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> dict[str, object]:
    """Readiness probe. The database is required; Redis only degrades caching and rate limits."""
    checks: dict[str, str] = {}

    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except (SQLAlchemyError, TimeoutError) as exc:
        checks["database"] = f"error: {type(exc).__name__}"

    if get_redis_or_none() is None:
        checks["redis"] = "disabled"
    else:
        checks["redis"] = "ok" if await ping_redis() else "error"

    ready = checks["database"] == "ok"
    return {
        "status": "ready" if ready and checks["redis"] != "error" else ("degraded" if ready else "unavailable"),
        "checks": checks,
        "ranking_backend": get_settings().ranking_backend,
    }


@router.get("/version")
async def version() -> dict[str, str]:
    settings = get_settings()
    return {
        "version": settings.app_version,
        "environment": settings.environment,
        "ranking_backend": settings.ranking_backend,
    }
