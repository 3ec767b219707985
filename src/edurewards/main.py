"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from edurewards.config import get_settings
from edurewards.database import close_db, init_db
from edurewards.health.router import router as health_router
from edurewards.middleware import setup_middleware
from edurewards.ranking.router import router as leaderboard_router
from edurewards.redis_client import close_redis, init_redis, ping_redis
from edurewards.rewards.router import router as rewards_router
from edurewards.users.router import admin_router as users_admin_router
from edurewards.users.router import router as users_router

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(settings.redis_url, socket_timeout=settings.redis_socket_timeout_seconds)

    if not await ping_redis():
        # Rate limiting and the leaderboard cache degrade to no-ops
        logger.warning("redis_unavailable", url=settings.redis_url)
        await close_redis()

    logger.info("startup_complete", environment=settings.environment, ranking_backend=settings.ranking_backend)

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="EduRewards API",
        description="Reward points, redemptions and engagement leaderboard for the tutoring platform",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(users_router)
    app.include_router(users_admin_router)
    app.include_router(rewards_router)
    app.include_router(leaderboard_router)

    return app


app = create_app()
