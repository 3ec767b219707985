"""Shared FastAPI dependencies."""

from collections.abc import AsyncGenerator

from edurewards.ranking.oracles import RankingOracle, get_ranking_oracle
from edurewards.redis_client import get_redis_or_none


async def get_cache() -> AsyncGenerator[object | None, None]:
    """Yield the Redis client, or None when Redis is not configured."""
    yield get_redis_or_none()


def get_oracle() -> RankingOracle:
    """Ranking oracle selected by EDU_RANKING_BACKEND."""
    return get_ranking_oracle()
