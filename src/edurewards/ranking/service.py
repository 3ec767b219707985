"""Engagement ranking service: fixed-width top-N leaderboard."""

from __future__ import annotations

import json

import structlog
from redis.exceptions import RedisError
from sqlalchemy.ext.asyncio import AsyncSession

from edurewards.ranking.oracles import RankingOracle
from edurewards.ranking.snapshot import EngagementRecord, build_snapshot
from edurewards.rewards.errors import OracleFailure

logger = structlog.get_logger()

PLACEHOLDER = ""
TOP_STUDENTS_CACHE_KEY = "leaderboard:top_students:{n}"


def _validate_ranking(ranking: list[str], snapshot: list[EngagementRecord], n: int) -> list[str]:
    """Enforce the oracle contract: exactly n distinct non-empty uids from the snapshot."""
    known = {record.uid for record in snapshot}
    if len(ranking) != n:
        raise OracleFailure(f"expected {n} uids, oracle returned {len(ranking)}")
    if len(set(ranking)) != n:
        raise OracleFailure("oracle returned duplicate uids")
    unknown = [uid for uid in ranking if not uid or uid not in known]
    if unknown:
        raise OracleFailure(f"oracle returned uids not in the snapshot: {unknown[:3]}")
    return ranking


async def rank_top(
    snapshot: list[EngagementRecord],
    oracle: RankingOracle,
    n: int = 10,
) -> list[str]:
    """Return exactly `n` uids, best first.

    Pools of at most `n` users are returned in input order, padded with
    empty-string placeholders; the oracle is only consulted for larger
    pools. A failing or malformed oracle response raises OracleFailure;
    no partial ranking is returned.
    """
    if n <= 0:
        msg = f"n must be positive, got {n}"
        raise ValueError(msg)

    if len(snapshot) <= n:
        uids = [record.uid for record in snapshot]
        return uids + [PLACEHOLDER] * (n - len(uids))

    ranking = await oracle.rank(snapshot, n)
    return _validate_ranking(list(ranking), snapshot, n)


async def get_top_students(
    db: AsyncSession,
    redis: object | None,
    oracle: RankingOracle,
    n: int = 10,
    cache_ttl: int = 300,
) -> list[str]:
    """Snapshot all users, rank them, and cache the ranking in Redis.

    Redis is optional; cache errors are logged and never fail the request.
    """
    cache_key = TOP_STUDENTS_CACHE_KEY.format(n=n)
    if redis is not None:
        try:
            cached = await redis.get(cache_key)  # type: ignore[union-attr]
            if cached:
                return json.loads(cached)
        except RedisError:
            logger.warning("top_students_cache_read_failed", exc_info=True)

    snapshot = await build_snapshot(db)
    ranking = await rank_top(snapshot, oracle, n)
    logger.info("top_students_ranked", pool_size=len(snapshot), n=n)

    if redis is not None:
        try:
            await redis.set(cache_key, json.dumps(ranking), ex=cache_ttl)  # type: ignore[union-attr]
        except RedisError:
            logger.warning("top_students_cache_write_failed", exc_info=True)

    return ranking


async def invalidate_top_students(redis: object | None, n: int = 10) -> None:
    if redis is None:
        return
    try:
        await redis.delete(TOP_STUDENTS_CACHE_KEY.format(n=n))  # type: ignore[union-attr]
    except RedisError:
        logger.warning("top_students_cache_invalidate_failed", exc_info=True)
