"""Redis client for rate-limit counters and the leaderboard cache.

Redis is optional: when it is down the service keeps serving, without
rate limiting and without cached rankings.
"""

import redis.asyncio as redis
import structlog
from redis.exceptions import RedisError

logger = structlog.get_logger()

_client: redis.Redis | None = None


async def init_redis(url: str, socket_timeout: float = 2.0) -> None:
    """Create the client. Short socket timeouts keep a slow Redis off the request path."""
    global _client  # noqa: PLW0603
    _client = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=20,
        socket_timeout=socket_timeout,
        socket_connect_timeout=socket_timeout,
    )


async def ping_redis() -> bool:
    """True if the client exists and answers PING."""
    if _client is None:
        return False
    try:
        return bool(await _client.ping())
    except RedisError as exc:
        logger.warning("redis_ping_failed", error=str(exc))
        return False


async def close_redis() -> None:
    global _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
        _client = None


def get_redis() -> redis.Redis:
    """The client, or RuntimeError when Redis was never initialized or was dropped."""
    if _client is None:
        msg = "Redis not initialized. Call init_redis() first."
        raise RuntimeError(msg)
    return _client


def get_redis_or_none() -> redis.Redis | None:
    """The client if available; callers treat None as 'no cache'."""
    return _client
