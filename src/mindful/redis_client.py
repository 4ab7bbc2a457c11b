"""Redis connection pool.

Redis is optional for this service: the rate limiter and the leaderboard
cache both check `get_redis_optional()` and carry on without it.
"""

import redis.asyncio as redis

_pool: redis.Redis | None = None


async def init_redis(url: str, max_connections: int = 20) -> None:
    """Open the pool. An empty URL leaves Redis disabled."""
    global _pool  # noqa: PLW0603
    if not url:
        return
    _pool = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=max_connections,
    )


async def close_redis() -> None:
    global _pool  # noqa: PLW0603
    if _pool is not None:
        await _pool.aclose()
        _pool = None


def get_redis_optional() -> redis.Redis | None:
    """The shared client, or None while Redis is disabled (FastAPI dependency)."""
    return _pool
