"""Shared Redis client.

Used by the Redis record store and by the rate limiter. When no Redis URL is
configured the client is never initialized and callers fall back accordingly.
"""

import redis.asyncio as redis

_client: redis.Redis | None = None


async def init_redis(url: str, max_connections: int = 50) -> redis.Redis:
    """Create the shared client from a redis:// URL."""
    global _client  # noqa: PLW0603
    _client = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=max_connections,
    )
    return _client


async def close_redis() -> None:
    global _client  # noqa: PLW0603
    if _client:
        await _client.aclose()
        _client = None


def redis_enabled() -> bool:
    return _client is not None


def get_redis() -> redis.Redis:
    """Get the Redis client, raising RuntimeError when it was never initialized."""
    if _client is None:
        msg = "Redis not initialized. Call init_redis() first."
        raise RuntimeError(msg)
    return _client
