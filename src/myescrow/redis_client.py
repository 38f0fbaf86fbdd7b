"""Shared Redis client.

Redis backs rate limiting only. When it is not configured the API still
serves requests and the limiter stays out of the way.
"""

import redis.asyncio as redis

_client: redis.Redis | None = None


async def init_redis(url: str) -> None:
    """Create the shared client. Connections are opened lazily on first command."""
    global _client  # noqa: PLW0603
    _client = redis.Redis.from_url(
        url,
        decode_responses=True,
        max_connections=20,
        socket_connect_timeout=2,
        health_check_interval=30,
    )


async def close_redis() -> None:
    global _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
        _client = None


def redis_configured() -> bool:
    return _client is not None


def get_redis() -> redis.Redis:
    """Return the shared client. Raises RuntimeError when ``init_redis`` has not run."""
    if _client is None:
        msg = "Redis is not configured for this process."
        raise RuntimeError(msg)
    return _client
