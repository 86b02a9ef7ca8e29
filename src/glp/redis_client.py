"""Redis connection pool."""

from __future__ import annotations

import redis.asyncio as redis
from starlette.requests import HTTPConnection


class RedisClient:
    """Owns the Redis connection pool for one application instance."""

    def __init__(self, url: str, *, max_connections: int = 50) -> None:
        self.url = url
        self.client: redis.Redis = redis.from_url(  # type: ignore[no-untyped-call]
            url,
            encoding="utf-8",
            decode_responses=True,
            max_connections=max_connections,
        )

    async def close(self) -> None:
        """Close the Redis connection pool."""
        await self.client.aclose()


def get_redis(conn: HTTPConnection) -> redis.Redis | None:
    """Get the Redis client for the running application, or None when not configured."""
    holder: RedisClient | None = getattr(conn.app.state, "redis", None)
    return holder.client if holder is not None else None
