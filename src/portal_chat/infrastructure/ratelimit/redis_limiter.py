from __future__ import annotations

import redis.asyncio as aioredis


class RedisRateLimiter:
    """Fixed-window counter: at most ``limit`` hits per key per ``window_seconds``.

    Implements application.ports.rate_limit.RateLimiter.
    """

    def __init__(
        self,
        redis: aioredis.Redis,
        limit: int,
        window_seconds: int,
        *,
        prefix: str = "rl",
    ) -> None:
        self._redis = redis
        self._limit = limit
        self._window = window_seconds
        self._prefix = prefix

    async def hit(self, key: str) -> bool:
        redis_key = f"{self._prefix}:{key}"
        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.incr(redis_key)
            pipe.expire(redis_key, self._window, nx=True)
            count, _ = await pipe.execute()
        return int(count) <= self._limit
