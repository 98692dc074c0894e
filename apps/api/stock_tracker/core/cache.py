from __future__ import annotations

import json
import logging
import time
from collections.abc import Awaitable, Callable

from redis.asyncio import Redis
from redis.exceptions import RedisError

from stock_tracker.core.config import settings

logger = logging.getLogger(__name__)

JSONValue = dict | list | str


class MemoryTTLCache:
    def __init__(self) -> None:
        self._store: dict[str, tuple[float, str]] = {}

    async def get(self, key: str) -> JSONValue | None:
        entry = self._store.get(key)
        if not entry:
            return None
        expires_at, value = entry
        if time.monotonic() > expires_at:
            self._store.pop(key, None)
            return None
        return json.loads(value)

    async def set(self, key: str, value: JSONValue, ttl_seconds: int) -> None:
        now = time.monotonic()
        self._sweep(now)
        self._store[key] = (now + ttl_seconds, json.dumps(value))

    def _sweep(self, now: float) -> None:
        expired = [key for key, (expires_at, _) in self._store.items() if now > expires_at]
        for key in expired:
            del self._store[key]

    def __len__(self) -> int:
        return len(self._store)

    def clear(self) -> None:
        self._store.clear()


class CacheClient:
    """Market-data response cache; Redis when reachable, process memory otherwise."""

    def __init__(self, redis_url: str | None = None, prefix: str = "stock-tracker") -> None:
        self._redis_url = redis_url
        self._prefix = prefix
        self._memory = MemoryTTLCache()
        self._redis: Redis | None = None

    def _key(self, key: str) -> str:
        return f"{self._prefix}:{key}"

    async def connect(self) -> None:
        if not self._redis_url:
            return
        client = Redis.from_url(self._redis_url, decode_responses=True)
        try:
            await client.ping()
        except (RedisError, OSError) as exc:
            logger.warning("Redis unavailable at %s, using in-memory cache: %s", self._redis_url, exc)
            await client.aclose()
            return
        self._redis = client

    async def close(self) -> None:
        if self._redis:
            await self._redis.aclose()
            self._redis = None

    async def get(self, key: str) -> JSONValue | None:
        if self._redis:
            try:
                value = await self._redis.get(self._key(key))
                return json.loads(value) if value else None
            except RedisError as exc:
                logger.warning("Redis get failed for %s: %s", key, exc)
        return await self._memory.get(key)

    async def set(self, key: str, value: JSONValue, ttl_seconds: int = 30) -> None:
        if self._redis:
            try:
                await self._redis.set(name=self._key(key), value=json.dumps(value), ex=ttl_seconds)
                return
            except RedisError as exc:
                logger.warning("Redis set failed for %s: %s", key, exc)
        await self._memory.set(key, value, ttl_seconds)

    async def remember(
        self,
        key: str,
        producer: Callable[[], Awaitable[JSONValue]],
        ttl_seconds: int = 30,
    ) -> JSONValue:
        cached = await self.get(key)
        if cached is not None:
            return cached
        fresh = await producer()
        await self.set(key, fresh, ttl_seconds)
        return fresh

    def clear_local(self) -> None:
        self._memory.clear()


cache = CacheClient(redis_url=settings.redis_url)
