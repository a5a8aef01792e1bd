"""
Redis-backed JSON response cache.

Used by the Overpass source so repeated nearby searches over the same box
do not hit the rate-limited public API.  The cache is best-effort: a Redis
failure on read or write is logged and the caller goes to the upstream
service as if the entry were missing.
"""

from __future__ import annotations

import hashlib
import json
import logging
from typing import Any, Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from src.config import settings

logger = logging.getLogger(__name__)

_pool = aioredis.ConnectionPool.from_url(
    settings.redis_url, decode_responses=True
)


async def get_redis() -> aioredis.Redis:
    """Return a Redis client backed by the shared connection pool."""
    return aioredis.Redis(connection_pool=_pool)


class ResponseCache:
    def __init__(
        self, client: aioredis.Redis, namespace: str, ttl_seconds: int = 300
    ):
        self.redis = client
        self.namespace = namespace
        self.ttl = ttl_seconds

    def key_for(self, raw: str) -> str:
        digest = hashlib.sha256(raw.encode()).hexdigest()[:32]
        return f"cache:{self.namespace}:{digest}"

    async def get_json(self, raw_key: str) -> Optional[Any]:
        try:
            cached = await self.redis.get(self.key_for(raw_key))
        except RedisError as exc:
            logger.warning("Cache read failed (%s): %s", self.namespace, exc)
            return None
        if cached is None:
            return None
        try:
            return json.loads(cached)
        except ValueError:
            logger.warning("Discarding corrupt cache entry in %s", self.namespace)
            return None

    async def set_json(self, raw_key: str, value: Any) -> None:
        try:
            await self.redis.set(
                self.key_for(raw_key), json.dumps(value), ex=self.ttl
            )
        except RedisError as exc:
            logger.warning("Cache write failed (%s): %s", self.namespace, exc)
