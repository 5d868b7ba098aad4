"""IP -> country code cache.

Entries are plain strings keyed by the IP itself, shared by every worker
instance. They are idempotent facts, so concurrent writers never conflict.
Failures are logged and reported as a miss; the cache is best-effort.
"""

from typing import Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from shared.logging import get_logger

log = get_logger(__name__)


class GeoCache:
    def __init__(
        self, redis_client: Optional[aioredis.Redis], ttl_seconds: Optional[int] = None
    ) -> None:
        self._redis = redis_client
        self.ttl_seconds = ttl_seconds

    async def get(self, ip: str) -> Optional[str]:
        if self._redis is None:
            return None
        try:
            return await self._redis.get(ip)
        except RedisError as e:
            log.warning("geo_cache_get_error", error=str(e), error_type=type(e).__name__)
            return None

    async def set(self, ip: str, country_code: str) -> None:
        if self._redis is None:
            return
        try:
            await self._redis.set(ip, country_code, ex=self.ttl_seconds)
        except RedisError as e:
            log.error("geo_cache_set_error", error=str(e), error_type=type(e).__name__)
