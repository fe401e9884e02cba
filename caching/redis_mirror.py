"""
Redis Mirror - optional async write-through copy of cache records.

The in-memory CacheStore stays authoritative for eviction and TTL. The mirror
only lets a record outlive the process (or be shared between workers): on an
in-memory miss the caller loads the record here and re-seeds the store with
the record's original timestamp.

Mirror failures are logged and reported as a miss; they never fail a request.
"""
import json
from typing import Optional, Dict, Any

import redis.asyncio as redis
from redis.exceptions import RedisError

from config import REDIS_HOST, REDIS_PORT, REDIS_DB
from logs.logging_config import get_logger
from .config import SUMMARY_CACHE_KEY_PREFIX, SUMMARY_CACHE_TTL

logger = get_logger("cache.redis")


class RedisCacheMirror:
    """Async Redis store of JSON records with a per-key TTL."""

    def __init__(
        self,
        host: str = REDIS_HOST,
        port: int = REDIS_PORT,
        db: int = REDIS_DB,
        ttl: int = SUMMARY_CACHE_TTL,
        prefix: str = SUMMARY_CACHE_KEY_PREFIX,
        client: Optional[redis.Redis] = None,
    ):
        self._redis: Optional[redis.Redis] = client
        self._host = host
        self._port = port
        self._db = db
        self._ttl = ttl
        self._prefix = prefix

    async def _get_redis(self) -> redis.Redis:
        """Get or create async Redis connection."""
        if self._redis is None:
            self._redis = redis.Redis(
                host=self._host,
                port=self._port,
                db=self._db,
                decode_responses=True
            )
            logger.info(f"[CACHE_MIRROR] Initialized | host={self._host}:{self._port} | db={self._db} | ttl={self._ttl}s")
        return self._redis

    async def close(self):
        """Close Redis connection."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None

    def _key(self, key: str) -> str:
        return f"{self._prefix}:{key}"

    async def load(self, key: str) -> Optional[Dict[str, Any]]:
        """Stored record for key, or None if absent, expired or unreadable."""
        try:
            r = await self._get_redis()
            json_str = await r.get(self._key(key))
        except RedisError as e:
            logger.warning(f"[CACHE_MIRROR] Load failed | key={key} | error={e}")
            return None

        if not json_str:
            return None
        try:
            return json.loads(json_str)
        except json.JSONDecodeError:
            logger.warning(f"[CACHE_MIRROR] Corrupt record dropped | key={key}")
            await self.delete(key)
            return None

    async def save(self, key: str, record: Dict[str, Any], ttl: Optional[int] = None) -> bool:
        try:
            r = await self._get_redis()
            await r.setex(self._key(key), ttl or self._ttl, json.dumps(record, ensure_ascii=False))
        except RedisError as e:
            logger.warning(f"[CACHE_MIRROR] Save failed | key={key} | error={e}")
            return False
        logger.debug(f"[CACHE_MIRROR] Saved | key={key}")
        return True

    async def delete(self, key: str) -> bool:
        try:
            r = await self._get_redis()
            return bool(await r.delete(self._key(key)))
        except RedisError as e:
            logger.warning(f"[CACHE_MIRROR] Delete failed | key={key} | error={e}")
            return False
