"""
Redis cache service for index search responses and import jobs.

Search responses are cached per query and invalidated after any index write.
Import jobs are stored as JSON blobs with a TTL. Every call is best-effort:
a Redis outage degrades to a cache miss, never to an error.
"""

import hashlib
import json
import logging
from typing import Optional

import redis.asyncio as redis

from compendium.core.config import settings

logger = logging.getLogger(__name__)

# Cache keys
SEARCH_CACHE_PREFIX = "compendium:search:"
JOB_KEY_PREFIX = "compendium:job:"


def _make_cache_key(**params) -> str:
    """Build a deterministic cache key from query parameters."""
    raw = json.dumps(params, sort_keys=True, default=str)
    h = hashlib.md5(raw.encode()).hexdigest()[:12]
    return f"{SEARCH_CACHE_PREFIX}{h}"


class CacheService:
    """Redis cache for search results and import-job state."""

    _redis: Optional[redis.Redis] = None

    @classmethod
    async def get_redis(cls) -> redis.Redis:
        """Get or create Redis connection."""
        if cls._redis is None:
            cls._redis = redis.from_url(
                settings.redis_url,
                decode_responses=True,
                socket_connect_timeout=5,
            )
        return cls._redis

    @classmethod
    async def close(cls):
        """Close Redis connection."""
        if cls._redis is not None:
            await cls._redis.close()
            cls._redis = None

    # ------------------------------------------------------------------
    # Search responses
    # ------------------------------------------------------------------

    @classmethod
    async def get_cached_search(cls, **params) -> Optional[dict]:
        """
        Get cached search response for given query params.
        Returns None if cache miss or error.
        """
        try:
            r = await cls.get_redis()
            key = _make_cache_key(**params)
            data = await r.get(key)
            if data:
                logger.debug("Cache hit: %s", key)
                return json.loads(data)
        except Exception as e:
            logger.warning("Cache get failed: %s", e)
        return None

    @classmethod
    async def set_cached_search(cls, response_data: dict, **params):
        """Cache the full search response for given query params."""
        try:
            r = await cls.get_redis()
            key = _make_cache_key(**params)
            await r.set(
                key,
                json.dumps(response_data),
                ex=settings.SEARCH_CACHE_TTL_SEC,
            )
            logger.debug("Cache set: %s", key)
        except Exception as e:
            logger.warning("Cache set failed: %s", e)

    @classmethod
    async def invalidate(cls):
        """Clear all search caches after an index write."""
        try:
            r = await cls.get_redis()
            cursor = 0
            deleted = 0
            while True:
                cursor, keys = await r.scan(
                    cursor, match=f"{SEARCH_CACHE_PREFIX}*", count=100
                )
                if keys:
                    await r.delete(*keys)
                    deleted += len(keys)
                if cursor == 0:
                    break
            logger.debug("Search cache invalidated (%d keys)", deleted)
        except Exception as e:
            logger.warning("Cache invalidation failed: %s", e)

    # ------------------------------------------------------------------
    # Import jobs
    # ------------------------------------------------------------------

    @classmethod
    async def get_json(cls, key: str) -> Optional[dict]:
        try:
            r = await cls.get_redis()
            data = await r.get(f"{JOB_KEY_PREFIX}{key}")
            if data:
                return json.loads(data)
        except Exception as e:
            logger.warning("Cache get failed for %s: %s", key, e)
        return None

    @classmethod
    async def set_json(cls, key: str, value: dict, ttl: Optional[int] = None):
        try:
            r = await cls.get_redis()
            await r.set(
                f"{JOB_KEY_PREFIX}{key}",
                json.dumps(value),
                ex=ttl or settings.JOB_TTL_SEC,
            )
        except Exception as e:
            logger.warning("Cache set failed for %s: %s", key, e)

    @classmethod
    async def health_check(cls) -> bool:
        """Check if Redis is reachable."""
        try:
            r = await cls.get_redis()
            await r.ping()
            return True
        except Exception:
            return False
