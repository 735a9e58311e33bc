"""
Redis caching layer.

Used for read-heavy, slowly changing data such as the referral
leaderboard. Every operation degrades to a miss / no-op when Redis is
unavailable, so callers can always fall back to the database.
"""

import json
import logging
from typing import Any, Optional

import redis.asyncio as redis

from dropview.config import settings

logger = logging.getLogger(__name__)


class CacheManager:
    """
    Redis cache manager with JSON serialization and namespaced keys.
    """

    def __init__(self):
        self.redis_client = None
        self._connection_pool = None

        self.default_ttl = settings.leaderboard_cache_ttl
        self.key_prefix = "dropview:"

        self.cache_stats = {"hits": 0, "misses": 0, "sets": 0, "deletes": 0}

    async def connect(self):
        """Establish Redis connection (AWS ElastiCache compatible)."""
        try:
            connection_kwargs = {
                "max_connections": 20,
                "retry_on_timeout": True,
                "decode_responses": False,
                "socket_keepalive": True,
            }

            if settings.redis_ssl:
                connection_kwargs["connection_class"] = redis.SSLConnection
                connection_kwargs["ssl_cert_reqs"] = None

            if settings.is_aws_environment:
                connection_kwargs.update(
                    {
                        "socket_connect_timeout": 10,
                        "socket_timeout": 30,
                        "health_check_interval": 30,
                    }
                )

            self._connection_pool = redis.ConnectionPool.from_url(
                settings.redis_url, **connection_kwargs
            )
            self.redis_client = redis.Redis(connection_pool=self._connection_pool)

            await self.redis_client.ping()
            logger.info("Redis connection established successfully")

        except Exception as e:
            logger.error(f"Failed to connect to Redis: {e}")
            self.redis_client = None
            raise ConnectionError(f"Redis connection failed: {e}")

    async def disconnect(self):
        """Clean up Redis connections."""
        if self.redis_client:
            await self.redis_client.aclose()
            self.redis_client = None
        if self._connection_pool:
            await self._connection_pool.disconnect()
            self._connection_pool = None

    def _generate_key(self, key: str, namespace: str = "") -> str:
        if namespace:
            return f"{self.key_prefix}{namespace}:{key}"
        return f"{self.key_prefix}{key}"

    def _serialize_value(self, value: Any) -> bytes:
        return json.dumps(value, default=str).encode("utf-8")

    def _deserialize_value(self, value: bytes) -> Any:
        try:
            return json.loads(value.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.error(f"Failed to deserialize cache value: {e}")
            return None

    async def get(self, key: str, namespace: str = "") -> Optional[Any]:
        """
        Get value from cache.

        Returns:
            Cached value or None if not found or Redis is unavailable
        """
        if not self.redis_client:
            return None

        try:
            value = await self.redis_client.get(self._generate_key(key, namespace))

            if value is not None:
                self.cache_stats["hits"] += 1
                return self._deserialize_value(value)

            self.cache_stats["misses"] += 1
            return None

        except Exception as e:
            logger.error(f"Cache get error for key {key}: {e}")
            self.cache_stats["misses"] += 1
            return None

    async def set(
        self, key: str, value: Any, ttl: Optional[int] = None, namespace: str = ""
    ) -> bool:
        """
        Set value in cache with an expiry.

        Returns:
            True if successfully set
        """
        if not self.redis_client:
            return False

        try:
            await self.redis_client.setex(
                self._generate_key(key, namespace),
                ttl or self.default_ttl,
                self._serialize_value(value),
            )
            self.cache_stats["sets"] += 1
            return True

        except Exception as e:
            logger.error(f"Cache set error for key {key}: {e}")
            return False

    async def delete_pattern(self, pattern: str, namespace: str = "") -> int:
        """
        Delete all keys matching a pattern (supports wildcards).

        Returns:
            Number of keys deleted
        """
        if not self.redis_client:
            return 0

        try:
            keys = await self.redis_client.keys(self._generate_key(pattern, namespace))

            if keys:
                deleted = await self.redis_client.delete(*keys)
                self.cache_stats["deletes"] += deleted
                return deleted
            return 0

        except Exception as e:
            logger.error(f"Cache pattern delete error for pattern {pattern}: {e}")
            return 0


cache_manager = CacheManager()


async def init_cache():
    """Initialize cache connection."""
    await cache_manager.connect()
    logger.info("Cache system initialized successfully")


async def cleanup_cache():
    """Cleanup cache connections."""
    await cache_manager.disconnect()
    logger.info("Cache system cleaned up")
