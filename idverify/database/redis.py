"""
Redis connection and operations.
Used when STORAGE_BACKEND=redis for the credential store and token cache.
"""

import redis.asyncio as redis
import structlog

from ..core.exceptions import CacheError

logger = structlog.get_logger()


class RedisCache:
    """Shared async Redis client for the credential store and token cache."""

    def __init__(self) -> None:
        self.client: redis.Redis | None = None

    async def connect(self, redis_url: str) -> None:
        """Connect and ping; fails startup when Redis is unreachable."""
        try:
            self.client = redis.from_url(redis_url, decode_responses=True)

            # Test connection
            await self.client.ping()

            logger.info("Redis connection established", url=redis_url)

        except Exception as e:
            logger.error("Failed to connect to Redis", error=str(e))
            raise

    async def disconnect(self) -> None:
        """Close the client if connected."""
        if self.client:
            await self.client.close()
            logger.info("Redis connection closed")

    async def health_check(self) -> dict[str, bool | str]:
        """Connectivity and server details for the health endpoint."""
        try:
            if not self.client:
                return {"connected": False, "error": "No client connection"}

            await self.client.ping()
            info = await self.client.info()

            return {
                "connected": True,
                "version": info.get("redis_version", "unknown"),
                "memory_usage": info.get("used_memory_human", "unknown"),
            }

        except Exception as e:
            logger.error("Redis health check failed", error=str(e))
            return {"connected": False, "error": str(e)}

    def _require_client(self) -> redis.Redis:
        if not self.client:
            raise RuntimeError("Redis connection not established")
        return self.client

    async def get(self, key: str) -> str | None:
        """Get a raw string value, None when absent."""
        client = self._require_client()
        try:
            value: str | None = await client.get(key)
        except Exception as e:
            logger.error("Redis get operation failed", key=key, error=str(e))
            raise CacheError("Redis get failed", key=key) from e
        if value is None:
            logger.debug("Cache MISS", cache_key=key)
        else:
            logger.debug("Cache HIT", cache_key=key)
        return value

    async def set(self, key: str, value: str) -> None:
        """Set a raw string value without expiry."""
        client = self._require_client()
        try:
            await client.set(key, value)
        except Exception as e:
            logger.error("Redis set operation failed", key=key, error=str(e))
            raise CacheError("Redis set failed", key=key) from e

    async def set_if_absent(self, key: str, value: str) -> bool:
        """
        Atomically set key only when it does not exist (SET NX).

        Returns:
            True if the value was written, False if the key already existed
        """
        client = self._require_client()
        try:
            created = await client.set(key, value, nx=True)
        except Exception as e:
            logger.error("Redis set-nx operation failed", key=key, error=str(e))
            raise CacheError("Redis set failed", key=key) from e
        return bool(created)

    async def setex(self, key: str, ttl_seconds: int, value: str) -> None:
        """
        Set key with a TTL (SETEX).
        Overwriting resets the TTL to `ttl_seconds` from now.
        """
        client = self._require_client()
        try:
            await client.setex(key, ttl_seconds, value)
        except Exception as e:
            logger.error("Redis setex operation failed", key=key, error=str(e))
            raise CacheError("Redis setex failed", key=key) from e

