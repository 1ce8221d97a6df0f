"""Redis client configuration and cache helpers."""

import json
from typing import Any, cast

import redis

from formconsult.config import settings

# Global Redis client instance
_redis_client: redis.Redis | None = None


def get_redis_client() -> redis.Redis:
    """
    Get or create Redis client instance.

    Returns:
        Redis client instance
    """
    global _redis_client

    if _redis_client is None:
        _redis_client = redis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            username=settings.redis_username,
            password=settings.redis_password,
            decode_responses=settings.redis_decode_responses,
            socket_connect_timeout=5,
            socket_keepalive=True,
            health_check_interval=30,
        )

    return _redis_client


def get_cache_manager() -> "CacheManager | None":
    """Return a cache manager when caching is enabled, else None."""
    if not settings.cache_enabled:
        return None
    return CacheManager(get_redis_client())


async def check_redis_connection() -> bool:
    """
    Check if Redis connection is healthy.

    Returns:
        True if connection is healthy, False otherwise
    """
    try:
        client = get_redis_client()
        client.ping()
        return True
    except Exception:
        return False


def close_redis_connection() -> None:
    """Close Redis connection."""
    global _redis_client

    if _redis_client is not None:
        _redis_client.close()
        _redis_client = None


class CacheManager:
    """Redis-based cache manager.

    Every operation degrades to a miss on Redis errors so that a cache outage
    never fails a request.
    """

    def __init__(self, redis_client: redis.Redis):
        """Initialize cache manager with Redis client."""
        self.redis = redis_client

    def set(self, key: str, value: str, ttl: int | None = None) -> bool:
        """Set a raw string value, optionally expiring after ``ttl`` seconds."""
        try:
            if ttl:
                self.redis.setex(key, ttl, value)
            else:
                self.redis.set(key, value)
            return True
        except Exception:
            return False

    def delete(self, key: str) -> bool:
        """Delete key from cache."""
        try:
            self.redis.delete(key)
            return True
        except Exception:
            return False

    def exists(self, key: str) -> bool:
        """Check if key exists in cache."""
        try:
            return bool(self.redis.exists(key))
        except Exception:
            return False

    def get_json(self, key: str) -> Any | None:
        """Get JSON value from cache and deserialize."""
        try:
            value = cast(str | None, self.redis.get(key))
            if value:
                return json.loads(value)
            return None
        except Exception:
            return None

    def set_json(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """Serialize ``value`` (UUIDs and datetimes as strings) and cache it."""
        return self.set(key, json.dumps(value, default=str), ttl=ttl)
