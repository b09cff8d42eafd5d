"""
Redis configuration for the rental service.
Provides a pooled Redis client for the shared geocode cache.
"""

from functools import lru_cache

from redis import Redis
from redis.connection import ConnectionPool

from rentals.config.settings import settings


@lru_cache()
def get_redis_pool() -> ConnectionPool:
    """Create the connection pool on first use"""
    return ConnectionPool.from_url(
        settings.get_redis_url(),
        max_connections=settings.REDIS_POOL_SIZE,
        decode_responses=True,
    )


def get_redis_client() -> Redis:
    """Get a Redis client bound to the shared pool"""
    return Redis(connection_pool=get_redis_pool())
