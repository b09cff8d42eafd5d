"""
Caching backends.

A small synchronous cache interface with a bounded in-process backend and a
Redis backend. Reads never take a lock; writes are serialized per backend.
"""

import json
import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Optional, Tuple

from redis import Redis
from redis.exceptions import RedisError

from rentals.core.exceptions import CacheError
from rentals.config.logging import get_logger

logger = get_logger(__name__)


class CacheBackend:
    """Abstract cache backend interface"""

    def get(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    def set(self, key: str, value: Any, expire: Optional[int] = None) -> bool:
        raise NotImplementedError

    def delete(self, key: str) -> bool:
        raise NotImplementedError

    def clear(self) -> int:
        raise NotImplementedError


class InMemoryBackend(CacheBackend):
    """
    Bounded in-process cache.

    Holds at most ``max_entries`` values; once full, the oldest write is
    evicted first. ``default_ttl`` of None means entries never expire on
    their own.
    """

    def __init__(
        self,
        max_entries: int = 10000,
        default_ttl: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be positive")
        self.max_entries = max_entries
        self.default_ttl = default_ttl
        self._clock = clock
        self._data: "OrderedDict[str, Tuple[Any, Optional[float]]]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and expires_at <= self._clock():
            self.delete(key)
            return None
        return value

    def set(self, key: str, value: Any, expire: Optional[int] = None) -> bool:
        ttl = expire if expire is not None else self.default_ttl
        expires_at = self._clock() + ttl if ttl else None
        with self._lock:
            self._data.pop(key, None)
            self._data[key] = (value, expires_at)
            while len(self._data) > self.max_entries:
                evicted, _ = self._data.popitem(last=False)
                logger.debug("Evicted cache entry", extra={"key": evicted})
        return True

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._data.pop(key, None) is not None

    def clear(self) -> int:
        with self._lock:
            count = len(self._data)
            self._data.clear()
        return count

    def __len__(self) -> int:
        return len(self._data)


class RedisBackend(CacheBackend):
    """Redis cache backend storing JSON values under a namespace prefix"""

    def __init__(self, client: Redis, namespace: str = "cache", default_ttl: Optional[int] = None):
        self.client = client
        self.namespace = namespace
        self.default_ttl = default_ttl

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    def get(self, key: str) -> Optional[Any]:
        try:
            raw = self.client.get(self._key(key))
        except RedisError as e:
            logger.error(f"Cache get failed for key '{key}': {str(e)}")
            raise CacheError(str(e), operation="get", key=key) from e
        if raw is None:
            return None
        return json.loads(raw)

    def set(self, key: str, value: Any, expire: Optional[int] = None) -> bool:
        ttl = expire if expire is not None else self.default_ttl
        try:
            return bool(self.client.set(self._key(key), json.dumps(value, default=str), ex=ttl))
        except RedisError as e:
            logger.error(f"Cache set failed for key '{key}': {str(e)}")
            raise CacheError(str(e), operation="set", key=key) from e

    def delete(self, key: str) -> bool:
        try:
            return bool(self.client.delete(self._key(key)))
        except RedisError as e:
            logger.error(f"Cache delete failed for key '{key}': {str(e)}")
            raise CacheError(str(e), operation="delete", key=key) from e

    def clear(self) -> int:
        try:
            keys = list(self.client.scan_iter(match=self._key("*")))
            return self.client.delete(*keys) if keys else 0
        except RedisError as e:
            logger.error(f"Cache clear failed for namespace '{self.namespace}': {str(e)}")
            raise CacheError(str(e), operation="clear") from e


def build_cache_backend(namespace: str) -> CacheBackend:
    """Create the backend selected by CACHE_BACKEND."""
    from rentals.config.settings import settings

    if settings.CACHE_BACKEND == "redis":
        from rentals.config.redis import get_redis_client

        logger.info("Using Redis cache backend", extra={"namespace": namespace})
        return RedisBackend(
            get_redis_client(),
            namespace=f"{settings.CACHE_NAMESPACE}:{namespace}",
            default_ttl=settings.GEOCODE_CACHE_TTL_SECONDS,
        )

    return InMemoryBackend(
        max_entries=settings.GEOCODE_CACHE_MAX_ENTRIES,
        default_ttl=settings.GEOCODE_CACHE_TTL_SECONDS,
    )
