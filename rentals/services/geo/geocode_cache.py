"""
Geocode cache with single-flight loading.

Keys are normalized so that inputs differing only in case or spacing share
an entry. Nothing expires unless the backend was built with a TTL; entries
otherwise leave through ``invalidate``/``clear`` or size-bound eviction.
"""

from typing import Any, Callable, Dict, Optional

from rentals.config.logging import get_logger
from rentals.core.cache import CacheBackend
from rentals.core.concurrency import SingleFlight
from rentals.core.exceptions import CacheError
from rentals.utils.geo_utils import GeoPoint

logger = get_logger(__name__)

Payload = Dict[str, Any]


def normalize_text(text: str) -> str:
    return " ".join(text.split()).casefold()


class GeocodeCache:

    def __init__(self, backend: CacheBackend):
        self.backend = backend
        self._flight = SingleFlight()

    @staticmethod
    def forward_key(text: str, language: str) -> str:
        return f"fwd:{language.lower()}:{normalize_text(text)}"

    @staticmethod
    def reverse_key(point: GeoPoint, language: str) -> str:
        return f"rev:{language.lower()}:{point.latitude:.6f},{point.longitude:.6f}"

    def get(self, key: str) -> Optional[Payload]:
        try:
            return self.backend.get(key)
        except CacheError as e:
            logger.warning("Geocode cache read failed, treating as miss", extra={"key": key, "error": e.message})
            return None

    def put(self, key: str, payload: Payload) -> None:
        try:
            self.backend.set(key, payload)
        except CacheError as e:
            logger.warning("Geocode cache write failed", extra={"key": key, "error": e.message})

    def get_or_load(self, key: str, loader: Callable[[], Optional[Payload]]) -> Optional[Payload]:
        """
        Return the cached payload for ``key``, calling ``loader`` on a miss.

        Concurrent misses on the same key share a single loader call. A
        loader result of None is returned but not cached.
        """
        cached = self.get(key)
        if cached is not None:
            return cached

        def load() -> Optional[Payload]:
            # another flight may have filled the entry since the first read
            cached = self.get(key)
            if cached is not None:
                return cached
            payload = loader()
            if payload is not None:
                self.put(key, payload)
            return payload

        return self._flight.do(key, load)

    def invalidate(self, text: str, language: str) -> bool:
        """Drop the forward entry for ``text`` so the next lookup hits the provider."""
        return self.backend.delete(self.forward_key(text, language))

    def clear(self) -> int:
        return self.backend.clear()
