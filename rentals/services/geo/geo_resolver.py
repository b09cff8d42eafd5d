"""
Location resolution.

Turns a LocationRef into coordinates. Raw coordinates win, then a stored
location's coordinates, then external geocoding of the free-text name.
Failing to resolve is a normal outcome reported as an unresolved
GeoResolution, never an exception.
"""

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Optional

from rentals.config.logging import get_logger
from rentals.core.exceptions import BaseAppException, GeocodingServiceError
from rentals.models.location import Location
from rentals.repositories.location_repository import LocationRepository
from rentals.schemas.search import LocationRef
from rentals.services.common.unit_of_work import SessionFactory, UnitOfWork
from rentals.services.geo.geocode_cache import GeocodeCache
from rentals.utils.geo_utils import Address, GeocodeResult, GeocodingProvider, GeoPoint

logger = get_logger(__name__)


class GeoSource(str, Enum):
    COORDINATES = "coordinates"
    LOCATION = "location"
    GEOCODER = "geocoder"
    UNRESOLVED = "unresolved"


@dataclass(frozen=True)
class GeoResolution:
    point: Optional[GeoPoint]
    source: GeoSource
    location_id: Optional[str] = None

    @property
    def resolved(self) -> bool:
        return self.point is not None

    @classmethod
    def unresolved(cls, location_id: Optional[str] = None) -> "GeoResolution":
        return cls(point=None, source=GeoSource.UNRESOLVED, location_id=location_id)


class GeoResolver:
    """
    Resolve location references to coordinates through an injected cache.

    Args:
        session_factory: Creates sessions for location lookups and inserts
        geocoder: External geocoding provider
        cache: Shared geocode cache
        default_language: Language used when a reference names none
        persist_locations: Store newly geocoded places as Location rows
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        geocoder: GeocodingProvider,
        cache: GeocodeCache,
        default_language: str = "en",
        persist_locations: bool = True,
    ):
        self.session_factory = session_factory
        self.geocoder = geocoder
        self.cache = cache
        self.default_language = default_language
        self.persist_locations = persist_locations

    def resolve(self, ref: LocationRef) -> GeoResolution:
        if ref.coordinates is not None:
            return GeoResolution(ref.coordinates.to_point(), GeoSource.COORDINATES, ref.location_id)

        if ref.location_id:
            with UnitOfWork(self.session_factory) as uow:
                location = uow.get_repo(LocationRepository).get_by_id(ref.location_id)
                if location is not None and location.has_coordinates:
                    return GeoResolution(
                        GeoPoint(location.latitude, location.longitude),
                        GeoSource.LOCATION,
                        location.id,
                    )
            if location is None:
                logger.info("Pickup location not found", extra={"location_id": ref.location_id})

        if ref.name:
            resolution = self.geocode_text(ref.name, ref.language)
            if resolution.resolved:
                return resolution

        return GeoResolution.unresolved(ref.location_id)

    def geocode_text(self, text: str, language: Optional[str] = None) -> GeoResolution:
        """Geocode free text through the cache; provider failures resolve to nothing."""
        text = text.strip()
        if not text:
            return GeoResolution.unresolved()

        language = language or self.default_language
        key = self.cache.forward_key(text, language)
        try:
            payload = self.cache.get_or_load(key, lambda: self._lookup(text, language))
        except GeocodingServiceError as e:
            logger.warning(
                "Geocoding unavailable, location left unresolved",
                extra={"text": text, "error": e.message},
            )
            return GeoResolution.unresolved()

        if payload is None:
            logger.info("No geocoding match", extra={"text": text, "language": language})
            return GeoResolution.unresolved()

        return GeoResolution(
            GeoPoint(payload["latitude"], payload["longitude"]),
            GeoSource.GEOCODER,
            payload.get("location_id"),
        )

    def reverse(self, point: GeoPoint, language: Optional[str] = None) -> Optional[Address]:
        """
        Address at ``point``, cached like forward lookups.

        Raises:
            GeocodingServiceError: If the provider cannot be reached
        """
        language = language or self.default_language

        def load():
            address = self.geocoder.reverse(point, language)
            return None if address is None else asdict(address)

        payload = self.cache.get_or_load(self.cache.reverse_key(point, language), load)
        return Address(**payload) if payload is not None else None

    def _lookup(self, text: str, language: str) -> Optional[dict]:
        logger.info("Geocode cache miss", extra={"text": text, "provider": self.geocoder.name})
        result = self.geocoder.geocode(text, language)
        if result is None:
            return None

        payload = result.to_dict()
        if self.persist_locations:
            payload["location_id"] = self._persist(text, language, result)
        return payload

    def _persist(self, text: str, language: str, result: GeocodeResult) -> Optional[str]:
        """Store the geocoded place, reusing a row with the same map id."""
        try:
            with UnitOfWork(self.session_factory) as uow:
                repo = uow.get_repo(LocationRepository)
                if result.place_id:
                    existing = repo.find_by_external_id(result.place_id)
                    if existing is not None:
                        return existing.id
                location = repo.create(
                    Location(
                        names={language: text},
                        latitude=result.point.latitude,
                        longitude=result.point.longitude,
                        external_map_id=result.place_id,
                    )
                )
                return location.id
        except BaseAppException as e:
            logger.warning("Could not persist geocoded location", extra={"text": text, "error": e.message})
            return None
