"""
Proximity ranking.

Orders a candidate set by straight-line distance from the pickup origin and
returns one page of it. When the origin cannot be resolved the candidates
fall back to catalog order (most recently updated first, then id) without
distances, unless the search was restricted to an exact location, in which
case nothing matches.

Candidate places that need geocoding are resolved in parallel on a bounded
thread pool; anything not resolved within the timeout is treated as having
no coordinates and sorts last.
"""

import math
from concurrent.futures import Future, ThreadPoolExecutor, TimeoutError, wait
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from rentals.config.logging import get_logger
from rentals.core.exceptions import ValidationError
from rentals.core.pagination import slice_page
from rentals.schemas.common.pagination import PaginationParams
from rentals.schemas.search import LocationRef
from rentals.services.geo.geo_resolver import GeoResolution, GeoResolver
from rentals.services.search.candidates import (
    Candidate,
    CandidateLocation,
    RankedPage,
    SearchCandidate,
)
from rentals.utils.geo_utils import GeoPoint, distance_km

logger = get_logger(__name__)

# sort position of candidates without any resolvable location
UNRESOLVED_DISTANCE_KM = math.inf


def native_order(candidates: Iterable[Candidate]) -> List[Candidate]:
    """Most recently updated first; ties broken by id."""
    ordered = sorted(candidates, key=lambda c: c.id)
    ordered.sort(key=lambda c: c.updated_at, reverse=True)
    return ordered


def closest(origin: GeoPoint, located: Sequence[Tuple[CandidateLocation, GeoPoint]]) -> Tuple[Optional[float], Optional[CandidateLocation]]:
    best_distance: Optional[float] = None
    best_location: Optional[CandidateLocation] = None
    for location, point in located:
        d = distance_km(origin, point)
        if best_distance is None or d < best_distance:
            best_distance, best_location = d, location
    return best_distance, best_location


def _ranking_key(item: SearchCandidate) -> Tuple[float, str]:
    distance = item.distance_km if item.distance_km is not None else UNRESOLVED_DISTANCE_KM
    return distance, item.candidate.id


class ProximityRanker:
    """
    Args:
        resolver: Resolves the origin and geocodable candidate places
        executor: Shared pool bounding concurrent geocoding work
        geocode_timeout: Seconds to wait for the origin, and separately for
            all candidate places, before giving up on them
    """

    def __init__(self, resolver: GeoResolver, executor: ThreadPoolExecutor, geocode_timeout: float = 5.0):
        self.resolver = resolver
        self.executor = executor
        self.geocode_timeout = geocode_timeout

    def rank(
        self,
        candidates: Sequence[Candidate],
        origin: LocationRef,
        page: int,
        page_size: int,
        exact_location_only: bool = False,
    ) -> RankedPage:
        if page < 1 or page_size < 1:
            raise ValidationError(
                "Invalid pagination",
                field_errors={"page": ["must be >= 1"], "page_size": ["must be >= 1"]},
            )
        params = PaginationParams.model_construct(page=page, page_size=page_size)

        resolution = self._resolve_origin(origin)
        if not resolution.resolved:
            if exact_location_only:
                logger.info("Exact-location search with unresolved origin returns nothing")
                return RankedPage.empty(page, page_size)

            logger.info(
                "Origin unresolved, falling back to catalog order",
                extra={"candidates": len(candidates)},
            )
            ordered = [SearchCandidate(c) for c in native_order(candidates)]
            return RankedPage(
                items=slice_page(ordered, params),
                page=page,
                page_size=page_size,
                total_count=len(ordered),
                ranked_by_distance=False,
            )

        points = self._locate(candidates)
        ranked = []
        for candidate in candidates:
            located = [
                (location, points[location])
                for location in candidate.locations
                if points.get(location) is not None
            ]
            d, location = closest(resolution.point, located)
            ranked.append(SearchCandidate(candidate, d, location))
        ranked.sort(key=_ranking_key)

        return RankedPage(
            items=slice_page(ranked, params),
            page=page,
            page_size=page_size,
            total_count=len(ranked),
            ranked_by_distance=True,
        )

    def _resolve_origin(self, origin: LocationRef) -> GeoResolution:
        if origin.is_empty:
            return GeoResolution.unresolved()
        if origin.coordinates is not None:
            return self.resolver.resolve(origin)

        future = self.executor.submit(self.resolver.resolve, origin)
        try:
            return future.result(timeout=self.geocode_timeout)
        except TimeoutError:
            logger.warning(
                "Origin resolution timed out",
                extra={"timeout_seconds": self.geocode_timeout, "location_id": origin.location_id},
            )
            return GeoResolution.unresolved(origin.location_id)

    def _locate(self, candidates: Sequence[Candidate]) -> Dict[CandidateLocation, Optional[GeoPoint]]:
        """Coordinates for every candidate place, geocoding where needed."""
        points: Dict[CandidateLocation, Optional[GeoPoint]] = {}
        pending: Dict[str, List[CandidateLocation]] = {}

        for candidate in candidates:
            for location in candidate.locations:
                if location.point is not None:
                    points[location] = location.point
                elif location.geocode_text:
                    pending.setdefault(location.geocode_text, []).append(location)
                else:
                    points[location] = None

        if not pending:
            return points

        futures: Dict[Future, str] = {
            self.executor.submit(self.resolver.geocode_text, text): text for text in pending
        }
        done, not_done = wait(futures, timeout=self.geocode_timeout)
        if not_done:
            logger.warning(
                "Candidate geocoding timed out",
                extra={"unresolved": len(not_done), "timeout_seconds": self.geocode_timeout},
            )

        for future, text in futures.items():
            point = None
            if future in done:
                error = future.exception()
                if error is None:
                    point = future.result().point
                else:
                    logger.error(f"Candidate geocoding failed: {error}", extra={"text": text})
            for location in pending[text]:
                points[location] = point
        return points
