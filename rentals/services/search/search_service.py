"""
Vehicle and supplier search.

Narrows the catalog with CatalogFilter, then orders and paginates the
result with ProximityRanker.
"""

from typing import Optional

from rentals.config.logging import get_logger
from rentals.schemas.catalog import LocationSummary
from rentals.schemas.search import (
    SearchCriteria,
    SearchResponse,
    SupplierSearchItem,
    SupplierSearchRequest,
    VehicleSearchItem,
    VehicleSearchRequest,
)
from rentals.services.search.candidates import CandidateLocation, RankedPage
from rentals.services.search.catalog_filter import CatalogFilter
from rentals.services.search.proximity_ranker import ProximityRanker

logger = get_logger(__name__)


def _location_summary(location: Optional[CandidateLocation]) -> Optional[LocationSummary]:
    if location is None:
        return None
    return LocationSummary(
        id=location.location_id,
        name=location.name,
        latitude=location.point.latitude if location.point else None,
        longitude=location.point.longitude if location.point else None,
    )


class SearchService:

    def __init__(self, catalog_filter: CatalogFilter, ranker: ProximityRanker):
        self.catalog_filter = catalog_filter
        self.ranker = ranker

    @staticmethod
    def _criteria(request) -> SearchCriteria:
        criteria = request.filters
        if criteria.location_id is None and request.pickup.location_id:
            criteria = criteria.model_copy(update={"location_id": request.pickup.location_id})
        return criteria

    def search_vehicles(self, request: VehicleSearchRequest) -> SearchResponse[VehicleSearchItem]:
        criteria = self._criteria(request)
        candidates = self.catalog_filter.filter(criteria)
        ranked = self.ranker.rank(
            candidates,
            request.pickup,
            request.page,
            request.page_size,
            exact_location_only=criteria.exact_location_only,
        )
        items = [
            VehicleSearchItem(
                **item.candidate.entity.model_dump(),
                distance_km=item.distance_km,
                closest_location=_location_summary(item.closest_location),
            )
            for item in ranked.items
        ]
        return self._response(items, ranked, request.search_radius_km)

    def search_suppliers(self, request: SupplierSearchRequest) -> SearchResponse[SupplierSearchItem]:
        criteria = self._criteria(request)
        candidates = self.catalog_filter.filter_suppliers(criteria)
        ranked = self.ranker.rank(
            candidates,
            request.pickup,
            request.page,
            request.page_size,
            exact_location_only=criteria.exact_location_only,
        )
        items = [
            SupplierSearchItem(
                **item.candidate.entity.model_dump(),
                distance_km=item.distance_km,
                closest_location=_location_summary(item.closest_location),
            )
            for item in ranked.items
        ]
        return self._response(items, ranked, request.search_radius_km)

    @staticmethod
    def _response(items, ranked: RankedPage, search_radius_km: Optional[float]) -> SearchResponse:
        logger.info(
            "Search completed",
            extra={
                "total_count": ranked.total_count,
                "page": ranked.page,
                "ranked_by_distance": ranked.ranked_by_distance,
            },
        )
        return SearchResponse(
            items=items,
            page=ranked.page,
            page_size=ranked.page_size,
            total_count=ranked.total_count,
            ranked_by_distance=ranked.ranked_by_distance,
            search_radius_km=search_radius_km,
        )
