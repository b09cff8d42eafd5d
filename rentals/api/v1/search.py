"""
Proximity search endpoints.
"""

from fastapi import APIRouter, Depends

from rentals.api.deps import get_search_service
from rentals.schemas.search import (
    SearchResponse,
    SupplierSearchItem,
    SupplierSearchRequest,
    VehicleSearchItem,
    VehicleSearchRequest,
)
from rentals.services.search.search_service import SearchService

router = APIRouter(prefix="/search")


@router.post("/vehicles", response_model=SearchResponse[VehicleSearchItem])
def search_vehicles(
    request: VehicleSearchRequest,
    service: SearchService = Depends(get_search_service),
):
    """
    Vehicles matching the filters, nearest to the pickup first.

    Without a resolvable pickup the catalog order is returned and
    ``ranked_by_distance`` is false.
    """
    return service.search_vehicles(request)


@router.post("/suppliers", response_model=SearchResponse[SupplierSearchItem])
def search_suppliers(
    request: SupplierSearchRequest,
    service: SearchService = Depends(get_search_service),
):
    """Suppliers with a matching vehicle, nearest address first."""
    return service.search_suppliers(request)
