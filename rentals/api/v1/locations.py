"""
Location lookup endpoints.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from rentals.api.deps import get_geo_resolver
from rentals.core.exceptions import LocationNotFoundError
from rentals.services.geo.geo_resolver import GeoResolver
from rentals.utils.geo_utils import GeoPoint

router = APIRouter(prefix="/locations")


@router.get("/reverse")
def reverse_geocode(
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
    language: Optional[str] = Query(default=None, max_length=10),
    resolver: GeoResolver = Depends(get_geo_resolver),
):
    """Address at a coordinate pair."""
    address = resolver.reverse(GeoPoint(lat, lon), language)
    if address is None:
        raise LocationNotFoundError(f"{lat},{lon}")
    return address
