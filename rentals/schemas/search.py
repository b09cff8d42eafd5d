"""
Search request and response schemas.

Set-valued filters distinguish two cases: ``None`` means the filter is not
applied, while an empty set means it is applied and accepts nothing.
"""

from __future__ import annotations

from typing import Any, FrozenSet, Generic, List, Optional, TypeVar

from pydantic import ConfigDict, Field, model_validator

from rentals.core.constants import DEFAULT_PAGE_SIZE, DEFAULT_SEARCH_RADIUS_KM, MAX_PAGE_SIZE
from rentals.models.base.enums import (
    Availability,
    FuelPolicy,
    GearboxType,
    MileagePolicy,
    MultimediaTag,
    RangeClass,
    VehicleType,
)
from rentals.schemas.catalog import LocationSummary, SupplierSummary, VehicleSummary
from rentals.schemas.common.base import BaseSchema
from rentals.utils.geo_utils import GeoPoint

T = TypeVar("T")

__all__ = [
    "Coordinates",
    "LocationRef",
    "SearchCriteria",
    "VehicleSearchRequest",
    "SupplierSearchRequest",
    "VehicleSearchItem",
    "SupplierSearchItem",
    "SearchResponse",
]


class Coordinates(BaseSchema):
    model_config = ConfigDict(frozen=True, extra="forbid")

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)

    def to_point(self) -> GeoPoint:
        return GeoPoint(self.latitude, self.longitude)


class LocationRef(BaseSchema):
    """
    Reference to a place.

    Raw coordinates win over a stored location id, which wins over a
    free-text name. A reference with none of them never resolves.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    coordinates: Optional[Coordinates] = None
    location_id: Optional[str] = None
    name: Optional[str] = Field(default=None, max_length=500)
    language: Optional[str] = Field(default=None, max_length=10)

    @property
    def is_empty(self) -> bool:
        return self.coordinates is None and not self.location_id and not self.name


class SearchCriteria(BaseSchema):
    """Facet filters composed conjunctively over the vehicle catalog."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    # An empty supplier set matches every supplier.
    supplier_ids: Optional[FrozenSet[str]] = None

    vehicle_types: Optional[FrozenSet[VehicleType]] = None
    gearboxes: Optional[FrozenSet[GearboxType]] = None
    mileage: Optional[FrozenSet[MileagePolicy]] = None
    fuel_policies: Optional[FrozenSet[FuelPolicy]] = None
    range_classes: Optional[FrozenSet[RangeClass]] = None
    amenity_tags: Optional[FrozenSet[MultimediaTag]] = None
    availability: Optional[FrozenSet[Availability]] = None

    deposit_ceiling: Optional[float] = Field(default=None, ge=0)
    rating_floor: Optional[float] = Field(default=None, ge=0, le=5)
    seats_exact: Optional[int] = Field(
        default=None,
        ge=1,
        description="Exact seat count; 6 means more than five",
    )
    aircon: bool = False
    doors_more_than_4: bool = False
    seats_more_than_5: bool = False

    include_fully_booked: bool = False
    include_coming_soon: bool = False

    exact_location_only: bool = False
    location_id: Optional[str] = Field(
        default=None,
        description="Requested pickup location, required by exact_location_only",
    )
    min_rental_days: Optional[int] = Field(default=None, ge=1)
    keyword: Optional[str] = Field(default=None, max_length=200)

    def empty_set_filters(self) -> List[str]:
        """Names of set filters that are present but accept no value."""
        names = (
            "vehicle_types",
            "gearboxes",
            "mileage",
            "fuel_policies",
            "range_classes",
            "amenity_tags",
            "availability",
        )
        return [name for name in names if getattr(self, name) is not None and not getattr(self, name)]

    @property
    def lacks_exact_location(self) -> bool:
        """Exact-location search with no location to match against."""
        return self.exact_location_only and not self.location_id

    @property
    def is_unsatisfiable(self) -> bool:
        return bool(self.empty_set_filters()) or self.lacks_exact_location


class _SearchRequest(BaseSchema):
    """Request bodies use snake_case keys; unknown keys are rejected."""

    model_config = ConfigDict(extra="forbid")

    pickup: LocationRef = Field(default_factory=LocationRef)
    filters: SearchCriteria = Field(default_factory=SearchCriteria)
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)
    search_radius_km: Optional[float] = Field(
        default=DEFAULT_SEARCH_RADIUS_KM,
        gt=0,
        description="Accepted and echoed; candidates beyond it are still returned",
    )


class VehicleSearchRequest(_SearchRequest):
    """Renter vehicle search; only available vehicles unless stated otherwise."""

    @model_validator(mode="before")
    @classmethod
    def default_to_available(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        available = [Availability.AVAILABLE]
        filters = data.get("filters")
        if filters is None:
            return {**data, "filters": {"availability": available}}
        if isinstance(filters, dict) and "availability" not in filters:
            return {**data, "filters": {**filters, "availability": available}}
        if isinstance(filters, SearchCriteria) and "availability" not in filters.model_fields_set:
            return {**data, "filters": filters.model_copy(update={"availability": frozenset(available)})}
        return data


class SupplierSearchRequest(_SearchRequest):
    pass


class VehicleSearchItem(VehicleSummary):
    distance_km: Optional[float] = None
    closest_location: Optional[LocationSummary] = None


class SupplierSearchItem(SupplierSummary):
    distance_km: Optional[float] = None
    closest_location: Optional[LocationSummary] = None


class SearchResponse(BaseSchema, Generic[T]):
    items: List[T]
    page: int
    page_size: int
    total_count: int
    ranked_by_distance: bool
    search_radius_km: Optional[float] = None
