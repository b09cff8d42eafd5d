"""
Read models for catalog entities.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from rentals.models.base.enums import FuelPolicy, GearboxType, RangeClass, VehicleType
from rentals.schemas.common.base import BaseSchema

__all__ = ["LocationSummary", "SupplierRating", "SupplierSummary", "VehicleSummary"]


class LocationSummary(BaseSchema):
    id: Optional[str] = None
    name: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class SupplierRating(BaseSchema):
    """Blended supplier rating as exposed to clients; read-only."""

    rating: Optional[float] = None
    count: int = 0
    source_url: Optional[str] = None


class SupplierSummary(BaseSchema):
    id: str
    full_name: str
    address: Optional[str] = None
    minimum_rental_days: Optional[int] = None
    rating: SupplierRating = Field(default_factory=SupplierRating)

    @classmethod
    def from_model(cls, supplier, **extra) -> "SupplierSummary":
        return cls(
            id=supplier.id,
            full_name=supplier.full_name,
            address=supplier.address,
            minimum_rental_days=supplier.minimum_rental_days,
            rating=SupplierRating(
                rating=supplier.rating,
                count=supplier.review_count or 0,
                source_url=supplier.external_source_url,
            ),
            **extra,
        )


class VehicleSummary(BaseSchema):
    id: str
    name: str
    image: str
    supplier_id: str
    vehicle_type: VehicleType
    gearbox: GearboxType
    fuel_policy: FuelPolicy
    range_class: RangeClass
    multimedia: List[str] = Field(default_factory=list)
    mileage: int
    deposit: float
    daily_price: float
    seats: int
    doors: int
    aircon: bool
    available: bool
    fully_booked: Optional[bool] = None
    coming_soon: Optional[bool] = None
    rating: Optional[float] = None
    updated_at: datetime
    locations: List[LocationSummary] = Field(default_factory=list)

    @classmethod
    def from_model(cls, vehicle, language: str = "en", **extra) -> "VehicleSummary":
        data = {
            name: getattr(vehicle, name)
            for name in cls.model_fields
            if name not in ("locations", "distance_km", "closest_location") and hasattr(vehicle, name)
        }
        data["locations"] = [
            LocationSummary(
                id=location.id,
                name=location.display_name(language),
                latitude=location.latitude,
                longitude=location.longitude,
            )
            for location in vehicle.locations
        ]
        data.update(extra)
        return cls(**data)
