"""
Pickup location model.
"""

from typing import Dict, Optional

from sqlalchemy import JSON, Column, Float, String
from sqlalchemy.orm import validates

from rentals.models.base import BaseModel, TimestampMixin

__all__ = ["Location"]


class Location(BaseModel, TimestampMixin):
    """
    A named pickup point.

    Coordinates are optional; a location without them is still usable for
    facet filtering but never takes part in distance ranking.
    """

    __tablename__ = "locations"

    names = Column(JSON, nullable=False, default=dict, comment="Display name per language code")
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    external_map_id = Column(
        String(255),
        nullable=True,
        unique=True,
        index=True,
        comment="Identifier of this place at the map provider"
    )

    @validates("latitude")
    def validate_latitude(self, key: str, value: Optional[float]) -> Optional[float]:
        if value is not None and not -90 <= value <= 90:
            raise ValueError(f"Invalid latitude: {value}")
        return value

    @validates("longitude")
    def validate_longitude(self, key: str, value: Optional[float]) -> Optional[float]:
        if value is not None and not -180 <= value <= 180:
            raise ValueError(f"Invalid longitude: {value}")
        return value

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def display_name(self, language: str = "en") -> Optional[str]:
        """Name in the given language, falling back to any available name."""
        names: Dict[str, str] = self.names or {}
        if language in names:
            return names[language]
        return next(iter(names.values()), None)
