"""
Vehicle catalog models.
"""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Table,
)
from sqlalchemy.orm import relationship

from rentals.core.constants import UNLIMITED_MILEAGE
from rentals.db.base import Base
from rentals.models.base import BaseModel, TimestampMixin
from rentals.models.base.enums import FuelPolicy, GearboxType, RangeClass, VehicleType

__all__ = ["Vehicle", "DateBasedPrice", "vehicle_locations"]


vehicle_locations = Table(
    "vehicle_locations",
    Base.metadata,
    Column("vehicle_id", String(36), ForeignKey("vehicles.id", ondelete="CASCADE"), primary_key=True),
    Column("location_id", String(36), ForeignKey("locations.id", ondelete="CASCADE"), primary_key=True),
)


class Vehicle(BaseModel, TimestampMixin):
    """
    A rentable vehicle offered by one supplier from one or more locations.

    ``rating`` is the average of approved review ratings, or None when
    there are none. ``mileage`` of -1 means unlimited mileage.
    """

    __tablename__ = "vehicles"

    supplier_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False, index=True)
    image = Column(String(1024), nullable=False)

    vehicle_type = Column(Enum(VehicleType), nullable=False, index=True)
    gearbox = Column(Enum(GearboxType), nullable=False, index=True)
    fuel_policy = Column(Enum(FuelPolicy), nullable=False)
    range_class = Column(Enum(RangeClass), nullable=False)
    multimedia = Column(JSON, nullable=False, default=list)

    mileage = Column(Integer, nullable=False, default=UNLIMITED_MILEAGE)
    deposit = Column(Float, nullable=False, default=0)
    daily_price = Column(Float, nullable=False)
    seats = Column(Integer, nullable=False)
    doors = Column(Integer, nullable=False)
    aircon = Column(Boolean, nullable=False, default=False)

    available = Column(Boolean, nullable=False, default=True, index=True)
    fully_booked = Column(Boolean, nullable=True)
    coming_soon = Column(Boolean, nullable=True)

    rating = Column(Float, nullable=True)
    rating_version = Column(Integer, nullable=False, default=0)

    supplier = relationship("Supplier", back_populates="vehicles")
    locations = relationship("Location", secondary=vehicle_locations, lazy="selectin")
    date_based_prices = relationship(
        "DateBasedPrice",
        back_populates="vehicle",
        cascade="all, delete-orphan",
    )


class DateBasedPrice(BaseModel):
    """Daily price override for a date range"""

    __tablename__ = "date_based_prices"

    vehicle_id = Column(String(36), ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    daily_price = Column(Float, nullable=False)

    vehicle = relationship("Vehicle", back_populates="date_based_prices")
