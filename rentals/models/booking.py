"""
Booking reference model.

Bookings are owned by the booking system; only the columns needed to
check review eligibility are mapped here.
"""

from sqlalchemy import Column, Date, ForeignKey, String

from rentals.models.base import BaseModel, TimestampMixin

__all__ = ["Booking"]


class Booking(BaseModel, TimestampMixin):
    __tablename__ = "bookings"

    renter_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    vehicle_id = Column(String(36), ForeignKey("vehicles.id"), nullable=False, index=True)
    supplier_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
