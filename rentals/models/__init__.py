"""
ORM models.
"""

from rentals.models.booking import Booking
from rentals.models.location import Location
from rentals.models.review import Review
from rentals.models.user import Admin, Supplier, User
from rentals.models.vehicle import DateBasedPrice, Vehicle, vehicle_locations

__all__ = [
    "Admin",
    "Booking",
    "DateBasedPrice",
    "Location",
    "Review",
    "Supplier",
    "User",
    "Vehicle",
    "vehicle_locations",
]
