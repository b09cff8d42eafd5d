"""
User models.

Renters, suppliers and administrators share the ``users`` table; the
supplier subclass adds its address and reputation columns.
"""

from sqlalchemy import Column, Enum, Float, Integer, String, Text
from sqlalchemy.orm import relationship

from rentals.models.base import BaseModel, TimestampMixin
from rentals.models.base.enums import UserType

__all__ = ["User", "Admin", "Supplier"]


class User(BaseModel, TimestampMixin):
    __tablename__ = "users"

    full_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True, unique=True)
    user_type = Column(Enum(UserType), nullable=False, default=UserType.RENTER, index=True)

    __mapper_args__ = {
        "polymorphic_on": user_type,
        "polymorphic_identity": UserType.RENTER,
    }


class Admin(User):
    __mapper_args__ = {"polymorphic_identity": UserType.ADMIN}


class Supplier(User):
    """
    A vehicle supplier.

    ``external_*`` columns hold the last snapshot pushed by the reputation
    provider; ``platform_*`` columns are derived from approved reviews; and
    ``rating``/``review_count`` are the blended values shown to clients.
    Only the rating aggregator writes the derived columns.
    """

    address = Column(Text, nullable=True)
    minimum_rental_days = Column(Integer, nullable=True)

    external_rating = Column(Float, nullable=True)
    external_review_count = Column(Integer, nullable=True)
    external_source_url = Column(String(1024), nullable=True)

    platform_rating = Column(Float, nullable=True)
    platform_review_count = Column(Integer, nullable=True)

    rating = Column(Float, nullable=True)
    review_count = Column(Integer, nullable=True)
    rating_version = Column(Integer, nullable=True, default=0)

    vehicles = relationship("Vehicle", back_populates="supplier")

    __mapper_args__ = {"polymorphic_identity": UserType.SUPPLIER}
