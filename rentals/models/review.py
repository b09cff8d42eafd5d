"""
Review model.
"""

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import validates

from rentals.core.constants import MAX_REVIEW_RATING, MIN_REVIEW_RATING
from rentals.models.base import BaseModel, TimestampMixin
from rentals.models.base.enums import ReviewStatus

__all__ = ["Review"]


class Review(BaseModel, TimestampMixin):
    """
    A renter's review of one booking.

    At most one review exists per booking. The supplier reply lives on the
    same row and never influences status or rating.
    """

    __tablename__ = "reviews"

    reviewer_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    booking_id = Column(String(36), ForeignKey("bookings.id"), nullable=False, unique=True)
    vehicle_id = Column(String(36), ForeignKey("vehicles.id"), nullable=False)
    supplier_id = Column(String(36), ForeignKey("users.id"), nullable=False)

    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    status = Column(Enum(ReviewStatus), nullable=False, default=ReviewStatus.PENDING)

    reply_comment = Column(Text, nullable=True)
    replied_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint(
            f"rating >= {MIN_REVIEW_RATING} AND rating <= {MAX_REVIEW_RATING}",
            name="ck_review_rating_range",
        ),
        Index("ix_reviews_vehicle_status", "vehicle_id", "status"),
        Index("ix_reviews_supplier_status", "supplier_id", "status"),
    )

    @validates("rating")
    def validate_rating(self, key: str, value: int) -> int:
        if value is None or not MIN_REVIEW_RATING <= value <= MAX_REVIEW_RATING:
            raise ValueError(f"Rating must be between {MIN_REVIEW_RATING} and {MAX_REVIEW_RATING}")
        return value

    @property
    def has_reply(self) -> bool:
        return self.reply_comment is not None
