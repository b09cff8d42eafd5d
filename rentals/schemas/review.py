"""
Review request and response schemas.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from rentals.core.constants import MAX_REVIEW_RATING, MIN_REVIEW_RATING
from rentals.models.base.enums import ReviewStatus
from rentals.schemas.common.base import BaseDBSchema, BaseSchema

__all__ = [
    "ReviewCreate",
    "ReviewUpdate",
    "ReviewStatusUpdate",
    "ReviewReplyCreate",
    "ReviewReply",
    "ReviewResponse",
    "ReviewExistence",
    "RatingRefresh",
    "ReviewMutationResponse",
]


class _ReviewContent(BaseSchema):
    rating: int = Field(..., ge=MIN_REVIEW_RATING, le=MAX_REVIEW_RATING)
    comment: Optional[str] = Field(default=None, max_length=5000)

    @field_validator("comment")
    @classmethod
    def blank_comment_to_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None


class ReviewCreate(_ReviewContent):
    booking_id: str = Field(..., min_length=1, max_length=36)
    vehicle_id: str = Field(..., min_length=1, max_length=36)
    supplier_id: str = Field(..., min_length=1, max_length=36)


class ReviewUpdate(_ReviewContent):
    pass


class ReviewStatusUpdate(BaseSchema):
    status: ReviewStatus

    @field_validator("status")
    @classmethod
    def moderation_target(cls, v: ReviewStatus) -> ReviewStatus:
        if v == ReviewStatus.PENDING:
            raise ValueError("Reviews return to pending only through an author edit")
        return v


class ReviewReplyCreate(BaseSchema):
    comment: str = Field(..., min_length=1, max_length=5000)


class ReviewReply(BaseSchema):
    comment: str
    date: datetime


class ReviewResponse(BaseDBSchema):
    reviewer_id: str
    booking_id: str
    vehicle_id: str
    supplier_id: str
    rating: int
    comment: Optional[str] = None
    status: ReviewStatus
    reply: Optional[ReviewReply] = None

    @classmethod
    def from_model(cls, review) -> "ReviewResponse":
        reply = None
        if review.has_reply:
            reply = ReviewReply(comment=review.reply_comment, date=review.replied_at)
        return cls(
            id=review.id,
            created_at=review.created_at,
            updated_at=review.updated_at,
            reviewer_id=review.reviewer_id,
            booking_id=review.booking_id,
            vehicle_id=review.vehicle_id,
            supplier_id=review.supplier_id,
            rating=review.rating,
            comment=review.comment,
            status=review.status,
            reply=reply,
        )


class ReviewExistence(BaseSchema):
    exists: bool
    review: Optional[ReviewResponse] = None


class RatingRefresh(BaseSchema):
    """Outcome of the rating recomputation that follows a review write."""

    succeeded: bool
    vehicle_rating: Optional[float] = None
    supplier_rating: Optional[float] = None
    supplier_review_count: Optional[int] = None
    vehicle_error: Optional[str] = None
    supplier_error: Optional[str] = None


class ReviewMutationResponse(BaseSchema):
    review: Optional[ReviewResponse] = None
    ratings: RatingRefresh
