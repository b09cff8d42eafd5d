"""
Review lifecycle.

Status moves only along these edges:

    pending            --approve--> approved
    pending, approved  --reject-->  rejected
    any                --author edit--> pending

Every create, edit, moderation and delete is followed by a rating
recomputation for the review's vehicle and supplier. The review write is
committed first; a failed recomputation is reported in the response but
does not undo it.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, FrozenSet, Optional

from rentals.core.exceptions import (
    AuthorizationError,
    BookingNotFoundError,
    DuplicateReviewError,
    EntityAlreadyExistsError,
    InvalidStateTransitionError,
    ReviewNotFoundError,
    ValidationError,
)
from rentals.core.pagination import normalize_pagination, paginate_items
from rentals.models.base.enums import ReviewStatus
from rentals.models.review import Review
from rentals.repositories.booking_repository import BookingRepository
from rentals.repositories.review_repository import ReviewRepository
from rentals.schemas.common.pagination import PaginatedResponse
from rentals.schemas.review import (
    RatingRefresh,
    ReviewCreate,
    ReviewExistence,
    ReviewMutationResponse,
    ReviewReplyCreate,
    ReviewResponse,
    ReviewUpdate,
)
from rentals.services.base.base_service import BaseService
from rentals.services.common.actor import Actor
from rentals.services.common.unit_of_work import SessionFactory
from rentals.services.review.rating_aggregator import RatingAggregator


class ReviewTarget(str, Enum):
    VEHICLE = "vehicle"
    SUPPLIER = "supplier"
    REVIEWER = "reviewer"


# moderation target -> statuses it may be reached from
MODERATION_TRANSITIONS: Dict[ReviewStatus, FrozenSet[ReviewStatus]] = {
    ReviewStatus.APPROVED: frozenset({ReviewStatus.PENDING}),
    ReviewStatus.REJECTED: frozenset({ReviewStatus.PENDING, ReviewStatus.APPROVED}),
}


class ReviewService(BaseService):

    def __init__(self, session_factory: SessionFactory, aggregator: RatingAggregator):
        super().__init__(session_factory)
        self.aggregator = aggregator

    # ------------------------------------------------------------------ #
    # Mutations
    # ------------------------------------------------------------------ #
    def create_review(self, actor: Actor, data: ReviewCreate) -> ReviewMutationResponse:
        with self.unit_of_work() as uow:
            booking = uow.get_repo(BookingRepository).get_by_id(data.booking_id)
            if booking is None:
                raise BookingNotFoundError(data.booking_id)
            if not actor.is_user(booking.renter_id):
                raise AuthorizationError("Only the renter of a booking can review it")
            if booking.vehicle_id != data.vehicle_id or booking.supplier_id != data.supplier_id:
                raise ValidationError(
                    "Vehicle and supplier must match the booking",
                    field_errors={"booking_id": ["does not match vehicle_id/supplier_id"]},
                )

            reviews = uow.get_repo(ReviewRepository)
            if reviews.find_by_booking(data.booking_id) is not None:
                raise DuplicateReviewError(data.booking_id)

            try:
                review = reviews.create(
                    Review(
                        reviewer_id=actor.user_id,
                        booking_id=data.booking_id,
                        vehicle_id=data.vehicle_id,
                        supplier_id=data.supplier_id,
                        rating=data.rating,
                        comment=data.comment,
                        status=ReviewStatus.PENDING,
                    )
                )
            except EntityAlreadyExistsError as e:
                raise DuplicateReviewError(data.booking_id) from e
            response = ReviewResponse.from_model(review)

        self._logger.info("Review created", extra={"review_id": response.id, "booking_id": data.booking_id})
        return self._with_ratings(response)

    def update_review(self, actor: Actor, review_id: str, data: ReviewUpdate) -> ReviewMutationResponse:
        """Author edit; always sends the review back to moderation."""
        with self.unit_of_work() as uow:
            review = self._get_or_raise(uow.get_repo(ReviewRepository), review_id)
            if not (actor.is_admin or actor.is_user(review.reviewer_id)):
                raise AuthorizationError("Only the author can edit a review")

            previous = review.status
            review.rating = data.rating
            review.comment = data.comment
            review.status = ReviewStatus.PENDING
            uow.session.flush()
            response = ReviewResponse.from_model(review)

        self._log_transition(review_id, previous, ReviewStatus.PENDING, "edit")
        return self._with_ratings(response)

    def moderate_review(self, actor: Actor, review_id: str, status: ReviewStatus) -> ReviewMutationResponse:
        if not actor.is_admin:
            raise AuthorizationError("Only moderators can change review status", required_permission="admin")

        with self.unit_of_work() as uow:
            review = self._get_or_raise(uow.get_repo(ReviewRepository), review_id)
            previous = review.status
            if previous not in MODERATION_TRANSITIONS.get(status, frozenset()):
                raise InvalidStateTransitionError(previous.value, status.value)

            review.status = status
            uow.session.flush()
            response = ReviewResponse.from_model(review)

        self._log_transition(review_id, previous, status, "moderation")
        return self._with_ratings(response)

    def delete_review(self, actor: Actor, review_id: str) -> ReviewMutationResponse:
        with self.unit_of_work() as uow:
            reviews = uow.get_repo(ReviewRepository)
            review = self._get_or_raise(reviews, review_id)
            if not (actor.is_admin or actor.is_user(review.reviewer_id)):
                raise AuthorizationError("Only the author or a moderator can delete a review")

            response = ReviewResponse.from_model(review)
            reviews.delete(review)

        self._logger.info("Review deleted", extra={"review_id": review_id})
        return self._with_ratings(response)

    def reply_to_review(self, actor: Actor, review_id: str, data: ReviewReplyCreate) -> ReviewResponse:
        """Attach the supplier's reply; status and ratings are untouched."""
        with self.unit_of_work() as uow:
            review = self._get_or_raise(uow.get_repo(ReviewRepository), review_id)
            if not (actor.is_admin or actor.is_user(review.supplier_id)):
                raise AuthorizationError("Only the reviewed supplier can reply")

            review.reply_comment = data.comment
            review.replied_at = datetime.now(timezone.utc)
            uow.session.flush()
            response = ReviewResponse.from_model(review)

        self._logger.info("Review reply saved", extra={"review_id": review_id})
        return response

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #
    def get_review(self, review_id: str) -> ReviewResponse:
        with self.unit_of_work() as uow:
            return ReviewResponse.from_model(self._get_or_raise(uow.get_repo(ReviewRepository), review_id))

    def has_review(self, booking_id: str) -> ReviewExistence:
        with self.unit_of_work() as uow:
            review = uow.get_repo(ReviewRepository).find_by_booking(booking_id)
            if review is None:
                return ReviewExistence(exists=False)
            return ReviewExistence(exists=True, review=ReviewResponse.from_model(review))

    def get_reviews_for(
        self,
        target: ReviewTarget,
        target_id: str,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
        actor: Optional[Actor] = None,
    ) -> PaginatedResponse[ReviewResponse]:
        """
        Reviews of a vehicle or supplier (approved only), or written by a
        reviewer (every status; visible to that reviewer and moderators).
        """
        if target == ReviewTarget.VEHICLE:
            conditions = (Review.vehicle_id == target_id, Review.status == ReviewStatus.APPROVED)
        elif target == ReviewTarget.SUPPLIER:
            conditions = (Review.supplier_id == target_id, Review.status == ReviewStatus.APPROVED)
        else:
            if actor is None or not (actor.is_admin or actor.is_user(target_id)):
                raise AuthorizationError("Reviewers can only list their own reviews")
            conditions = (Review.reviewer_id == target_id,)

        return self._page(conditions, page, page_size)

    def list_reviews(
        self,
        actor: Actor,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
        status: Optional[ReviewStatus] = None,
    ) -> PaginatedResponse[ReviewResponse]:
        """Moderation listing across all reviews."""
        if not actor.is_admin:
            raise AuthorizationError("Only moderators can list all reviews", required_permission="admin")
        conditions = (Review.status == status,) if status is not None else ()
        return self._page(conditions, page, page_size)

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #
    def _page(self, conditions, page, page_size) -> PaginatedResponse[ReviewResponse]:
        params = normalize_pagination(page, page_size)
        with self.unit_of_work() as uow:
            items, total = uow.get_repo(ReviewRepository).list_page(
                *conditions, offset=params.offset, limit=params.limit
            )
            return paginate_items(
                items=items,
                total_items=total,
                params=params,
                mapper=ReviewResponse.from_model,
            )

    @staticmethod
    def _get_or_raise(reviews: ReviewRepository, review_id: str) -> Review:
        review = reviews.get_by_id(review_id)
        if review is None:
            raise ReviewNotFoundError(review_id)
        return review

    def _with_ratings(self, review: ReviewResponse) -> ReviewMutationResponse:
        outcome = self.aggregator.recompute_for_review(review.vehicle_id, review.supplier_id)
        ratings = RatingRefresh(succeeded=outcome.succeeded)
        if outcome.vehicle.is_success:
            ratings.vehicle_rating = outcome.vehicle.data
        else:
            ratings.vehicle_error = outcome.vehicle.error.message
        if outcome.supplier.is_success:
            ratings.supplier_rating = outcome.supplier.data.rating
            ratings.supplier_review_count = outcome.supplier.data.count
        else:
            ratings.supplier_error = outcome.supplier.error.message
        return ReviewMutationResponse(review=review, ratings=ratings)

    def _log_transition(self, review_id: str, previous: ReviewStatus, current: ReviewStatus, cause: str) -> None:
        self._logger.info(
            "Review status changed",
            extra={
                "review_id": review_id,
                "from_status": previous.value,
                "to_status": current.value,
                "cause": cause,
            },
        )
