"""
Review endpoints.

Mutations respond with the review and the outcome of the rating refresh
that followed it.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from rentals.api.deps import get_actor, get_optional_actor, get_review_service
from rentals.models.base.enums import ReviewStatus
from rentals.schemas.common.pagination import PaginatedResponse
from rentals.schemas.review import (
    ReviewCreate,
    ReviewExistence,
    ReviewMutationResponse,
    ReviewReplyCreate,
    ReviewResponse,
    ReviewStatusUpdate,
    ReviewUpdate,
)
from rentals.services.common.actor import Actor
from rentals.services.review.review_service import ReviewService, ReviewTarget

router = APIRouter(prefix="/reviews")


@router.post("", response_model=ReviewMutationResponse, status_code=status.HTTP_201_CREATED)
def create_review(
    data: ReviewCreate,
    actor: Actor = Depends(get_actor),
    service: ReviewService = Depends(get_review_service),
):
    return service.create_review(actor, data)


@router.get("", response_model=PaginatedResponse[ReviewResponse])
def list_reviews(
    status_filter: Optional[ReviewStatus] = Query(default=None, alias="status"),
    page: Optional[int] = Query(default=None, ge=1),
    page_size: Optional[int] = Query(default=None, ge=1),
    actor: Actor = Depends(get_actor),
    service: ReviewService = Depends(get_review_service),
):
    """Moderation queue; admins only."""
    return service.list_reviews(actor, page=page, page_size=page_size, status=status_filter)


@router.get("/vehicle/{vehicle_id}", response_model=PaginatedResponse[ReviewResponse])
def vehicle_reviews(
    vehicle_id: str,
    page: Optional[int] = Query(default=None, ge=1),
    page_size: Optional[int] = Query(default=None, ge=1),
    service: ReviewService = Depends(get_review_service),
):
    return service.get_reviews_for(ReviewTarget.VEHICLE, vehicle_id, page, page_size)


@router.get("/supplier/{supplier_id}", response_model=PaginatedResponse[ReviewResponse])
def supplier_reviews(
    supplier_id: str,
    page: Optional[int] = Query(default=None, ge=1),
    page_size: Optional[int] = Query(default=None, ge=1),
    service: ReviewService = Depends(get_review_service),
):
    return service.get_reviews_for(ReviewTarget.SUPPLIER, supplier_id, page, page_size)


@router.get("/user/{user_id}", response_model=PaginatedResponse[ReviewResponse])
def user_reviews(
    user_id: str,
    page: Optional[int] = Query(default=None, ge=1),
    page_size: Optional[int] = Query(default=None, ge=1),
    actor: Optional[Actor] = Depends(get_optional_actor),
    service: ReviewService = Depends(get_review_service),
):
    return service.get_reviews_for(ReviewTarget.REVIEWER, user_id, page, page_size, actor=actor)


@router.get("/booking/{booking_id}/exists", response_model=ReviewExistence)
def booking_has_review(booking_id: str, service: ReviewService = Depends(get_review_service)):
    return service.has_review(booking_id)


@router.get("/{review_id}", response_model=ReviewResponse)
def get_review(review_id: str, service: ReviewService = Depends(get_review_service)):
    return service.get_review(review_id)


@router.put("/{review_id}", response_model=ReviewMutationResponse)
def update_review(
    review_id: str,
    data: ReviewUpdate,
    actor: Actor = Depends(get_actor),
    service: ReviewService = Depends(get_review_service),
):
    """Edit rating and comment; the review goes back to pending."""
    return service.update_review(actor, review_id, data)


@router.patch("/{review_id}/status", response_model=ReviewMutationResponse)
def moderate_review(
    review_id: str,
    data: ReviewStatusUpdate,
    actor: Actor = Depends(get_actor),
    service: ReviewService = Depends(get_review_service),
):
    return service.moderate_review(actor, review_id, data.status)


@router.delete("/{review_id}", response_model=ReviewMutationResponse)
def delete_review(
    review_id: str,
    actor: Actor = Depends(get_actor),
    service: ReviewService = Depends(get_review_service),
):
    return service.delete_review(actor, review_id)


@router.post("/{review_id}/reply", response_model=ReviewResponse)
def reply_to_review(
    review_id: str,
    data: ReviewReplyCreate,
    actor: Actor = Depends(get_actor),
    service: ReviewService = Depends(get_review_service),
):
    return service.reply_to_review(actor, review_id, data)
