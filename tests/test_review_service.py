import pytest

from rentals.core.exceptions import (
    AuthorizationError,
    BookingNotFoundError,
    DuplicateReviewError,
    InvalidStateTransitionError,
    ReviewNotFoundError,
    ValidationError,
    VehicleNotFoundError,
)
from rentals.models.base.enums import ReviewStatus, UserType
from rentals.models.review import Review
from rentals.models.user import Supplier
from rentals.models.vehicle import Vehicle
from rentals.schemas.review import ReviewCreate, ReviewReplyCreate, ReviewUpdate
from rentals.services.common.actor import Actor
from rentals.services.common.service_result import ServiceError, ServiceResult
from rentals.services.review.rating_aggregator import RatingRecomputation
from rentals.services.review.review_service import ReviewTarget

RENTER = Actor("renter-1")
OTHER_RENTER = Actor("renter-2")
SUPPLIER = Actor("supplier-1", UserType.SUPPLIER)
ADMIN = Actor("admin-1", UserType.ADMIN)


@pytest.fixture
def booked(catalog):
    catalog.renter("renter-1")
    catalog.renter("renter-2")
    catalog.admin()
    catalog.supplier("supplier-1", external_rating=4.0, external_review_count=10)
    catalog.vehicle("car-1")
    catalog.booking("booking-1")
    catalog.booking("booking-2")
    return catalog


def create(service, booking_id="booking-1", rating=5, actor=RENTER):
    data = ReviewCreate(booking_id=booking_id, vehicle_id="car-1", supplier_id="supplier-1", rating=rating)
    return service.create_review(actor, data)


def count_reviews(session_factory):
    with session_factory() as session:
        return session.query(Review).count()


def vehicle_rating(session_factory):
    with session_factory() as session:
        return session.get(Vehicle, "car-1").rating


def supplier_rating(session_factory):
    with session_factory() as session:
        supplier = session.get(Supplier, "supplier-1")
        return supplier.rating, supplier.review_count


def test_new_review_is_pending(review_service, booked):
    result = create(review_service, rating=4)

    assert result.review.status == ReviewStatus.PENDING
    assert result.review.rating == 4
    assert result.ratings.succeeded is True
    assert result.ratings.vehicle_rating is None
    assert result.ratings.supplier_rating == 4.0


def test_second_review_for_booking_is_rejected(review_service, session_factory, booked):
    create(review_service)

    with pytest.raises(DuplicateReviewError):
        create(review_service, rating=1)
    assert count_reviews(session_factory) == 1


def test_only_the_renter_can_review(review_service, booked):
    with pytest.raises(AuthorizationError):
        create(review_service, actor=OTHER_RENTER)


def test_review_must_match_booking(review_service, booked):
    data = ReviewCreate(booking_id="booking-1", vehicle_id="car-9", supplier_id="supplier-1", rating=3)
    with pytest.raises(ValidationError):
        review_service.create_review(RENTER, data)


def test_unknown_booking(review_service, booked):
    with pytest.raises(BookingNotFoundError):
        create(review_service, booking_id="booking-x")


def test_approval_updates_ratings(review_service, session_factory, booked):
    review = create(review_service, rating=5).review

    result = review_service.moderate_review(ADMIN, review.id, ReviewStatus.APPROVED)

    assert result.review.status == ReviewStatus.APPROVED
    assert result.ratings.vehicle_rating == 5.0
    assert result.ratings.supplier_rating == pytest.approx((40 + 5) / 11)
    assert result.ratings.supplier_review_count == 11
    assert vehicle_rating(session_factory) == 5.0


def test_editing_approved_review_sends_it_back_to_pending(review_service, session_factory, booked):
    review = create(review_service, rating=5).review
    review_service.moderate_review(ADMIN, review.id, ReviewStatus.APPROVED)

    result = review_service.update_review(RENTER, review.id, ReviewUpdate(rating=2, comment="Brakes squeaked"))

    assert result.review.status == ReviewStatus.PENDING
    assert result.review.comment == "Brakes squeaked"
    assert result.ratings.vehicle_rating is None
    assert vehicle_rating(session_factory) is None
    assert result.ratings.supplier_rating == 4.0
    assert result.ratings.supplier_review_count == 10
    assert supplier_rating(session_factory) == (4.0, 10)


def test_only_author_edits(review_service, booked):
    review = create(review_service).review
    with pytest.raises(AuthorizationError):
        review_service.update_review(OTHER_RENTER, review.id, ReviewUpdate(rating=1))


def test_reject_after_approval(review_service, session_factory, booked):
    review = create(review_service, rating=3).review
    review_service.moderate_review(ADMIN, review.id, ReviewStatus.APPROVED)

    result = review_service.moderate_review(ADMIN, review.id, ReviewStatus.REJECTED)

    assert result.review.status == ReviewStatus.REJECTED
    assert vehicle_rating(session_factory) is None


@pytest.mark.parametrize("first,then", [
    (ReviewStatus.APPROVED, ReviewStatus.APPROVED),
    (ReviewStatus.REJECTED, ReviewStatus.APPROVED),
    (ReviewStatus.REJECTED, ReviewStatus.REJECTED),
])
def test_invalid_transitions(review_service, booked, first, then):
    review = create(review_service).review
    review_service.moderate_review(ADMIN, review.id, first)

    with pytest.raises(InvalidStateTransitionError):
        review_service.moderate_review(ADMIN, review.id, then)
    assert review_service.get_review(review.id).status == first


def test_rejected_review_can_be_edited_back_to_pending(review_service, booked):
    review = create(review_service).review
    review_service.moderate_review(ADMIN, review.id, ReviewStatus.REJECTED)

    result = review_service.update_review(RENTER, review.id, ReviewUpdate(rating=3))

    assert result.review.status == ReviewStatus.PENDING


def test_only_admins_moderate(review_service, booked):
    review = create(review_service).review
    with pytest.raises(AuthorizationError):
        review_service.moderate_review(SUPPLIER, review.id, ReviewStatus.APPROVED)


def test_reply_leaves_status_and_rating_alone(review_service, session_factory, booked):
    review = create(review_service, rating=4).review
    review_service.moderate_review(ADMIN, review.id, ReviewStatus.APPROVED)

    replied = review_service.reply_to_review(SUPPLIER, review.id, ReviewReplyCreate(comment="Thanks!"))

    assert replied.status == ReviewStatus.APPROVED
    assert replied.reply.comment == "Thanks!"
    assert replied.reply.date is not None
    assert vehicle_rating(session_factory) == 4.0


def test_only_reviewed_supplier_replies(review_service, booked):
    review = create(review_service).review
    with pytest.raises(AuthorizationError):
        review_service.reply_to_review(Actor("supplier-2", UserType.SUPPLIER), review.id, ReviewReplyCreate(comment="x"))


def test_deleting_approved_review_recomputes(review_service, session_factory, booked):
    review = create(review_service, rating=1).review
    review_service.moderate_review(ADMIN, review.id, ReviewStatus.APPROVED)

    result = review_service.delete_review(RENTER, review.id)

    assert result.ratings.vehicle_rating is None
    assert result.ratings.supplier_rating == 4.0
    assert count_reviews(session_factory) == 0
    with pytest.raises(ReviewNotFoundError):
        review_service.get_review(review.id)


def test_rating_failure_does_not_undo_review(review_service, session_factory, booked, monkeypatch):
    failure = ServiceResult.failure(ServiceError(code=None, message="ratings unavailable"))
    outcome = RatingRecomputation(vehicle=failure, supplier=failure)
    monkeypatch.setattr(review_service.aggregator, "recompute_for_review", lambda *args: outcome)

    result = create(review_service)

    assert result.ratings.succeeded is False
    assert result.ratings.vehicle_error == "ratings unavailable"
    assert result.ratings.supplier_error == "ratings unavailable"
    assert count_reviews(session_factory) == 1


def test_supplier_rating_refreshed_when_vehicle_side_fails(review_service, session_factory, booked, monkeypatch):
    review = create(review_service, rating=1).review
    review_service.moderate_review(ADMIN, review.id, ReviewStatus.APPROVED)
    assert supplier_rating(session_factory) == (pytest.approx(41 / 11), 11)

    def missing_vehicle(vehicle_id):
        raise VehicleNotFoundError(vehicle_id)

    monkeypatch.setattr(review_service.aggregator, "recompute_vehicle", missing_vehicle)
    result = review_service.delete_review(RENTER, review.id)

    assert result.ratings.succeeded is False
    assert "car-1" in result.ratings.vehicle_error
    assert result.ratings.vehicle_rating is None
    assert result.ratings.supplier_error is None
    assert result.ratings.supplier_rating == 4.0
    assert result.ratings.supplier_review_count == 10
    assert supplier_rating(session_factory) == (4.0, 10)


def test_has_review(review_service, booked):
    assert review_service.has_review("booking-1").exists is False

    review = create(review_service).review
    existence = review_service.has_review("booking-1")

    assert existence.exists is True
    assert existence.review.id == review.id


def test_public_lists_show_approved_only(review_service, booked):
    approved = create(review_service, booking_id="booking-1").review
    create(review_service, booking_id="booking-2")
    review_service.moderate_review(ADMIN, approved.id, ReviewStatus.APPROVED)

    for target, target_id in ((ReviewTarget.VEHICLE, "car-1"), (ReviewTarget.SUPPLIER, "supplier-1")):
        page = review_service.get_reviews_for(target, target_id)
        assert [r.id for r in page.items] == [approved.id]
        assert page.meta.total_items == 1


def test_reviewer_sees_every_status(review_service, booked):
    create(review_service, booking_id="booking-1")
    create(review_service, booking_id="booking-2")

    page = review_service.get_reviews_for(ReviewTarget.REVIEWER, "renter-1", actor=RENTER)

    assert len(page.items) == 2
    with pytest.raises(AuthorizationError):
        review_service.get_reviews_for(ReviewTarget.REVIEWER, "renter-1", actor=OTHER_RENTER)


def test_moderation_listing(review_service, booked):
    pending = create(review_service, booking_id="booking-1").review
    approved = create(review_service, booking_id="booking-2").review
    review_service.moderate_review(ADMIN, approved.id, ReviewStatus.APPROVED)

    page = review_service.list_reviews(ADMIN, status=ReviewStatus.PENDING)

    assert [r.id for r in page.items] == [pending.id]
    with pytest.raises(AuthorizationError):
        review_service.list_reviews(RENTER)
