"""
Rating aggregation.

Vehicle ratings are the mean of approved review ratings. Supplier ratings
blend the approved platform reviews with the externally sourced snapshot,
weighted by review count. Every recomputation starts from the stored
snapshot and the current approved population, so repeating it never
drifts.

Recomputations for one entity are serialized through a per-entity lock and
guarded by an optimistic version check; a lost check is retried.
"""

from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from rentals.core.concurrency import KeyedLock
from rentals.core.exceptions import (
    BaseAppException,
    StaleRatingError,
    SupplierNotFoundError,
    ValidationError,
    VehicleNotFoundError,
)
from rentals.repositories.review_repository import ReviewRepository
from rentals.repositories.supplier_repository import SupplierRepository
from rentals.repositories.vehicle_repository import VehicleRepository
from rentals.services.base.base_service import BaseService
from rentals.services.common.service_result import ErrorSeverity, ServiceResult
from rentals.services.common.unit_of_work import SessionFactory

T = TypeVar("T")


@dataclass(frozen=True)
class BlendedRating:
    rating: Optional[float]
    count: int


@dataclass(frozen=True)
class RatingRecomputation:
    """Separate outcomes of the vehicle and supplier recomputations."""

    vehicle: ServiceResult[Optional[float]]
    supplier: ServiceResult[BlendedRating]

    @property
    def succeeded(self) -> bool:
        return self.vehicle.is_success and self.supplier.is_success


def blend_supplier_rating(
    external_rating: Optional[float],
    external_count: Optional[int],
    platform_average: Optional[float],
    platform_count: int,
) -> BlendedRating:
    """
    Weighted blend of the external snapshot and the platform reviews.

    - no approved platform reviews: the external snapshot as is
    - no external reviews: the platform average and count
    - otherwise: count-weighted mean over both, with summed counts
    """
    external_count = external_count or 0

    if platform_count == 0 or platform_average is None:
        return BlendedRating(external_rating, external_count if external_rating is not None else 0)

    if external_count == 0 or external_rating is None:
        return BlendedRating(platform_average, platform_count)

    total = external_count + platform_count
    blended = (external_rating * external_count + platform_average * platform_count) / total
    return BlendedRating(blended, total)


class RatingAggregator(BaseService):
    """
    Args:
        session_factory: Creates sessions; each recomputation uses its own
        locks: Per-entity lock registry shared by every aggregator instance
            that writes the same store
        max_retries: Attempts per recomputation before giving up on a
            repeatedly stale read
    """

    def __init__(self, session_factory: SessionFactory, locks: KeyedLock, max_retries: int = 3):
        super().__init__(session_factory)
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        self.locks = locks
        self.max_retries = max_retries

    # ------------------------------------------------------------------ #
    # Vehicle
    # ------------------------------------------------------------------ #
    def recompute_vehicle(self, vehicle_id: str) -> Optional[float]:
        with self.locks.hold(("vehicle", vehicle_id)):
            return self._retrying("vehicle", vehicle_id, self._recompute_vehicle_once)

    def _recompute_vehicle_once(self, vehicle_id: str) -> Optional[float]:
        with self.unit_of_work() as uow:
            vehicles = uow.get_repo(VehicleRepository)
            version = vehicles.get_rating_state(vehicle_id)
            if version is None:
                raise VehicleNotFoundError(vehicle_id)

            average, count = uow.get_repo(ReviewRepository).approved_stats_for_vehicle(vehicle_id)
            if not vehicles.write_rating(vehicle_id, average, version):
                raise StaleRatingError("Vehicle", vehicle_id, version)

        self._logger.info(
            "Vehicle rating recomputed",
            extra={"vehicle_id": vehicle_id, "rating": average, "approved_reviews": count},
        )
        return average

    # ------------------------------------------------------------------ #
    # Supplier
    # ------------------------------------------------------------------ #
    def recompute_supplier(self, supplier_id: str) -> BlendedRating:
        with self.locks.hold(("supplier", supplier_id)):
            return self._retrying("supplier", supplier_id, self._recompute_supplier_once)

    def _recompute_supplier_once(self, supplier_id: str) -> BlendedRating:
        with self.unit_of_work() as uow:
            suppliers = uow.get_repo(SupplierRepository)
            state = suppliers.get_rating_state(supplier_id)
            if state is None:
                raise SupplierNotFoundError(supplier_id)
            version, external_rating, external_count = state

            average, count = uow.get_repo(ReviewRepository).approved_stats_for_supplier(supplier_id)
            blended = blend_supplier_rating(external_rating, external_count, average, count)

            written = suppliers.write_rating(
                supplier_id,
                expected_version=version,
                platform_rating=average,
                platform_review_count=count,
                rating=blended.rating,
                review_count=blended.count,
            )
            if not written:
                raise StaleRatingError("Supplier", supplier_id, version)

        self._logger.info(
            "Supplier rating recomputed",
            extra={
                "supplier_id": supplier_id,
                "rating": blended.rating,
                "review_count": blended.count,
                "approved_reviews": count,
            },
        )
        return blended

    def record_external_rating(
        self,
        supplier_id: str,
        rating: Optional[float],
        count: int,
        source_url: Optional[str] = None,
    ) -> BlendedRating:
        """
        Store a reputation snapshot pushed from outside and re-blend.

        The snapshot replaces the previous one; it is never merged into it.
        """
        if rating is not None and not 0 <= rating <= 5:
            raise ValidationError("External rating must be between 0 and 5", field_errors={"rating": ["out of range"]})
        if count < 0:
            raise ValidationError("External review count cannot be negative", field_errors={"count": ["negative"]})

        with self.locks.hold(("supplier", supplier_id)):
            with self.unit_of_work() as uow:
                if not uow.get_repo(SupplierRepository).write_external_rating(supplier_id, rating, count, source_url):
                    raise SupplierNotFoundError(supplier_id)
            return self._retrying("supplier", supplier_id, self._recompute_supplier_once)

    # ------------------------------------------------------------------ #
    # Review side effects
    # ------------------------------------------------------------------ #
    def recompute_for_review(self, vehicle_id: str, supplier_id: str) -> RatingRecomputation:
        """
        Recompute both ratings touched by a review write.

        The two recomputations are independent: a failure on one side is
        logged and reported without skipping the other. Nothing is raised;
        the review write that triggered this has already been committed.
        """
        return RatingRecomputation(
            vehicle=self._guarded("recompute vehicle rating", vehicle_id, self.recompute_vehicle),
            supplier=self._guarded("recompute supplier rating", supplier_id, self.recompute_supplier),
        )

    def _guarded(self, operation: str, entity_id: str, fn: Callable[[str], T]) -> ServiceResult[T]:
        try:
            return ServiceResult.success(fn(entity_id))
        except (BaseAppException, SQLAlchemyError) as e:
            return self._handle_exception(e, operation, entity_ref=entity_id, severity=ErrorSeverity.WARNING)

    def _retrying(self, kind: str, entity_id: str, fn: Callable[[str], T]) -> T:
        for attempt in range(1, self.max_retries + 1):
            try:
                return fn(entity_id)
            except StaleRatingError:
                if attempt == self.max_retries:
                    raise
                self._logger.warning(
                    "Stale rating read, retrying",
                    extra={"entity_type": kind, "entity_id": entity_id, "attempt": attempt},
                )
        raise AssertionError("unreachable")
