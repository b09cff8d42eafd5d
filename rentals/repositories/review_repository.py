"""
Review repository.
"""

from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import InstrumentedAttribute

from rentals.models.base.enums import ReviewStatus
from rentals.models.review import Review
from rentals.repositories.base_repository import BaseRepository


class ReviewRepository(BaseRepository[Review]):

    def __init__(self, db: Session):
        super().__init__(Review, db)

    def find_by_booking(self, booking_id: str) -> Optional[Review]:
        return self.db.scalar(select(Review).where(Review.booking_id == booking_id))

    def approved_stats(self, column: InstrumentedAttribute, entity_id: str) -> Tuple[Optional[float], int]:
        """Average rating and count of approved reviews where ``column`` equals ``entity_id``."""
        row = self.db.execute(
            select(func.avg(Review.rating), func.count(Review.id)).where(
                column == entity_id,
                Review.status == ReviewStatus.APPROVED,
            )
        ).one()
        average, count = row
        return (float(average) if average is not None else None, int(count or 0))

    def approved_stats_for_vehicle(self, vehicle_id: str) -> Tuple[Optional[float], int]:
        return self.approved_stats(Review.vehicle_id, vehicle_id)

    def approved_stats_for_supplier(self, supplier_id: str) -> Tuple[Optional[float], int]:
        return self.approved_stats(Review.supplier_id, supplier_id)

    def list_page(
        self,
        *conditions,
        offset: int = 0,
        limit: int = 10,
    ) -> Tuple[List[Review], int]:
        """One page of reviews, newest first, and the total across pages."""
        total = self.db.scalar(select(func.count(Review.id)).where(*conditions)) or 0
        stmt = (
            select(Review)
            .where(*conditions)
            .order_by(Review.created_at.desc(), Review.id.asc())
            .offset(offset)
            .limit(limit)
        )
        return list(self.db.scalars(stmt)), total
