"""
Supplier repository.
"""

from typing import Collection, List, Optional, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from rentals.models.user import Supplier
from rentals.repositories.base_repository import BaseRepository


class SupplierRepository(BaseRepository[Supplier]):

    def __init__(self, db: Session):
        super().__init__(Supplier, db)

    def find_by_ids(self, supplier_ids: Collection[str]) -> List[Supplier]:
        if not supplier_ids:
            return []
        stmt = (
            select(Supplier)
            .where(Supplier.id.in_(list(supplier_ids)))
            .order_by(Supplier.updated_at.desc(), Supplier.id.asc())
        )
        return list(self.db.scalars(stmt))

    def get_rating_state(
        self, supplier_id: str
    ) -> Optional[Tuple[int, Optional[float], Optional[int]]]:
        """(rating_version, external_rating, external_review_count) or None."""
        row = self.db.execute(
            select(
                Supplier.rating_version,
                Supplier.external_rating,
                Supplier.external_review_count,
            ).where(Supplier.id == supplier_id)
        ).first()
        if row is None:
            return None
        return (row[0] or 0, row[1], row[2])

    def write_rating(
        self,
        supplier_id: str,
        expected_version: int,
        platform_rating: Optional[float],
        platform_review_count: int,
        rating: Optional[float],
        review_count: int,
    ) -> bool:
        result = self.db.execute(
            update(Supplier)
            .where(Supplier.id == supplier_id, func.coalesce(Supplier.rating_version, 0) == expected_version)
            .values(
                platform_rating=platform_rating,
                platform_review_count=platform_review_count,
                rating=rating,
                review_count=review_count,
                rating_version=expected_version + 1,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def write_external_rating(
        self,
        supplier_id: str,
        rating: Optional[float],
        count: int,
        source_url: Optional[str],
    ) -> bool:
        result = self.db.execute(
            update(Supplier)
            .where(Supplier.id == supplier_id)
            .values(
                external_rating=rating,
                external_review_count=count,
                external_source_url=source_url,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
