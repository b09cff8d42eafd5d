"""
Vehicle catalog repository.
"""

from typing import List, Optional, Sequence

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement

from rentals.core.exceptions import VehicleInUseError
from rentals.models.review import Review
from rentals.models.user import Supplier
from rentals.models.vehicle import Vehicle
from rentals.repositories.base_repository import BaseRepository


class VehicleRepository(BaseRepository[Vehicle]):

    def __init__(self, db: Session):
        super().__init__(Vehicle, db)

    def _matching(self, conditions: Sequence[ColumnElement], join_supplier: bool):
        stmt = select(Vehicle)
        if join_supplier:
            stmt = stmt.join(Supplier, Vehicle.supplier_id == Supplier.id)
        return stmt.where(*conditions)

    def find_matching(
        self,
        conditions: Sequence[ColumnElement],
        join_supplier: bool = False,
    ) -> List[Vehicle]:
        """All vehicles satisfying every condition, newest update first."""
        stmt = self._matching(conditions, join_supplier).order_by(
            Vehicle.updated_at.desc(), Vehicle.id.asc()
        )
        return list(self.db.scalars(stmt).unique())

    def delete_vehicle(self, vehicle_id: str) -> bool:
        """
        Delete a vehicle together with its date-based price overrides.

        Reviewed vehicles are kept: their reviews still count toward the
        supplier rating, so the delete is refused with VehicleInUseError.
        """
        vehicle = self.get_by_id(vehicle_id)
        if vehicle is None:
            return False
        review_count = self.db.scalar(select(func.count(Review.id)).where(Review.vehicle_id == vehicle_id))
        if review_count:
            raise VehicleInUseError(vehicle_id, review_count)
        self.delete(vehicle)
        return True

    def get_rating_state(self, vehicle_id: str) -> Optional[int]:
        """Current rating version, or None when the vehicle does not exist."""
        return self.db.scalar(select(Vehicle.rating_version).where(Vehicle.id == vehicle_id))

    def write_rating(self, vehicle_id: str, rating: Optional[float], expected_version: int) -> bool:
        """
        Store a recomputed rating if nobody else wrote one since
        ``expected_version`` was read.
        """
        result = self.db.execute(
            update(Vehicle)
            .where(Vehicle.id == vehicle_id, Vehicle.rating_version == expected_version)
            .values(rating=rating, rating_version=expected_version + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
