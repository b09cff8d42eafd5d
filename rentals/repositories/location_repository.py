"""
Location repository.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from rentals.models.location import Location
from rentals.repositories.base_repository import BaseRepository


class LocationRepository(BaseRepository[Location]):

    def __init__(self, db: Session):
        super().__init__(Location, db)

    def find_by_external_id(self, external_map_id: str) -> Optional[Location]:
        return self.db.scalar(select(Location).where(Location.external_map_id == external_map_id))
