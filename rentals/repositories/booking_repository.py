"""
Booking repository.
"""

from sqlalchemy.orm import Session

from rentals.models.booking import Booking
from rentals.repositories.base_repository import BaseRepository


class BookingRepository(BaseRepository[Booking]):

    def __init__(self, db: Session):
        super().__init__(Booking, db)
