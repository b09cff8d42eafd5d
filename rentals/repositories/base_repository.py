"""
Generic repository over a SQLAlchemy session.

Repositories flush but never commit; the surrounding unit of work owns the
transaction.
"""

from typing import Generic, Optional, Type, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from rentals.config.logging import get_logger
from rentals.core.exceptions import DatabaseError, EntityAlreadyExistsError
from rentals.models.base import BaseModel

logger = get_logger(__name__)

ModelType = TypeVar("ModelType", bound=BaseModel)


class BaseRepository(Generic[ModelType]):
    """
    Base repository with standard lookups and writes.
    """

    def __init__(self, model: Type[ModelType], db: Session):
        self.model = model
        self.db = db

    def get_by_id(self, id: str) -> Optional[ModelType]:
        return self.db.get(self.model, id)

    def create(self, entity: ModelType) -> ModelType:
        """
        Add an entity and flush it so generated columns are populated.

        Raises:
            EntityAlreadyExistsError: If a unique constraint rejects the row
            DatabaseError: On any other store failure
        """
        try:
            self.db.add(entity)
            self.db.flush()
        except IntegrityError as e:
            self.db.rollback()
            raise EntityAlreadyExistsError(f"{self.model.__name__} already exists") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise DatabaseError(f"Create failed: {str(e)}", operation="create") from e

        logger.info(f"Created {self.model.__name__} with id: {entity.id}")
        return entity

    def delete(self, entity: ModelType) -> None:
        try:
            self.db.delete(entity)
            self.db.flush()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise DatabaseError(f"Delete failed: {str(e)}", operation="delete") from e

        logger.info(f"Deleted {self.model.__name__} with id: {entity.id}")
