"""
Unit of Work pattern implementation.

Provides transaction management and repository coordination
for the service layer with SQLAlchemy.
"""
from __future__ import annotations

import logging
from contextlib import AbstractContextManager
from typing import Any, Callable, Dict, Optional, Type, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rentals.core.exceptions import DatabaseError
from rentals.repositories.base_repository import BaseRepository

logger = logging.getLogger(__name__)

TRepository = TypeVar("TRepository", bound=BaseRepository)

SessionFactory = Callable[[], Session]


class UnitOfWork(AbstractContextManager["UnitOfWork"]):
    """
    Unit of Work pattern for managing database transactions.

    Usage:
        >>> with UnitOfWork(session_factory) as uow:
        ...     reviews = uow.get_repo(ReviewRepository)
        ...     reviews.create(review)
        ...     # Auto-commits on __exit__ if no exception
    """

    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory
        self.session: Optional[Session] = None
        self._committed = False
        self._repo_cache: Dict[Type[BaseRepository], BaseRepository] = {}

    def __enter__(self) -> "UnitOfWork":
        if self.session is not None:
            raise RuntimeError("UnitOfWork context already entered")

        self.session = self._session_factory()
        self._committed = False
        self._repo_cache.clear()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> bool:
        if self.session is None:
            return False

        try:
            if exc_type is None:
                if not self._committed:
                    self.commit()
            else:
                self.session.rollback()
                logger.warning(f"UnitOfWork rolled back due to {exc_type.__name__}")
        finally:
            self.session.close()
            self.session = None
            self._repo_cache.clear()

        return False

    def commit(self) -> None:
        """
        Commit the current transaction.

        Raises:
            DatabaseError: If the commit fails
        """
        if self.session is None:
            raise RuntimeError("UnitOfWork.commit() called outside of context")

        try:
            self.session.commit()
            self._committed = True
        except SQLAlchemyError as exc:
            logger.error(f"Commit failed: {exc}")
            self.session.rollback()
            raise DatabaseError("Failed to commit transaction", operation="commit") from exc

    def get_repo(self, repo_type: Type[TRepository]) -> TRepository:
        """Repository bound to this unit's session, created once per unit."""
        if self.session is None:
            raise RuntimeError("UnitOfWork.get_repo() called outside of context")

        if repo_type not in self._repo_cache:
            self._repo_cache[repo_type] = repo_type(self.session)
        return self._repo_cache[repo_type]
