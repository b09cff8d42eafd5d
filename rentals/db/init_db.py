"""Database initialization utilities."""
import logging

from sqlalchemy.engine import Engine

from rentals.db.base import Base, import_models

logger = logging.getLogger(__name__)


def init_db(bind: Engine = None) -> None:
    """
    Create all tables that do not exist yet.

    Suitable for development and tests; production schemas are managed
    out of band.
    """
    if bind is None:
        from rentals.db.session import engine as bind

    import_models()
    Base.metadata.create_all(bind=bind)
    logger.info("Database tables ensured", extra={"tables": len(Base.metadata.tables)})


def drop_db(bind: Engine = None) -> None:
    """Drop all database tables."""
    if bind is None:
        from rentals.db.session import engine as bind

    Base.metadata.drop_all(bind=bind)
    logger.warning("All database tables dropped")
