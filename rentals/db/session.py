"""Database session management."""
from typing import Any, Dict

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from rentals.config.settings import settings


def _engine_options() -> Dict[str, Any]:
    options: Dict[str, Any] = {"pool_pre_ping": True, "echo": settings.DEBUG}
    if settings.is_sqlite():
        options["connect_args"] = {"check_same_thread": False}
    else:
        options["pool_size"] = settings.DB_POOL_SIZE
        options["max_overflow"] = settings.DB_POOL_OVERFLOW
    return options


engine = create_engine(settings.get_database_url(), **_engine_options())

SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)

