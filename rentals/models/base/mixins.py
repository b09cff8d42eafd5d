"""
SQLAlchemy model mixins for reusable functionality.
"""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimestampMixin:
    """
    Mixin for automatic timestamp tracking.

    Timestamps are produced in Python so ordering by updated_at keeps
    sub-second resolution on every backend.
    """

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        index=True,
        comment="Record creation timestamp (UTC)"
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        index=True,
        comment="Record last update timestamp (UTC)"
    )
