"""
Base schema classes with common fields and configurations.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    "BaseSchema",
    "BaseDBSchema",
]


class BaseSchema(BaseModel):
    """
    Base schema with common Pydantic configuration.

    Request and response models inherit from this so ORM objects can be
    validated directly. Field names are the wire keys (snake_case).
    """

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        use_enum_values=False,
        str_strip_whitespace=True,
        validate_assignment=True,
    )


class BaseDBSchema(BaseSchema):
    """Base schema for database entities with ID and timestamps."""

    id: str = Field(..., description="Unique identifier")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")
