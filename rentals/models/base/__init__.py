from rentals.models.base.base_model import BaseModel
from rentals.models.base.mixins import TimestampMixin

__all__ = ["BaseModel", "TimestampMixin"]
