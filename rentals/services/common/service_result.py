"""
Service result pattern for operations that can partially fail.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Generic, Optional, TypeVar

from rentals.core.exceptions import BaseAppException, ErrorCode


class ErrorSeverity(str, Enum):
    """Error severity levels."""

    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class ServiceError:
    """Represents a service operation error with context."""

    code: ErrorCode
    message: str
    severity: ErrorSeverity = ErrorSeverity.ERROR
    details: Optional[Dict[str, Any]] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


TData = TypeVar("TData")


@dataclass
class ServiceResult(Generic[TData]):
    """
    Success/failure outcome of a service operation.

    Attributes:
        is_success: Operation success indicator
        data: Result data (if successful)
        error: Error information (if failed)
    """

    is_success: bool
    data: Optional[TData] = None
    error: Optional[ServiceError] = None

    @classmethod
    def success(cls, data: Optional[TData] = None) -> "ServiceResult[TData]":
        return cls(is_success=True, data=data)

    @classmethod
    def failure(cls, error: ServiceError) -> "ServiceResult[TData]":
        return cls(is_success=False, error=error)

    @classmethod
    def from_exception(
        cls,
        exception: Exception,
        operation: str,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
    ) -> "ServiceResult[TData]":
        """Create a failed result from an exception."""
        if isinstance(exception, BaseAppException):
            code, details = exception.error_code, exception.details
        else:
            code, details = ErrorCode.INTERNAL_ERROR, {"exception_type": type(exception).__name__}
        return cls.failure(
            ServiceError(
                code=code,
                message=f"Failed to {operation}: {str(exception)}",
                severity=severity,
                details=details,
            )
        )

    @property
    def is_failure(self) -> bool:
        return not self.is_success
