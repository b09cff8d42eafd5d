"""
Custom exceptions for the rental service.

Every error the service raises derives from BaseAppException so the HTTP
layer can render it uniformly. Failure to resolve a location is not an
exception; see rentals.services.geo.geo_resolver.GeoResolution.
"""

from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorCode(str, Enum):
    """Standard error codes for the application"""
    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    INVALID_REQUEST = "INVALID_REQUEST"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"

    # Authorization
    AUTHORIZATION_FAILED = "AUTHORIZATION_FAILED"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    DUPLICATE_ENTRY = "DUPLICATE_ENTRY"
    INVALID_STATE_TRANSITION = "INVALID_STATE_TRANSITION"
    VEHICLE_IN_USE = "VEHICLE_IN_USE"

    # Resource specific
    VEHICLE_NOT_FOUND = "VEHICLE_NOT_FOUND"
    SUPPLIER_NOT_FOUND = "SUPPLIER_NOT_FOUND"
    REVIEW_NOT_FOUND = "REVIEW_NOT_FOUND"
    LOCATION_NOT_FOUND = "LOCATION_NOT_FOUND"
    BOOKING_NOT_FOUND = "BOOKING_NOT_FOUND"

    # Dependencies
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    GEOCODING_SERVICE_ERROR = "GEOCODING_SERVICE_ERROR"
    CACHE_ERROR = "CACHE_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"

    # Concurrency
    STALE_READ = "STALE_READ"


class BaseAppException(Exception):
    """
    Base exception class for all application exceptions.

    Provides consistent error handling across the application with
    structured error information.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary format"""
        return {
            "error": {
                "message": self.message,
                "code": self.error_code.value,
                "details": self.details,
                "type": self.__class__.__name__
            }
        }

    def __str__(self) -> str:
        return f"{self.error_code.value}: {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message='{self.message}', error_code='{self.error_code.value}')"


# ========================================
# Invalid input
# ========================================

class ValidationError(BaseAppException):
    """Exception raised when data validation fails"""

    def __init__(
        self,
        message: str = "Validation failed",
        field_errors: Optional[Dict[str, List[str]]] = None,
        error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
        status_code: int = 422
    ):
        details = {"field_errors": field_errors} if field_errors else {}
        super().__init__(message, error_code, details, status_code)


class EntityAlreadyExistsError(ValidationError):
    """A unique constraint rejected a write"""

    def __init__(self, message: str = "Entity already exists", field_errors: Optional[Dict[str, List[str]]] = None):
        super().__init__(message, field_errors=field_errors, error_code=ErrorCode.DUPLICATE_ENTRY, status_code=409)


class DuplicateReviewError(EntityAlreadyExistsError):
    """A booking already carries a review"""

    def __init__(self, booking_id: str):
        super().__init__(
            f"A review already exists for booking {booking_id}",
            field_errors={"booking_id": ["already reviewed"]},
        )
        self.details["booking_id"] = booking_id


class InvalidStateTransitionError(ValidationError):
    """A moderation action is not allowed from the review's current status"""

    def __init__(self, current: str, requested: str):
        super().__init__(
            f"Cannot move review from {current} to {requested}",
            error_code=ErrorCode.INVALID_STATE_TRANSITION,
        )
        self.details.update({"current_status": current, "requested_status": requested})


class VehicleInUseError(ValidationError):
    """Exception raised when deleting a vehicle that reviews still reference"""

    def __init__(self, vehicle_id: str, review_count: int):
        super().__init__(
            f"Vehicle {vehicle_id} has {review_count} review(s) and cannot be deleted",
            error_code=ErrorCode.VEHICLE_IN_USE,
            status_code=409,
        )
        self.details.update({"vehicle_id": vehicle_id, "review_count": review_count})


# ========================================
# Not found
# ========================================

class ResourceNotFoundError(BaseAppException):
    """Exception raised when a requested resource is not found"""

    def __init__(
        self,
        resource_type: str = "Resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.RESOURCE_NOT_FOUND
    ):
        if not message:
            message = f"{resource_type} not found"
            if resource_id:
                message += f" (ID: {resource_id})"

        details = {
            "resource_type": resource_type,
            "resource_id": resource_id
        }
        super().__init__(message, error_code, details, 404)


class VehicleNotFoundError(ResourceNotFoundError):
    def __init__(self, vehicle_id: str):
        super().__init__("Vehicle", vehicle_id, error_code=ErrorCode.VEHICLE_NOT_FOUND)


class SupplierNotFoundError(ResourceNotFoundError):
    def __init__(self, supplier_id: str):
        super().__init__("Supplier", supplier_id, error_code=ErrorCode.SUPPLIER_NOT_FOUND)


class ReviewNotFoundError(ResourceNotFoundError):
    def __init__(self, review_id: str):
        super().__init__("Review", review_id, error_code=ErrorCode.REVIEW_NOT_FOUND)


class LocationNotFoundError(ResourceNotFoundError):
    def __init__(self, location_id: str):
        super().__init__("Location", location_id, error_code=ErrorCode.LOCATION_NOT_FOUND)


class BookingNotFoundError(ResourceNotFoundError):
    def __init__(self, booking_id: str):
        super().__init__("Booking", booking_id, error_code=ErrorCode.BOOKING_NOT_FOUND)


# ========================================
# Authorization
# ========================================

class AuthorizationError(BaseAppException):
    """Exception raised when authorization fails"""

    def __init__(
        self,
        message: str = "Access denied",
        required_permission: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.AUTHORIZATION_FAILED
    ):
        details = {"required_permission": required_permission} if required_permission else {}
        super().__init__(message, error_code, details, 403)


# ========================================
# Dependencies
# ========================================

class ExternalServiceError(BaseAppException):
    """Exception raised when external service calls fail"""

    def __init__(
        self,
        message: str = "External service error",
        service_name: Optional[str] = None,
        endpoint: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.EXTERNAL_SERVICE_ERROR,
        status_code: int = 503
    ):
        details = {
            "service_name": service_name,
            "endpoint": endpoint
        }
        super().__init__(message, error_code, details, status_code)


class GeocodingServiceError(ExternalServiceError):
    """The geocoding provider could not be reached or answered with an error"""

    def __init__(self, message: str = "Geocoding service error", provider: Optional[str] = None, **kwargs):
        super().__init__(
            message,
            service_name=provider,
            error_code=ErrorCode.GEOCODING_SERVICE_ERROR,
            **kwargs
        )


class CacheError(BaseAppException):
    """Exception raised when cache operations fail"""

    def __init__(
        self,
        message: str = "Cache operation failed",
        operation: Optional[str] = None,
        key: Optional[str] = None
    ):
        details = {
            "operation": operation,
            "key": key
        }
        super().__init__(message, ErrorCode.CACHE_ERROR, details, 503)


class DatabaseError(BaseAppException):
    """Exception raised when the record store fails"""

    def __init__(self, message: str = "Database operation failed", operation: Optional[str] = None):
        details = {"operation": operation} if operation else {}
        super().__init__(message, ErrorCode.DATABASE_ERROR, details, 503)


# ========================================
# Concurrency
# ========================================

class StaleRatingError(BaseAppException):
    """
    A rating write lost an optimistic version check.

    Raised and retried inside the rating aggregator only.
    """

    def __init__(self, entity_type: str, entity_id: str, expected_version: int):
        super().__init__(
            f"{entity_type} {entity_id} changed while its rating was recomputed",
            ErrorCode.STALE_READ,
            {"entity_type": entity_type, "entity_id": entity_id, "expected_version": expected_version},
            409,
        )
