"""
Base service class providing common functionality for all services.
"""

from typing import Any, Dict, Optional

from rentals.config.logging import get_logger
from rentals.services.common.service_result import ErrorSeverity, ServiceResult
from rentals.services.common.unit_of_work import SessionFactory, UnitOfWork


class BaseService:
    """
    Base service with common behaviors:
    - Shared logger and session factory
    - Unit of work creation
    - Consistent conversion of failures into ServiceResult
    """

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory
        self._logger = get_logger(f"rentals.services.{self.__class__.__name__}")

    def unit_of_work(self) -> UnitOfWork:
        return UnitOfWork(self.session_factory)

    def _handle_exception(
        self,
        exception: Exception,
        operation: str,
        entity_ref: Optional[Any] = None,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        additional_context: Optional[Dict[str, Any]] = None,
    ) -> ServiceResult:
        """
        Log an exception with context and convert it to a failed ServiceResult.

        Args:
            exception: The caught exception
            operation: Description of the operation that failed
            entity_ref: Reference to the entity involved
            severity: Error severity level
            additional_context: Extra context for logging
        """
        context = {
            "operation": operation,
            "entity_ref": str(entity_ref) if entity_ref is not None else None,
            "exception_type": type(exception).__name__,
        }
        if additional_context:
            context.update(additional_context)

        self._logger.error(f"Error during {operation}: {exception}", exc_info=True, extra=context)
        return ServiceResult.from_exception(exception, operation, severity)
