"""
Custom exception hierarchy for type-safe error handling

Provides a structured exception hierarchy that maps to HTTP status codes
and enables consistent error responses across the application.

Usage:
    from shiftplanner.error_handlers.exceptions import SchedulingConflictException

    def assign(candidate):
        if clashes:
            raise SchedulingConflictException('Resource already busy', details={...})

Exception Hierarchy:
    AppException (base)
    ├── ValidationException (400)
    │   └── InvalidTimeFormatException (400)
    ├── ResourceNotFoundException (404)
    ├── DuplicateAssignmentException (409)
    ├── SchedulingConflictException (409)
    ├── ConfigurationException (500)
    └── DatabaseException (500)

    PlanInconsistencyError (AssertionError) - caller bugs, never mapped to a response
"""
from typing import Dict, Any, Optional


class AppException(Exception):
    """
    Base exception for all application errors

    All custom exceptions should inherit from this class to enable
    consistent error handling and response formatting.

    Attributes:
        status_code: HTTP status code for the error
        error_type: String identifier for the error type
        message: Human-readable error message
        details: Additional context about the error
    """
    status_code = 500
    error_type = 'ApplicationError'

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize application exception

        Args:
            message: Human-readable error message
            status_code: Optional HTTP status code override
            details: Optional dictionary with additional error context
        """
        super().__init__(message)
        self.message = message
        if status_code:
            self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to JSON-serializable dictionary

        Returns:
            Dictionary suitable for JSON response
        """
        result = {
            'error': self.error_type,
            'message': self.message,
            'status_code': self.status_code
        }

        if self.details:
            result.update(self.details)

        return result

    def __str__(self) -> str:
        return f"{self.error_type}: {self.message}"

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}('{self.message}', status_code={self.status_code})>"


class ValidationException(AppException):
    """
    Validation errors (HTTP 400)

    Raised when request data or an ingested record fails validation checks.

    Example:
        >>> if not payload.get('store_id'):
        ...     raise ValidationException('store_id is required')
    """
    status_code = 400
    error_type = 'ValidationError'


class InvalidTimeFormatException(ValidationException):
    """
    Malformed "HH:MM" value or an interval that does not run forward (HTTP 400)

    Raised by the strict time parser. Slot resolution catches it per slot so
    that one bad template never blanks a whole timeline.

    Example:
        >>> to_minutes('25:00')
        InvalidTimeFormatException: Invalid time '25:00', expected HH:MM
    """
    error_type = 'InvalidTimeFormat'


class ResourceNotFoundException(AppException):
    """
    Resource not found (HTTP 404)

    Raised when a requested session, template or slot doesn't exist.
    """
    status_code = 404
    error_type = 'NotFound'


class DuplicateAssignmentException(AppException):
    """
    Identical (resource, template, slot, day) assignment already exists (HTTP 409)

    The HTTP layer recovers from this as a no-op: re-assigning the same tuple
    is already satisfied.
    """
    status_code = 409
    error_type = 'DuplicateAssignment'


class SchedulingConflictException(AppException):
    """
    Resource already holds an overlapping slot on the same day (HTTP 409)

    ``details`` carries the conflicting slot (label, template and time range)
    and the resource display name so the UI can render a message without
    re-querying. The candidate assignment is never written.
    """
    status_code = 409
    error_type = 'SchedulingConflict'

    @property
    def conflicting_slot(self) -> Dict[str, Any]:
        return self.details.get('conflicting_slot', {})


class ConfigurationException(AppException):
    """
    Configuration errors (HTTP 500)

    Raised when application is misconfigured.
    """
    status_code = 500
    error_type = 'ConfigurationError'


class DatabaseException(AppException):
    """
    Database operation errors (HTTP 500)

    Raised when database operations fail.
    """
    status_code = 500
    error_type = 'DatabaseError'


class PlanInconsistencyError(AssertionError):
    """
    An assignment references a (template, slot, day) that is not part of the
    current template selections.

    The planning session makes this impossible by construction, so seeing it
    means a caller bypassed the session. It is deliberately not an
    AppException: it must surface as a failure, not as a 4xx response.
    """
