"""
Unified Error Handling System

Provides centralized, consistent error handling across the entire application.

Usage:
    from shiftplanner.error_handlers import handle_errors
    from shiftplanner.error_handlers.exceptions import ValidationException

    @bp.route('/endpoint')
    @handle_errors
    def my_endpoint():
        if not valid:
            raise ValidationException('Invalid data')
        return jsonify({'success': True})
"""
from .exceptions import (
    AppException,
    ValidationException,
    InvalidTimeFormatException,
    ResourceNotFoundException,
    DuplicateAssignmentException,
    SchedulingConflictException,
    ConfigurationException,
    DatabaseException,
    PlanInconsistencyError
)
from .decorators import handle_errors, with_db_transaction


__all__ = [
    # Exceptions
    'AppException',
    'ValidationException',
    'InvalidTimeFormatException',
    'ResourceNotFoundException',
    'DuplicateAssignmentException',
    'SchedulingConflictException',
    'ConfigurationException',
    'DatabaseException',
    'PlanInconsistencyError',
    # Decorators
    'handle_errors',
    'with_db_transaction',
    # Setup
    'setup_logging',
    'register_error_handlers',
]


def setup_logging(app):
    """Configure application logging"""
    from shiftplanner.error_handlers import logging as eh_logging
    return eh_logging.setup_logging(app)


def register_error_handlers(app):
    """Register global error handlers for the Flask app"""
    from shiftplanner.error_handlers import logging as eh_logging
    eh_logging.register_error_handlers(app)
