"""
Error handling decorators

Provides decorators for consistent error handling across endpoints.
"""
from functools import wraps
from flask import jsonify, current_app
from datetime import datetime
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from .exceptions import AppException, DatabaseException


def handle_errors(f):
    """
    Universal error handler decorator - use on all endpoints

    Provides:
    - Consistent JSON error responses
    - Automatic logging with error IDs
    - Exception type hierarchy support

    Usage:
        @api_planning_bp.route('/sessions', methods=['POST'])
        @handle_errors
        def create_session():
            if not valid:
                raise ValidationException('Invalid input')
            return jsonify({'success': True})

    Args:
        f: Function to decorate

    Returns:
        Decorated function with error handling
    """
    @wraps(f)
    def decorated(*args, **kwargs):
        try:
            return f(*args, **kwargs)

        except AppException as e:
            current_app.logger.warning(
                f"{e.error_type} in {f.__name__}: {e.message}",
                extra={'details': e.details} if e.details else {}
            )
            return jsonify(e.to_dict()), e.status_code

        except Exception as e:
            error_id = datetime.utcnow().strftime('%Y%m%d_%H%M%S_%f')

            current_app.logger.error(
                f"Unexpected error [{error_id}] in {f.__name__}: {str(e)}",
                exc_info=True
            )

            # Don't expose internal error details in production
            return jsonify({
                'error': 'InternalError',
                'message': 'An unexpected error occurred',
                'error_id': error_id,
                'status_code': 500
            }), 500

    return decorated


def with_db_transaction(f):
    """
    Decorator to wrap function in database transaction

    Automatically commits on success or rolls back on error. SQLAlchemy errors
    (from the view or from the commit) are re-raised as DatabaseException so
    @handle_errors answers with a DatabaseError body instead of a bare 500;
    an IntegrityError (for example two saves racing on the same planned
    shift key) is reported as 409.

    Usage:
        @handle_errors
        @with_db_transaction
        def replace_opening_hours(store_id):
            ...

    Args:
        f: Function to decorate

    Returns:
        Decorated function with transaction management
    """
    @wraps(f)
    def decorated(*args, **kwargs):
        db = current_app.extensions['sqlalchemy']

        try:
            result = f(*args, **kwargs)
            db.session.commit()
            return result
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Database error in {f.__name__}: {e}")
            raise DatabaseException(
                "The change could not be saved",
                status_code=409 if isinstance(e, IntegrityError) else None,
                details={'operation': f.__name__}
            ) from e
        except Exception:
            db.session.rollback()
            raise  # Re-raise for error handler

    return decorated
