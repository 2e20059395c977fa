"""
Error handling and logging utilities for the shift coverage planner
Provides centralized error handling, logging, and debugging capabilities
"""
import logging
import traceback
from datetime import datetime
from flask import jsonify, request
import os


def setup_logging(app):
    """Configure application logging"""
    log_level = getattr(logging, app.config.get('LOG_LEVEL', 'INFO').upper())
    log_file = app.config.get('LOG_FILE', 'logs/planner.log')

    if not os.path.isabs(log_file):
        basedir = os.path.abspath(os.path.dirname(os.path.dirname(os.path.dirname(__file__))))
        log_file = os.path.join(basedir, log_file)

    log_dir = os.path.dirname(log_file)
    os.makedirs(log_dir, exist_ok=True)

    formatter = logging.Formatter(
        '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
    )

    file_handler = logging.FileHandler(log_file)
    file_handler.setLevel(log_level)
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)

    app.logger.setLevel(log_level)
    app.logger.addHandler(file_handler)
    app.logger.addHandler(console_handler)

    # Service modules log under the package name
    package_logger = logging.getLogger('shiftplanner')
    package_logger.setLevel(log_level)
    if not package_logger.handlers:
        package_logger.addHandler(file_handler)
        package_logger.addHandler(console_handler)

    werkzeug_logger = logging.getLogger('werkzeug')
    werkzeug_logger.setLevel(log_level)

    return app.logger


def _json_error(error, message, status_code, **extra):
    payload = {
        'error': error,
        'message': message,
        'status_code': status_code
    }
    payload.update(extra)
    return jsonify(payload), status_code


def register_error_handlers(app):
    """Register global error handlers for the Flask app"""

    @app.errorhandler(400)
    def bad_request_error(error):
        """Handle 400 Bad Request errors"""
        app.logger.warning(f"Bad request from {request.remote_addr}: {request.url}")
        return _json_error('Bad Request', 'The request could not be understood by the server', 400)

    @app.errorhandler(404)
    def not_found_error(error):
        """Handle 404 Not Found errors"""
        app.logger.info(f"404 Not Found: {request.url} from {request.remote_addr}")
        return _json_error('Not Found', 'The requested resource was not found', 404)

    @app.errorhandler(405)
    def method_not_allowed_error(error):
        """Handle 405 Method Not Allowed errors"""
        app.logger.warning(f"Method not allowed: {request.method} {request.url} from {request.remote_addr}")
        return _json_error(
            'Method Not Allowed',
            f'The {request.method} method is not allowed for this endpoint',
            405
        )

    @app.errorhandler(429)
    def rate_limited_error(error):
        """Handle 429 Too Many Requests raised by the rate limiter"""
        app.logger.warning(f"Rate limit exceeded from {request.remote_addr}: {request.url}")
        return _json_error('Too Many Requests', str(getattr(error, 'description', error)), 429)

    @app.errorhandler(500)
    def internal_error(error):
        """Handle 500 Internal Server Error"""
        from shiftplanner.utils.validators import sanitize_request_data

        error_id = datetime.utcnow().strftime('%Y%m%d_%H%M%S_%f')
        app.logger.error(f"Internal Server Error [{error_id}]: {str(error)}")
        app.logger.error(f"Traceback [{error_id}]: {traceback.format_exc()}")

        app.logger.error(f"Request details [{error_id}]: {request.method} {request.url}")
        request_data = sanitize_request_data(request.get_data(as_text=True)[:1000])
        app.logger.error(f"Request data [{error_id}]: {request_data}")

        return _json_error('Internal Server Error', 'An unexpected error occurred', 500, error_id=error_id)

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        """Handle any unexpected errors"""
        from werkzeug.exceptions import HTTPException
        from shiftplanner.utils.validators import sanitize_request_data

        if isinstance(error, HTTPException):
            return _json_error(error.name, error.description, error.code)

        error_id = datetime.utcnow().strftime('%Y%m%d_%H%M%S_%f')
        app.logger.critical(f"Unexpected error [{error_id}]: {str(error)}")
        app.logger.critical(f"Traceback [{error_id}]: {traceback.format_exc()}")

        request_data = sanitize_request_data(request.get_data(as_text=True)[:1000])
        app.logger.critical(f"Request data [{error_id}]: {request_data}")

        return _json_error('Unexpected Error', 'An unexpected error occurred', 500, error_id=error_id)


class PlanningLogger:
    """Specialized logger for planning session mutations"""

    def __init__(self, name='shiftplanner.planning'):
        self.logger = logging.getLogger(name)

    def mutation_applied(self, session_id, operation, details=None):
        """Log a successful session mutation"""
        message = f"[{session_id}] {operation}"
        if details:
            message += f" | {details}"
        self.logger.info(message)

    def conflict_blocked(self, session_id, error):
        """Log an assignment refused by the conflict checker"""
        self.logger.warning(f"[{session_id}] assignment blocked: {error.message}")

    def plan_saved(self, session_id, stats=None):
        """Log a completed plan save"""
        message = f"[{session_id}] plan saved"
        if stats:
            message += f" | Stats: {stats}"
        self.logger.info(message)


# Global planning logger instance
planning_logger = PlanningLogger()
