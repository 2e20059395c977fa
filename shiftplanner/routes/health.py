"""
Health Check and Monitoring Endpoints
Provides endpoints for application health monitoring, readiness checks, and metrics.
"""
from flask import Blueprint, jsonify, current_app
from datetime import datetime
from sqlalchemy import text
import sys
import psutil
import os

health_bp = Blueprint('health', __name__, url_prefix='/health')


@health_bp.route('/ping', methods=['GET'])
def ping():
    """
    Simple ping endpoint for basic connectivity checks.
    Returns: 200 OK with pong message
    """
    return jsonify({
        'status': 'ok',
        'message': 'pong',
        'timestamp': datetime.utcnow().isoformat()
    }), 200


@health_bp.route('/live', methods=['GET'])
def liveness():
    """
    Liveness check: the process is up and serving requests.
    """
    return jsonify({
        'status': 'alive',
        'timestamp': datetime.utcnow().isoformat()
    }), 200


@health_bp.route('/ready', methods=['GET'])
def readiness():
    """
    Readiness check: checks if application is ready to serve traffic.

    Returns:
        200: Database reachable and session registry initialized
        503: Application is not ready
    """
    checks = {
        'database': False,
        'planning_sessions': 'planning_sessions' in current_app.extensions,
    }
    errors = []

    try:
        db = current_app.extensions['sqlalchemy']
        db.session.execute(text('SELECT 1'))
        checks['database'] = True
    except Exception as e:
        errors.append(f"Database: {str(e)}")

    all_checks_passed = all(checks.values())
    status_code = 200 if all_checks_passed else 503

    response = {
        'status': 'ready' if all_checks_passed else 'not_ready',
        'checks': checks,
        'timestamp': datetime.utcnow().isoformat()
    }

    if errors:
        response['errors'] = errors

    return jsonify(response), status_code


@health_bp.route('/status', methods=['GET'])
def status():
    """
    Detailed application status and metrics.
    Provides information about process resources and planning session load.

    Returns:
        200: Status information
        500: Status could not be collected
    """
    try:
        process = psutil.Process()
        memory_info = process.memory_info()
        memory_percent = process.memory_percent()
        cpu_percent = process.cpu_percent(interval=0.1)

        sessions = current_app.extensions.get('planning_sessions')

        status_info = {
            'status': 'operational',
            'timestamp': datetime.utcnow().isoformat(),
            'application': {
                'name': 'Shift Coverage Planner',
                'version': current_app.config.get('VERSION', '1.0.0'),
                'debug': current_app.debug,
                'testing': current_app.testing,
            },
            'system': {
                'python_version': sys.version,
                'platform': sys.platform,
                'process_id': os.getpid(),
            },
            'resources': {
                'memory': {
                    'used_mb': round(memory_info.rss / 1024 / 1024, 2),
                    'percent': round(memory_percent, 2),
                },
                'cpu': {
                    'percent': round(cpu_percent, 2),
                },
            },
            'planning': {
                'active_sessions': sessions.get_active_session_count() if sessions else 0,
                'session_timeout_seconds': current_app.config.get('PLANNING_SESSION_TIMEOUT'),
            },
            'database': {
                'type': 'sqlite' if 'sqlite' in current_app.config.get('SQLALCHEMY_DATABASE_URI', '') else 'postgresql',
            }
        }

        return jsonify(status_info), 200

    except Exception as e:
        current_app.logger.error(f"Status collection failed: {e}", exc_info=True)
        return jsonify({
            'status': 'error',
            'error': str(e),
            'timestamp': datetime.utcnow().isoformat()
        }), 500
