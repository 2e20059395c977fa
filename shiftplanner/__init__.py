"""
Flask application factory.

This module implements the application factory pattern for creating
Flask application instances with different configurations.
"""

from flask import Flask
import os

from .extensions import db, migrate, limiter
from .config import get_config


def create_app(config_name=None):
    """
    Application factory function.

    Args:
        config_name: Configuration name (development, testing, production)
                    If None, determined from environment

    Returns:
        Flask application instance
    """
    app = Flask(__name__)

    # Apply ProxyFix for correct IP and scheme handling behind reverse proxies
    from werkzeug.middleware.proxy_fix import ProxyFix
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    # Load configuration
    config_class = get_config(config_name)
    app.config.from_object(config_class)

    # Ensure instance directory exists
    basedir = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))
    os.makedirs(os.path.join(basedir, "instance"), exist_ok=True)

    # Update database URI to use absolute path
    if app.config['SQLALCHEMY_DATABASE_URI'].startswith('sqlite:///instance/'):
        db_file = app.config['SQLALCHEMY_DATABASE_URI'][len('sqlite:///instance/'):]
        app.config['SQLALCHEMY_DATABASE_URI'] = f'sqlite:///{os.path.join(basedir, "instance", db_file)}'

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Rate limiter reads RATELIMIT_ENABLED / RATELIMIT_DEFAULT from app.config
    limiter.init_app(app)

    # Enable foreign key constraints for SQLite
    from sqlalchemy import event
    from sqlalchemy.engine import Engine

    @event.listens_for(Engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        """Enable foreign key constraints for SQLite connections"""
        if 'sqlite' in str(dbapi_conn):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    # Configure logging and error handling
    from shiftplanner.error_handlers import setup_logging, register_error_handlers
    setup_logging(app)
    register_error_handlers(app)

    # Initialize database models
    from shiftplanner.models import init_models
    from shiftplanner.models.registry import model_registry
    models = init_models(db)

    model_registry.init_app(app)
    model_registry.register(models)

    # In-memory planning sessions
    from shiftplanner.services.session_manager import session_manager
    session_manager.init_app(app)

    register_blueprints(app)

    setup_background_tasks(app)

    return app


def register_blueprints(app):
    """Register all Flask blueprints."""

    from shiftplanner.routes import (
        health_bp,
        api_shift_templates_bp,
        api_store_hours_bp,
        api_planning_bp,
    )

    app.register_blueprint(health_bp)
    app.register_blueprint(api_shift_templates_bp)
    app.register_blueprint(api_store_hours_bp)
    app.register_blueprint(api_planning_bp)

    # Probes must never be throttled
    limiter.exempt(health_bp)


def setup_background_tasks(app):
    """Setup background tasks and schedulers."""
    if not app.config.get('PLANNING_BACKGROUND_CLEANUP', True):
        app.logger.info("Planning session cleanup scheduler disabled")
        return None

    from shiftplanner.services.session_manager import session_manager
    from apscheduler.schedulers.background import BackgroundScheduler
    from apscheduler.triggers.interval import IntervalTrigger
    import atexit

    def cleanup_planning_sessions():
        """Background task to cleanup expired planning sessions."""
        with app.app_context():
            session_manager.cleanup_expired_sessions()

    scheduler = BackgroundScheduler()
    scheduler.add_job(
        func=cleanup_planning_sessions,
        trigger=IntervalTrigger(seconds=app.config.get('PLANNING_SESSION_CLEANUP_INTERVAL', 60)),
        id='planning_session_cleanup',
        name='Cleanup expired planning sessions',
        replace_existing=True
    )
    scheduler.start()

    # Ensure scheduler shuts down when app exits
    atexit.register(lambda: scheduler.shutdown())
    return scheduler


def init_db(app):
    """Initialize the database."""
    with app.app_context():
        db.create_all()
