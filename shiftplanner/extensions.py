"""
Flask extensions initialization.

Extensions are created here without binding to the app, then bound in the
application factory using the init_app() pattern.
"""

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

db = SQLAlchemy()
migrate = Migrate()
limiter = Limiter(
    key_func=get_remote_address,
    storage_uri="memory://",  # TODO: Use Redis when running more than one gunicorn host
    strategy="fixed-window"  # Count requests in fixed time windows
)
