"""
Configuration management for the shift coverage planner
Handles environment-based settings with lazy validation so development and
testing run without production secrets.
"""
import secrets
from decouple import config
from typing import Optional


class Config:
    """Base configuration class"""
    # Flask settings
    # Development: Generate random key on startup (non-persistent OK for dev)
    SECRET_KEY = config('SECRET_KEY', default=secrets.token_hex(32))
    SQLALCHEMY_DATABASE_URI = config('DATABASE_URL', default='sqlite:///instance/planner.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Logging settings
    LOG_LEVEL = config('LOG_LEVEL', default='INFO')
    LOG_FILE = config('LOG_FILE', default='logs/planner.log')

    # Planning session settings
    PLANNING_SESSION_TIMEOUT = config('PLANNING_SESSION_TIMEOUT', default=1800, cast=int)  # 30 minutes
    PLANNING_SESSION_CLEANUP_INTERVAL = config('PLANNING_SESSION_CLEANUP_INTERVAL', default=60, cast=int)
    PLANNING_BACKGROUND_CLEANUP = config('PLANNING_BACKGROUND_CLEANUP', default=True, cast=bool)

    # Templates saved without a color get this one
    DEFAULT_TEMPLATE_COLOR = config('DEFAULT_TEMPLATE_COLOR', default='#f97316')

    # Rate Limiting
    RATELIMIT_ENABLED = config('RATELIMIT_ENABLED', default=True, cast=bool)
    RATELIMIT_DEFAULT = config('RATELIMIT_DEFAULT', default='1000 per hour')

    @classmethod
    def validate(cls) -> None:
        """
        Validate configuration - can be called explicitly or on-demand

        Raises:
            ValueError: If required configuration is missing
        """
        pass  # Base config has no required validation


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    TESTING = False


class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    PLANNING_BACKGROUND_CLEANUP = False
    RATELIMIT_ENABLED = False
    LOG_FILE = config('TEST_LOG_FILE', default='logs/planner-test.log')


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    TESTING = False

    # Will raise error if SECRET_KEY is not set - see validate()
    SECRET_KEY = config('SECRET_KEY', default='change-this-to-a-random-secret-key-in-production')

    # Database Connection Pool (for production databases)
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_recycle': config('DB_POOL_RECYCLE', default=3600, cast=int),
        'pool_pre_ping': True,
    }

    RATELIMIT_DEFAULT = config('RATELIMIT_DEFAULT', default='300 per hour')

    # Logging
    LOG_LEVEL = config('LOG_LEVEL', default='WARNING')

    @classmethod
    def validate(cls) -> None:
        """
        Production mode: validate all required settings

        Raises:
            ValueError: If any required configuration is missing
        """
        try:
            secret_key = config('SECRET_KEY')
        except Exception:
            raise ValueError(
                "SECRET_KEY environment variable must be set in production. "
                "Generate a secure key with: python -c 'import secrets; print(secrets.token_hex(32))'"
            )

        if len(secret_key) < 32:
            raise ValueError(
                f"SECRET_KEY must be at least 32 characters in production (current: {len(secret_key)}). "
                "Generate a secure key with: python -c 'import secrets; print(secrets.token_hex(32))'"
            )


# Configuration mapping
config_mapping = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig
}


def get_config(config_name: Optional[str] = None, validate: bool = False) -> type:
    """
    Get configuration class based on environment.

    Args:
        config_name: Environment name ('development', 'testing', 'production')
        validate: Whether to validate configuration immediately (default: False)

    Returns:
        Config class for the specified environment

    Raises:
        ValueError: If validation is enabled and required variables are missing

    Example:
        >>> config = get_config('production', validate=True)
    """
    if config_name is None:
        config_name = config('FLASK_ENV', default='development')

    config_class = config_mapping.get(config_name, DevelopmentConfig)

    # Only validate if explicitly requested
    if validate:
        config_class.validate()

    return config_class
