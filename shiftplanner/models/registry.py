"""
Model Registry - Centralized model access using Flask extension pattern

Model classes are built by factory functions at app creation time, so views
and services look them up here instead of importing them.

Usage:
    from shiftplanner.models.registry import get_models

    def my_view():
        models = get_models()
        template = models['ShiftTemplate'].query.first()
"""
from flask import current_app
from typing import Dict, Any, Optional

from shiftplanner.error_handlers.exceptions import ConfigurationException


class ModelRegistry:
    """
    Flask extension for centralized model management
    """

    def __init__(self, app=None):
        self.models: Dict[str, Any] = {}
        if app:
            self.init_app(app)

    def init_app(self, app):
        """
        Initialize extension with Flask app

        Args:
            app: Flask application instance
        """
        app.extensions['models'] = self

    def register(self, models_dict: Dict[str, Any]):
        """
        Register all models with the registry

        Args:
            models_dict: Dictionary mapping model names to model classes
        """
        self.models = models_dict

    def get(self, model_name: str) -> Optional[Any]:
        return self.models.get(model_name)

    def __getitem__(self, model_name: str) -> Any:
        """
        Allow dict-like access to models

        Raises:
            KeyError: If model name is not registered
        """
        return self.models[model_name]

    def all(self) -> Dict[str, Any]:
        return self.models.copy()


# Global instance
model_registry = ModelRegistry()


def get_models() -> Dict[str, Any]:
    """
    Helper to get all registered models from current app context

    Returns:
        Dictionary containing all registered models

    Raises:
        ConfigurationException: If the registry was never initialized
    """
    if 'models' not in current_app.extensions:
        raise ConfigurationException(
            "ModelRegistry not initialized. "
            "Ensure model_registry.init_app(app) is called during app setup."
        )

    return current_app.extensions['models'].models


def get_db():
    """
    Helper to get SQLAlchemy database instance

    Raises:
        RuntimeError: If called outside application context
    """
    return current_app.extensions['sqlalchemy']
