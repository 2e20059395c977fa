"""
Routes package for the shift coverage planner
Centralizes all route blueprints
"""
from .health import health_bp
from .api_shift_templates import api_shift_templates_bp
from .api_store_hours import api_store_hours_bp
from .api_planning import api_planning_bp

__all__ = [
    'health_bp',
    'api_shift_templates_bp',
    'api_store_hours_bp',
    'api_planning_bp',
]
