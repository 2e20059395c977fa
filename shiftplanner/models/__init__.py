"""
Database models for the shift coverage planner
Centralizes all SQLAlchemy model imports using factory pattern
"""
from .shift_template import create_shift_template_models
from .store_opening_hours import create_store_opening_hours_model
from .planned_shift import create_planned_shift_models


def init_models(db):
    """
    Initialize all models with the database instance

    Args:
        db: SQLAlchemy database instance

    Returns:
        dict: Dictionary containing all model classes
    """
    ShiftTemplate, ShiftTemplateSlot = create_shift_template_models(db)
    StoreOpeningHours = create_store_opening_hours_model(db)
    PlannedShift, PlannedShiftAssignment = create_planned_shift_models(db)

    return {
        'ShiftTemplate': ShiftTemplate,
        'ShiftTemplateSlot': ShiftTemplateSlot,
        'StoreOpeningHours': StoreOpeningHours,
        'PlannedShift': PlannedShift,
        'PlannedShiftAssignment': PlannedShiftAssignment,
    }
