"""
Store Opening Hours API Endpoints
Weekly opening rules per store (day 0=Sunday ... 6=Saturday)
"""
from flask import Blueprint, jsonify

from shiftplanner.error_handlers import handle_errors, with_db_transaction, ValidationException
from shiftplanner.models.registry import get_db, get_models
from shiftplanner.services.plan_persistence import PlanPersistenceService
from shiftplanner.services.record_normalizer import normalize_opening_rules
from shiftplanner.utils.validators import get_json_body

api_store_hours_bp = Blueprint('api_store_hours', __name__, url_prefix='/api/stores')


def _rules_to_json(rules):
    return [rules[day].to_dict() for day in sorted(rules)]


@api_store_hours_bp.route('/<store_id>/opening-hours', methods=['GET'])
@handle_errors
def get_opening_hours(store_id):
    """Weekdays without a rule are closed."""
    rules = PlanPersistenceService(get_db().session, get_models()).get_opening_rules(store_id)
    return jsonify({'success': True, 'store_id': store_id, 'opening_hours': _rules_to_json(rules)})


@api_store_hours_bp.route('/<store_id>/opening-hours', methods=['PUT'])
@handle_errors
@with_db_transaction
def replace_opening_hours(store_id):
    """
    Replace all opening rules of a store.

    Body:
        opening_hours: [{day, open_time, close_time, is_closed?}]
    """
    data = get_json_body()
    raw_rules = data.get('opening_hours', data.get('openingHours'))
    if not isinstance(raw_rules, list):
        raise ValidationException("opening_hours must be a list", details={'field': 'opening_hours'})

    service = PlanPersistenceService(get_db().session, get_models())
    rules = service.replace_opening_rules(store_id, normalize_opening_rules(raw_rules))
    return jsonify({'success': True, 'store_id': store_id, 'opening_hours': _rules_to_json(rules)})
