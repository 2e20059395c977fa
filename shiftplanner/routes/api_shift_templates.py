"""
Shift Template API Endpoints
CRUD for the reusable shift patterns planners apply to their periods
"""
import uuid
from flask import Blueprint, request, jsonify, current_app
import logging

from shiftplanner.error_handlers import handle_errors, with_db_transaction, ValidationException
from shiftplanner.models.registry import get_db, get_models
from shiftplanner.services.plan_persistence import PlanPersistenceService
from shiftplanner.services.record_normalizer import normalize_template
from shiftplanner.utils.validators import get_json_body

logger = logging.getLogger(__name__)

api_shift_templates_bp = Blueprint('api_shift_templates', __name__, url_prefix='/api/shift-templates')


def _service():
    return PlanPersistenceService(
        get_db().session,
        get_models(),
        current_app.config.get('DEFAULT_TEMPLATE_COLOR', '#f97316')
    )


def template_to_json(template):
    return {
        'id': template.id,
        'name': template.name,
        'color': template.color,
        'scope': template.scope.value,
        'store_id': template.store_id,
        'time_slots': [
            {
                'id': slot.id,
                'start_time': slot.start_time,
                'end_time': slot.end_time,
                'label': slot.label,
                'required_staff': slot.required_staff,
            }
            for slot in template.time_slots
        ],
    }


@api_shift_templates_bp.route('', methods=['GET'])
@handle_errors
def list_templates():
    """
    List the templates a store can plan with.

    Query params:
        store_id: Store identifier (required)
    """
    store_id = request.args.get('store_id')
    if not store_id:
        raise ValidationException("Missing required query parameter 'store_id'", details={'field': 'store_id'})

    templates = _service().get_templates_for_store(store_id)
    return jsonify({
        'success': True,
        'templates': [template_to_json(t) for t in templates],
        'count': len(templates)
    })


@api_shift_templates_bp.route('/<template_id>', methods=['GET'])
@handle_errors
def get_template(template_id):
    template = _service().get_template(template_id)
    return jsonify({'success': True, 'template': template_to_json(template)})


@api_shift_templates_bp.route('', methods=['POST'])
@handle_errors
@with_db_transaction
def create_template():
    """
    Create a template.

    Body (camelCase or snake_case):
        name: Display name (required)
        color: Hex color (optional)
        scope: 'store' (default) or 'global'
        store_id: Owning store, required for scope 'store'
        time_slots: [{id?, start_time, end_time, label?, required_staff?}]
    """
    data = dict(get_json_body())
    data.setdefault('id', uuid.uuid4().hex)

    service = _service()
    template = service.create_template(normalize_template(data, service.default_color))
    return jsonify({'success': True, 'template': template_to_json(template)}), 201


@api_shift_templates_bp.route('/<template_id>', methods=['DELETE'])
@handle_errors
@with_db_transaction
def delete_template(template_id):
    _service().delete_template(template_id)
    return jsonify({'success': True, 'message': f'Template {template_id} deleted'})
