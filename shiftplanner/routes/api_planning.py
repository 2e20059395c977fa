"""
Planning Session API Endpoints

Drives an in-memory planning session: choose templates and days, assign
staff, read coverage and timelines, then save the plan. Every mutation
answers with the recomputed snapshot so the client never renders stale
coverage.
"""
from contextlib import contextmanager
from flask import Blueprint, jsonify, current_app, request
import logging

from shiftplanner.error_handlers import (
    handle_errors,
    with_db_transaction,
    DuplicateAssignmentException,
    SchedulingConflictException,
)
from shiftplanner.error_handlers.logging import planning_logger
from shiftplanner.models.registry import get_db, get_models
from shiftplanner.services.planning_session import PlanningSession
from shiftplanner.services.plan_persistence import PlanPersistenceService, build_plan_records
from shiftplanner.services.record_normalizer import (
    normalize_assignment,
    normalize_days,
    normalize_opening_rules,
    parse_iso_day,
)
from shiftplanner.utils.validators import get_json_body, validate_date_param, validate_required_fields

logger = logging.getLogger(__name__)

api_planning_bp = Blueprint('api_planning', __name__, url_prefix='/api/planning')


def _sessions():
    return current_app.extensions['planning_sessions']


def _service():
    return PlanPersistenceService(
        get_db().session,
        get_models(),
        current_app.config.get('DEFAULT_TEMPLATE_COLOR', '#f97316')
    )


@contextmanager
def locked_session(session_id):
    """Yield a live planning session while holding its lock."""
    managed = _sessions().get(session_id)
    with managed.lock:
        yield managed.session


def _snapshot_response(session, status_code=200, **extra):
    payload = {
        'success': True,
        'session': session.to_dict(),
        'snapshot': session.snapshot().to_dict(),
    }
    payload.update(extra)
    return jsonify(payload), status_code


# ===== Session lifecycle =====

@api_planning_bp.route('/sessions', methods=['POST'])
@handle_errors
def create_session():
    """
    Open a planning session for a store and period.

    Body:
        store_id: Store identifier (required)
        store_name: Display name (optional)
        period_start, period_end: YYYY-MM-DD, inclusive (required)
        opening_hours: Opening rules overriding the stored ones (optional)
        load_existing: Rebuild the session from the saved plan (default false)
    """
    data = get_json_body()
    validate_required_fields(data, ['store_id', 'period_start', 'period_end'])
    store_id = str(data['store_id'])
    period_start = validate_date_param(data['period_start'], 'period_start')
    period_end = validate_date_param(data['period_end'], 'period_end')

    service = _service()
    if data.get('load_existing'):
        session = service.load_plan(store_id, data.get('store_name'), period_start, period_end)
    else:
        session = PlanningSession(
            store_id=store_id,
            period_start=period_start,
            period_end=period_end,
            opening_rules=service.get_opening_rules(store_id),
            store_name=data.get('store_name'),
        )

    if data.get('opening_hours') is not None:
        session.set_opening_rules(normalize_opening_rules(data['opening_hours']))

    _sessions().add(session)
    planning_logger.mutation_applied(session.id, 'create_session', {
        'store_id': store_id,
        'loaded': bool(data.get('load_existing')),
    })
    return _snapshot_response(session, 201)


@api_planning_bp.route('/sessions/<session_id>', methods=['GET'])
@handle_errors
def get_session(session_id):
    with locked_session(session_id) as session:
        return _snapshot_response(session)


@api_planning_bp.route('/sessions/<session_id>', methods=['DELETE'])
@handle_errors
def delete_session(session_id):
    removed = _sessions().remove(session_id)
    return jsonify({'success': True, 'removed': removed})


@api_planning_bp.route('/sessions/<session_id>/period', methods=['PUT'])
@handle_errors
def set_period(session_id):
    data = get_json_body()
    period_start = validate_date_param(data.get('period_start'), 'period_start')
    period_end = validate_date_param(data.get('period_end'), 'period_end')
    with locked_session(session_id) as session:
        session.set_period(period_start, period_end)
        planning_logger.mutation_applied(session.id, 'set_period', f'{period_start}..{period_end}')
        return _snapshot_response(session)


@api_planning_bp.route('/sessions/<session_id>/phase', methods=['PUT'])
@handle_errors
def set_phase(session_id):
    data = get_json_body()
    validate_required_fields(data, ['phase'])
    with locked_session(session_id) as session:
        session.go_to_phase(data['phase'])
        planning_logger.mutation_applied(session.id, 'go_to_phase', int(session.phase))
        return _snapshot_response(session)


@api_planning_bp.route('/sessions/<session_id>/reset', methods=['POST'])
@handle_errors
def reset_session(session_id):
    with locked_session(session_id) as session:
        session.reset()
        planning_logger.mutation_applied(session.id, 'reset')
        return _snapshot_response(session)


# ===== Templates and days =====

@api_planning_bp.route('/sessions/<session_id>/templates', methods=['POST'])
@handle_errors
def add_template(session_id):
    """
    Select a stored template. Without 'days' every day of the period is chosen.
    """
    data = get_json_body()
    validate_required_fields(data, ['template_id'])
    template = _service().get_template(str(data['template_id']))
    days = normalize_days(data['days']) if data.get('days') is not None else None

    with locked_session(session_id) as session:
        session.add_template(template, days)
        planning_logger.mutation_applied(session.id, 'add_template', template.id)
        return _snapshot_response(session)


@api_planning_bp.route('/sessions/<session_id>/templates/<template_id>', methods=['DELETE'])
@handle_errors
def remove_template(session_id, template_id):
    with locked_session(session_id) as session:
        session.remove_template(template_id)
        planning_logger.mutation_applied(session.id, 'remove_template', template_id)
        return _snapshot_response(session)


@api_planning_bp.route('/sessions/<session_id>/templates/<template_id>/days/<day>/toggle', methods=['POST'])
@handle_errors
def toggle_day(session_id, template_id, day):
    day = parse_iso_day(day)
    with locked_session(session_id) as session:
        selected = session.toggle_day(template_id, day)
        planning_logger.mutation_applied(session.id, 'toggle_day', f'{template_id} {day} -> {selected}')
        return _snapshot_response(session, selected=selected)


@api_planning_bp.route('/sessions/<session_id>/templates/<template_id>/days', methods=['PUT'])
@handle_errors
def select_days(session_id, template_id):
    data = get_json_body()
    days = normalize_days(data.get('days'))
    with locked_session(session_id) as session:
        session.select_days(template_id, days)
        planning_logger.mutation_applied(session.id, 'select_days', f'{template_id} x{len(days)}')
        return _snapshot_response(session)


@api_planning_bp.route('/sessions/<session_id>/templates/<template_id>/days', methods=['DELETE'])
@handle_errors
def clear_days(session_id, template_id):
    with locked_session(session_id) as session:
        session.clear_days(template_id)
        planning_logger.mutation_applied(session.id, 'clear_days', template_id)
        return _snapshot_response(session)


# ===== Assignments =====

@api_planning_bp.route('/sessions/<session_id>/assignments', methods=['POST'])
@handle_errors
def assign_resource(session_id):
    """
    Assign a resource to a slot on a day.

    Returns:
        201: Assigned
        200: Identical assignment already existed (nothing changed)
        409: The resource already works an overlapping slot that day
    """
    assignment = normalize_assignment(get_json_body())
    with locked_session(session_id) as session:
        try:
            session.assign_resource(assignment)
        except DuplicateAssignmentException:
            return _snapshot_response(session, 200, already_assigned=True)
        except SchedulingConflictException as e:
            planning_logger.conflict_blocked(session.id, e)
            raise

        planning_logger.mutation_applied(session.id, 'assign_resource', assignment.key)
        return _snapshot_response(session, 201, already_assigned=False)


@api_planning_bp.route('/sessions/<session_id>/assignments', methods=['DELETE'])
@handle_errors
def remove_assignment(session_id):
    """Remove an assignment. Removing a missing assignment is not an error."""
    assignment = normalize_assignment(get_json_body())
    with locked_session(session_id) as session:
        removed = session.remove_assignment(
            assignment.resource_id, assignment.template_id, assignment.slot_id, assignment.day
        )
        if removed:
            planning_logger.mutation_applied(session.id, 'remove_assignment', assignment.key)
        return _snapshot_response(session, removed=removed)


@api_planning_bp.route('/sessions/<session_id>/conflicts', methods=['GET'])
@handle_errors
def get_conflicts(session_id):
    """
    Assignments blocked by the conflict checker.

    Query params:
        resource_id: Only this resource's conflicts (optional)
    """
    resource_id = request.args.get('resource_id')
    with locked_session(session_id) as session:
        conflicts = session.resource_conflicts(resource_id) if resource_id else session.conflicts
        return jsonify({
            'success': True,
            'conflicts': [c.to_dict() for c in conflicts],
            'has_conflicts': session.has_conflicts,
        })


@api_planning_bp.route('/sessions/<session_id>/conflicts', methods=['DELETE'])
@handle_errors
def clear_conflicts(session_id):
    with locked_session(session_id) as session:
        cleared = session.clear_conflicts()
        planning_logger.mutation_applied(session.id, 'clear_conflicts', cleared)
        return _snapshot_response(session, cleared=cleared)


# ===== Projections =====

@api_planning_bp.route('/sessions/<session_id>/coverage', methods=['GET'])
@handle_errors
def get_coverage(session_id):
    with locked_session(session_id) as session:
        slots = session.coverage_slots()
        return jsonify({
            'success': True,
            'coverage_slots': [slot.to_dict() for slot in slots],
            'summary': session.coverage_summary(slots).to_dict(),
        })


@api_planning_bp.route('/sessions/<session_id>/timeline/<day>', methods=['GET'])
@handle_errors
def get_timeline(session_id, day):
    day = parse_iso_day(day)
    with locked_session(session_id) as session:
        segments = session.timeline(day)
        return jsonify({
            'success': True,
            'day': day.isoformat(),
            'segments': [segment.to_dict() for segment in segments],
        })


@api_planning_bp.route('/sessions/<session_id>/records', methods=['GET'])
@handle_errors
def get_plan_records(session_id):
    """Preview of what a save would write."""
    with locked_session(session_id) as session:
        records = build_plan_records(session)
        return jsonify({'success': True, 'records': [r.to_dict() for r in records], 'count': len(records)})


@api_planning_bp.route('/sessions/<session_id>/save', methods=['POST'])
@handle_errors
@with_db_transaction
def save_plan(session_id):
    with locked_session(session_id) as session:
        stats = _service().save_plan(session)
        planning_logger.plan_saved(session.id, stats)
        return jsonify({'success': True, 'stats': stats})
