"""
Pytest configuration and fixtures for the shift coverage planner tests.

This module provides shared fixtures for:
- Flask application with test configuration
- Database setup and teardown
- Factories for planning templates, stored templates and opening hours
"""
import pytest

from shiftplanner import create_app
from shiftplanner.extensions import db as _db
from shiftplanner.services.planning_types import (
    ResourceAssignment,
    ShiftTemplate,
    StoreOpeningRule,
    TemplateScope,
    TimeSlot,
)


@pytest.fixture(scope='session')
def app():
    """
    Create application for the tests.

    Uses TestingConfig with in-memory SQLite database.
    Scope is 'session' to reuse the same app across all tests.
    """
    app = create_app('testing')
    app.config.update({
        'TESTING': True,
    })
    return app


@pytest.fixture(scope='function')
def db(app):
    """
    Create all tables before each test function and drop them after.
    """
    with app.app_context():
        _db.create_all()
        yield _db
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope='function')
def db_session(db):
    """Database session for service-level tests."""
    yield db.session
    db.session.rollback()


@pytest.fixture(scope='function')
def client(app, db):
    """
    Create a test client for the app.
    """
    with app.test_client() as client:
        yield client


@pytest.fixture(scope='function')
def models(app, db):
    """Models registered by create_app()."""
    from shiftplanner.models.registry import get_models
    return get_models()


@pytest.fixture(autouse=True)
def clear_planning_sessions():
    """Planning sessions are process-global; start every test with none."""
    from shiftplanner.services.session_manager import session_manager
    session_manager.sessions.clear()
    yield
    session_manager.sessions.clear()


# =============================================================================
# Planning factories (no database)
# =============================================================================

@pytest.fixture
def make_template():
    """
    Build planning ShiftTemplate objects.

    Usage:
        template = make_template('morning', [('09:00', '13:00')])
        template = make_template('t', [('08:00', '10:00', 2, 'Open')])
    """
    def _make(template_id, slots, name=None, color='#0ea5e9'):
        time_slots = []
        for index, slot_def in enumerate(slots):
            start, end = slot_def[0], slot_def[1]
            required = slot_def[2] if len(slot_def) > 2 else 1
            label = slot_def[3] if len(slot_def) > 3 else ''
            time_slots.append(TimeSlot(
                id=f'{template_id}-s{index}',
                start_time=start,
                end_time=end,
                label=label,
                required_staff=required,
            ))
        return ShiftTemplate(
            id=template_id,
            name=name or template_id.title(),
            color=color,
            scope=TemplateScope.STORE,
            store_id='store-1',
            time_slots=tuple(time_slots),
        )

    return _make


@pytest.fixture
def make_assignment():
    """Build ResourceAssignment objects with a default display name."""
    def _make(resource_id, template_id, slot_id, day, name=None):
        return ResourceAssignment(
            resource_id=resource_id,
            resource_name=name or resource_id.upper(),
            template_id=template_id,
            slot_id=slot_id,
            day=day,
        )

    return _make


@pytest.fixture
def weekday_rules():
    """Store open 09:00-18:00 every day except Sunday."""
    rules = {day: StoreOpeningRule(day, '09:00', '18:00') for day in range(1, 7)}
    rules[0] = StoreOpeningRule(0, '', '', is_closed=True)
    return rules


# =============================================================================
# Database factories
# =============================================================================

@pytest.fixture
def template_factory(models, db):
    """
    Factory for stored ShiftTemplate rows.

    Usage:
        row = template_factory(slots=[('09:00', '13:00')])
        row = template_factory(scope='global', store_id=None)
    """
    counter = [0]

    def _create_template(slots=None, **kwargs):
        ShiftTemplate = models['ShiftTemplate']
        ShiftTemplateSlot = models['ShiftTemplateSlot']
        counter[0] += 1
        defaults = {
            'id': f'tpl-{counter[0]}',
            'name': f'Template {counter[0]}',
            'color': '#0ea5e9',
            'scope': 'store',
            'store_id': 'store-1',
        }
        defaults.update(kwargs)
        row = ShiftTemplate(**defaults)
        for position, slot_def in enumerate(slots or [('09:00', '13:00')]):
            row.slots.append(ShiftTemplateSlot(
                slot_key=f's{position}',
                position=position,
                start_time=slot_def[0],
                end_time=slot_def[1],
                required_staff=slot_def[2] if len(slot_def) > 2 else 1,
            ))
        db.session.add(row)
        db.session.commit()
        return row

    return _create_template


@pytest.fixture
def opening_hours_factory(models, db):
    """
    Factory for StoreOpeningHours rows.

    Usage:
        opening_hours_factory('store-1', day_of_week=1, open_time='09:00', close_time='18:00')
    """
    def _create_opening_hours(store_id='store-1', **kwargs):
        StoreOpeningHours = models['StoreOpeningHours']
        defaults = {
            'day_of_week': 1,
            'open_time': '09:00',
            'close_time': '18:00',
            'is_closed': False,
        }
        defaults.update(kwargs)
        row = StoreOpeningHours(store_id=store_id, **defaults)
        db.session.add(row)
        db.session.commit()
        return row

    return _create_opening_hours
