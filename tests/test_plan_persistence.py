"""
Tests for saving and reloading plans and for template / opening-hour storage.
"""
import pytest
from datetime import date

from shiftplanner.error_handlers.exceptions import (
    InvalidTimeFormatException,
    ResourceNotFoundException,
    ValidationException,
)
from shiftplanner.services.plan_persistence import PlanPersistenceService, build_plan_records
from shiftplanner.services.planning_session import PlanningSession
from shiftplanner.services.planning_types import StoreOpeningRule, TemplateScope
from shiftplanner.services.record_normalizer import normalize_template


MONDAY = date(2025, 10, 13)
TUESDAY = date(2025, 10, 14)
WEDNESDAY = date(2025, 10, 15)


@pytest.fixture
def service(db_session, models):
    return PlanPersistenceService(db_session, models)


@pytest.fixture
def planned_session(make_template, make_assignment):
    """Two templates over Monday-Wednesday with three assignments."""
    session = PlanningSession('store-1', MONDAY, WEDNESDAY, store_name='Main Street')
    session.add_template(make_template('am', [('09:00', '13:00', 2, 'Open')], name='Morning'), [MONDAY, TUESDAY])
    session.add_template(make_template('pm', [('13:00', '18:00')], name='Evening'), [MONDAY])
    session.assign_resource(make_assignment('x', 'am', 'am-s0', MONDAY, name='Xavier'))
    session.assign_resource(make_assignment('y', 'am', 'am-s0', MONDAY, name='Yara'))
    session.assign_resource(make_assignment('x', 'pm', 'pm-s0', MONDAY, name='Xavier'))
    return session


@pytest.mark.integration
class TestBuildPlanRecords:

    def test_one_record_per_template_day_slot(self, planned_session):
        records = build_plan_records(planned_session)
        assert [(r.template_id, r.date, r.slot_id) for r in records] == [
            ('am', MONDAY, 'am-s0'),
            ('pm', MONDAY, 'pm-s0'),
            ('am', TUESDAY, 'am-s0'),
        ]
        assert records[0].assignments == ('x', 'y')
        assert records[0].store_id == 'store-1'
        assert (records[1].start_time, records[1].end_time) == ('13:00', '18:00')
        assert records[2].to_dict()['assignments'] == []


@pytest.mark.integration
class TestSavePlan:

    def test_save_creates_rows(self, service, planned_session, models, db_session):
        stats = service.save_plan(planned_session)
        assert stats == {'created': 3, 'updated': 0, 'deleted': 0, 'assignments': 3}

        PlannedShift = models['PlannedShift']
        row = db_session.query(PlannedShift).filter_by(template_id='am', shift_date=MONDAY).one()
        assert row.template_name == 'Morning'
        assert row.slot_label == 'Open'
        assert row.required_staff == 2
        assert sorted(a.resource_id for a in row.assignments) == ['x', 'y']

    def test_save_is_idempotent(self, service, planned_session, models, db_session):
        service.save_plan(planned_session)
        db_session.commit()
        stats = service.save_plan(planned_session)
        db_session.commit()

        assert stats == {'created': 0, 'updated': 3, 'deleted': 0, 'assignments': 3}
        assert db_session.query(models['PlannedShift']).count() == 3
        assert db_session.query(models['PlannedShiftAssignment']).count() == 3

    def test_save_replaces_assignments_and_drops_unplanned(self, service, planned_session, models, db_session):
        service.save_plan(planned_session)
        db_session.commit()

        planned_session.remove_assignment('y', 'am', 'am-s0', MONDAY)
        planned_session.remove_template('pm')
        stats = service.save_plan(planned_session)
        db_session.commit()

        assert stats['deleted'] == 1
        PlannedShift = models['PlannedShift']
        assert db_session.query(PlannedShift).filter_by(template_id='pm').count() == 0
        row = db_session.query(PlannedShift).filter_by(template_id='am', shift_date=MONDAY).one()
        assert [a.resource_id for a in row.assignments] == ['x']

    def test_other_stores_and_periods_untouched(self, service, planned_session, make_template, models, db_session):
        other = PlanningSession('store-2', MONDAY, MONDAY)
        other.add_template(make_template('am', [('09:00', '13:00')]))
        service.save_plan(other)
        db_session.commit()

        service.save_plan(planned_session)
        db_session.commit()
        assert db_session.query(models['PlannedShift']).filter_by(store_id='store-2').count() == 1


@pytest.mark.integration
class TestLoadPlan:

    def test_round_trip(self, service, planned_session, db_session, opening_hours_factory):
        opening_hours_factory('store-1', day_of_week=1, open_time='08:00', close_time='20:00')
        service.save_plan(planned_session)
        db_session.commit()

        loaded = service.load_plan('store-1', 'Main Street', MONDAY, WEDNESDAY)

        assert loaded.id != planned_session.id
        assert loaded.opening_rules[1].open_time == '08:00'
        assert {a.key for a in loaded.assignments} == {a.key for a in planned_session.assignments}
        assert {a.resource_name for a in loaded.assignments} == {'Xavier', 'Yara'}
        assert [s.key for s in loaded.coverage_slots()] == [s.key for s in planned_session.coverage_slots()]
        assert loaded.coverage_summary() == planned_session.coverage_summary()
        templates = {s.template_id: s.template for s in loaded.selections}
        assert templates['am'].name == 'Morning'
        assert templates['am'].time_slots[0].label == 'Open'

    def test_nothing_saved(self, service):
        loaded = service.load_plan('store-9', None, MONDAY, WEDNESDAY)
        assert loaded.selections == []
        assert loaded.store_name == 'store-9'


@pytest.mark.integration
class TestTemplateStorage:

    def test_store_sees_global_and_own_templates(self, service, template_factory):
        template_factory(id='g', name='Global', scope='global', store_id=None)
        template_factory(id='own', name='Own', store_id='store-1')
        template_factory(id='foreign', name='Foreign', store_id='store-2')
        template_factory(id='old', name='Old', store_id='store-1', is_active=False)

        templates = service.get_templates_for_store('store-1')
        assert [t.id for t in templates] == ['g', 'own']
        assert templates[0].scope == TemplateScope.GLOBAL

    def test_create_and_get(self, service, db_session):
        created = service.create_template(normalize_template({
            'id': 'new', 'name': 'New', 'store_id': 'store-1',
            'time_slots': [{'start_time': '18:00', 'end_time': '24:00', 'required_staff': 3}],
        }))
        db_session.commit()

        fetched = service.get_template('new')
        assert fetched == created
        assert fetched.time_slots[0].end_time == '24:00'

    @pytest.mark.parametrize('slot', [
        {'start_time': '22:00', 'end_time': '06:00'},
        {'start_time': '9:00', 'end_time': '10:00'},
    ])
    def test_create_rejects_bad_times(self, service, slot):
        with pytest.raises(InvalidTimeFormatException):
            service.create_template(normalize_template({
                'id': 'bad', 'name': 'Bad', 'store_id': 'store-1', 'time_slots': [slot],
            }))

    def test_create_rejects_store_template_without_store(self, service):
        with pytest.raises(ValidationException):
            service.create_template(normalize_template({'id': 'x', 'name': 'X'}))

    def test_create_rejects_taken_id(self, service, template_factory):
        template_factory(id='dup')
        with pytest.raises(ValidationException):
            service.create_template(normalize_template({'id': 'dup', 'name': 'Dup', 'store_id': 'store-1'}))

    def test_delete_is_soft(self, service, template_factory, models, db_session):
        template_factory(id='gone')
        service.delete_template('gone')
        db_session.commit()

        with pytest.raises(ResourceNotFoundException):
            service.get_template('gone')
        with pytest.raises(ResourceNotFoundException):
            service.delete_template('gone')
        assert db_session.get(models['ShiftTemplate'], 'gone') is not None


@pytest.mark.integration
class TestOpeningRules:

    def test_replace_and_read(self, service, db_session, opening_hours_factory):
        opening_hours_factory('store-1', day_of_week=2)
        service.replace_opening_rules('store-1', {
            1: StoreOpeningRule(1, '08:00', '20:00'),
            0: StoreOpeningRule(0, '', '', is_closed=True),
        })
        db_session.commit()

        rules = service.get_opening_rules('store-1')
        assert sorted(rules) == [0, 1]
        assert rules[0].is_closed is True
        assert (rules[1].open_time, rules[1].close_time) == ('08:00', '20:00')

    def test_replace_rejects_bad_hours(self, service):
        with pytest.raises(InvalidTimeFormatException):
            service.replace_opening_rules('store-1', {1: StoreOpeningRule(1, '20:00', '08:00')})
