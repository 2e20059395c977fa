"""
Tests for the database models.
"""
import pytest
from datetime import date
from sqlalchemy.exc import IntegrityError


@pytest.mark.integration
class TestShiftTemplateModel:

    def test_to_dict_orders_slots_by_position(self, template_factory):
        row = template_factory(id='t1', slots=[('13:00', '17:00', 2), ('09:00', '13:00')])
        data = row.to_dict()
        assert [s['id'] for s in data['time_slots']] == ['s0', 's1']
        assert data['time_slots'][0]['required_staff'] == 2
        assert data['time_slots'][1]['label'] == ''

    def test_slot_keys_unique_per_template(self, models, db_session, template_factory):
        row = template_factory(id='t1')
        row.slots.append(models['ShiftTemplateSlot'](slot_key='s0', position=1, start_time='14:00', end_time='15:00'))
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()

    def test_deleting_template_removes_slots(self, models, db_session, template_factory):
        row = template_factory(id='t1', slots=[('09:00', '10:00'), ('10:00', '11:00')])
        db_session.delete(row)
        db_session.commit()
        assert db_session.query(models['ShiftTemplateSlot']).count() == 0


@pytest.mark.integration
class TestStoreOpeningHoursModel:

    def test_one_rule_per_weekday(self, db_session, opening_hours_factory):
        opening_hours_factory('store-1', day_of_week=3)
        with pytest.raises(IntegrityError):
            opening_hours_factory('store-1', day_of_week=3)
        db_session.rollback()

    def test_closed_day_to_dict(self, opening_hours_factory):
        row = opening_hours_factory('store-1', day_of_week=0, open_time=None, close_time=None, is_closed=True)
        assert row.to_dict() == {'day': 0, 'open_time': '', 'close_time': '', 'is_closed': True}


@pytest.mark.integration
class TestPlannedShiftModel:

    def _shift(self, models, **kwargs):
        defaults = {
            'template_id': 'am',
            'store_id': 'store-1',
            'shift_date': date(2025, 10, 13),
            'slot_id': 's0',
            'start_time': '09:00',
            'end_time': '13:00',
            'template_name': 'Morning',
        }
        defaults.update(kwargs)
        return models['PlannedShift'](**defaults)

    def test_get_in_range(self, models, db_session):
        for day in (12, 13, 15, 20):
            db_session.add(self._shift(models, shift_date=date(2025, 10, day)))
        db_session.add(self._shift(models, store_id='store-2'))
        db_session.commit()

        rows = models['PlannedShift'].get_in_range('store-1', date(2025, 10, 13), date(2025, 10, 19))
        assert [r.shift_date.day for r in rows] == [13, 15]

    def test_to_dict_lists_assignments(self, models, db_session):
        row = self._shift(models)
        row.assignments.append(models['PlannedShiftAssignment'](resource_id='r1', resource_name='Rita'))
        db_session.add(row)
        db_session.commit()

        data = row.to_dict()
        assert data['date'] == '2025-10-13'
        assert data['assignments'] == ['r1']

    def test_plan_key_is_unique(self, models, db_session):
        db_session.add(self._shift(models))
        db_session.add(self._shift(models))
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()
