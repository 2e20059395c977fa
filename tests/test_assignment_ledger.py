"""
Tests for the in-memory assignment ledger.
"""
import pytest
from datetime import date

from shiftplanner.error_handlers.exceptions import DuplicateAssignmentException
from shiftplanner.services.assignment_ledger import AssignmentLedger


MONDAY = date(2025, 10, 13)
TUESDAY = date(2025, 10, 14)


@pytest.mark.unit
class TestAssignmentLedger:

    def test_assign_and_lookup(self, make_assignment):
        ledger = AssignmentLedger()
        a = make_assignment('x', 't', 's0', MONDAY)
        ledger.assign(a)

        assert len(ledger) == 1
        assert a in ledger
        assert a.key in ledger
        assert ledger.by_resource_and_day('x', MONDAY) == [a]
        assert ledger.for_slot('t', 's0', MONDAY) == [a]
        assert ledger.by_resource_and_day('x', TUESDAY) == []

    def test_duplicate_rejected(self, make_assignment):
        ledger = AssignmentLedger([make_assignment('x', 't', 's0', MONDAY)])
        with pytest.raises(DuplicateAssignmentException) as exc_info:
            ledger.assign(make_assignment('x', 't', 's0', MONDAY, name='Other name'))
        assert exc_info.value.status_code == 409
        assert len(ledger) == 1

    def test_overlap_is_not_the_ledgers_concern(self, make_assignment):
        ledger = AssignmentLedger()
        ledger.assign(make_assignment('x', 't', 's0', MONDAY))
        ledger.assign(make_assignment('x', 't', 's1', MONDAY))
        assert len(ledger.by_resource_and_day('x', MONDAY)) == 2

    def test_remove_is_idempotent(self, make_assignment):
        ledger = AssignmentLedger([make_assignment('x', 't', 's0', MONDAY)])
        assert ledger.remove('x', 't', 's0', MONDAY) is True
        assert ledger.remove('x', 't', 's0', MONDAY) is False
        assert len(ledger) == 0
        assert ledger.by_resource_and_day('x', MONDAY) == []
        assert ledger.for_slot('t', 's0', MONDAY) == []

    def test_remove_template_and_day(self, make_assignment):
        ledger = AssignmentLedger([
            make_assignment('x', 't', 's0', MONDAY),
            make_assignment('y', 't', 's0', TUESDAY),
            make_assignment('x', 'u', 's0', MONDAY),
        ])
        assert ledger.remove_template_day('t', MONDAY) == 1
        assert [a.key for a in ledger] == [('y', 't', 's0', TUESDAY), ('x', 'u', 's0', MONDAY)]
        assert ledger.remove_template('t') == 1
        assert [a.template_id for a in ledger.all()] == ['u']

    def test_remove_outside_period(self, make_assignment):
        ledger = AssignmentLedger([
            make_assignment('x', 't', 's0', MONDAY),
            make_assignment('x', 't', 's0', TUESDAY),
        ])
        assert ledger.remove_outside(TUESDAY, TUESDAY) == 1
        assert [a.day for a in ledger] == [TUESDAY]

    def test_clear(self, make_assignment):
        ledger = AssignmentLedger([make_assignment('x', 't', 's0', MONDAY)])
        ledger.clear()
        assert len(ledger) == 0
        assert ledger.for_slot('t', 's0', MONDAY) == []
