"""
Assignment Conflict Checker

Gates every write to the assignment ledger: a resource may not hold two slots
whose time intervals overlap on the same day. Slots that merely touch
(09:00-13:00 then 13:00-17:00) are allowed.

Order of checks for a candidate (resource, template, slot, day):
1. Resolve the candidate's interval from the coverage set
2. Reject an identical tuple as a duplicate (clearer than a zero-width overlap)
3. Test the candidate against every slot the resource already holds that day
4. Write to the ledger only when nothing overlaps
"""
import logging
from datetime import date
from typing import Dict, Iterable, Optional, Tuple, Union

from shiftplanner.error_handlers.exceptions import (
    DuplicateAssignmentException,
    PlanInconsistencyError,
    SchedulingConflictException,
)
from .assignment_ledger import AssignmentLedger
from .planning_types import CoverageRequirement, CoverageSlot, ResourceAssignment
from .time_intervals import overlaps


logger = logging.getLogger(__name__)

Coverage = Union[CoverageSlot, CoverageRequirement]


class AssignmentConflictChecker:
    """
    Validates candidate assignments against a resource's existing assignments.

    The checker holds no state of its own beyond the ledger it guards; the
    coverage set is passed on every call so it always reflects the current
    template selections.
    """

    def __init__(self, ledger: AssignmentLedger):
        self.ledger = ledger

    def find_conflict(
        self,
        candidate: ResourceAssignment,
        coverage: Iterable[Coverage]
    ) -> Optional[Coverage]:
        """
        Return the first already-held slot overlapping the candidate, or None.

        The candidate's own slot (a duplicate) is never reported here.

        Raises:
            PlanInconsistencyError: If the candidate or an existing assignment
                references a slot absent from the coverage set
        """
        index = _index_coverage(coverage)
        candidate_slot = _lookup(index, candidate)

        for existing in self.ledger.by_resource_and_day(candidate.resource_id, candidate.day):
            if existing.key == candidate.key:
                continue
            existing_slot = _lookup(index, existing)
            if overlaps(candidate_slot.interval, existing_slot.interval):
                return existing_slot
        return None

    def assign(
        self,
        candidate: ResourceAssignment,
        coverage: Iterable[Coverage]
    ) -> ResourceAssignment:
        """
        Check the candidate and write it to the ledger.

        Raises:
            DuplicateAssignmentException: If the identical tuple is already held
            SchedulingConflictException: If the resource holds an overlapping
                slot that day; the ledger is left untouched
            PlanInconsistencyError: If the candidate references an unknown slot
        """
        index = _index_coverage(coverage)
        candidate_slot = _lookup(index, candidate)

        if candidate in self.ledger:
            raise DuplicateAssignmentException(
                f"{candidate.resource_name} is already assigned to "
                f"{_describe(candidate_slot)} on {candidate.day.isoformat()}",
                details={'assignment': candidate.to_dict()}
            )

        conflicting = self.find_conflict(candidate, index)
        if conflicting is not None:
            error = _conflict_error(candidate, candidate_slot, conflicting)
            logger.info(f"Blocked assignment: {error.message}")
            raise error

        return self.ledger.assign(candidate)


def _index_coverage(coverage: Iterable[Coverage]) -> Dict[Tuple[str, str, date], Coverage]:
    if isinstance(coverage, dict):
        return coverage
    return {slot.key: slot for slot in coverage}


def _lookup(index, assignment: ResourceAssignment) -> Coverage:
    slot = index.get((assignment.template_id, assignment.slot_id, assignment.day))
    if slot is None:
        raise PlanInconsistencyError(
            f"Assignment of {assignment.resource_id} references template "
            f"{assignment.template_id} slot {assignment.slot_id} on "
            f"{assignment.day.isoformat()}, which is not part of the current selections"
        )
    return slot


def _describe(slot: Coverage) -> str:
    name = slot.template_name
    if slot.slot_label:
        name = f"{name} ({slot.slot_label})"
    return f"{name} {slot.start_time}-{slot.end_time}"


def _slot_details(slot: Coverage) -> dict:
    return {
        'template_id': slot.template_id,
        'template_name': slot.template_name,
        'slot_id': slot.slot_id,
        'label': slot.slot_label or slot.template_name,
        'start_time': slot.start_time,
        'end_time': slot.end_time,
    }


def _conflict_error(
    candidate: ResourceAssignment,
    candidate_slot: Coverage,
    conflicting: Coverage
) -> SchedulingConflictException:
    message = (
        f"{candidate.resource_name} is already assigned to {_describe(conflicting)} "
        f"on {candidate.day.isoformat()}"
    )
    return SchedulingConflictException(
        message,
        details={
            'resource_id': candidate.resource_id,
            'resource_name': candidate.resource_name,
            'day': candidate.day.isoformat(),
            'conflict_type': 'overlap',
            'conflicting_slot': _slot_details(conflicting),
            'requested_slot': _slot_details(candidate_slot),
        }
    )
