"""
Resource Assignment Ledger

In-memory store of the (resource, template, slot, day) assignments of one
planning session. The ledger only guarantees uniqueness of the tuple; time
overlap is the conflict checker's job, so the ledger stays a pure store.

Lookups used on every assignment attempt are served from indexes:
- (resource_id, day) for the conflict checker
- (template_id, slot_id, day) for the coverage aggregator
"""
import logging
from datetime import date
from typing import Dict, Iterator, List, Tuple

from shiftplanner.error_handlers.exceptions import DuplicateAssignmentException
from .planning_types import ResourceAssignment


logger = logging.getLogger(__name__)

AssignmentKey = Tuple[str, str, str, date]


class AssignmentLedger:
    """Assignment store with resource/day and slot/day indexes."""

    def __init__(self, assignments=None):
        self._assignments: Dict[AssignmentKey, ResourceAssignment] = {}
        self._by_resource_day: Dict[Tuple[str, date], Dict[AssignmentKey, ResourceAssignment]] = {}
        self._by_slot_day: Dict[Tuple[str, str, date], Dict[AssignmentKey, ResourceAssignment]] = {}
        for assignment in assignments or []:
            self.assign(assignment)

    def assign(self, assignment: ResourceAssignment) -> ResourceAssignment:
        """
        Insert an assignment.

        Raises:
            DuplicateAssignmentException: If the exact tuple is already present
        """
        key = assignment.key
        if key in self._assignments:
            raise DuplicateAssignmentException(
                f"{assignment.resource_name} is already assigned to slot "
                f"{assignment.slot_id} on {assignment.day.isoformat()}",
                details={'assignment': assignment.to_dict()}
            )

        self._assignments[key] = assignment
        self._by_resource_day.setdefault((assignment.resource_id, assignment.day), {})[key] = assignment
        self._by_slot_day.setdefault(
            (assignment.template_id, assignment.slot_id, assignment.day), {}
        )[key] = assignment
        return assignment

    def remove(self, resource_id: str, template_id: str, slot_id: str, day: date) -> bool:
        """
        Remove an assignment. Removing a missing assignment is a no-op.

        Returns:
            True if something was removed
        """
        key = (resource_id, template_id, slot_id, day)
        assignment = self._assignments.pop(key, None)
        if assignment is None:
            return False

        self._discard(self._by_resource_day, (resource_id, day), key)
        self._discard(self._by_slot_day, (template_id, slot_id, day), key)
        return True

    def by_resource_and_day(self, resource_id: str, day: date) -> List[ResourceAssignment]:
        """All assignments a resource holds on a day, in insertion order."""
        return list(self._by_resource_day.get((resource_id, day), {}).values())

    def for_slot(self, template_id: str, slot_id: str, day: date) -> List[ResourceAssignment]:
        """All resources assigned to one slot on one day, in insertion order."""
        return list(self._by_slot_day.get((template_id, slot_id, day), {}).values())

    def remove_template(self, template_id: str) -> int:
        """Drop every assignment of a template. Returns the number removed."""
        return self._remove_where(lambda a: a.template_id == template_id)

    def remove_template_day(self, template_id: str, day: date) -> int:
        """Drop a template's assignments on one day. Returns the number removed."""
        return self._remove_where(lambda a: a.template_id == template_id and a.day == day)

    def remove_outside(self, period_start: date, period_end: date) -> int:
        """Drop assignments dated outside the inclusive period."""
        return self._remove_where(lambda a: a.day < period_start or a.day > period_end)

    def clear(self) -> None:
        self._assignments.clear()
        self._by_resource_day.clear()
        self._by_slot_day.clear()

    def all(self) -> List[ResourceAssignment]:
        return list(self._assignments.values())

    def __len__(self) -> int:
        return len(self._assignments)

    def __iter__(self) -> Iterator[ResourceAssignment]:
        return iter(list(self._assignments.values()))

    def __contains__(self, assignment) -> bool:
        key = assignment.key if isinstance(assignment, ResourceAssignment) else assignment
        return key in self._assignments

    def _remove_where(self, predicate) -> int:
        doomed = [a for a in self._assignments.values() if predicate(a)]
        for a in doomed:
            self.remove(a.resource_id, a.template_id, a.slot_id, a.day)
        if doomed:
            logger.debug(f"Removed {len(doomed)} assignments from ledger")
        return len(doomed)

    @staticmethod
    def _discard(index, index_key, key):
        bucket = index.get(index_key)
        if bucket is None:
            return
        bucket.pop(key, None)
        if not bucket:
            del index[index_key]
