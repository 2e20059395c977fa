"""
Planning Session

Explicit context object for one planner working on one store over one period.
It owns the mutable planning state (template selections, the assignment
ledger and the workflow phase); everything derived from it (coverage slots,
statistics, timeline segments) is recomputed from scratch on every read so a
projection can never be stale.

Every mutation keeps the state consistent by construction: removing a
template or deselecting a day also removes the assignments that pointed at it,
so the ledger never references a slot outside the selections.
"""
import logging
import uuid
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional

from shiftplanner.error_handlers.exceptions import (
    ResourceNotFoundException,
    SchedulingConflictException,
    ValidationException,
)
from .assignment_ledger import AssignmentLedger
from .conflict_checker import AssignmentConflictChecker
from .coverage_aggregator import aggregate_coverage, summarize_coverage
from .coverage_resolver import resolve_coverage_requirements
from .planning_types import (
    ConflictInfo,
    CoverageSlot,
    CoverageSummary,
    PlanningPhase,
    PlanningSnapshot,
    ResourceAssignment,
    ShiftTemplate,
    StoreOpeningRule,
    TemplateSelection,
    TimelineSegment,
    days_in_period,
    weekday_index,
)
from .timeline_builder import build_period_timelines, build_timeline_segments


logger = logging.getLogger(__name__)

MAX_PERIOD_DAYS = 366


class PlanningSession:
    """
    Planning state for a store and period.

    Attributes:
        id: Session identifier used by the session manager
        store_id: Store being planned
        store_name: Display name of the store
        period_start: First day of the period (inclusive)
        period_end: Last day of the period (inclusive)
        opening_rules: Opening rules keyed by weekday (0=Sunday)
        phase: Current workflow phase
    """

    def __init__(
        self,
        store_id: str,
        period_start: date,
        period_end: date,
        opening_rules: Optional[Mapping[int, StoreOpeningRule]] = None,
        store_name: Optional[str] = None,
        session_id: Optional[str] = None
    ):
        _check_period(period_start, period_end)
        self.id = session_id or uuid.uuid4().hex
        self.store_id = store_id
        self.store_name = store_name or store_id
        self.period_start = period_start
        self.period_end = period_end
        self.opening_rules: Dict[int, StoreOpeningRule] = dict(opening_rules or {})
        self.phase = PlanningPhase.TEMPLATES
        self._selections: Dict[str, TemplateSelection] = {}
        self.ledger = AssignmentLedger()
        self.checker = AssignmentConflictChecker(self.ledger)
        self._conflicts: List[ConflictInfo] = []

    # ===== Context =====

    @property
    def days(self) -> List[date]:
        return days_in_period(self.period_start, self.period_end)

    @property
    def selections(self) -> List[TemplateSelection]:
        """Template selections in the order they were added."""
        return list(self._selections.values())

    def set_period(self, period_start: date, period_end: date) -> None:
        """Move the period; days and assignments falling outside it are dropped."""
        _check_period(period_start, period_end)
        self.period_start = period_start
        self.period_end = period_end

        for selection in self._selections.values():
            selection.selected_days = frozenset(
                d for d in selection.selected_days if period_start <= d <= period_end
            )
        removed = self.ledger.remove_outside(period_start, period_end)
        logger.debug(f"Session {self.id}: period set to {period_start}..{period_end}, {removed} assignments dropped")

    def set_opening_rules(self, opening_rules: Mapping[int, StoreOpeningRule]) -> None:
        self.opening_rules = dict(opening_rules)

    def go_to_phase(self, phase) -> None:
        try:
            self.phase = PlanningPhase(int(phase))
        except (TypeError, ValueError):
            raise ValidationException(f"Unknown planning phase {phase!r}", details={'field': 'phase'})

    # ===== Template selections =====

    def add_template(self, template: ShiftTemplate, days: Optional[Iterable[date]] = None) -> TemplateSelection:
        """
        Select a template. Defaults to every day of the period.

        Adding an already selected template is a no-op and returns the existing
        selection unchanged.
        """
        existing = self._selections.get(template.id)
        if existing is not None:
            return existing

        chosen = self.days if days is None else self._checked_days(days)
        selection = TemplateSelection(
            template_id=template.id,
            template=template,
            selected_days=frozenset(chosen),
        )
        self._selections[template.id] = selection
        return selection

    def remove_template(self, template_id: str) -> None:
        """Deselect a template and drop every assignment made against it."""
        self._get_selection(template_id)
        del self._selections[template_id]
        self.ledger.remove_template(template_id)

    def toggle_day(self, template_id: str, day: date) -> bool:
        """
        Flip one day of a template selection.

        Returns:
            True if the day is selected after the toggle
        """
        selection = self._get_selection(template_id)
        self._checked_days([day])
        if day in selection.selected_days:
            selection.selected_days = selection.selected_days - {day}
            self.ledger.remove_template_day(template_id, day)
            return False
        selection.selected_days = selection.selected_days | {day}
        return True

    def select_days(self, template_id: str, days: Iterable[date]) -> None:
        """Replace the selected days of a template."""
        selection = self._get_selection(template_id)
        new_days = frozenset(self._checked_days(days))
        for dropped in selection.selected_days - new_days:
            self.ledger.remove_template_day(template_id, dropped)
        selection.selected_days = new_days

    def clear_days(self, template_id: str) -> None:
        """Deselect every day of a template, dropping its assignments."""
        selection = self._get_selection(template_id)
        selection.selected_days = frozenset()
        self.ledger.remove_template(template_id)

    # ===== Assignments =====

    def assign_resource(self, assignment: ResourceAssignment) -> ResourceAssignment:
        """
        Assign a resource to a slot on a day.

        Raises:
            ResourceNotFoundException: If the template/slot/day is not planned
            DuplicateAssignmentException: If the identical assignment exists
            SchedulingConflictException: If the resource is busy at that time
        """
        self._require_planned_slot(assignment.template_id, assignment.slot_id, assignment.day)
        try:
            return self.checker.assign(assignment, self._requirements())
        except SchedulingConflictException as e:
            self._conflicts.append(_conflict_info(e))
            raise

    def remove_assignment(self, resource_id: str, template_id: str, slot_id: str, day: date) -> bool:
        """Remove an assignment; missing assignments are ignored."""
        return self.ledger.remove(resource_id, template_id, slot_id, day)

    @property
    def assignments(self) -> List[ResourceAssignment]:
        return self.ledger.all()

    # ===== Conflict log =====

    @property
    def conflicts(self) -> List[ConflictInfo]:
        """Assignments blocked by the conflict checker, oldest first."""
        return list(self._conflicts)

    @property
    def has_conflicts(self) -> bool:
        return bool(self._conflicts)

    def resource_conflicts(self, resource_id: str) -> List[ConflictInfo]:
        return [c for c in self._conflicts if c.resource_id == resource_id]

    def clear_conflicts(self) -> int:
        cleared = len(self._conflicts)
        self._conflicts.clear()
        return cleared

    # ===== Projections =====

    def coverage_slots(self) -> List[CoverageSlot]:
        return aggregate_coverage(self._requirements(), self.ledger, self.phase)

    def coverage_summary(self, slots: Optional[List[CoverageSlot]] = None) -> CoverageSummary:
        return summarize_coverage(self.coverage_slots() if slots is None else slots)

    def timeline(self, day: date) -> List[TimelineSegment]:
        self._checked_days([day])
        return build_timeline_segments(
            day,
            self.opening_rules.get(weekday_index(day)),
            self.coverage_slots()
        )

    def timelines(self, slots: Optional[List[CoverageSlot]] = None) -> Dict[date, List[TimelineSegment]]:
        return build_period_timelines(
            self.days,
            self.opening_rules,
            self.coverage_slots() if slots is None else slots
        )

    def snapshot(self) -> PlanningSnapshot:
        """Recompute every projection once and freeze it for rendering."""
        slots = self.coverage_slots()
        return PlanningSnapshot(
            store_id=self.store_id,
            period_start=self.period_start,
            period_end=self.period_end,
            phase=self.phase,
            coverage_slots=tuple(slots),
            summary=self.coverage_summary(slots),
            timelines={day: tuple(segments) for day, segments in self.timelines(slots).items()},
            conflicts=tuple(self._conflicts),
        )

    def reset(self) -> None:
        """Drop every selection, assignment and logged conflict and return to the template phase."""
        self._selections.clear()
        self.ledger.clear()
        self._conflicts.clear()
        self.phase = PlanningPhase.TEMPLATES

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'store_id': self.store_id,
            'store_name': self.store_name,
            'period_start': self.period_start.isoformat(),
            'period_end': self.period_end.isoformat(),
            'phase': int(self.phase),
            'opening_rules': [rule.to_dict() for _, rule in sorted(self.opening_rules.items())],
            'selections': [
                {
                    'template_id': s.template_id,
                    'template_name': s.template.name,
                    'selected_days': [d.isoformat() for d in s.sorted_days()],
                }
                for s in self._selections.values()
            ],
            'assignments': [a.to_dict() for a in self.ledger],
            'conflicts': [c.to_dict() for c in self._conflicts],
            'has_conflicts': self.has_conflicts,
        }

    # ===== Internals =====

    def _requirements(self):
        return resolve_coverage_requirements(self.selections, self.period_start, self.period_end)

    def _get_selection(self, template_id: str) -> TemplateSelection:
        selection = self._selections.get(template_id)
        if selection is None:
            raise ResourceNotFoundException(
                f"Template {template_id} is not part of this plan",
                details={'template_id': template_id}
            )
        return selection

    def _require_planned_slot(self, template_id: str, slot_id: str, day: date) -> None:
        selection = self._get_selection(template_id)
        slot = selection.template.get_slot(slot_id)
        if slot is None:
            raise ResourceNotFoundException(
                f"Template {template_id} has no slot {slot_id}",
                details={'template_id': template_id, 'slot_id': slot_id}
            )
        # Malformed slots are left out of coverage, so they cannot be staffed
        slot.interval()
        if day not in selection.selected_days:
            raise ResourceNotFoundException(
                f"Template {template_id} is not planned on {day.isoformat()}",
                details={'template_id': template_id, 'day': day.isoformat()}
            )

    def _checked_days(self, days: Iterable[date]) -> List[date]:
        checked = list(days)
        outside = [d for d in checked if not self.period_start <= d <= self.period_end]
        if outside:
            raise ValidationException(
                f"Days outside the planning period "
                f"{self.period_start.isoformat()}..{self.period_end.isoformat()}: "
                + ', '.join(d.isoformat() for d in outside),
                details={'days': [d.isoformat() for d in outside]}
            )
        return checked


def _check_period(period_start: date, period_end: date) -> None:
    if period_end < period_start:
        raise ValidationException(
            f"Period end {period_end.isoformat()} is before start {period_start.isoformat()}",
            details={'field': 'period'}
        )
    length = (period_end - period_start).days + 1
    if length > MAX_PERIOD_DAYS:
        raise ValidationException(
            f"Period spans {length} days; at most {MAX_PERIOD_DAYS} can be planned at once",
            details={'field': 'period', 'days': length, 'max_days': MAX_PERIOD_DAYS}
        )


def _conflict_info(error: SchedulingConflictException) -> ConflictInfo:
    details = error.details
    return ConflictInfo(
        resource_id=details['resource_id'],
        resource_name=details['resource_name'],
        day=date.fromisoformat(details['day']),
        conflict_type=details.get('conflict_type', 'overlap'),
        message=error.message,
        conflicting_slot=details.get('conflicting_slot', {}),
        requested_slot=details.get('requested_slot', {}),
    )
