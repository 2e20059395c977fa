"""
Coverage Aggregator

Joins coverage requirements with the assignment ledger and computes coverage
statistics for a plan and for each of its days.

Coverage percentage is round(100 * covered / total), half rounded up, and is
defined as 0 for a plan without slots (an empty plan is the normal state at
the start of a session, never an error).
"""
import logging
import math
from collections import OrderedDict
from typing import Iterable, List, Sequence

from shiftplanner.error_handlers.exceptions import PlanInconsistencyError
from .assignment_ledger import AssignmentLedger
from .planning_types import (
    CoverageRequirement,
    CoverageSlot,
    CoverageStatus,
    CoverageSummary,
    DayCoverage,
    PlanningPhase,
)


logger = logging.getLogger(__name__)


def aggregate_coverage(
    requirements: Sequence[CoverageRequirement],
    ledger: AssignmentLedger,
    phase: PlanningPhase = PlanningPhase.RESOURCES
) -> List[CoverageSlot]:
    """
    Attach assigned resources to every coverage requirement.

    Args:
        requirements: Output of resolve_coverage_requirements()
        ledger: Current assignments of the session
        phase: In the template phase every planned slot reports "covered";
               in the resource phase the status follows the staffing

    Returns:
        Fresh CoverageSlot objects in requirement order

    Raises:
        PlanInconsistencyError: If the ledger holds an assignment for a slot
            that is not among the requirements
    """
    slots = []
    matched = 0
    for requirement in requirements:
        assigned = tuple(ledger.for_slot(requirement.template_id, requirement.slot_id, requirement.day))
        matched += len(assigned)
        slots.append(_build_slot(requirement, assigned, phase))

    if matched != len(ledger):
        known = {r.key for r in requirements}
        orphans = [a for a in ledger if (a.template_id, a.slot_id, a.day) not in known]
        raise PlanInconsistencyError(
            f"{len(orphans)} assignments reference slots outside the current selections: "
            + ', '.join(f"{a.resource_id}@{a.template_id}/{a.slot_id}/{a.day.isoformat()}" for a in orphans[:5])
        )

    return slots


def _build_slot(requirement: CoverageRequirement, assigned, phase: PlanningPhase) -> CoverageSlot:
    if phase == PlanningPhase.TEMPLATES:
        status = CoverageStatus.COVERED
    elif len(assigned) >= requirement.required_staff:
        status = CoverageStatus.COVERED
    elif assigned:
        status = CoverageStatus.PARTIAL
    else:
        status = CoverageStatus.UNCOVERED

    return CoverageSlot(
        day=requirement.day,
        template_id=requirement.template_id,
        template_name=requirement.template_name,
        template_color=requirement.template_color,
        slot_id=requirement.slot_id,
        slot_label=requirement.slot_label,
        start_time=requirement.start_time,
        end_time=requirement.end_time,
        required_staff=requirement.required_staff,
        interval=requirement.interval,
        assigned_resources=assigned,
        coverage_status=status,
    )


def coverage_percentage(covered_slots: int, total_slots: int) -> int:
    """round(100 * covered / total) with halves rounded up; 0 when there are no slots."""
    if total_slots == 0:
        return 0
    return int(math.floor(100 * covered_slots / total_slots + 0.5))


def summarize_coverage(slots: Iterable[CoverageSlot]) -> CoverageSummary:
    """Plan-wide and per-day covered/total counts and percentages."""
    per_day = OrderedDict()
    total = covered = 0
    for slot in sorted(slots, key=lambda s: s.day):
        day_total, day_covered = per_day.get(slot.day, (0, 0))
        is_covered = 1 if slot.covered else 0
        per_day[slot.day] = (day_total + 1, day_covered + is_covered)
        total += 1
        covered += is_covered

    return CoverageSummary(
        total_slots=total,
        covered_slots=covered,
        coverage_percentage=coverage_percentage(covered, total),
        per_day=tuple(
            DayCoverage(
                day=day,
                total_slots=day_total,
                covered_slots=day_covered,
                coverage_percentage=coverage_percentage(day_covered, day_total),
            )
            for day, (day_total, day_covered) in per_day.items()
        ),
    )
