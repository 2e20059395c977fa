"""
Coverage Slot Resolver

Expands template selections into concrete coverage requirements: one entry per
(selected day x time slot) of every selected template.

(template_id, slot_id, day) is unique by construction because a template is
selected at most once per plan, so no deduplication happens here.
"""
import logging
from datetime import date
from typing import Iterable, List, Optional

from shiftplanner.error_handlers.exceptions import InvalidTimeFormatException
from .planning_types import CoverageRequirement, TemplateSelection


logger = logging.getLogger(__name__)


def resolve_coverage_requirements(
    selections: Iterable[TemplateSelection],
    period_start: Optional[date] = None,
    period_end: Optional[date] = None
) -> List[CoverageRequirement]:
    """
    Expand template selections into coverage requirements.

    Args:
        selections: Template selections in the order the planner added them
        period_start: First day to include (inclusive), None for unbounded
        period_end: Last day to include (inclusive), None for unbounded

    Returns:
        Requirements ordered by day, then selection order, then slot order.
        Templates without slots contribute nothing. Slots with malformed or
        wrap-around times are left out (logged) instead of failing the plan.
    """
    selections = list(selections)
    valid_slots = [_valid_slots(selection) for selection in selections]

    days = sorted({
        day
        for selection in selections
        for day in selection.selected_days
        if _in_period(day, period_start, period_end)
    })

    requirements = []
    for day in days:
        for selection, slots in zip(selections, valid_slots):
            if day not in selection.selected_days:
                continue
            template = selection.template
            for slot, interval in slots:
                requirements.append(CoverageRequirement(
                    day=day,
                    template_id=template.id,
                    template_name=template.name,
                    template_color=template.color,
                    slot_id=slot.id,
                    slot_label=slot.label,
                    start_time=slot.start_time,
                    end_time=slot.end_time,
                    required_staff=slot.required_staff,
                    interval=interval,
                ))

    logger.debug(
        f"Resolved {len(requirements)} coverage requirements from "
        f"{len(selections)} template selections over {len(days)} days"
    )
    return requirements


def _valid_slots(selection: TemplateSelection):
    """Parse each slot of the template once, skipping the malformed ones."""
    slots = []
    for slot in selection.template.time_slots:
        try:
            slots.append((slot, slot.interval()))
        except InvalidTimeFormatException as e:
            logger.warning(
                f"Skipping slot {slot.id} of template {selection.template_id} "
                f"({selection.template.name}): {e.message}"
            )
    return slots


def _in_period(day: date, period_start: Optional[date], period_end: Optional[date]) -> bool:
    if period_start is not None and day < period_start:
        return False
    if period_end is not None and day > period_end:
        return False
    return True
