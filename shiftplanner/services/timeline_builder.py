"""
Timeline Segment Builder

Projects one day of a plan onto a time axis as typed segments:

- opening:  the store's opening hours (absent on closed days)
- template: the part of a coverage slot inside opening hours
- overflow: the part of a coverage slot before opening or after closing,
            labeled with the template name
- shortage: a slot with fewer resources than required, labeled with the deficit
- resource: one per assigned resource, labeled with its display name
- gap:      open hours not covered by any template segment

Gaps are only computed when the store is open and the day has at least one
coverage slot. A day without slots is "not yet planned", not "uncovered".

Shortage and resource segments span the slot's in-hours portion; a slot with
no in-hours portion (closed day, or entirely outside opening hours) uses its
full interval.

Output order is by start minute, then segment kind
(opening, template, overflow, resource, shortage, gap), then creation order,
so identical inputs always give identical output.
"""
import logging
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional

from shiftplanner.error_handlers.exceptions import InvalidTimeFormatException
from .planning_types import (
    CoverageSlot,
    SegmentType,
    StoreOpeningRule,
    TimelineSegment,
    weekday_index,
)
from .time_intervals import TimeInterval, clip, outside_parts, parse_interval


logger = logging.getLogger(__name__)

SEGMENT_COLORS = {
    SegmentType.OPENING: '#ef4444',
    SegmentType.TEMPLATE: '#f97316',
    SegmentType.GAP: '#eab308',
    SegmentType.RESOURCE: '#22c55e',
    SegmentType.SHORTAGE: '#6b7280',
    SegmentType.OVERFLOW: '#7c3aed',
}

SEGMENT_ORDER = {
    SegmentType.OPENING: 0,
    SegmentType.TEMPLATE: 1,
    SegmentType.OVERFLOW: 2,
    SegmentType.RESOURCE: 3,
    SegmentType.SHORTAGE: 4,
    SegmentType.GAP: 5,
}

OPENING_LABEL = 'Opening hours'
GAP_LABEL = 'Uncovered'


def opening_interval(rule: Optional[StoreOpeningRule]) -> Optional[TimeInterval]:
    """
    Opening hours of a rule as an interval; None when the store is closed.

    A missing rule or one with unusable times counts as closed (logged).
    """
    if rule is None or rule.is_closed:
        return None
    try:
        return parse_interval(rule.open_time, rule.close_time)
    except InvalidTimeFormatException as e:
        logger.warning(f"Ignoring opening hours for weekday {rule.day}: {e.message}")
        return None


def build_timeline_segments(
    day: date,
    opening_rule: Optional[StoreOpeningRule],
    coverage_slots: Iterable[CoverageSlot]
) -> List[TimelineSegment]:
    """
    Build the ordered segments of a single day.

    Args:
        day: The calendar day to render
        opening_rule: The store's rule for that weekday (None = closed)
        coverage_slots: Coverage slots; slots of other days are ignored

    Returns:
        New TimelineSegment list, ordered deterministically
    """
    builder = _SegmentCollector(day)
    opening = opening_interval(opening_rule)
    day_slots = [slot for slot in coverage_slots if slot.day == day]

    if opening is not None:
        builder.add(SegmentType.OPENING, opening, OPENING_LABEL, key='store')

    covered_intervals = []
    for slot in day_slots:
        slot_key = f"{slot.template_id}:{slot.slot_id}"
        inside = clip(slot.interval, opening) if opening is not None else None

        for index, part in enumerate(outside_parts(slot.interval, opening)):
            builder.add(
                SegmentType.OVERFLOW, part, slot.template_name,
                key=f"{slot_key}:{index}",
                template_id=slot.template_id, slot_id=slot.slot_id,
            )

        if inside is not None:
            covered_intervals.append(inside)
            builder.add(
                SegmentType.TEMPLATE, inside, _template_label(slot),
                key=slot_key,
                color=slot.template_color,
                required_staff=slot.required_staff,
                assigned_staff=slot.assigned_staff,
                template_id=slot.template_id, slot_id=slot.slot_id,
            )

        staffing_interval = inside if inside is not None else slot.interval

        if slot.assigned_staff < slot.required_staff:
            builder.add(
                SegmentType.SHORTAGE, staffing_interval, str(slot.deficit),
                key=slot_key,
                required_staff=slot.required_staff,
                assigned_staff=slot.assigned_staff,
                template_id=slot.template_id, slot_id=slot.slot_id,
            )

        for assignment in slot.assigned_resources:
            builder.add(
                SegmentType.RESOURCE, staffing_interval, assignment.resource_name,
                key=f"{slot_key}:{assignment.resource_id}",
                template_id=slot.template_id, slot_id=slot.slot_id,
            )

    if opening is not None and day_slots:
        for index, gap in enumerate(_uncovered_stretches(opening, covered_intervals)):
            builder.add(SegmentType.GAP, gap, GAP_LABEL, key=str(index))

    return builder.ordered()


def build_period_timelines(
    days: Iterable[date],
    opening_rules: Mapping[int, StoreOpeningRule],
    coverage_slots: Iterable[CoverageSlot]
) -> Dict[date, List[TimelineSegment]]:
    """Segments for every day of a period, keyed by day."""
    slots_by_day: Dict[date, List[CoverageSlot]] = {}
    for slot in coverage_slots:
        slots_by_day.setdefault(slot.day, []).append(slot)

    return {
        day: build_timeline_segments(
            day,
            opening_rules.get(weekday_index(day)),
            slots_by_day.get(day, [])
        )
        for day in days
    }


def _uncovered_stretches(opening: TimeInterval, covered: List[TimeInterval]) -> List[TimeInterval]:
    """Sweep the opening hours and return every stretch no interval covers."""
    gaps = []
    cursor = opening.start_minute
    for interval in sorted(covered, key=lambda i: (i.start_minute, i.end_minute)):
        if interval.start_minute > cursor:
            gaps.append(TimeInterval(cursor, interval.start_minute))
        cursor = max(cursor, interval.end_minute)
    if cursor < opening.end_minute:
        gaps.append(TimeInterval(cursor, opening.end_minute))
    return gaps


def _template_label(slot: CoverageSlot) -> str:
    if slot.slot_label:
        return f"{slot.template_name} - {slot.slot_label}"
    return slot.template_name


class _SegmentCollector:
    """Accumulates segments with a creation sequence for stable ordering."""

    def __init__(self, day: date):
        self.day = day
        self._entries = []

    def add(self, segment_type: SegmentType, interval: TimeInterval, label: str, key: str, **extra):
        extra.setdefault('color', SEGMENT_COLORS[segment_type])
        segment = TimelineSegment(
            id=f"{self.day.isoformat()}:{segment_type.value}:{key}",
            start_time=interval.start_time,
            end_time=interval.end_time,
            type=segment_type,
            label=label,
            **extra
        )
        self._entries.append((interval.start_minute, SEGMENT_ORDER[segment_type], len(self._entries), segment))

    def ordered(self) -> List[TimelineSegment]:
        return [entry[3] for entry in sorted(self._entries, key=lambda e: e[:3])]
