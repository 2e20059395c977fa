"""
Planning types and data classes for shift coverage planning

Canonical record shapes shared by every planning service. Raw API and database
records are converted into these at the ingestion boundary
(see record_normalizer.py); nothing downstream deals with field aliases.
"""
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple

from .time_intervals import TimeInterval, parse_interval


class SegmentType(str, Enum):
    """Kinds of timeline segment"""
    OPENING = "opening"
    TEMPLATE = "template"
    GAP = "gap"
    RESOURCE = "resource"
    SHORTAGE = "shortage"
    OVERFLOW = "overflow"


class CoverageStatus(str, Enum):
    """Staffing status of a coverage slot"""
    COVERED = "covered"
    PARTIAL = "partial"
    UNCOVERED = "uncovered"


class PlanningPhase(int, Enum):
    """Planner workflow phase"""
    TEMPLATES = 1  # choosing templates and days
    RESOURCES = 2  # assigning staff to slots


class TemplateScope(str, Enum):
    GLOBAL = "global"
    STORE = "store"


@dataclass(frozen=True)
class TimeSlot:
    """A time window inside a template requiring a minimum staff count"""
    id: str
    start_time: str
    end_time: str
    label: str = ''
    required_staff: int = 1

    def interval(self) -> TimeInterval:
        """Strictly parsed interval; raises InvalidTimeFormatException."""
        return parse_interval(self.start_time, self.end_time)


@dataclass(frozen=True)
class ShiftTemplate:
    """Reusable named shift pattern. Owns its slots exclusively."""
    id: str
    name: str
    color: str
    scope: TemplateScope = TemplateScope.STORE
    store_id: Optional[str] = None
    time_slots: Tuple[TimeSlot, ...] = ()

    def get_slot(self, slot_id: str) -> Optional[TimeSlot]:
        for slot in self.time_slots:
            if slot.id == slot_id:
                return slot
        return None


@dataclass
class TemplateSelection:
    """The planner's choice to apply a template on specific days of the period"""
    template_id: str
    template: ShiftTemplate
    selected_days: FrozenSet[date] = frozenset()

    def sorted_days(self) -> List[date]:
        return sorted(self.selected_days)


@dataclass(frozen=True)
class ResourceAssignment:
    """A resource placed on one template slot on one day"""
    resource_id: str
    resource_name: str
    template_id: str
    slot_id: str
    day: date

    @property
    def key(self) -> Tuple[str, str, str, date]:
        return (self.resource_id, self.template_id, self.slot_id, self.day)

    def to_dict(self) -> Dict:
        return {
            'resource_id': self.resource_id,
            'resource_name': self.resource_name,
            'template_id': self.template_id,
            'slot_id': self.slot_id,
            'day': self.day.isoformat(),
        }


@dataclass(frozen=True)
class StoreOpeningRule:
    """Opening hours of a store for one weekday (0=Sunday ... 6=Saturday)"""
    day: int
    open_time: str
    close_time: str
    is_closed: bool = False

    def to_dict(self) -> Dict:
        return {
            'day': self.day,
            'open_time': self.open_time,
            'close_time': self.close_time,
            'is_closed': self.is_closed,
        }


@dataclass(frozen=True)
class CoverageRequirement:
    """One (day, template, slot) pairing produced by the coverage resolver"""
    day: date
    template_id: str
    template_name: str
    template_color: str
    slot_id: str
    slot_label: str
    start_time: str
    end_time: str
    required_staff: int
    interval: TimeInterval

    @property
    def key(self) -> Tuple[str, str, date]:
        return (self.template_id, self.slot_id, self.day)


@dataclass(frozen=True)
class CoverageSlot:
    """A coverage requirement joined with the resources assigned to it"""
    day: date
    template_id: str
    template_name: str
    template_color: str
    slot_id: str
    slot_label: str
    start_time: str
    end_time: str
    required_staff: int
    interval: TimeInterval
    assigned_resources: Tuple[ResourceAssignment, ...] = ()
    coverage_status: CoverageStatus = CoverageStatus.UNCOVERED

    @property
    def key(self) -> Tuple[str, str, date]:
        return (self.template_id, self.slot_id, self.day)

    @property
    def assigned_staff(self) -> int:
        return len(self.assigned_resources)

    @property
    def covered(self) -> bool:
        return self.assigned_staff >= self.required_staff

    @property
    def deficit(self) -> int:
        return max(0, self.required_staff - self.assigned_staff)

    @property
    def resource_coverage_status(self) -> CoverageStatus:
        if self.covered:
            return CoverageStatus.COVERED
        if self.assigned_staff > 0:
            return CoverageStatus.PARTIAL
        return CoverageStatus.UNCOVERED

    def to_dict(self) -> Dict:
        return {
            'day': self.day.isoformat(),
            'template_id': self.template_id,
            'template_name': self.template_name,
            'template_color': self.template_color,
            'slot_id': self.slot_id,
            'slot_label': self.slot_label,
            'start_time': self.start_time,
            'end_time': self.end_time,
            'required_staff': self.required_staff,
            'assigned_staff': self.assigned_staff,
            'assigned_resources': [a.to_dict() for a in self.assigned_resources],
            'covered': self.covered,
            'resource_coverage_status': self.resource_coverage_status.value,
            'coverage_status': self.coverage_status.value,
        }


@dataclass(frozen=True)
class TimelineSegment:
    """A typed, time-bounded piece of a day's timeline. Display projection only."""
    id: str
    start_time: str
    end_time: str
    type: SegmentType
    label: str
    color: Optional[str] = None
    required_staff: Optional[int] = None
    assigned_staff: Optional[int] = None
    template_id: Optional[str] = None
    slot_id: Optional[str] = None

    def to_dict(self) -> Dict:
        data = {
            'id': self.id,
            'start_time': self.start_time,
            'end_time': self.end_time,
            'type': self.type.value,
            'label': self.label,
        }
        for name in ('color', 'required_staff', 'assigned_staff', 'template_id', 'slot_id'):
            value = getattr(self, name)
            if value is not None:
                data[name] = value
        return data


@dataclass(frozen=True)
class DayCoverage:
    day: date
    total_slots: int
    covered_slots: int
    coverage_percentage: int

    def to_dict(self) -> Dict:
        return {
            'day': self.day.isoformat(),
            'total_slots': self.total_slots,
            'covered_slots': self.covered_slots,
            'coverage_percentage': self.coverage_percentage,
        }


@dataclass(frozen=True)
class CoverageSummary:
    total_slots: int
    covered_slots: int
    coverage_percentage: int
    per_day: Tuple[DayCoverage, ...] = ()

    def to_dict(self) -> Dict:
        return {
            'total_slots': self.total_slots,
            'covered_slots': self.covered_slots,
            'coverage_percentage': self.coverage_percentage,
            'per_day': [d.to_dict() for d in self.per_day],
        }


@dataclass(frozen=True)
class PlannedShiftRecord:
    """Flattened save-plan record, one per template x selected day x slot"""
    template_id: str
    store_id: str
    date: date
    start_time: str
    end_time: str
    slot_id: str
    assignments: Tuple[str, ...] = ()

    @property
    def key(self) -> Tuple[str, str, date, str]:
        return (self.template_id, self.store_id, self.date, self.slot_id)

    def to_dict(self) -> Dict:
        return {
            'template_id': self.template_id,
            'store_id': self.store_id,
            'date': self.date.isoformat(),
            'start_time': self.start_time,
            'end_time': self.end_time,
            'slot_id': self.slot_id,
            'assignments': list(self.assignments),
        }


@dataclass(frozen=True)
class ConflictInfo:
    """An assignment blocked because the resource already held an overlapping slot"""
    resource_id: str
    resource_name: str
    day: date
    conflict_type: str
    message: str
    conflicting_slot: Dict = field(default_factory=dict)
    requested_slot: Dict = field(default_factory=dict)

    def to_dict(self) -> Dict:
        return {
            'resource_id': self.resource_id,
            'resource_name': self.resource_name,
            'day': self.day.isoformat(),
            'conflict_type': self.conflict_type,
            'message': self.message,
            'conflicting_slot': dict(self.conflicting_slot),
            'requested_slot': dict(self.requested_slot),
        }


@dataclass(frozen=True)
class PlanningSnapshot:
    """Immutable view of a planning session handed to the rendering layer"""
    store_id: str
    period_start: date
    period_end: date
    phase: PlanningPhase
    coverage_slots: Tuple[CoverageSlot, ...]
    summary: CoverageSummary
    timelines: Dict[date, Tuple[TimelineSegment, ...]] = field(default_factory=dict)
    conflicts: Tuple[ConflictInfo, ...] = ()

    def to_dict(self) -> Dict:
        return {
            'store_id': self.store_id,
            'period_start': self.period_start.isoformat(),
            'period_end': self.period_end.isoformat(),
            'phase': int(self.phase),
            'coverage_slots': [s.to_dict() for s in self.coverage_slots],
            'summary': self.summary.to_dict(),
            'timelines': {
                d.isoformat(): [seg.to_dict() for seg in segments]
                for d, segments in sorted(self.timelines.items())
            },
            'conflicts': [c.to_dict() for c in self.conflicts],
            'has_conflicts': bool(self.conflicts),
        }


def weekday_index(day: date) -> int:
    """Weekday number used by opening rules: 0=Sunday ... 6=Saturday."""
    return (day.weekday() + 1) % 7


def days_in_period(period_start: date, period_end: date) -> List[date]:
    """Every date of the inclusive range, in order."""
    days = []
    current = period_start
    while current <= period_end:
        days.append(current)
        current += timedelta(days=1)
    return days
