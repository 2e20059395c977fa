"""
Services package for shift coverage planning
"""

from .planning_types import (
    SegmentType,
    CoverageStatus,
    PlanningPhase,
    TemplateScope,
    TimeSlot,
    ShiftTemplate,
    TemplateSelection,
    ResourceAssignment,
    StoreOpeningRule,
    CoverageRequirement,
    CoverageSlot,
    TimelineSegment,
    CoverageSummary,
    PlannedShiftRecord,
    PlanningSnapshot,
    ConflictInfo,
)

from .assignment_ledger import AssignmentLedger
from .conflict_checker import AssignmentConflictChecker
from .coverage_resolver import resolve_coverage_requirements
from .coverage_aggregator import aggregate_coverage, summarize_coverage
from .timeline_builder import build_timeline_segments, build_period_timelines
from .planning_session import PlanningSession
from .session_manager import PlanningSessionManager, session_manager
from .plan_persistence import PlanPersistenceService, build_plan_records

__all__ = [
    # Planning types
    'SegmentType',
    'CoverageStatus',
    'PlanningPhase',
    'TemplateScope',
    'TimeSlot',
    'ShiftTemplate',
    'TemplateSelection',
    'ResourceAssignment',
    'StoreOpeningRule',
    'CoverageRequirement',
    'CoverageSlot',
    'TimelineSegment',
    'CoverageSummary',
    'PlannedShiftRecord',
    'PlanningSnapshot',
    'ConflictInfo',
    # Services
    'AssignmentLedger',
    'AssignmentConflictChecker',
    'resolve_coverage_requirements',
    'aggregate_coverage',
    'summarize_coverage',
    'build_timeline_segments',
    'build_period_timelines',
    'PlanningSession',
    'PlanningSessionManager',
    'session_manager',
    'PlanPersistenceService',
    'build_plan_records',
]
