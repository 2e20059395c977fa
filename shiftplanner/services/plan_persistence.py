"""
Plan Persistence Service

Bridges planning sessions and the database: loads the templates and opening
hours a store plans with, saves a session as planned shifts and rebuilds a
session from what was saved.

A saved plan is a flat list of records, one per template x selected day x
slot, keyed by (template_id, store_id, date, slot_id). Saving the same plan
twice yields the same rows. Records of the store's period that are no longer
planned are deleted so the stored plan mirrors the session.

The service never commits; callers own the transaction
(see with_db_transaction).
"""
import logging
from datetime import date
from typing import Dict, List, Optional, Tuple

from shiftplanner.error_handlers.exceptions import (
    AppException,
    ResourceNotFoundException,
    ValidationException,
)
from .planning_session import PlanningSession
from .planning_types import (
    CoverageSlot,
    PlannedShiftRecord,
    ResourceAssignment,
    ShiftTemplate,
    StoreOpeningRule,
    TemplateScope,
    TimeSlot,
)
from .record_normalizer import DEFAULT_TEMPLATE_COLOR, normalize_opening_rules, normalize_template
from .time_intervals import parse_interval


logger = logging.getLogger(__name__)


def _plan_rows(session: PlanningSession) -> List[Tuple[PlannedShiftRecord, CoverageSlot]]:
    rows = []
    for slot in session.coverage_slots():
        record = PlannedShiftRecord(
            template_id=slot.template_id,
            store_id=session.store_id,
            date=slot.day,
            start_time=slot.start_time,
            end_time=slot.end_time,
            slot_id=slot.slot_id,
            assignments=tuple(a.resource_id for a in slot.assigned_resources),
        )
        rows.append((record, slot))
    return rows


def build_plan_records(session: PlanningSession) -> List[PlannedShiftRecord]:
    """Flatten a session into save records, in coverage order."""
    return [record for record, _ in _plan_rows(session)]


class PlanPersistenceService:
    """Database access for templates, opening hours and saved plans."""

    def __init__(self, db_session, models, default_color: str = DEFAULT_TEMPLATE_COLOR):
        self.session = db_session
        self.ShiftTemplate = models['ShiftTemplate']
        self.ShiftTemplateSlot = models['ShiftTemplateSlot']
        self.StoreOpeningHours = models['StoreOpeningHours']
        self.PlannedShift = models['PlannedShift']
        self.PlannedShiftAssignment = models['PlannedShiftAssignment']
        self.default_color = default_color

    # ===== Templates =====

    def get_templates_for_store(self, store_id: str) -> List[ShiftTemplate]:
        """Global templates plus the store's own, normalized."""
        return [
            normalize_template(row.to_dict(), self.default_color)
            for row in self.ShiftTemplate.get_for_store(store_id)
        ]

    def get_template(self, template_id: str) -> ShiftTemplate:
        """
        Raises:
            ResourceNotFoundException: If no active template has this id
        """
        row = self.session.get(self.ShiftTemplate, template_id)
        if row is None or not row.is_active:
            raise ResourceNotFoundException(
                f"Shift template {template_id} not found",
                details={'template_id': template_id}
            )
        return normalize_template(row.to_dict(), self.default_color)

    def create_template(self, template: ShiftTemplate) -> ShiftTemplate:
        """
        Store a new template with its slots.

        Every slot time is parsed strictly here so a stored template can
        always be resolved.

        Raises:
            InvalidTimeFormatException: If a slot has malformed or wrap-around times
            ValidationException: If the id is taken or a store template has no store
        """
        for slot in template.time_slots:
            slot.interval()
        if template.scope == TemplateScope.STORE and not template.store_id:
            raise ValidationException(
                "Store templates need a store_id",
                details={'field': 'store_id'}
            )
        if self.session.get(self.ShiftTemplate, template.id) is not None:
            raise ValidationException(
                f"Shift template {template.id} already exists",
                details={'template_id': template.id}
            )

        row = self.ShiftTemplate(
            id=template.id,
            name=template.name,
            color=template.color,
            scope=template.scope.value,
            store_id=template.store_id if template.scope == TemplateScope.STORE else None,
        )
        for position, slot in enumerate(template.time_slots):
            row.slots.append(self.ShiftTemplateSlot(
                slot_key=slot.id,
                position=position,
                start_time=slot.start_time,
                end_time=slot.end_time,
                label=slot.label or None,
                required_staff=slot.required_staff,
            ))
        self.session.add(row)
        self.session.flush()
        logger.info(f"Created shift template {template.id} ({template.name}) with {len(template.time_slots)} slots")
        return template

    def delete_template(self, template_id: str) -> None:
        """Soft-delete a template. Saved plans keep their copy of its slots."""
        row = self.session.get(self.ShiftTemplate, template_id)
        if row is None or not row.is_active:
            raise ResourceNotFoundException(
                f"Shift template {template_id} not found",
                details={'template_id': template_id}
            )
        row.is_active = False
        logger.info(f"Deactivated shift template {template_id}")

    # ===== Opening hours =====

    def get_opening_rules(self, store_id: str) -> Dict[int, StoreOpeningRule]:
        """Opening rules keyed by weekday. Missing weekdays count as closed."""
        return normalize_opening_rules(row.to_dict() for row in self.StoreOpeningHours.get_for_store(store_id))

    def replace_opening_rules(self, store_id: str, rules: Dict[int, StoreOpeningRule]) -> Dict[int, StoreOpeningRule]:
        """
        Raises:
            InvalidTimeFormatException: If an open day has malformed times
        """
        for rule in rules.values():
            if not rule.is_closed:
                parse_interval(rule.open_time, rule.close_time)
        self.StoreOpeningHours.replace_for_store(store_id, [rules[day] for day in sorted(rules)])
        self.session.flush()
        return dict(rules)

    # ===== Plans =====

    def save_plan(self, session: PlanningSession) -> Dict[str, int]:
        """
        Save a session as planned shifts in one batch.

        Returns:
            Stats dict with created/updated/deleted/assignments counts
        """
        existing = {
            (row.template_id, row.store_id, row.shift_date, row.slot_id): row
            for row in self.PlannedShift.get_in_range(session.store_id, session.period_start, session.period_end)
        }
        stats = {'created': 0, 'updated': 0, 'deleted': 0, 'assignments': 0}
        planned_keys = set()

        for record, slot in _plan_rows(session):
            planned_keys.add(record.key)
            row = existing.get(record.key)
            if row is None:
                row = self.PlannedShift(
                    template_id=record.template_id,
                    store_id=record.store_id,
                    shift_date=record.date,
                    slot_id=record.slot_id,
                )
                self.session.add(row)
                stats['created'] += 1
            else:
                stats['updated'] += 1

            row.start_time = record.start_time
            row.end_time = record.end_time
            row.slot_label = slot.slot_label or None
            row.required_staff = slot.required_staff
            row.template_name = slot.template_name
            row.template_color = slot.template_color

            self._replace_assignments(row, slot.assigned_resources)
            stats['assignments'] += len(slot.assigned_resources)

        for key, row in existing.items():
            if key not in planned_keys:
                self.session.delete(row)
                stats['deleted'] += 1

        self.session.flush()
        logger.info(
            f"Saved plan for store {session.store_id} "
            f"{session.period_start.isoformat()}..{session.period_end.isoformat()}: {stats}"
        )
        return stats

    def load_plan(
        self,
        store_id: str,
        store_name: Optional[str],
        period_start: date,
        period_end: date
    ) -> PlanningSession:
        """
        Rebuild a planning session from saved shifts.

        Templates are rebuilt from the copies stored on each shift, so a plan
        reloads as it was saved even if its templates changed since.
        Assignments that no longer fit (for example after a slot was moved
        onto another assignment of the same person) are skipped with a warning.
        """
        session = PlanningSession(
            store_id=store_id,
            period_start=period_start,
            period_end=period_end,
            opening_rules=self.get_opening_rules(store_id),
            store_name=store_name,
        )
        rows = self.PlannedShift.get_in_range(store_id, period_start, period_end)
        if not rows:
            return session

        templates, days = self._templates_from_rows(rows)
        for template_id, template in templates.items():
            session.add_template(template, days[template_id])

        skipped = 0
        for row in rows:
            for saved in row.assignments:
                assignment = ResourceAssignment(
                    resource_id=saved.resource_id,
                    resource_name=saved.resource_name or saved.resource_id,
                    template_id=row.template_id,
                    slot_id=row.slot_id,
                    day=row.shift_date,
                )
                try:
                    session.assign_resource(assignment)
                except AppException as e:
                    skipped += 1
                    logger.warning(f"Skipped saved assignment {assignment.key}: {e.message}")

        logger.info(
            f"Loaded plan for store {store_id}: {len(templates)} templates, "
            f"{len(session.ledger)} assignments ({skipped} skipped)"
        )
        return session

    def _replace_assignments(self, row, assigned: Tuple[ResourceAssignment, ...]) -> None:
        # Existing rows are reused so (planned_shift_id, resource_id) never collides mid-flush
        current = {saved.resource_id: saved for saved in row.assignments}
        replacement = []
        for assignment in assigned:
            saved = current.get(assignment.resource_id)
            if saved is None:
                saved = self.PlannedShiftAssignment(resource_id=assignment.resource_id)
            saved.resource_name = assignment.resource_name
            replacement.append(saved)
        row.assignments = replacement

    def _templates_from_rows(self, rows):
        slots: Dict[str, Dict[str, TimeSlot]] = {}
        headers: Dict[str, Tuple[str, str]] = {}
        days: Dict[str, set] = {}

        for row in rows:
            headers.setdefault(row.template_id, (row.template_name, row.template_color or self.default_color))
            days.setdefault(row.template_id, set()).add(row.shift_date)
            template_slots = slots.setdefault(row.template_id, {})
            slot = TimeSlot(
                id=row.slot_id,
                start_time=row.start_time,
                end_time=row.end_time,
                label=row.slot_label or '',
                required_staff=row.required_staff,
            )
            known = template_slots.get(row.slot_id)
            if known is None:
                template_slots[row.slot_id] = slot
            elif known != slot:
                logger.warning(
                    f"Saved slot {row.template_id}/{row.slot_id} differs on {row.shift_date}; "
                    f"using {known.start_time}-{known.end_time}"
                )

        templates = {}
        for template_id, (name, color) in headers.items():
            current = self.session.get(self.ShiftTemplate, template_id)
            ordered = sorted(slots[template_id].values(), key=lambda s: (s.start_time, s.id))
            templates[template_id] = ShiftTemplate(
                id=template_id,
                name=name,
                color=color,
                scope=TemplateScope(current.scope) if current is not None else TemplateScope.STORE,
                store_id=current.store_id if current is not None else None,
                time_slots=tuple(ordered),
            )
        return templates, days
