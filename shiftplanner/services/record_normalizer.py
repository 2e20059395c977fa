"""
Record Normalizer

Converts raw template, opening-hour and assignment records (JSON request bodies,
database rows turned into dicts, legacy exports) into the canonical planning
types. Raw records are validated by pydantic input models; field aliases are
resolved here once:

- camelCase and snake_case keys (``startTime`` / ``start_time``)
- the legacy Italian ``nome`` for ``name``
- ``dayOfWeek`` for ``day`` on opening rules

Missing optional values get their defaults here as well (slot id
``slot-<index>``, ``required_staff`` 1, template color, scope ``store``).
Explicit nulls count as missing.
"""
import logging
from datetime import date, datetime
from typing import Annotated, Any, Dict, Iterable, List, Optional

from pydantic import AliasChoices, BaseModel, BeforeValidator, Field, StrictInt, ValidationError

from shiftplanner.error_handlers.exceptions import ValidationException
from .planning_types import (
    ResourceAssignment,
    ShiftTemplate,
    StoreOpeningRule,
    TemplateScope,
    TimeSlot,
)


logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE_COLOR = '#f97316'


def _number_to_str(value):
    # Legacy exports carry numeric ids
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


Identifier = Annotated[str, BeforeValidator(_number_to_str), Field(min_length=1)]
NonEmptyStr = Annotated[str, Field(min_length=1)]


class TimeSlotIn(BaseModel):
    """
    Raw time slot of a template.

    Times are kept verbatim; they are parsed strictly when a template is
    stored and leniently (malformed slots skipped) when coverage is resolved.
    """
    id: Optional[Identifier] = Field(None, validation_alias=AliasChoices('id', 'slot_id', 'slotId'))
    start_time: NonEmptyStr = Field(..., validation_alias=AliasChoices('start_time', 'startTime'))
    end_time: NonEmptyStr = Field(..., validation_alias=AliasChoices('end_time', 'endTime'))
    label: Optional[str] = Field(None, validation_alias=AliasChoices('label', 'name'))
    required_staff: StrictInt = Field(1, ge=1, validation_alias=AliasChoices('required_staff', 'requiredStaff'))


class ShiftTemplateIn(BaseModel):
    """Raw shift template with its slots."""
    id: Identifier = Field(..., validation_alias=AliasChoices('id', 'template_id', 'templateId'))
    name: NonEmptyStr = Field(..., validation_alias=AliasChoices('name', 'nome'))
    color: Optional[str] = None
    scope: Optional[TemplateScope] = None
    store_id: Optional[Identifier] = Field(None, validation_alias=AliasChoices('store_id', 'storeId'))
    time_slots: Optional[List[TimeSlotIn]] = Field(None, validation_alias=AliasChoices('time_slots', 'timeSlots'))


class OpeningRuleIn(BaseModel):
    """Raw opening rule; ``day`` is 0=Sunday ... 6=Saturday."""
    day: StrictInt = Field(..., ge=0, le=6, validation_alias=AliasChoices('day', 'day_of_week', 'dayOfWeek'))
    open_time: Optional[str] = Field(None, validation_alias=AliasChoices('open_time', 'openTime'))
    close_time: Optional[str] = Field(None, validation_alias=AliasChoices('close_time', 'closeTime'))
    # Only true/false and their usual string spellings are accepted
    is_closed: Optional[bool] = Field(None, validation_alias=AliasChoices('is_closed', 'isClosed'))


class AssignmentIn(BaseModel):
    """Raw resource assignment; ``day`` is parsed by parse_iso_day."""
    resource_id: Identifier = Field(
        ..., validation_alias=AliasChoices('resource_id', 'resourceId', 'user_id', 'userId')
    )
    resource_name: Optional[str] = Field(
        None,
        validation_alias=AliasChoices('resource_name', 'resourceName', 'user_name', 'userName', 'name', 'nome')
    )
    template_id: Identifier = Field(..., validation_alias=AliasChoices('template_id', 'templateId'))
    slot_id: Identifier = Field(
        ..., validation_alias=AliasChoices('slot_id', 'slotId', 'time_slot_id', 'timeSlotId')
    )
    day: Any = Field(..., validation_alias=AliasChoices('day', 'date'))


def _drop_nulls(value):
    """Explicit nulls fall back to field defaults."""
    if isinstance(value, dict):
        return {key: _drop_nulls(item) for key, item in value.items() if item is not None}
    if isinstance(value, list):
        return [_drop_nulls(item) for item in value]
    return value


def _validate(model, raw, label: str):
    """
    Validate a raw record against an input model.

    Raises:
        ValidationException: With one entry per pydantic error in details['errors']
    """
    if not isinstance(raw, dict):
        raise ValidationException(f"Invalid {label}: expected an object", details={'field': label})
    try:
        return model.model_validate(_drop_nulls(raw))
    except ValidationError as e:
        errors = [
            {'field': '.'.join(str(part) for part in error['loc']), 'message': error['msg']}
            for error in e.errors()
        ]
        first = errors[0]
        raise ValidationException(
            f"Invalid {label}: {first['field']}: {first['message']}",
            details={'field': first['field'], 'errors': errors}
        )


def parse_iso_day(value, field_name: str = 'day') -> date:
    """
    Parse an ISO date (YYYY-MM-DD), date or datetime into a date.

    Raises:
        ValidationException: If the value is not a valid ISO date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return datetime.strptime(value[:10], '%Y-%m-%d').date()
        except ValueError:
            pass
    raise ValidationException(
        f"Invalid {field_name} {value!r}. Use YYYY-MM-DD (e.g., 2025-10-15)",
        details={'field': field_name}
    )


def _to_time_slot(slot: TimeSlotIn, index: int) -> TimeSlot:
    return TimeSlot(
        id=slot.id or f'slot-{index}',
        start_time=slot.start_time,
        end_time=slot.end_time,
        label=slot.label or '',
        required_staff=slot.required_staff,
    )


def normalize_time_slot(raw: Dict[str, Any], index: int) -> TimeSlot:
    """Build a TimeSlot; times are kept verbatim and validated when resolved."""
    return _to_time_slot(_validate(TimeSlotIn, raw, 'time slot'), index)


def normalize_template(raw: Dict[str, Any], default_color: str = DEFAULT_TEMPLATE_COLOR) -> ShiftTemplate:
    """
    Build a ShiftTemplate from a raw record.

    Raises:
        ValidationException: If a field is missing or malformed, the scope is
            unknown or two slots share an id
    """
    record = _validate(ShiftTemplateIn, raw, 'shift template')
    slots = tuple(_to_time_slot(slot, index) for index, slot in enumerate(record.time_slots or []))

    slot_ids = [slot.id for slot in slots]
    if len(set(slot_ids)) != len(slot_ids):
        raise ValidationException(
            "Slot ids must be unique within a template",
            details={'field': 'time_slots', 'slot_ids': slot_ids}
        )

    return ShiftTemplate(
        id=record.id,
        name=record.name,
        color=record.color or default_color,
        scope=record.scope or TemplateScope.STORE,
        store_id=record.store_id,
        time_slots=slots,
    )


def normalize_opening_rule(raw: Dict[str, Any]) -> StoreOpeningRule:
    """Build a StoreOpeningRule; ``day`` is 0=Sunday ... 6=Saturday."""
    record = _validate(OpeningRuleIn, raw, 'opening rule')
    is_closed = record.is_closed or False
    if not is_closed and (not record.open_time or not record.close_time):
        raise ValidationException(
            f"Opening rule for day {record.day} needs openTime and closeTime unless closed",
            details={'field': 'open_time', 'day': record.day}
        )

    return StoreOpeningRule(
        day=record.day,
        open_time=record.open_time or '',
        close_time=record.close_time or '',
        is_closed=is_closed,
    )


def normalize_opening_rules(raws: Iterable[Dict[str, Any]]) -> Dict[int, StoreOpeningRule]:
    """Key opening rules by weekday. A repeated weekday keeps the last rule."""
    rules = {}
    for raw in raws or []:
        rule = normalize_opening_rule(raw)
        if rule.day in rules:
            logger.warning(f"Duplicate opening rule for weekday {rule.day}; keeping the last one")
        rules[rule.day] = rule
    return rules


def normalize_assignment(raw: Dict[str, Any], default_name: Optional[str] = None) -> ResourceAssignment:
    """Build a ResourceAssignment from a raw record."""
    record = _validate(AssignmentIn, raw, 'assignment')
    return ResourceAssignment(
        resource_id=record.resource_id,
        resource_name=record.resource_name or default_name or record.resource_id,
        template_id=record.template_id,
        slot_id=record.slot_id,
        day=parse_iso_day(record.day),
    )


def normalize_days(values: Optional[Iterable[Any]]) -> List[date]:
    """Parse a list of ISO dates, dropping duplicates and keeping order."""
    days = []
    for value in values or []:
        day = parse_iso_day(value)
        if day not in days:
            days.append(day)
    return days
