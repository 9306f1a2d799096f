"""Protocol record validation and parsing.

Records use the flat persistence shape (see ``const.RECORD_KEY_ORDER``).
``validate`` never raises; it collects every problem so a form can show them
all at once. ``parse_protocol`` turns a valid record into a ``Protocol``.
"""

from __future__ import annotations

import dataclasses
import logging
import math
from collections.abc import Callable, Iterator, Mapping
from datetime import date, datetime
from typing import Any

import voluptuous as vol

from .const import (
    KEY_CUSTOM_SCHEDULE,
    KEY_CYCLE_LENGTH_WEEKS,
    KEY_DOSE_UNITS,
    KEY_DOSE_VALUE,
    KEY_END_DATE,
    KEY_FREQUENCY_DAYS,
    KEY_ID,
    KEY_IS_ACTIVE,
    KEY_MEDICATION_ID,
    KEY_NAME,
    KEY_OFF_WEEKS,
    KEY_SCHEDULE_TYPE,
    KEY_SITE_ROTATION,
    KEY_START_DATE,
    KEY_TIME_OF_DAY,
    KEY_WEEKLY_DAYS,
    RECORD_KEY_ORDER,
    SCHEDULE_CUSTOM,
    SCHEDULE_EVERY_X_DAYS,
    SCHEDULE_TYPES,
    SCHEDULE_WEEKLY,
)
from .exceptions import InvalidProtocol
from .models import (
    Cycle,
    CustomRule,
    EveryNDays,
    Protocol,
    ScheduleRule,
    ValidationResult,
    WeeklyOnDays,
    rule_to_record,
)

_LOGGER = logging.getLogger(__name__)

# ── Messages ─────────────────────────────────────────────────────────────────

MSG_NOT_A_MAPPING = "Protocol must be a mapping of fields"
MSG_MEDICATION_REQUIRED = "Medication is required"
MSG_NAME_INVALID = "Protocol name must be text"
MSG_SCHEDULE_TYPE_REQUIRED = "Schedule type is required"
MSG_SCHEDULE_TYPE_UNKNOWN = "Schedule type must be one of: " + ", ".join(SCHEDULE_TYPES)
MSG_FREQUENCY = 'Frequency must be greater than 0 for "every X days" schedule'
MSG_WEEKLY_EMPTY = "At least one day must be selected for weekly schedule"
MSG_WEEKLY_RANGE = "Weekly days must be between 0 (Sunday) and 6 (Saturday)"
MSG_CUSTOM_REQUIRED = "Custom schedule configuration is required"
MSG_START_REQUIRED = "Start date is required"
MSG_START_INVALID = "Start date must be a valid ISO date"
MSG_END_INVALID = "End date must be a valid ISO date"
MSG_END_BEFORE_START = "End date cannot be before start date"
MSG_CYCLE_LENGTH = "Cycle length must be greater than 0"
MSG_OFF_WEEKS = "Off weeks cannot be negative"
MSG_ACTIVE_FLAG = "Active flag must be true or false"
MSG_SITE_ROTATION = "Site rotation must be a list of site names"
MSG_DOSE_VALUE = "Dose value must be greater than 0"
MSG_DOSE_UNITS = "Dose units must be text"
MSG_TIME_OF_DAY = "Time of day must be HH:MM"

# ── Field validators ─────────────────────────────────────────────────────────


def _optional(validator: Callable[[Any], Any]) -> Callable[[Any], Any]:
    """Let None through, validate anything else."""

    def wrapped(value: Any) -> Any:
        if value is None:
            return None
        return validator(value)

    return wrapped


def _text(message: str, required: bool = False) -> Callable[[Any], str]:
    def validator(value: Any) -> str:
        if not isinstance(value, str) or (required and not value.strip()):
            raise vol.Invalid(message)
        return value.strip()

    return validator


def _whole_number(minimum: int, message: str) -> Callable[[Any], int]:
    def validator(value: Any) -> int:
        if isinstance(value, bool):
            raise vol.Invalid(message)
        if isinstance(value, float) and not value.is_integer():
            raise vol.Invalid(message)
        try:
            number = int(value)
        except (TypeError, ValueError) as err:
            raise vol.Invalid(message) from err
        if number < minimum:
            raise vol.Invalid(message)
        return number

    return validator


def _positive_number(value: Any) -> float:
    if isinstance(value, bool):
        raise vol.Invalid(MSG_DOSE_VALUE)
    try:
        number = float(value)
    except (TypeError, ValueError) as err:
        raise vol.Invalid(MSG_DOSE_VALUE) from err
    if not math.isfinite(number) or number <= 0:
        raise vol.Invalid(MSG_DOSE_VALUE)
    return number


def _schedule_type(value: Any) -> str:
    if value is None or value == "":
        raise vol.Invalid(MSG_SCHEDULE_TYPE_REQUIRED)
    if value not in SCHEDULE_TYPES:
        raise vol.Invalid(MSG_SCHEDULE_TYPE_UNKNOWN)
    return value


def _weekdays(value: Any) -> frozenset[int]:
    if isinstance(value, (str, bytes)) or not hasattr(value, "__iter__"):
        raise vol.Invalid(MSG_WEEKLY_RANGE)
    days = set()
    for item in value:
        if isinstance(item, bool):
            raise vol.Invalid(MSG_WEEKLY_RANGE)
        try:
            day = int(item)
        except (TypeError, ValueError) as err:
            raise vol.Invalid(MSG_WEEKLY_RANGE) from err
        if not 0 <= day <= 6:
            raise vol.Invalid(MSG_WEEKLY_RANGE)
        days.add(day)
    return frozenset(days)


def _parse_date(value: Any) -> date:
    """Coerce a date, datetime or ISO string to a calendar date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value.strip().split("T")[0])
    raise ValueError(f"Not a date: {value!r}")


def _start_date(value: Any) -> date:
    if value is None or value == "":
        raise vol.Invalid(MSG_START_REQUIRED)
    try:
        return _parse_date(value)
    except ValueError as err:
        raise vol.Invalid(MSG_START_INVALID) from err


def _end_date(value: Any) -> date | None:
    if value == "":
        return None
    try:
        return _parse_date(value)
    except ValueError as err:
        raise vol.Invalid(MSG_END_INVALID) from err


def _flag(value: Any) -> bool:
    try:
        return vol.Boolean()(value)
    except vol.Invalid as err:
        raise vol.Invalid(MSG_ACTIVE_FLAG) from err


def _sites(value: Any) -> tuple[str, ...]:
    if isinstance(value, (str, bytes)) or not hasattr(value, "__iter__"):
        raise vol.Invalid(MSG_SITE_ROTATION)
    sites = tuple(value)
    if not all(isinstance(site, str) and site for site in sites):
        raise vol.Invalid(MSG_SITE_ROTATION)
    return sites


def _time_of_day(value: Any) -> str:
    if not isinstance(value, str):
        raise vol.Invalid(MSG_TIME_OF_DAY)
    parts = value.strip().split(":")
    try:
        hour = int(parts[0])
        minute = int(parts[1]) if len(parts) > 1 else 0
    except (ValueError, IndexError) as err:
        raise vol.Invalid(MSG_TIME_OF_DAY) from err
    if len(parts) > 3 or not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise vol.Invalid(MSG_TIME_OF_DAY)
    return f"{hour:02d}:{minute:02d}"


FIELD_VALIDATORS: dict[str, Callable[[Any], Any]] = {
    KEY_ID: _optional(str),
    KEY_MEDICATION_ID: _text(MSG_MEDICATION_REQUIRED, required=True),
    KEY_NAME: _optional(_text(MSG_NAME_INVALID)),
    KEY_SCHEDULE_TYPE: _schedule_type,
    KEY_FREQUENCY_DAYS: _optional(_whole_number(1, MSG_FREQUENCY)),
    KEY_WEEKLY_DAYS: _optional(_weekdays),
    KEY_CUSTOM_SCHEDULE: lambda value: value,
    KEY_START_DATE: _start_date,
    KEY_END_DATE: _optional(_end_date),
    KEY_CYCLE_LENGTH_WEEKS: _optional(_whole_number(1, MSG_CYCLE_LENGTH)),
    KEY_OFF_WEEKS: _optional(_whole_number(0, MSG_OFF_WEEKS)),
    KEY_IS_ACTIVE: _optional(_flag),
    KEY_SITE_ROTATION: _optional(_sites),
    KEY_DOSE_VALUE: _optional(_positive_number),
    KEY_DOSE_UNITS: _optional(_text(MSG_DOSE_UNITS)),
    KEY_TIME_OF_DAY: _optional(_time_of_day),
}

_REQUIRED_MESSAGES: dict[str, str] = {
    KEY_MEDICATION_ID: MSG_MEDICATION_REQUIRED,
    KEY_SCHEDULE_TYPE: MSG_SCHEDULE_TYPE_REQUIRED,
    KEY_START_DATE: MSG_START_REQUIRED,
}

PROTOCOL_RECORD_SCHEMA = vol.Schema(
    {
        (
            vol.Required(key, msg=_REQUIRED_MESSAGES[key])
            if key in _REQUIRED_MESSAGES
            else vol.Optional(key)
        ): validator
        for key, validator in FIELD_VALIDATORS.items()
    },
    extra=vol.ALLOW_EXTRA,
)

# ── Validation ───────────────────────────────────────────────────────────────


def _normalize_draft(draft: Any) -> dict[str, Any] | None:
    """Return a flat record from a record, a Protocol or a Protocol-shaped dict."""
    if isinstance(draft, Protocol):
        # Field by field, so a malformed rule or date is reported, not raised
        draft = {f.name: getattr(draft, f.name) for f in dataclasses.fields(draft)}
    if not isinstance(draft, Mapping):
        return None

    # Validators may run more than once, so one-shot iterators are drained here
    record = {
        key: list(value) if isinstance(value, Iterator) else value
        for key, value in draft.items()
    }
    rule = record.pop("rule", None)
    if isinstance(rule, (EveryNDays, WeeklyOnDays, CustomRule)):
        for key, value in rule_to_record(rule).items():
            record.setdefault(key, value)
    cycle = record.pop("cycle", None)
    if isinstance(cycle, Cycle):
        record.setdefault(KEY_CYCLE_LENGTH_WEEKS, cycle.active_weeks)
        record.setdefault(KEY_OFF_WEEKS, cycle.off_weeks)
    if "medication_ref" in record:
        record.setdefault(KEY_MEDICATION_ID, record.pop("medication_ref"))
    return record


def _check(draft: Any) -> tuple[list[str], dict[str, Any]]:
    """Return (ordered error messages, cleaned fields)."""
    record = _normalize_draft(draft)
    if record is None:
        return [MSG_NOT_A_MAPPING], {}

    errors: dict[str, list[str]] = {}
    try:
        PROTOCOL_RECORD_SCHEMA(record)
    except vol.MultipleInvalid as err:
        for error in err.errors:
            key = error.path[0] if error.path else ""
            # Missing required keys are reported against the marker itself
            key = getattr(key, "schema", key)
            errors.setdefault(key, []).append(error.msg)

    cleaned: dict[str, Any] = {}
    for key, validator in FIELD_VALIDATORS.items():
        if key in errors or key not in record:
            continue
        cleaned[key] = validator(record[key])

    def add(key: str, message: str) -> None:
        if key not in errors:
            errors[key] = [message]

    schedule_type = cleaned.get(KEY_SCHEDULE_TYPE)
    if schedule_type == SCHEDULE_EVERY_X_DAYS and cleaned.get(KEY_FREQUENCY_DAYS) is None:
        add(KEY_FREQUENCY_DAYS, MSG_FREQUENCY)
    elif schedule_type == SCHEDULE_WEEKLY and not cleaned.get(KEY_WEEKLY_DAYS):
        add(KEY_WEEKLY_DAYS, MSG_WEEKLY_EMPTY)
    elif schedule_type == SCHEDULE_CUSTOM and cleaned.get(KEY_CUSTOM_SCHEDULE) is None:
        add(KEY_CUSTOM_SCHEDULE, MSG_CUSTOM_REQUIRED)

    start = cleaned.get(KEY_START_DATE)
    end = cleaned.get(KEY_END_DATE)
    if start is not None and end is not None and end < start:
        add(KEY_END_DATE, MSG_END_BEFORE_START)

    if cleaned.get(KEY_OFF_WEEKS) and cleaned.get(KEY_CYCLE_LENGTH_WEEKS) is None:
        add(KEY_CYCLE_LENGTH_WEEKS, MSG_CYCLE_LENGTH)

    order = {key: index for index, key in enumerate(RECORD_KEY_ORDER)}
    ordered = [
        message
        for key in sorted(errors, key=lambda k: order.get(k, len(order)))
        for message in errors[key]
    ]
    return ordered, cleaned


def validate(draft: Any) -> ValidationResult:
    """Check a protocol record against every protocol invariant."""
    errors, _cleaned = _check(draft)
    return ValidationResult(valid=not errors, errors=errors)


def _rule_from_fields(fields: Mapping[str, Any]) -> ScheduleRule:
    schedule_type = fields[KEY_SCHEDULE_TYPE]
    if schedule_type == SCHEDULE_EVERY_X_DAYS:
        return EveryNDays(fields[KEY_FREQUENCY_DAYS])
    if schedule_type == SCHEDULE_WEEKLY:
        return WeeklyOnDays(fields[KEY_WEEKLY_DAYS])
    return CustomRule(fields.get(KEY_CUSTOM_SCHEDULE))


def parse_protocol(draft: Any, protocol_id: str | None = None) -> Protocol:
    """Validate a record and build the Protocol it describes.

    Raises InvalidProtocol with every validation message when the record is
    not acceptable.
    """
    errors, fields = _check(draft)
    if errors:
        _LOGGER.debug("Rejected protocol record: %s", errors)
        raise InvalidProtocol(errors)

    cycle = None
    if fields.get(KEY_CYCLE_LENGTH_WEEKS) is not None:
        cycle = Cycle(
            active_weeks=fields[KEY_CYCLE_LENGTH_WEEKS],
            off_weeks=fields.get(KEY_OFF_WEEKS) or 0,
        )

    is_active = fields.get(KEY_IS_ACTIVE)
    return Protocol(
        id=protocol_id or fields.get(KEY_ID) or "",
        medication_ref=fields[KEY_MEDICATION_ID],
        rule=_rule_from_fields(fields),
        start_date=fields[KEY_START_DATE],
        end_date=fields.get(KEY_END_DATE),
        cycle=cycle,
        is_active=True if is_active is None else is_active,
        site_rotation=fields.get(KEY_SITE_ROTATION) or (),
        name=fields.get(KEY_NAME) or "",
        dose_value=fields.get(KEY_DOSE_VALUE),
        dose_units=fields.get(KEY_DOSE_UNITS),
        time_of_day=fields.get(KEY_TIME_OF_DAY),
    )
