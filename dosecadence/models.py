"""Value types for protocols, schedule rules and adherence results."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from .const import (
    DAYS_PER_WEEK,
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
    SCHEDULE_CUSTOM,
    SCHEDULE_EVERY_X_DAYS,
    SCHEDULE_WEEKLY,
)

# ── Schedule rules ───────────────────────────────────────────────────────────


@dataclass(frozen=True)
class EveryNDays:
    """Recur every ``n`` days counted from the previous occurrence."""

    n: int

    schedule_type = SCHEDULE_EVERY_X_DAYS


@dataclass(frozen=True)
class WeeklyOnDays:
    """Recur on fixed weekdays (0 = Sunday ... 6 = Saturday)."""

    days: frozenset[int]

    schedule_type = SCHEDULE_WEEKLY

    def __post_init__(self) -> None:
        # Accept any iterable of ints (lists from records, sets from callers)
        if not isinstance(self.days, frozenset):
            object.__setattr__(self, "days", frozenset(self.days))


@dataclass(frozen=True)
class CustomRule:
    """Opaque rule owned by the caller. The engine cannot evaluate it."""

    payload: Any = field(default=None, hash=False)

    schedule_type = SCHEDULE_CUSTOM


ScheduleRule = EveryNDays | WeeklyOnDays | CustomRule


def rule_to_record(rule: ScheduleRule) -> dict[str, Any]:
    """Return the record fields describing a schedule rule."""
    if isinstance(rule, EveryNDays):
        return {KEY_SCHEDULE_TYPE: SCHEDULE_EVERY_X_DAYS, KEY_FREQUENCY_DAYS: rule.n}
    if isinstance(rule, WeeklyOnDays):
        return {KEY_SCHEDULE_TYPE: SCHEDULE_WEEKLY, KEY_WEEKLY_DAYS: sorted(rule.days)}
    if isinstance(rule, CustomRule):
        return {KEY_SCHEDULE_TYPE: SCHEDULE_CUSTOM, KEY_CUSTOM_SCHEDULE: rule.payload}
    raise TypeError(f"Not a schedule rule: {rule!r}")


# ── Protocol ─────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Cycle:
    """On/off cycling expressed in whole weeks."""

    active_weeks: int
    off_weeks: int = 0

    @property
    def total_days(self) -> int:
        return (self.active_weeks + self.off_weeks) * DAYS_PER_WEEK

    @property
    def active_days(self) -> int:
        return self.active_weeks * DAYS_PER_WEEK


@dataclass(frozen=True)
class Protocol:
    """A schedulable medication protocol, read-only input to the engine."""

    id: str
    medication_ref: str
    rule: ScheduleRule
    start_date: date
    end_date: date | None = None
    cycle: Cycle | None = None
    is_active: bool = True
    site_rotation: tuple[str, ...] = ()
    name: str = ""
    dose_value: float | None = None
    dose_units: str | None = None
    time_of_day: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.site_rotation, tuple):
            object.__setattr__(self, "site_rotation", tuple(self.site_rotation))

    def to_record(self) -> dict[str, Any]:
        """Return the flat persistence record for this protocol."""
        record: dict[str, Any] = {
            KEY_ID: self.id,
            KEY_MEDICATION_ID: self.medication_ref,
            KEY_NAME: self.name,
            KEY_START_DATE: self.start_date.isoformat(),
            KEY_END_DATE: self.end_date.isoformat() if self.end_date else None,
            KEY_CYCLE_LENGTH_WEEKS: self.cycle.active_weeks if self.cycle else None,
            KEY_OFF_WEEKS: self.cycle.off_weeks if self.cycle else None,
            KEY_IS_ACTIVE: self.is_active,
            KEY_SITE_ROTATION: list(self.site_rotation),
            KEY_DOSE_VALUE: self.dose_value,
            KEY_DOSE_UNITS: self.dose_units,
            KEY_TIME_OF_DAY: self.time_of_day,
        }
        record.update(rule_to_record(self.rule))
        return record


@dataclass(frozen=True)
class AdministrationEvent:
    """A recorded dose. Supplied by the caller, never modified here."""

    protocol_id: str
    occurred_at: datetime
    site: str | None = None

    @property
    def day(self) -> date:
        if isinstance(self.occurred_at, datetime):
            return self.occurred_at.date()
        return self.occurred_at


# ── Computed results ─────────────────────────────────────────────────────────


@dataclass(frozen=True)
class AdherenceReport:
    """Expected vs actual administrations over a date window.

    ``supported`` is False when the rule cannot be evaluated. In that case
    ``adherence_percent`` is None and means "unknown", not 0%.
    """

    protocol_id: str
    window_start: date
    window_end: date
    expected_count: int
    actual_count: int
    adherence_percent: int | None
    current_streak: int
    longest_streak: int
    last_event_date: date | None
    supported: bool = True

    def as_dict(self) -> dict[str, Any]:
        """Return a JSON-friendly representation."""
        return {
            "protocol_id": self.protocol_id,
            "window_start": self.window_start.isoformat(),
            "window_end": self.window_end.isoformat(),
            "expected_count": self.expected_count,
            "actual_count": self.actual_count,
            "adherence_percent": self.adherence_percent,
            "current_streak": self.current_streak,
            "longest_streak": self.longest_streak,
            "last_event_date": (
                self.last_event_date.isoformat() if self.last_event_date else None
            ),
            "supported": self.supported,
        }


@dataclass(frozen=True)
class AdherenceSummary:
    """Totals across several adherence reports."""

    overall_percent: int
    total_expected: int
    total_actual: int
    total_protocols: int
    unsupported_protocols: int


@dataclass(frozen=True)
class CycleProgress:
    """Position of a date inside a protocol's on/off cycle."""

    current_cycle: int
    day_in_cycle: int
    total_cycle_days: int
    is_on_cycle: bool


@dataclass(frozen=True)
class ProtocolStats:
    """Lifetime figures for a protocol as of a given day."""

    days_active: int
    expected_doses: int
    cycle_progress: CycleProgress | None = None


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating a protocol record."""

    valid: bool
    errors: list[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.valid
