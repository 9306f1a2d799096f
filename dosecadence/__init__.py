"""Recurring dose scheduling and adherence engine."""

from __future__ import annotations

from .adherence import analyze, expected_count, summarize
from .exceptions import DoseCadenceError, InvalidProtocol, UnsupportedRule
from .models import (
    AdherenceReport,
    AdherenceSummary,
    AdministrationEvent,
    Cycle,
    CycleProgress,
    CustomRule,
    EveryNDays,
    Protocol,
    ProtocolStats,
    ScheduleRule,
    ValidationResult,
    WeeklyOnDays,
)
from .rotation import format_site, next_site, recommended_rotation
from .schedule import (
    cycle_progress,
    days_until,
    first_occurrence,
    is_active_phase,
    is_overdue,
    iter_occurrences,
    next_due_date,
    next_occurrence,
    preview,
    protocol_stats,
    upcoming,
    weekday_index,
)
from .validation import parse_protocol, validate

__version__ = "0.1.0"

__all__ = [
    "AdherenceReport",
    "AdherenceSummary",
    "AdministrationEvent",
    "CustomRule",
    "Cycle",
    "CycleProgress",
    "DoseCadenceError",
    "EveryNDays",
    "InvalidProtocol",
    "Protocol",
    "ProtocolStats",
    "ScheduleRule",
    "UnsupportedRule",
    "ValidationResult",
    "WeeklyOnDays",
    "analyze",
    "cycle_progress",
    "days_until",
    "expected_count",
    "first_occurrence",
    "format_site",
    "is_active_phase",
    "is_overdue",
    "iter_occurrences",
    "next_due_date",
    "next_occurrence",
    "next_site",
    "parse_protocol",
    "preview",
    "protocol_stats",
    "recommended_rotation",
    "summarize",
    "upcoming",
    "validate",
    "weekday_index",
]
