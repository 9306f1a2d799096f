"""Retrospective adherence: recorded administrations against the schedule."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import date, datetime

from .const import DAYS_PER_WEEK, MAX_ADHERENCE_PERCENT, STREAK_TOLERANCE_DAYS
from .models import (
    AdherenceReport,
    AdherenceSummary,
    AdministrationEvent,
    CustomRule,
    EveryNDays,
    Protocol,
    ScheduleRule,
    WeeklyOnDays,
)

_LOGGER = logging.getLogger(__name__)


def _percent(actual: int, expected: int) -> int:
    """Round ``actual / expected`` to a whole percent, halves rounding up."""
    return (200 * actual + expected) // (2 * expected)


def expected_count(rule: ScheduleRule, range_start: date, range_end: date) -> int | None:
    """Return how many doses the rule expects in an inclusive date range.

    None means the rule cannot be evaluated.
    """
    if isinstance(rule, CustomRule):
        return None

    days_in_range = (range_end - range_start).days + 1
    if days_in_range <= 0:
        return 0

    if isinstance(rule, EveryNDays):
        return days_in_range // rule.n
    if isinstance(rule, WeeklyOnDays):
        return (days_in_range // DAYS_PER_WEEK) * len(rule.days)
    raise TypeError(f"Not a schedule rule: {rule!r}")


def _gap_days(newer: datetime | date, older: datetime | date) -> int:
    return (newer - older).days


def _streaks(rule: ScheduleRule, times: Sequence[datetime | date]) -> tuple[int, int]:
    """Return (current, longest) streaks for timestamps sorted newest first."""
    if not times:
        return 0, 0
    if not isinstance(rule, EveryNDays):
        return 1, 1

    current = 1
    counting_current = True
    run = 1
    longest = 1
    for newer, older in zip(times, times[1:]):
        if abs(_gap_days(newer, older) - rule.n) <= STREAK_TOLERANCE_DAYS:
            run += 1
            if counting_current:
                current += 1
        else:
            run = 1
            counting_current = False
        longest = max(longest, run)
    return current, longest


def analyze(
    protocol: Protocol,
    events: Iterable[AdministrationEvent],
    window_start: date,
    window_end: date,
) -> AdherenceReport:
    """Build an adherence report for ``protocol`` over an inclusive window."""
    relevant = [
        event
        for event in events
        if event.protocol_id == protocol.id
        and window_start <= event.day <= window_end
    ]
    relevant.sort(key=lambda e: e.occurred_at, reverse=True)
    actual = len(relevant)
    last_event_date = relevant[0].day if relevant else None
    current_streak, longest_streak = _streaks(
        protocol.rule, [e.occurred_at for e in relevant]
    )

    effective_start = max(window_start, protocol.start_date)
    expected = expected_count(protocol.rule, effective_start, window_end)

    if expected is None:
        _LOGGER.debug(
            "Adherence for protocol %s is unknown: custom schedule", protocol.id
        )
        return AdherenceReport(
            protocol_id=protocol.id,
            window_start=window_start,
            window_end=window_end,
            expected_count=0,
            actual_count=actual,
            adherence_percent=None,
            current_streak=current_streak,
            longest_streak=longest_streak,
            last_event_date=last_event_date,
            supported=False,
        )

    if expected > 0:
        percent = min(MAX_ADHERENCE_PERCENT, _percent(actual, expected))
    else:
        # Nothing due yet in this window
        percent = MAX_ADHERENCE_PERCENT

    return AdherenceReport(
        protocol_id=protocol.id,
        window_start=window_start,
        window_end=window_end,
        expected_count=expected,
        actual_count=actual,
        adherence_percent=percent,
        current_streak=current_streak,
        longest_streak=longest_streak,
        last_event_date=last_event_date,
    )


def summarize(reports: Iterable[AdherenceReport]) -> AdherenceSummary:
    """Combine per-protocol reports into overall totals.

    Reports for unsupported rules are counted but left out of the totals.
    """
    total_expected = 0
    total_actual = 0
    total = 0
    unsupported = 0
    for report in reports:
        total += 1
        if not report.supported:
            unsupported += 1
            continue
        total_expected += report.expected_count
        total_actual += report.actual_count

    overall = (
        _percent(total_actual, total_expected)
        if total_expected > 0
        else MAX_ADHERENCE_PERCENT
    )
    return AdherenceSummary(
        overall_percent=overall,
        total_expected=total_expected,
        total_actual=total_actual,
        total_protocols=total,
        unsupported_protocols=unsupported,
    )
