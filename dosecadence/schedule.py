"""Occurrence calculation, cycle phases and schedule previews.

Every function here is pure: protocols and dates come in by value and
nothing is cached between calls.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from datetime import date, timedelta

from .const import (
    DAYS_PER_WEEK,
    DEFAULT_PREVIEW_DAYS,
    ITERATION_LIMIT,
)
from .exceptions import UnsupportedRule
from .models import (
    Cycle,
    CustomRule,
    CycleProgress,
    EveryNDays,
    Protocol,
    ProtocolStats,
    ScheduleRule,
    WeeklyOnDays,
)

_LOGGER = logging.getLogger(__name__)


def weekday_index(day: date) -> int:
    """Return the weekday with 0 = Sunday ... 6 = Saturday."""
    return day.isoweekday() % DAYS_PER_WEEK


# ── Occurrence calculator ────────────────────────────────────────────────────


def next_occurrence(
    rule: ScheduleRule, reference_date: date, strict: bool = False
) -> date | None:
    """Return the first occurrence strictly after ``reference_date``.

    Custom rules have no deterministic answer and return None, or raise
    UnsupportedRule when ``strict`` is set.
    """
    if isinstance(rule, EveryNDays):
        return reference_date + timedelta(days=rule.n)

    if isinstance(rule, WeeklyOnDays):
        return _next_weekly_date(reference_date, rule.days)

    if isinstance(rule, CustomRule):
        if strict:
            raise UnsupportedRule("Custom schedules have no computable next date")
        _LOGGER.debug("No next occurrence for custom rule after %s", reference_date)
        return None

    raise TypeError(f"Not a schedule rule: {rule!r}")


def _next_weekly_date(reference_date: date, days: frozenset[int]) -> date | None:
    """Advance to the next selected weekday, wrapping into the next week."""
    if not days:
        return None
    current = weekday_index(reference_date)
    sorted_days = sorted(days)

    later = [d for d in sorted_days if d > current]
    if later:
        days_to_add = later[0] - current
    else:
        days_to_add = DAYS_PER_WEEK - current + sorted_days[0]
    return reference_date + timedelta(days=days_to_add)


def first_occurrence(protocol: Protocol) -> date | None:
    """Return the first scheduled date on or after the protocol start.

    The start date anchors interval and custom schedules. A weekly schedule
    only uses it when it falls on a selected weekday.
    """
    start = protocol.start_date
    rule = protocol.rule
    if isinstance(rule, WeeklyOnDays) and weekday_index(start) not in rule.days:
        first = next_occurrence(rule, start)
    else:
        first = start
    if first is not None and protocol.end_date is not None and first > protocol.end_date:
        return None
    return first


def next_due_date(
    protocol: Protocol, last_administered: date | None = None
) -> date | None:
    """Return the next due date given the last recorded administration.

    With no administration yet the first occurrence is due. Returns None
    once the schedule has ended or when the rule is not computable.
    """
    # Doses logged before the start do not count towards the schedule
    if last_administered is None or last_administered < protocol.start_date:
        return first_occurrence(protocol)

    due = next_occurrence(protocol.rule, last_administered)
    if due is None:
        return None
    if protocol.end_date is not None and due > protocol.end_date:
        return None
    return due


def days_until(target: date, today: date | None = None) -> int:
    """Return whole days from ``today`` to ``target`` (negative when past)."""
    today = today or date.today()
    return (target - today).days


def is_overdue(target: date, today: date | None = None) -> bool:
    """Return True if ``target`` is before ``today``."""
    return days_until(target, today) < 0


# ── Cycle evaluator ──────────────────────────────────────────────────────────


def _day_in_cycle(cycle: Cycle, start_date: date, check_date: date) -> int | None:
    days_since_start = (check_date - start_date).days
    if days_since_start < 0:
        return None
    return days_since_start % cycle.total_days


def is_active_phase(protocol: Protocol, check_date: date | None = None) -> bool:
    """Return True if the protocol is in an active (on) phase on ``check_date``.

    Without a cycle the result is simply ``protocol.is_active``. With a cycle,
    dates before the start are never active.
    """
    if protocol.cycle is None:
        return protocol.is_active

    check_date = check_date or date.today()
    day = _day_in_cycle(protocol.cycle, protocol.start_date, check_date)
    if day is None:
        return False
    return day < protocol.cycle.active_days


def cycle_progress(
    protocol: Protocol, check_date: date | None = None
) -> CycleProgress | None:
    """Return where ``check_date`` falls in the protocol's cycle."""
    cycle = protocol.cycle
    if cycle is None:
        return None

    check_date = check_date or date.today()
    days_since_start = (check_date - protocol.start_date).days
    if days_since_start < 0:
        return CycleProgress(
            current_cycle=0,
            day_in_cycle=0,
            total_cycle_days=cycle.total_days,
            is_on_cycle=False,
        )
    day = days_since_start % cycle.total_days
    return CycleProgress(
        current_cycle=days_since_start // cycle.total_days + 1,
        day_in_cycle=day,
        total_cycle_days=cycle.total_days,
        is_on_cycle=day < cycle.active_days,
    )


def protocol_stats(protocol: Protocol, today: date | None = None) -> ProtocolStats:
    """Return days active and the number of doses expected so far."""
    today = today or date.today()
    days_active = max(0, (today - protocol.start_date).days)

    rule = protocol.rule
    if isinstance(rule, EveryNDays):
        expected = days_active // rule.n
    elif isinstance(rule, WeeklyOnDays):
        expected = (days_active // DAYS_PER_WEEK) * len(rule.days)
    else:
        expected = 0

    return ProtocolStats(
        days_active=days_active,
        expected_doses=expected,
        cycle_progress=cycle_progress(protocol, today),
    )


# ── Preview generator ────────────────────────────────────────────────────────


def iter_occurrences(
    protocol: Protocol,
    until: date,
    limit: int = ITERATION_LIMIT,
    respect_cycle: bool = False,
) -> Iterator[date]:
    """Yield scheduled dates from the first occurrence up to ``until``.

    The sequence stops at the protocol end date, at an uncomputable or
    non-advancing rule, or after ``limit`` steps, whichever comes first.
    """
    return _occurrences_from(
        protocol, first_occurrence(protocol), until, limit, respect_cycle
    )


def _occurrences_from(
    protocol: Protocol,
    current: date | None,
    until: date,
    limit: int,
    respect_cycle: bool,
) -> Iterator[date]:
    steps = 0

    while current is not None:
        if current > until:
            return
        if protocol.end_date is not None and current > protocol.end_date:
            return
        if steps >= limit:
            _LOGGER.debug(
                "Preview for protocol %s truncated after %d steps", protocol.id, limit
            )
            return
        steps += 1

        if not respect_cycle or _in_active_cycle(protocol, current):
            yield current

        following = next_occurrence(protocol.rule, current)
        if following is None:
            return
        if following <= current:
            _LOGGER.warning(
                "Schedule for protocol %s does not advance past %s",
                protocol.id,
                current,
            )
            return
        current = following


def _in_active_cycle(protocol: Protocol, day: date) -> bool:
    if protocol.cycle is None:
        return True
    position = _day_in_cycle(protocol.cycle, protocol.start_date, day)
    return position is not None and position < protocol.cycle.active_days


def preview(
    protocol: Protocol,
    horizon_days: int = DEFAULT_PREVIEW_DAYS,
    today: date | None = None,
    limit: int = ITERATION_LIMIT,
    respect_cycle: bool = False,
) -> list[date]:
    """Return scheduled dates up to ``today + horizon_days``."""
    today = today or date.today()
    horizon = today + timedelta(days=max(0, horizon_days))
    return list(
        iter_occurrences(protocol, horizon, limit=limit, respect_cycle=respect_cycle)
    )


def _catch_up(rule: ScheduleRule, anchor: date, today: date) -> date | None:
    """Move a past occurrence forward to the last one before ``today``."""
    if anchor >= today:
        return anchor
    if isinstance(rule, EveryNDays):
        periods = (today - anchor).days // rule.n
        return anchor + timedelta(days=periods * rule.n)
    if isinstance(rule, WeeklyOnDays):
        return next_occurrence(rule, today - timedelta(days=1))
    return anchor


def upcoming(
    protocol: Protocol,
    horizon_days: int = DEFAULT_PREVIEW_DAYS,
    today: date | None = None,
    last_administered: date | None = None,
    limit: int = ITERATION_LIMIT,
    respect_cycle: bool = False,
) -> list[date]:
    """Return scheduled dates from ``today`` up to ``today + horizon_days``.

    Iteration starts at the next due date, caught up to today, so a protocol
    that has been running for years still yields its upcoming doses.
    """
    today = today or date.today()
    anchor = next_due_date(protocol, last_administered)
    if anchor is None:
        return []
    horizon = today + timedelta(days=max(0, horizon_days))
    occurrences = _occurrences_from(
        protocol,
        _catch_up(protocol.rule, anchor, today),
        horizon,
        limit,
        respect_cycle,
    )
    return [day for day in occurrences if day >= today]
