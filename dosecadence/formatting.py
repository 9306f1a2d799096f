"""Human-readable labels for schedules and due dates."""

from __future__ import annotations

from .const import SCHEDULE_TYPES, WEEKDAY_NAMES
from .models import CustomRule, EveryNDays, Protocol, ScheduleRule, WeeklyOnDays


def format_schedule_type(schedule_type: str) -> str:
    """Return the label for a schedule type key."""
    return SCHEDULE_TYPES.get(schedule_type, schedule_type)


def format_rule(rule: ScheduleRule) -> str:
    """Describe a schedule rule, e.g. "Daily" or "Weekly: Mon, Wed, Fri"."""
    if isinstance(rule, EveryNDays):
        if rule.n == 1:
            return "Daily"
        if rule.n == 7:
            return "Weekly"
        return f"Every {rule.n} days"
    if isinstance(rule, WeeklyOnDays):
        if not rule.days:
            return "Not configured"
        return "Weekly: " + ", ".join(WEEKDAY_NAMES[d] for d in sorted(rule.days))
    if isinstance(rule, CustomRule):
        return "Custom schedule"
    return "Unknown schedule"


def format_protocol_schedule(protocol: Protocol) -> str:
    """Describe a protocol's schedule including its cycle, if any."""
    text = format_rule(protocol.rule)
    if protocol.cycle is not None and protocol.cycle.off_weeks:
        text += (
            f" ({protocol.cycle.active_weeks} weeks on,"
            f" {protocol.cycle.off_weeks} off)"
        )
    return text


def format_days_until(days: int) -> str:
    """Return "Today", "Tomorrow", "In 3 days", "2 days ago" and so on."""
    if days == 0:
        return "Today"
    if days == 1:
        return "Tomorrow"
    if days == -1:
        return "Yesterday"
    if days < 0:
        return f"{abs(days)} days ago"
    return f"In {days} days"
