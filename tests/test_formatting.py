"""Tests for schedule labels."""

from __future__ import annotations

import pytest

from dosecadence import Cycle, CustomRule, EveryNDays, WeeklyOnDays
from dosecadence.formatting import (
    format_days_until,
    format_protocol_schedule,
    format_rule,
    format_schedule_type,
)

from .conftest import make_protocol


@pytest.mark.parametrize(
    ("rule", "expected"),
    [
        (EveryNDays(1), "Daily"),
        (EveryNDays(7), "Weekly"),
        (EveryNDays(10), "Every 10 days"),
        (WeeklyOnDays({5, 1, 3}), "Weekly: Mon, Wed, Fri"),
        (WeeklyOnDays({0, 6}), "Weekly: Sun, Sat"),
        (WeeklyOnDays(set()), "Not configured"),
        (CustomRule({"x": 1}), "Custom schedule"),
    ],
)
def test_format_rule(rule, expected):
    assert format_rule(rule) == expected


def test_format_protocol_schedule_with_cycle():
    protocol = make_protocol(cycle=Cycle(active_weeks=4, off_weeks=1))
    assert format_protocol_schedule(protocol) == "Weekly (4 weeks on, 1 off)"


def test_format_protocol_schedule_without_off_weeks():
    protocol = make_protocol(cycle=Cycle(active_weeks=4))
    assert format_protocol_schedule(protocol) == "Weekly"


def test_format_schedule_type():
    assert format_schedule_type("every_x_days") == "Every X Days"
    assert format_schedule_type("monthly") == "monthly"


@pytest.mark.parametrize(
    ("days", "expected"),
    [
        (0, "Today"),
        (1, "Tomorrow"),
        (-1, "Yesterday"),
        (5, "In 5 days"),
        (-3, "3 days ago"),
    ],
)
def test_format_days_until(days, expected):
    assert format_days_until(days) == expected
