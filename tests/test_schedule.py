"""Tests for occurrence calculation, cycles and previews."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from dosecadence import (
    Cycle,
    CustomRule,
    EveryNDays,
    UnsupportedRule,
    WeeklyOnDays,
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
from dosecadence.const import ITERATION_LIMIT

from .conftest import make_protocol

MONDAY = date(2024, 1, 1)


def test_weekday_index_starts_on_sunday():
    assert weekday_index(MONDAY) == 1
    assert weekday_index(date(2024, 1, 7)) == 0
    assert weekday_index(date(2024, 1, 6)) == 6


# ── next_occurrence ──────────────────────────────────────────────────────────


class TestEveryNDays:
    def test_weekly_interval(self):
        assert next_occurrence(EveryNDays(7), MONDAY) == date(2024, 1, 8)

    @pytest.mark.parametrize("n", [1, 2, 3, 10, 28])
    def test_iterating_k_times(self, n):
        current = MONDAY
        for _ in range(5):
            current = next_occurrence(EveryNDays(n), current)
        assert current == MONDAY + timedelta(days=5 * n)

    def test_crosses_year_boundary(self):
        assert next_occurrence(EveryNDays(3), date(2023, 12, 30)) == date(2024, 1, 2)


class TestWeeklyOnDays:
    def test_monday_to_wednesday(self):
        rule = WeeklyOnDays({1, 3, 5})
        assert next_occurrence(rule, MONDAY) == date(2024, 1, 3)

    def test_friday_wraps_to_next_monday(self):
        rule = WeeklyOnDays({1, 3, 5})
        assert next_occurrence(rule, date(2024, 1, 5)) == date(2024, 1, 8)

    def test_saturday_wraps_to_next_monday(self):
        rule = WeeklyOnDays({1, 3, 5})
        assert next_occurrence(rule, date(2024, 1, 6)) == date(2024, 1, 8)

    def test_same_weekday_advances_a_full_week(self):
        rule = WeeklyOnDays({0})
        assert next_occurrence(rule, date(2024, 1, 7)) == date(2024, 1, 14)

    def test_accepts_list_of_days(self):
        assert WeeklyOnDays([5, 1, 1]).days == frozenset({1, 5})

    @pytest.mark.parametrize(
        "days", [{0}, {6}, {1, 3, 5}, {0, 6}, {2, 4}, set(range(7))]
    )
    def test_next_is_earliest_selected_weekday(self, days):
        rule = WeeklyOnDays(days)
        for offset in range(14):
            reference = MONDAY + timedelta(days=offset)
            result = next_occurrence(rule, reference)
            assert result > reference
            assert weekday_index(result) in days
            between = reference + timedelta(days=1)
            while between < result:
                assert weekday_index(between) not in days
                between += timedelta(days=1)


class TestCustomRule:
    def test_returns_none(self):
        assert next_occurrence(CustomRule({"rrule": "FREQ=MONTHLY"}), MONDAY) is None

    def test_strict_raises(self):
        with pytest.raises(UnsupportedRule):
            next_occurrence(CustomRule(), MONDAY, strict=True)


def test_rejects_non_rule():
    with pytest.raises(TypeError):
        next_occurrence("weekly", MONDAY)


# ── first / next due ─────────────────────────────────────────────────────────


def test_first_occurrence_is_start_for_interval(weekly_protocol):
    assert first_occurrence(weekly_protocol) == MONDAY


def test_first_occurrence_skips_unselected_start_day():
    protocol = make_protocol(rule=WeeklyOnDays({3}), start_date=date(2024, 1, 2))
    assert first_occurrence(protocol) == date(2024, 1, 3)


def test_first_occurrence_after_end_date():
    protocol = make_protocol(
        rule=WeeklyOnDays({5}), start_date=MONDAY, end_date=date(2024, 1, 3)
    )
    assert first_occurrence(protocol) is None


class TestNextDueDate:
    def test_nothing_logged_yet(self, weekly_protocol):
        assert next_due_date(weekly_protocol) == MONDAY

    def test_after_last_dose(self, weekly_protocol):
        assert next_due_date(weekly_protocol, date(2024, 1, 8)) == date(2024, 1, 15)

    def test_late_dose_shifts_schedule(self, weekly_protocol):
        assert next_due_date(weekly_protocol, date(2024, 1, 10)) == date(2024, 1, 17)

    def test_dose_before_start_is_ignored(self, weekly_protocol):
        assert next_due_date(weekly_protocol, date(2023, 12, 20)) == MONDAY

    def test_none_after_end_date(self):
        protocol = make_protocol(end_date=date(2024, 1, 10))
        assert next_due_date(protocol, date(2024, 1, 8)) is None

    def test_custom_rule_after_first_dose(self):
        protocol = make_protocol(rule=CustomRule({"note": "as needed"}))
        assert next_due_date(protocol, date(2024, 1, 2)) is None


def test_days_until_and_overdue():
    today = date(2024, 1, 10)
    assert days_until(date(2024, 1, 12), today) == 2
    assert days_until(date(2024, 1, 8), today) == -2
    assert is_overdue(date(2024, 1, 9), today)
    assert not is_overdue(today, today)


# ── Cycle evaluator ──────────────────────────────────────────────────────────


class TestActivePhase:
    def test_first_off_day(self, cycling_protocol):
        assert is_active_phase(cycling_protocol, date(2024, 1, 29)) is False

    def test_last_active_day(self, cycling_protocol):
        assert is_active_phase(cycling_protocol, date(2024, 1, 28)) is True

    def test_next_cycle_starts_active(self, cycling_protocol):
        assert is_active_phase(cycling_protocol, date(2024, 2, 5)) is True

    def test_before_start(self, cycling_protocol):
        assert is_active_phase(cycling_protocol, date(2023, 12, 31)) is False

    def test_periodic(self, cycling_protocol):
        period = timedelta(days=cycling_protocol.cycle.total_days)
        for offset in range(80):
            day = MONDAY + timedelta(days=offset)
            assert is_active_phase(cycling_protocol, day) == is_active_phase(
                cycling_protocol, day + period
            )

    def test_without_cycle_follows_active_flag(self):
        assert is_active_phase(make_protocol(), date(2030, 1, 1)) is True
        assert is_active_phase(make_protocol(is_active=False), MONDAY) is False

    def test_zero_off_weeks_is_always_active(self):
        protocol = make_protocol(cycle=Cycle(active_weeks=2, off_weeks=0))
        assert all(
            is_active_phase(protocol, MONDAY + timedelta(days=d)) for d in range(60)
        )


def test_cycle_progress(cycling_protocol):
    progress = cycle_progress(cycling_protocol, date(2024, 1, 29))
    assert progress.current_cycle == 1
    assert progress.day_in_cycle == 28
    assert progress.total_cycle_days == 35
    assert progress.is_on_cycle is False

    second = cycle_progress(cycling_protocol, date(2024, 2, 6))
    assert second.current_cycle == 2
    assert second.day_in_cycle == 1
    assert second.is_on_cycle is True


def test_cycle_progress_without_cycle(weekly_protocol):
    assert cycle_progress(weekly_protocol, MONDAY) is None


def test_protocol_stats():
    stats = protocol_stats(make_protocol(), date(2024, 1, 15))
    assert stats.days_active == 14
    assert stats.expected_doses == 2
    assert stats.cycle_progress is None

    weekly = protocol_stats(make_protocol(rule=WeeklyOnDays({1, 4})), date(2024, 1, 22))
    assert weekly.expected_doses == 6


# ── Preview ──────────────────────────────────────────────────────────────────


class TestPreview:
    def test_weekly_interval_month(self, weekly_protocol):
        assert preview(weekly_protocol, 30, today=MONDAY) == [
            date(2024, 1, 1),
            date(2024, 1, 8),
            date(2024, 1, 15),
            date(2024, 1, 22),
            date(2024, 1, 29),
        ]

    def test_stops_at_end_date(self):
        protocol = make_protocol(end_date=date(2024, 1, 20))
        assert preview(protocol, 60, today=MONDAY) == [
            date(2024, 1, 1),
            date(2024, 1, 8),
            date(2024, 1, 15),
        ]

    def test_weekly_days_skip_unselected_start(self):
        protocol = make_protocol(
            rule=WeeklyOnDays({1, 3, 5}), start_date=date(2024, 1, 2)
        )
        assert preview(protocol, 7, today=date(2024, 1, 2)) == [
            date(2024, 1, 3),
            date(2024, 1, 5),
            date(2024, 1, 8),
        ]

    def test_future_start_beyond_horizon(self):
        protocol = make_protocol(start_date=date(2024, 6, 1))
        assert preview(protocol, 30, today=MONDAY) == []

    def test_custom_rule_only_has_start(self):
        protocol = make_protocol(rule=CustomRule({"note": "titration"}))
        assert preview(protocol, 30, today=MONDAY) == [MONDAY]

    def test_bounded_by_iteration_limit(self):
        protocol = make_protocol(rule=EveryNDays(1), start_date=date(2019, 1, 1))
        dates = preview(protocol, 30, today=MONDAY)
        assert len(dates) == ITERATION_LIMIT
        assert dates[0] == date(2019, 1, 1)

    def test_sorted_and_within_bounds(self, mwf_protocol):
        today = date(2024, 2, 1)
        dates = preview(mwf_protocol, 45, today=today)
        assert dates == sorted(set(dates))
        assert all(
            mwf_protocol.start_date <= d <= today + timedelta(days=45) for d in dates
        )

    def test_respect_cycle_drops_off_weeks(self):
        protocol = make_protocol(cycle=Cycle(active_weeks=1, off_weeks=1))
        assert preview(protocol, 27, today=MONDAY, respect_cycle=True) == [
            date(2024, 1, 1),
            date(2024, 1, 15),
        ]

    def test_restartable(self, mwf_protocol):
        first = preview(mwf_protocol, 20, today=MONDAY)
        assert preview(mwf_protocol, 20, today=MONDAY) == first


def test_iter_occurrences_is_lazy(daily_protocol):
    occurrences = iter_occurrences(daily_protocol, date(2030, 1, 1))
    assert next(occurrences) == MONDAY
    assert next(occurrences) == date(2024, 1, 2)


# ── Upcoming doses ───────────────────────────────────────────────────────────


class TestUpcoming:
    def test_long_running_daily_protocol(self):
        protocol = make_protocol(rule=EveryNDays(1), start_date=date(2023, 1, 1))
        today = date(2026, 10, 19)

        dates = upcoming(protocol, 30, today=today)

        assert len(dates) == 31
        assert dates[0] == today
        assert dates[-1] == today + timedelta(days=30)

    def test_keeps_phase_of_interval(self):
        protocol = make_protocol(start_date=date(2023, 1, 2))

        dates = upcoming(protocol, 14, today=date(2026, 10, 19))

        assert dates == [date(2026, 10, 19), date(2026, 10, 26), date(2026, 11, 2)]

    def test_follows_last_administration(self, weekly_protocol):
        dates = upcoming(
            weekly_protocol,
            14,
            today=date(2024, 1, 20),
            last_administered=date(2024, 1, 10),
        )

        assert dates == [date(2024, 1, 24), date(2024, 1, 31)]

    def test_weekly_days_after_years(self):
        protocol = make_protocol(
            rule=WeeklyOnDays({1, 3, 5}), start_date=date(2019, 1, 1)
        )

        assert upcoming(protocol, 6, today=MONDAY) == [
            date(2024, 1, 1),
            date(2024, 1, 3),
            date(2024, 1, 5),
        ]

    def test_respects_cycle(self):
        protocol = make_protocol(
            rule=EveryNDays(1),
            start_date=date(2023, 1, 2),
            cycle=Cycle(active_weeks=1, off_weeks=1),
        )

        dates = upcoming(protocol, 13, today=MONDAY, respect_cycle=True)

        assert dates == [MONDAY + timedelta(days=d) for d in range(7)]

    def test_before_start(self, weekly_protocol):
        dates = upcoming(weekly_protocol, 11, today=date(2023, 12, 28))

        assert dates == [date(2024, 1, 1), date(2024, 1, 8)]

    def test_ended_protocol(self):
        protocol = make_protocol(end_date=date(2024, 3, 1))

        assert upcoming(protocol, 30, today=date(2025, 1, 1)) == []

    def test_custom_rule_in_the_past(self):
        protocol = make_protocol(rule=CustomRule({"note": "titration"}))

        assert upcoming(protocol, 30, today=date(2024, 2, 1)) == []
