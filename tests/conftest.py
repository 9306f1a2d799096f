"""Shared fixtures for Dose Cadence tests."""

from __future__ import annotations

from datetime import date, datetime

import pytest

from dosecadence import AdministrationEvent, Cycle, EveryNDays, Protocol, WeeklyOnDays


def make_protocol(**overrides) -> Protocol:
    """Return a weekly-interval protocol starting Monday 2024-01-01."""
    fields = {
        "id": "p1",
        "medication_ref": "med-1",
        "rule": EveryNDays(7),
        "start_date": date(2024, 1, 1),
    }
    fields.update(overrides)
    return Protocol(**fields)


def dose(day: date, protocol_id: str = "p1", hour: int = 9) -> AdministrationEvent:
    """Return an administration at ``hour`` on ``day``."""
    return AdministrationEvent(
        protocol_id=protocol_id,
        occurred_at=datetime(day.year, day.month, day.day, hour, 0),
    )


@pytest.fixture
def weekly_protocol() -> Protocol:
    return make_protocol()


@pytest.fixture
def daily_protocol() -> Protocol:
    return make_protocol(rule=EveryNDays(1))


@pytest.fixture
def mwf_protocol() -> Protocol:
    """Monday / Wednesday / Friday."""
    return make_protocol(rule=WeeklyOnDays({1, 3, 5}))


@pytest.fixture
def cycling_protocol() -> Protocol:
    """Four weeks on, one week off."""
    return make_protocol(cycle=Cycle(active_weeks=4, off_weeks=1))
