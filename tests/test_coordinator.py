"""Tests for the coordinator's refresh data."""

from __future__ import annotations

import asyncio
from datetime import timedelta
from types import SimpleNamespace

import pytest

pytest.importorskip("homeassistant")

from homeassistant.util import dt as dt_util  # noqa: E402

from custom_components.dose_cadence.coordinator import (  # noqa: E402
    DoseCadenceCoordinator,
)

ROTATION = ["left_glute", "right_glute", "left_ventrogluteal"]


class FakeDatabase:
    """In-memory stand-in for the administration log."""

    def __init__(self, rows=(), last_site=None):
        self.rows = list(rows)
        self.last_site = last_site

    async def prune_old_administrations(self, config_entry_id):
        return 0

    async def get_administrations(self, config_entry_id):
        return list(self.rows)

    async def get_last_site(self, config_entry_id):
        return self.last_site


def _coordinator(database, **data):
    config = {
        "medication_id": "med-1",
        "schedule_type": "every_x_days",
        "frequency_days": 1,
        "start_date": "2023-01-01",
        "site_rotation": ROTATION,
    }
    config.update(data)
    coordinator = DoseCadenceCoordinator.__new__(DoseCadenceCoordinator)
    coordinator.config_entry = SimpleNamespace(
        entry_id="entry", title="Estradiol", data=config, options={}
    )
    coordinator.database = database
    return coordinator


def test_long_running_protocol_has_upcoming_doses():
    coordinator = _coordinator(FakeDatabase())

    data = asyncio.run(coordinator._async_update_data())

    today = dt_util.now().date()
    assert data["preview"][0] == today
    assert data["preview"][-1] == today + timedelta(days=30)
    assert data["next_due"] is not None


def test_next_site_matches_logged_site():
    database = FakeDatabase(last_site="right_glute")
    coordinator = _coordinator(database)

    data = asyncio.run(coordinator._async_update_data())
    site_for_button = asyncio.run(coordinator.async_next_site())

    assert data["next_site"] == "left_ventrogluteal"
    assert site_for_button == data["next_site"]


def test_next_site_without_history():
    coordinator = _coordinator(FakeDatabase())

    assert asyncio.run(coordinator.async_next_site()) == "left_glute"
