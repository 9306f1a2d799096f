"""Tests for the get_schedule service response."""

from __future__ import annotations

from datetime import date

import pytest

pytest.importorskip("homeassistant")

from dosecadence import analyze  # noqa: E402
from custom_components.dose_cadence import schedule_response  # noqa: E402

from .conftest import dose, make_protocol  # noqa: E402


def test_schedule_response():
    protocol = make_protocol()
    report = analyze(protocol, [dose(date(2024, 1, 1))], date(2024, 1, 1), date(2024, 1, 7))
    data = {
        "schedule": "Weekly",
        "next_due": date(2024, 1, 8),
        "next_site": "right_glute",
        "on_cycle": True,
        "preview": [date(2024, 1, 8), date(2024, 1, 15)],
        "adherence": report,
    }

    response = schedule_response(data)

    assert response["next_due"] == "2024-01-08"
    assert response["preview"] == ["2024-01-08", "2024-01-15"]
    assert response["adherence"]["adherence_percent"] == 100
    assert response["next_site"] == "right_glute"


def test_schedule_response_before_first_refresh():
    response = schedule_response({})

    assert response["next_due"] is None
    assert response["preview"] == []
    assert response["adherence"] is None
