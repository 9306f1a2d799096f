"""Tests for injection site rotation."""

from __future__ import annotations

import pytest

from dosecadence import format_site, next_site, recommended_rotation
from dosecadence.rotation import DAILY_ROTATION, INJECTION_SITES, LARGE_VOLUME_ROTATION


@pytest.mark.parametrize(
    ("last_site", "expected"),
    [("A", "B"), ("B", "C"), ("C", "A"), ("Z", "A"), (None, "A")],
)
def test_next_site(last_site, expected):
    assert next_site(["A", "B", "C"], last_site) == expected


def test_empty_rotation():
    assert next_site([], "A") is None
    assert next_site(None) is None


def test_rotation_cycles_back_to_start():
    rotation = ("left_glute", "right_glute", "left_ventrogluteal")
    site = None
    visited = []
    for _ in range(len(rotation) * 2):
        site = next_site(rotation, site)
        visited.append(site)
    assert visited == list(rotation) * 2


def test_recommended_rotation():
    assert recommended_rotation("TRT") == LARGE_VOLUME_ROTATION
    assert recommended_rotation("unknown") == DAILY_ROTATION
    assert recommended_rotation() == DAILY_ROTATION


def test_recommended_rotation_returns_a_copy():
    rotation = recommended_rotation("trt")
    rotation.append("left_delt")
    assert "left_delt" not in LARGE_VOLUME_ROTATION


def test_rotations_only_use_known_sites():
    assert set(DAILY_ROTATION) <= set(INJECTION_SITES)
    assert set(recommended_rotation("peptide")) <= set(INJECTION_SITES)


def test_format_site():
    assert format_site("abdomen_lower_left") == "Abdomen (Lower Left)"
    assert format_site("left_calf") == "left_calf"
