"""Injection site rotation."""

from __future__ import annotations

from collections.abc import Sequence

# ── Injection sites ──────────────────────────────────────────────────────────

INJECTION_SITES: dict[str, str] = {
    "left_glute": "Left Glute",
    "right_glute": "Right Glute",
    "left_delt": "Left Deltoid",
    "right_delt": "Right Deltoid",
    "left_thigh": "Left Thigh",
    "right_thigh": "Right Thigh",
    "abdomen_upper_left": "Abdomen (Upper Left)",
    "abdomen_upper_right": "Abdomen (Upper Right)",
    "abdomen_lower_left": "Abdomen (Lower Left)",
    "abdomen_lower_right": "Abdomen (Lower Right)",
    "left_ventrogluteal": "Left Ventrogluteal",
    "right_ventrogluteal": "Right Ventrogluteal",
}

# Larger volume intramuscular injections (e.g. testosterone)
LARGE_VOLUME_ROTATION: list[str] = [
    "left_glute",
    "right_glute",
    "left_ventrogluteal",
    "right_ventrogluteal",
]

# Small volume subcutaneous injections (peptides, GLP-1)
SMALL_VOLUME_ROTATION: list[str] = [
    "abdomen_upper_left",
    "abdomen_upper_right",
    "abdomen_lower_left",
    "abdomen_lower_right",
    "left_thigh",
    "right_thigh",
]

DAILY_ROTATION: list[str] = [
    "abdomen_upper_left",
    "abdomen_upper_right",
    "abdomen_lower_right",
    "abdomen_lower_left",
    "left_thigh",
    "right_thigh",
    "left_delt",
    "right_delt",
]

MEDICATION_TYPE_ROTATIONS: dict[str, list[str]] = {
    "trt": LARGE_VOLUME_ROTATION,
    "peptide": SMALL_VOLUME_ROTATION,
    "glp-1": SMALL_VOLUME_ROTATION,
}


def next_site(rotation: Sequence[str] | None, last_site: str | None = None) -> str | None:
    """Return the site following ``last_site`` in ``rotation``.

    Starts over at the first site when nothing was used yet or when the last
    site is not part of the rotation.
    """
    if not rotation:
        return None
    if last_site is None or last_site not in rotation:
        return rotation[0]
    return rotation[(list(rotation).index(last_site) + 1) % len(rotation)]


def recommended_rotation(medication_type: str | None = None) -> list[str]:
    """Return a default rotation for a medication type."""
    key = (medication_type or "").lower()
    return list(MEDICATION_TYPE_ROTATIONS.get(key, DAILY_ROTATION))


def format_site(site: str) -> str:
    """Return the display label for a site id."""
    return INJECTION_SITES.get(site, site)
