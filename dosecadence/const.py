"""Constants for the Dose Cadence scheduling engine."""

from __future__ import annotations

# ── Schedule types ───────────────────────────────────────────────────────────

SCHEDULE_EVERY_X_DAYS = "every_x_days"
SCHEDULE_WEEKLY = "weekly"
SCHEDULE_CUSTOM = "custom"

SCHEDULE_TYPES: dict[str, str] = {
    SCHEDULE_EVERY_X_DAYS: "Every X Days",
    SCHEDULE_WEEKLY: "Weekly Schedule",
    SCHEDULE_CUSTOM: "Custom Schedule",
}

# ── Protocol record keys ─────────────────────────────────────────────────────
# Flat record shape shared with the persistence layer.

KEY_ID = "id"
KEY_MEDICATION_ID = "medication_id"
KEY_NAME = "name"
KEY_SCHEDULE_TYPE = "schedule_type"
KEY_FREQUENCY_DAYS = "frequency_days"
KEY_WEEKLY_DAYS = "weekly_days"
KEY_CUSTOM_SCHEDULE = "custom_schedule"
KEY_CYCLE_LENGTH_WEEKS = "cycle_length_weeks"
KEY_OFF_WEEKS = "off_weeks"
KEY_START_DATE = "start_date"
KEY_END_DATE = "end_date"
KEY_IS_ACTIVE = "is_active"
KEY_SITE_ROTATION = "site_rotation"
KEY_DOSE_VALUE = "dose_value"
KEY_DOSE_UNITS = "dose_units"
KEY_TIME_OF_DAY = "time_of_day"

# Order in which validation errors are reported
RECORD_KEY_ORDER: list[str] = [
    KEY_ID,
    KEY_MEDICATION_ID,
    KEY_NAME,
    KEY_SCHEDULE_TYPE,
    KEY_FREQUENCY_DAYS,
    KEY_WEEKLY_DAYS,
    KEY_CUSTOM_SCHEDULE,
    KEY_START_DATE,
    KEY_END_DATE,
    KEY_CYCLE_LENGTH_WEEKS,
    KEY_OFF_WEEKS,
    KEY_IS_ACTIVE,
    KEY_SITE_ROTATION,
    KEY_DOSE_VALUE,
    KEY_DOSE_UNITS,
    KEY_TIME_OF_DAY,
]

# ── Calendar ─────────────────────────────────────────────────────────────────

# 0 = Sunday ... 6 = Saturday
WEEKDAY_NAMES: list[str] = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]
DAYS_PER_WEEK = 7

# ── Engine limits and defaults ───────────────────────────────────────────────

ITERATION_LIMIT = 1000
DEFAULT_PREVIEW_DAYS = 30
MAX_PREVIEW_DAYS = 90
DEFAULT_ADHERENCE_WINDOW_DAYS = 30
STREAK_TOLERANCE_DAYS = 1
MAX_ADHERENCE_PERCENT = 100

# ── Dose units ───────────────────────────────────────────────────────────────

DOSE_UNITS: dict[str, str] = {
    "mg": "Milligrams",
    "mcg": "Micrograms",
    "iu": "International Units",
    "ml": "Milliliters",
    "units": "Units",
}
