"""Constants for the Dose Cadence integration."""

from __future__ import annotations

from dosecadence.const import (
    DEFAULT_ADHERENCE_WINDOW_DAYS,
    DEFAULT_PREVIEW_DAYS,
    KEY_CUSTOM_SCHEDULE,
    KEY_CYCLE_LENGTH_WEEKS,
    KEY_DOSE_UNITS,
    KEY_DOSE_VALUE,
    KEY_END_DATE,
    KEY_FREQUENCY_DAYS,
    KEY_IS_ACTIVE,
    KEY_MEDICATION_ID,
    KEY_NAME,
    KEY_OFF_WEEKS,
    KEY_SCHEDULE_TYPE,
    KEY_SITE_ROTATION,
    KEY_START_DATE,
    KEY_TIME_OF_DAY,
    KEY_WEEKLY_DAYS,
    SCHEDULE_EVERY_X_DAYS,
)

DOMAIN = "dose_cadence"

PLATFORMS = ["sensor", "calendar", "button"]

# ── Config keys ──────────────────────────────────────────────────────────────
# Protocol fields are stored under the engine's record keys so entry data can
# be handed to the validator unchanged.

CONF_NAME = KEY_NAME
CONF_MEDICATION_ID = KEY_MEDICATION_ID
CONF_SCHEDULE_TYPE = KEY_SCHEDULE_TYPE
CONF_FREQUENCY_DAYS = KEY_FREQUENCY_DAYS
CONF_WEEKLY_DAYS = KEY_WEEKLY_DAYS
CONF_CUSTOM_SCHEDULE = KEY_CUSTOM_SCHEDULE
CONF_CYCLE_LENGTH_WEEKS = KEY_CYCLE_LENGTH_WEEKS
CONF_OFF_WEEKS = KEY_OFF_WEEKS
CONF_START_DATE = KEY_START_DATE
CONF_END_DATE = KEY_END_DATE
CONF_IS_ACTIVE = KEY_IS_ACTIVE
CONF_SITE_ROTATION = KEY_SITE_ROTATION
CONF_DOSE_VALUE = KEY_DOSE_VALUE
CONF_DOSE_UNITS = KEY_DOSE_UNITS
CONF_TIME_OF_DAY = KEY_TIME_OF_DAY

# Host-only options
CONF_PREVIEW_DAYS = "preview_days"
CONF_ADHERENCE_WINDOW_DAYS = "adherence_window_days"
CONF_SKIP_OFF_CYCLE = "skip_off_cycle"

PROTOCOL_KEYS = [
    CONF_NAME,
    CONF_MEDICATION_ID,
    CONF_SCHEDULE_TYPE,
    CONF_FREQUENCY_DAYS,
    CONF_WEEKLY_DAYS,
    CONF_CUSTOM_SCHEDULE,
    CONF_CYCLE_LENGTH_WEEKS,
    CONF_OFF_WEEKS,
    CONF_START_DATE,
    CONF_END_DATE,
    CONF_IS_ACTIVE,
    CONF_SITE_ROTATION,
    CONF_DOSE_VALUE,
    CONF_DOSE_UNITS,
    CONF_TIME_OF_DAY,
]

# ── Defaults ─────────────────────────────────────────────────────────────────

DEFAULT_SCHEDULE_TYPE = SCHEDULE_EVERY_X_DAYS
DEFAULT_FREQUENCY_DAYS = 7
DEFAULT_DOSE_UNITS = "mg"
DEFAULT_TIME_OF_DAY = "08:00"
DEFAULT_IS_ACTIVE = True
DEFAULT_SKIP_OFF_CYCLE = True
DEFAULT_UPDATE_INTERVAL = 300  # 5 minutes
DEFAULT_PREVIEW = DEFAULT_PREVIEW_DAYS
DEFAULT_ADHERENCE_WINDOW = DEFAULT_ADHERENCE_WINDOW_DAYS

# Administrations older than this are dropped from the event log
EVENT_RETENTION_DAYS = 365

# ── Attribute names ──────────────────────────────────────────────────────────

ATTR_ADMINISTRATIONS = "administrations"
ATTR_ADHERENCE = "adherence"
ATTR_CURRENT_STREAK = "current_streak"
ATTR_LONGEST_STREAK = "longest_streak"
ATTR_EXPECTED_COUNT = "expected_count"
ATTR_ACTUAL_COUNT = "actual_count"
ATTR_LAST_EVENT_DATE = "last_event_date"
ATTR_NEXT_SITE = "next_site"
ATTR_SCHEDULE = "schedule"
ATTR_PREVIEW = "preview"
ATTR_ON_CYCLE = "on_cycle"
ATTR_CYCLE_PROGRESS = "cycle_progress"
ATTR_DAYS_UNTIL = "days_until"
ATTR_OVERDUE = "overdue"
ATTR_SUPPORTED = "supported"

# ── Services ─────────────────────────────────────────────────────────────────

SERVICE_LOG_DOSE = "log_dose"
SERVICE_DELETE_DOSE = "delete_dose"
SERVICE_CLEAR_DATA = "clear_data"
SERVICE_GET_SCHEDULE = "get_schedule"

ATTR_TIMESTAMP = "timestamp"
ATTR_SITE = "site"
ATTR_NOTES = "notes"
ATTR_DOSE_ID = "dose_id"

DATABASE_FILENAME = "dose_cadence.db"
