"""Config flow for Dose Cadence."""

from __future__ import annotations

import json
from typing import Any

import voluptuous as vol
from homeassistant import config_entries
from homeassistant.core import callback
from homeassistant.helpers import config_validation as cv
from homeassistant.util import dt as dt_util

from dosecadence import validate
from dosecadence.const import (
    DOSE_UNITS,
    MAX_PREVIEW_DAYS,
    SCHEDULE_CUSTOM,
    SCHEDULE_TYPES,
    SCHEDULE_WEEKLY,
    WEEKDAY_NAMES,
)
from dosecadence.rotation import INJECTION_SITES, recommended_rotation

from .const import (
    CONF_ADHERENCE_WINDOW_DAYS,
    CONF_CUSTOM_SCHEDULE,
    CONF_CYCLE_LENGTH_WEEKS,
    CONF_DOSE_UNITS,
    CONF_DOSE_VALUE,
    CONF_END_DATE,
    CONF_FREQUENCY_DAYS,
    CONF_IS_ACTIVE,
    CONF_MEDICATION_ID,
    CONF_NAME,
    CONF_OFF_WEEKS,
    CONF_PREVIEW_DAYS,
    CONF_SCHEDULE_TYPE,
    CONF_SITE_ROTATION,
    CONF_SKIP_OFF_CYCLE,
    CONF_START_DATE,
    CONF_TIME_OF_DAY,
    CONF_WEEKLY_DAYS,
    DEFAULT_ADHERENCE_WINDOW,
    DEFAULT_DOSE_UNITS,
    DEFAULT_FREQUENCY_DAYS,
    DEFAULT_IS_ACTIVE,
    DEFAULT_PREVIEW,
    DEFAULT_SCHEDULE_TYPE,
    DEFAULT_SKIP_OFF_CYCLE,
    DEFAULT_TIME_OF_DAY,
    DOMAIN,
)

WEEKDAY_OPTIONS = {str(i): name for i, name in enumerate(WEEKDAY_NAMES)}


class DoseCadenceConfigFlow(config_entries.ConfigFlow, domain=DOMAIN):
    """Handle a config flow for Dose Cadence."""

    VERSION = 1

    def __init__(self) -> None:
        """Initialize the config flow."""
        self._data: dict[str, Any] = {}

    async def async_step_user(
        self, user_input: dict[str, Any] | None = None
    ) -> config_entries.ConfigFlowResult:
        """Step 1: protocol basics."""
        if user_input is not None:
            self._data.update(user_input)
            schedule_type = user_input[CONF_SCHEDULE_TYPE]
            if schedule_type == SCHEDULE_WEEKLY:
                return await self.async_step_weekly()
            if schedule_type == SCHEDULE_CUSTOM:
                return await self.async_step_custom()
            return await self.async_step_every_x_days()

        return self.async_show_form(
            step_id="user",
            data_schema=vol.Schema(
                {
                    vol.Required(CONF_NAME): str,
                    vol.Required(CONF_MEDICATION_ID): str,
                    vol.Required(
                        CONF_SCHEDULE_TYPE, default=DEFAULT_SCHEDULE_TYPE
                    ): vol.In(SCHEDULE_TYPES),
                    vol.Required(
                        CONF_START_DATE, default=dt_util.now().date().isoformat()
                    ): str,
                    vol.Optional(CONF_END_DATE): str,
                    vol.Optional(CONF_DOSE_VALUE): vol.Coerce(float),
                    vol.Required(CONF_DOSE_UNITS, default=DEFAULT_DOSE_UNITS): vol.In(
                        DOSE_UNITS
                    ),
                    vol.Required(CONF_TIME_OF_DAY, default=DEFAULT_TIME_OF_DAY): str,
                }
            ),
        )

    async def async_step_every_x_days(
        self, user_input: dict[str, Any] | None = None
    ) -> config_entries.ConfigFlowResult:
        """Interval schedule."""
        if user_input is not None:
            self._data[CONF_FREQUENCY_DAYS] = int(user_input[CONF_FREQUENCY_DAYS])
            return await self.async_step_cycle()

        return self.async_show_form(
            step_id="every_x_days",
            data_schema=vol.Schema(
                {
                    vol.Required(
                        CONF_FREQUENCY_DAYS, default=DEFAULT_FREQUENCY_DAYS
                    ): vol.All(vol.Coerce(int), vol.Range(min=1, max=365)),
                }
            ),
        )

    async def async_step_weekly(
        self, user_input: dict[str, Any] | None = None
    ) -> config_entries.ConfigFlowResult:
        """Weekday schedule."""
        errors: dict[str, str] = {}

        if user_input is not None:
            days = sorted(int(d) for d in user_input.get(CONF_WEEKLY_DAYS, []))
            if not days:
                errors["base"] = "no_weekdays"
            else:
                self._data[CONF_WEEKLY_DAYS] = days
                return await self.async_step_cycle()

        return self.async_show_form(
            step_id="weekly",
            data_schema=vol.Schema(
                {
                    vol.Required(CONF_WEEKLY_DAYS, default=[]): cv.multi_select(
                        WEEKDAY_OPTIONS
                    ),
                }
            ),
            errors=errors,
        )

    async def async_step_custom(
        self, user_input: dict[str, Any] | None = None
    ) -> config_entries.ConfigFlowResult:
        """Custom schedule stored as opaque JSON."""
        errors: dict[str, str] = {}

        if user_input is not None:
            try:
                payload = json.loads(user_input[CONF_CUSTOM_SCHEDULE])
            except ValueError:
                errors["base"] = "invalid_custom"
            else:
                self._data[CONF_CUSTOM_SCHEDULE] = payload
                return await self.async_step_cycle()

        return self.async_show_form(
            step_id="custom",
            data_schema=vol.Schema({vol.Required(CONF_CUSTOM_SCHEDULE): str}),
            errors=errors,
        )

    async def async_step_cycle(
        self, user_input: dict[str, Any] | None = None
    ) -> config_entries.ConfigFlowResult:
        """Optional on/off cycling and site rotation, then validate."""
        errors: dict[str, str] = {}
        placeholders = {"error": ""}

        if user_input is not None:
            record = dict(self._data)
            if user_input.get(CONF_CYCLE_LENGTH_WEEKS):
                record[CONF_CYCLE_LENGTH_WEEKS] = int(user_input[CONF_CYCLE_LENGTH_WEEKS])
                record[CONF_OFF_WEEKS] = int(user_input.get(CONF_OFF_WEEKS) or 0)
            record[CONF_SITE_ROTATION] = list(user_input.get(CONF_SITE_ROTATION, []))
            record[CONF_IS_ACTIVE] = True

            result = validate(record)
            if result.valid:
                return self.async_create_entry(title=record[CONF_NAME], data=record)
            errors["base"] = "invalid_protocol"
            placeholders["error"] = result.errors[0]

        return self.async_show_form(
            step_id="cycle",
            data_schema=vol.Schema(
                {
                    vol.Optional(CONF_CYCLE_LENGTH_WEEKS): vol.All(
                        vol.Coerce(int), vol.Range(min=1)
                    ),
                    vol.Optional(CONF_OFF_WEEKS, default=0): vol.All(
                        vol.Coerce(int), vol.Range(min=0)
                    ),
                    vol.Optional(
                        CONF_SITE_ROTATION, default=recommended_rotation()
                    ): cv.multi_select(INJECTION_SITES),
                }
            ),
            errors=errors,
            description_placeholders=placeholders,
        )

    @staticmethod
    @callback
    def async_get_options_flow(
        config_entry: config_entries.ConfigEntry,
    ) -> DoseCadenceOptionsFlow:
        """Get the options flow."""
        return DoseCadenceOptionsFlow()


class DoseCadenceOptionsFlow(config_entries.OptionsFlow):
    """Adjust activity, rotation and display windows."""

    async def async_step_init(
        self, user_input: dict[str, Any] | None = None
    ) -> config_entries.ConfigFlowResult:
        """Manage the options."""
        errors: dict[str, str] = {}
        placeholders = {"error": ""}
        data = self.config_entry.data
        opts = self.config_entry.options

        if user_input is not None:
            options = dict(user_input)
            options[CONF_SITE_ROTATION] = list(options.get(CONF_SITE_ROTATION, []))
            result = validate({**data, **opts, **options})
            if result.valid:
                return self.async_create_entry(title="", data=options)
            errors["base"] = "invalid_protocol"
            placeholders["error"] = result.errors[0]

        def current(key: str, default: Any) -> Any:
            return opts.get(key, data.get(key, default))

        return self.async_show_form(
            step_id="init",
            data_schema=vol.Schema(
                {
                    vol.Required(
                        CONF_IS_ACTIVE, default=current(CONF_IS_ACTIVE, DEFAULT_IS_ACTIVE)
                    ): bool,
                    vol.Optional(
                        CONF_SITE_ROTATION, default=current(CONF_SITE_ROTATION, [])
                    ): cv.multi_select(INJECTION_SITES),
                    vol.Required(
                        CONF_PREVIEW_DAYS, default=current(CONF_PREVIEW_DAYS, DEFAULT_PREVIEW)
                    ): vol.All(vol.Coerce(int), vol.Range(min=1, max=MAX_PREVIEW_DAYS)),
                    vol.Required(
                        CONF_ADHERENCE_WINDOW_DAYS,
                        default=current(CONF_ADHERENCE_WINDOW_DAYS, DEFAULT_ADHERENCE_WINDOW),
                    ): vol.All(vol.Coerce(int), vol.Range(min=1, max=365)),
                    vol.Required(
                        CONF_SKIP_OFF_CYCLE,
                        default=current(CONF_SKIP_OFF_CYCLE, DEFAULT_SKIP_OFF_CYCLE),
                    ): bool,
                }
            ),
            errors=errors,
            description_placeholders=placeholders,
        )
