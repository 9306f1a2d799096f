"""DataUpdateCoordinator for Dose Cadence."""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator, UpdateFailed
from homeassistant.util import dt as dt_util

from dosecadence import (
    InvalidProtocol,
    Protocol,
    analyze,
    cycle_progress,
    days_until,
    is_active_phase,
    is_overdue,
    next_due_date,
    next_site,
    parse_protocol,
    upcoming,
)
from dosecadence.formatting import format_protocol_schedule

from .const import (
    CONF_ADHERENCE_WINDOW_DAYS,
    CONF_IS_ACTIVE,
    CONF_PREVIEW_DAYS,
    CONF_SKIP_OFF_CYCLE,
    DEFAULT_ADHERENCE_WINDOW,
    DEFAULT_IS_ACTIVE,
    DEFAULT_PREVIEW,
    DEFAULT_SKIP_OFF_CYCLE,
    DEFAULT_UPDATE_INTERVAL,
    DOMAIN,
    PROTOCOL_KEYS,
)
from .database import DoseCadenceDatabase, row_to_event

_LOGGER = logging.getLogger(__name__)


class DoseCadenceCoordinator(DataUpdateCoordinator[dict[str, Any]]):
    """Coordinator feeding logged administrations through the engine."""

    config_entry: ConfigEntry

    def __init__(
        self,
        hass: HomeAssistant,
        entry: ConfigEntry,
        database: DoseCadenceDatabase,
    ) -> None:
        """Initialize the coordinator."""
        super().__init__(
            hass,
            _LOGGER,
            name=DOMAIN,
            update_interval=timedelta(seconds=DEFAULT_UPDATE_INTERVAL),
        )
        self.config_entry = entry
        self.database = database

    def _get_config(self) -> dict[str, Any]:
        """Get merged protocol record from entry data + options."""
        data = self.config_entry.data
        opts = self.config_entry.options
        config: dict[str, Any] = {}
        for key in PROTOCOL_KEYS:
            if key in opts:
                config[key] = opts[key]
            elif key in data:
                config[key] = data[key]
        config.setdefault(CONF_IS_ACTIVE, DEFAULT_IS_ACTIVE)
        config[CONF_PREVIEW_DAYS] = opts.get(
            CONF_PREVIEW_DAYS, data.get(CONF_PREVIEW_DAYS, DEFAULT_PREVIEW)
        )
        config[CONF_ADHERENCE_WINDOW_DAYS] = opts.get(
            CONF_ADHERENCE_WINDOW_DAYS,
            data.get(CONF_ADHERENCE_WINDOW_DAYS, DEFAULT_ADHERENCE_WINDOW),
        )
        config[CONF_SKIP_OFF_CYCLE] = opts.get(
            CONF_SKIP_OFF_CYCLE, data.get(CONF_SKIP_OFF_CYCLE, DEFAULT_SKIP_OFF_CYCLE)
        )
        return config

    def get_protocol(self) -> Protocol:
        """Build the engine protocol for this entry."""
        return parse_protocol(self._get_config(), protocol_id=self.config_entry.entry_id)

    async def async_next_site(self, protocol: Protocol | None = None) -> str | None:
        """Return the site the next administration should use.

        Both the button and the next_site attribute go through here so they
        always agree.
        """
        protocol = protocol or self.get_protocol()
        last_site = await self.database.get_last_site(self.config_entry.entry_id)
        return next_site(protocol.site_rotation, last_site)

    async def _async_update_data(self) -> dict[str, Any]:
        """Load administrations and compute schedule and adherence."""
        entry_id = self.config_entry.entry_id
        config = self._get_config()
        try:
            protocol = parse_protocol(config, protocol_id=entry_id)
        except InvalidProtocol as err:
            raise UpdateFailed(f"Invalid protocol configuration: {err}") from err

        await self.database.prune_old_administrations(entry_id)
        rows = await self.database.get_administrations(entry_id)
        # Engine works on local calendar days
        events = [row_to_event(row, dt_util.DEFAULT_TIME_ZONE) for row in rows]

        today = dt_util.now().date()
        window_days = int(config[CONF_ADHERENCE_WINDOW_DAYS])
        window_start = today - timedelta(days=max(0, window_days - 1))
        report = analyze(protocol, events, window_start, today)

        last_administered: date | None = events[-1].day if events else None

        next_due = next_due_date(protocol, last_administered)
        scheduled = upcoming(
            protocol,
            int(config[CONF_PREVIEW_DAYS]),
            today=today,
            last_administered=last_administered,
            respect_cycle=bool(config[CONF_SKIP_OFF_CYCLE]),
        )
        progress = cycle_progress(protocol, today)

        return {
            "config": config,
            "protocol": protocol,
            "schedule": format_protocol_schedule(protocol),
            "administrations": rows,
            "adherence": report,
            "next_due": next_due,
            "days_until": days_until(next_due, today) if next_due else None,
            "overdue": is_overdue(next_due, today) if next_due else False,
            "preview": scheduled,
            "on_cycle": is_active_phase(protocol, today),
            "cycle_progress": progress,
            "next_site": await self.async_next_site(protocol),
        }
