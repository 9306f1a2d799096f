"""Dose Cadence protocol scheduling integration for Home Assistant."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

import voluptuous as vol
from homeassistant.config_entries import ConfigEntry
from homeassistant.const import ATTR_ENTITY_ID
from homeassistant.core import (
    HomeAssistant,
    ServiceCall,
    ServiceResponse,
    SupportsResponse,
)
from homeassistant.helpers import config_validation as cv
from homeassistant.helpers import entity_registry as er

from .const import (
    ATTR_DOSE_ID,
    ATTR_NOTES,
    ATTR_SITE,
    ATTR_TIMESTAMP,
    DATABASE_FILENAME,
    DOMAIN,
    PLATFORMS,
    SERVICE_CLEAR_DATA,
    SERVICE_DELETE_DOSE,
    SERVICE_GET_SCHEDULE,
    SERVICE_LOG_DOSE,
)
from .coordinator import DoseCadenceCoordinator
from .database import DoseCadenceDatabase

_LOGGER = logging.getLogger(__name__)

ENTITY_SCHEMA = vol.Schema({vol.Required(ATTR_ENTITY_ID): cv.entity_id})

LOG_DOSE_SCHEMA = ENTITY_SCHEMA.extend(
    {
        vol.Optional(ATTR_TIMESTAMP): vol.Coerce(float),
        vol.Optional(ATTR_SITE): cv.string,
        vol.Optional(ATTR_NOTES): cv.string,
    }
)

DELETE_DOSE_SCHEMA = ENTITY_SCHEMA.extend(
    {vol.Required(ATTR_DOSE_ID): cv.positive_int}
)

# Keys in hass.data[DOMAIN] that are not config entry ids
DATABASE_KEY = "database"
SETUP_LOCK_KEY = "setup_lock"
SERVICES_KEY = "services_registered"
_SHARED_KEYS = (DATABASE_KEY, SETUP_LOCK_KEY, SERVICES_KEY)


def _coordinator_for_entity(
    hass: HomeAssistant, entity_id: str
) -> DoseCadenceCoordinator:
    """Return the coordinator behind one of our entities."""
    entity = er.async_get(hass).async_get(entity_id)
    if entity is None or entity.config_entry_id is None:
        raise ValueError(f"{entity_id} is not a Dose Cadence entity")
    coordinator = hass.data[DOMAIN].get(entity.config_entry_id)
    if not isinstance(coordinator, DoseCadenceCoordinator):
        raise ValueError(f"{entity_id} has no loaded protocol")
    return coordinator


async def _async_get_database(hass: HomeAssistant) -> DoseCadenceDatabase:
    """Open the shared administration log on first use."""
    domain_data = hass.data[DOMAIN]
    if DATABASE_KEY not in domain_data:
        database = DoseCadenceDatabase(Path(hass.config.config_dir) / DATABASE_FILENAME)
        await database.async_setup()
        domain_data[DATABASE_KEY] = database
    return domain_data[DATABASE_KEY]


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up a protocol from a config entry."""
    domain_data = hass.data.setdefault(DOMAIN, {})
    lock: asyncio.Lock = domain_data.setdefault(SETUP_LOCK_KEY, asyncio.Lock())

    # Entries set up in parallel must share one database connection
    async with lock:
        database = await _async_get_database(hass)
        coordinator = DoseCadenceCoordinator(hass, entry, database)
        domain_data[entry.entry_id] = coordinator
        await coordinator.async_config_entry_first_refresh()

    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
    entry.async_on_unload(entry.add_update_listener(_async_update_listener))

    if not domain_data.get(SERVICES_KEY):
        _async_register_services(hass)
        domain_data[SERVICES_KEY] = True

    return True


# ── Services ─────────────────────────────────────────────────────────────────


async def _async_log_dose(coord: DoseCadenceCoordinator, call: ServiceCall) -> None:
    site = call.data.get(ATTR_SITE) or await coord.async_next_site()
    row_id = await coord.database.add_administration(
        config_entry_id=coord.config_entry.entry_id,
        timestamp=call.data.get(ATTR_TIMESTAMP, time.time()),
        site=site,
        notes=call.data.get(ATTR_NOTES),
    )
    _LOGGER.debug("Logged dose %s for %s at %s", row_id, coord.config_entry.title, site)


async def _async_delete_dose(coord: DoseCadenceCoordinator, call: ServiceCall) -> None:
    dose_id = call.data[ATTR_DOSE_ID]
    if not await coord.database.delete_administration(
        coord.config_entry.entry_id, dose_id
    ):
        _LOGGER.warning(
            "Dose %s does not belong to %s", dose_id, coord.config_entry.title
        )


async def _async_clear_data(coord: DoseCadenceCoordinator, call: ServiceCall) -> None:
    await coord.database.clear_entry(coord.config_entry.entry_id)


_MUTATING_SERVICES: dict[
    str,
    tuple[vol.Schema, Callable[[DoseCadenceCoordinator, ServiceCall], Awaitable[None]]],
] = {
    SERVICE_LOG_DOSE: (LOG_DOSE_SCHEMA, _async_log_dose),
    SERVICE_DELETE_DOSE: (DELETE_DOSE_SCHEMA, _async_delete_dose),
    SERVICE_CLEAR_DATA: (ENTITY_SCHEMA, _async_clear_data),
}


def _async_register_services(hass: HomeAssistant) -> None:
    """Register the domain services once for all entries."""

    def _make_handler(action):
        async def handle(call: ServiceCall) -> None:
            coord = _coordinator_for_entity(hass, call.data[ATTR_ENTITY_ID])
            await action(coord, call)
            await coord.async_request_refresh()

        return handle

    for service, (schema, action) in _MUTATING_SERVICES.items():
        hass.services.async_register(
            DOMAIN, service, _make_handler(action), schema=schema
        )

    async def handle_get_schedule(call: ServiceCall) -> ServiceResponse:
        coord = _coordinator_for_entity(hass, call.data[ATTR_ENTITY_ID])
        return schedule_response(coord.data or {})

    hass.services.async_register(
        DOMAIN,
        SERVICE_GET_SCHEDULE,
        handle_get_schedule,
        schema=ENTITY_SCHEMA,
        supports_response=SupportsResponse.ONLY,
    )


def schedule_response(data: dict[str, Any]) -> dict[str, Any]:
    """Build the JSON response for the get_schedule service."""
    next_due = data.get("next_due")
    report = data.get("adherence")
    return {
        "schedule": data.get("schedule"),
        "next_due": next_due.isoformat() if next_due else None,
        "next_site": data.get("next_site"),
        "on_cycle": data.get("on_cycle"),
        "preview": [day.isoformat() for day in data.get("preview", [])],
        "adherence": report.as_dict() if report else None,
    }


# ── Unload / reload ──────────────────────────────────────────────────────────


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry."""
    unloaded = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
    domain_data = hass.data[DOMAIN]
    if unloaded:
        domain_data.pop(entry.entry_id, None)

    # Last entry gone: close the shared log
    if DATABASE_KEY in domain_data and all(
        key in _SHARED_KEYS for key in domain_data
    ):
        database: DoseCadenceDatabase = domain_data.pop(DATABASE_KEY)
        await database.async_close()

    return unloaded


async def _async_update_listener(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Reload the entry when its options change."""
    await hass.config_entries.async_reload(entry.entry_id)
