"""Button platform for Dose Cadence."""

from __future__ import annotations

import logging

from homeassistant.components.button import ButtonEntity
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from .const import CONF_NAME, DOMAIN
from .coordinator import DoseCadenceCoordinator

_LOGGER = logging.getLogger(__name__)


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up the Dose Cadence button entity."""
    coordinator: DoseCadenceCoordinator = hass.data[DOMAIN][entry.entry_id]
    async_add_entities([DoseCadenceLogDoseButton(coordinator, entry)])


class DoseCadenceLogDoseButton(ButtonEntity):
    """Button that records a dose taken now at the next rotation site."""

    _attr_has_entity_name = True
    _attr_icon = "mdi:needle"

    def __init__(
        self,
        coordinator: DoseCadenceCoordinator,
        entry: ConfigEntry,
    ) -> None:
        """Initialize the button."""
        self._coordinator = coordinator
        self._entry = entry
        protocol_name = entry.data.get(CONF_NAME) or entry.title
        self._attr_name = f"{protocol_name} Log Dose"
        self._attr_unique_id = f"{entry.entry_id}_log_dose"

    async def async_press(self) -> None:
        """Handle the button press: record an administration now."""
        site = await self._coordinator.async_next_site()
        await self._coordinator.database.add_administration(
            config_entry_id=self._entry.entry_id,
            site=site,
        )
        _LOGGER.info(
            "Dose Cadence: logged dose for %s%s",
            self._entry.title,
            f" at {site}" if site else "",
        )
        await self._coordinator.async_request_refresh()
