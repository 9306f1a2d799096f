"""Sensor platform for Dose Cadence."""

from __future__ import annotations

from datetime import date
from typing import Any

from homeassistant.components.sensor import (
    SensorDeviceClass,
    SensorEntity,
    SensorStateClass,
)
from homeassistant.config_entries import ConfigEntry
from homeassistant.const import PERCENTAGE
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddEntitiesCallback
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from dosecadence.formatting import format_days_until
from dosecadence.rotation import format_site

from .const import (
    ATTR_ACTUAL_COUNT,
    ATTR_CURRENT_STREAK,
    ATTR_CYCLE_PROGRESS,
    ATTR_DAYS_UNTIL,
    ATTR_EXPECTED_COUNT,
    ATTR_LAST_EVENT_DATE,
    ATTR_LONGEST_STREAK,
    ATTR_NEXT_SITE,
    ATTR_ON_CYCLE,
    ATTR_OVERDUE,
    ATTR_PREVIEW,
    ATTR_SCHEDULE,
    ATTR_SUPPORTED,
    CONF_NAME,
    DOMAIN,
)
from .coordinator import DoseCadenceCoordinator


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up Dose Cadence sensors from a config entry."""
    coordinator: DoseCadenceCoordinator = hass.data[DOMAIN][entry.entry_id]
    async_add_entities(
        [
            DoseCadenceNextDoseSensor(coordinator, entry),
            DoseCadenceAdherenceSensor(coordinator, entry),
        ]
    )


class DoseCadenceSensorBase(CoordinatorEntity[DoseCadenceCoordinator], SensorEntity):
    """Common naming for Dose Cadence sensors."""

    _attr_has_entity_name = True

    def __init__(
        self,
        coordinator: DoseCadenceCoordinator,
        entry: ConfigEntry,
        key: str,
        label: str,
    ) -> None:
        """Initialize the sensor."""
        super().__init__(coordinator)
        protocol_name = entry.data.get(CONF_NAME) or entry.title
        self._attr_name = f"{protocol_name} {label}"
        self._attr_unique_id = f"{entry.entry_id}_{key}"
        self._entry = entry


class DoseCadenceNextDoseSensor(DoseCadenceSensorBase):
    """Sensor reporting the next scheduled dose date."""

    _attr_icon = "mdi:needle"
    _attr_device_class = SensorDeviceClass.DATE

    def __init__(self, coordinator: DoseCadenceCoordinator, entry: ConfigEntry) -> None:
        """Initialize the sensor."""
        super().__init__(coordinator, entry, "next_dose", "Next Dose")

    @property
    def native_value(self) -> date | None:
        """Return the next due date."""
        if not self.coordinator.data:
            return None
        return self.coordinator.data.get("next_due")

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Return schedule details for dashboards and automations."""
        if not self.coordinator.data:
            return {}

        data = self.coordinator.data
        days = data.get("days_until")
        site = data.get("next_site")
        return {
            ATTR_SCHEDULE: data.get("schedule"),
            ATTR_DAYS_UNTIL: days,
            "due": format_days_until(days) if days is not None else None,
            ATTR_OVERDUE: data.get("overdue", False),
            ATTR_ON_CYCLE: data.get("on_cycle"),
            ATTR_NEXT_SITE: site,
            "next_site_label": format_site(site) if site else None,
            ATTR_PREVIEW: [d.isoformat() for d in data.get("preview", [])],
        }


class DoseCadenceAdherenceSensor(DoseCadenceSensorBase):
    """Sensor reporting adherence over the configured window."""

    _attr_icon = "mdi:chart-donut"
    _attr_native_unit_of_measurement = PERCENTAGE
    _attr_state_class = SensorStateClass.MEASUREMENT

    def __init__(self, coordinator: DoseCadenceCoordinator, entry: ConfigEntry) -> None:
        """Initialize the sensor."""
        super().__init__(coordinator, entry, "adherence", "Adherence")

    @property
    def native_value(self) -> int | None:
        """Return adherence percent, or None when it cannot be computed."""
        if not self.coordinator.data:
            return None
        report = self.coordinator.data.get("adherence")
        return report.adherence_percent if report else None

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Return the full adherence report."""
        if not self.coordinator.data:
            return {}

        data = self.coordinator.data
        report = data.get("adherence")
        if report is None:
            return {}
        progress = data.get("cycle_progress")
        return {
            ATTR_EXPECTED_COUNT: report.expected_count,
            ATTR_ACTUAL_COUNT: report.actual_count,
            ATTR_CURRENT_STREAK: report.current_streak,
            ATTR_LONGEST_STREAK: report.longest_streak,
            ATTR_LAST_EVENT_DATE: (
                report.last_event_date.isoformat() if report.last_event_date else None
            ),
            ATTR_SUPPORTED: report.supported,
            "window_start": report.window_start.isoformat(),
            "window_end": report.window_end.isoformat(),
            ATTR_CYCLE_PROGRESS: (
                {
                    "current_cycle": progress.current_cycle,
                    "day_in_cycle": progress.day_in_cycle,
                    "total_cycle_days": progress.total_cycle_days,
                    "is_on_cycle": progress.is_on_cycle,
                }
                if progress
                else None
            ),
        }
