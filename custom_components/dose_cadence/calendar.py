"""Calendar platform for Dose Cadence."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

from homeassistant.components.calendar import CalendarEntity, CalendarEvent
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddEntitiesCallback
from homeassistant.helpers.update_coordinator import CoordinatorEntity
from homeassistant.util import dt as dt_util

from dosecadence.rotation import format_site

from .const import CONF_NAME, DOMAIN
from .coordinator import DoseCadenceCoordinator


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up the Dose Cadence calendar entity."""
    coordinator: DoseCadenceCoordinator = hass.data[DOMAIN][entry.entry_id]
    async_add_entities([DoseCadenceCalendar(coordinator, entry)])


class DoseCadenceCalendar(CoordinatorEntity[DoseCadenceCoordinator], CalendarEntity):
    """Calendar showing upcoming scheduled doses and logged administrations."""

    _attr_has_entity_name = True
    _attr_name = "Dose Schedule"

    def __init__(
        self,
        coordinator: DoseCadenceCoordinator,
        entry: ConfigEntry,
    ) -> None:
        """Initialize the calendar entity."""
        super().__init__(coordinator)
        self._attr_unique_id = f"{entry.entry_id}_dose_calendar"
        self._entry = entry

    @property
    def event(self) -> CalendarEvent | None:
        """Return the next upcoming scheduled dose."""
        today = dt_util.now().date()
        upcoming = [
            e for e in self._build_events() if self._start_date(e) >= today
        ]
        if not upcoming:
            return None
        return min(upcoming, key=self._start_date)

    async def async_get_events(
        self,
        hass: HomeAssistant,
        start_date: datetime,
        end_date: datetime,
    ) -> list[CalendarEvent]:
        """Return events in the given date range."""
        start = dt_util.as_local(start_date).date()
        end = dt_util.as_local(end_date).date()
        return [
            e for e in self._build_events() if start <= self._start_date(e) <= end
        ]

    @staticmethod
    def _start_date(event: CalendarEvent) -> date:
        if isinstance(event.start, datetime):
            return dt_util.as_local(event.start).date()
        return event.start

    def _build_events(self) -> list[CalendarEvent]:
        """Build calendar events from the preview and the administration log."""
        if not self.coordinator.data:
            return []

        data = self.coordinator.data
        label = self._entry.data.get(CONF_NAME) or self._entry.title
        site = data.get("next_site")
        events: list[CalendarEvent] = []

        # Scheduled doses are all-day events
        for day in data.get("preview", []):
            description = f"Scheduled dose: {data.get('schedule', '')}"
            if site:
                description += f"\nNext site: {format_site(site)}"
            events.append(
                CalendarEvent(
                    summary=f"Dose due: {label}",
                    start=day,
                    end=day + timedelta(days=1),
                    description=description,
                )
            )

        for row in data.get("administrations", []):
            ts = row.get("timestamp")
            if not ts:
                continue
            dt = datetime.fromtimestamp(ts, tz=timezone.utc)
            description = "Logged dose"
            if row.get("site"):
                description += f" at {format_site(row['site'])}"
            if row.get("notes"):
                description += f"\n{row['notes']}"
            events.append(
                CalendarEvent(
                    summary=f"Dose taken: {label}",
                    start=dt,
                    end=dt + timedelta(minutes=15),
                    description=description,
                )
            )

        events.sort(key=self._start_date)
        return events
