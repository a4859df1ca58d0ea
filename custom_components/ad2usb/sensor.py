"""Keypad display sensor for the AD2USB partition."""

from __future__ import annotations

from homeassistant.components.sensor import SensorEntity
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddConfigEntryEntitiesCallback

from .const import DATA_HUB, DOMAIN
from .entity import AD2USBEntity
from .hub import AD2USBHub
from .identity import AccessoryRecord, DeviceKind
from .states import FIELD_DISPLAY


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddConfigEntryEntitiesCallback,
) -> None:
    """Set up the AD2USB display sensor from a config entry."""
    hub: AD2USBHub = hass.data[DOMAIN][entry.entry_id][DATA_HUB]
    async_add_entities(
        AD2USBDisplaySensor(hub, record)
        for record in hub.records_of_kind(DeviceKind.PARTITION)
    )


class AD2USBDisplaySensor(AD2USBEntity, SensorEntity):
    """Text currently shown on the alarm keypad."""

    _attr_name = "Display"
    _attr_icon = "mdi:alarm-panel-outline"
    tracked_fields = frozenset({FIELD_DISPLAY})

    def __init__(self, hub: AD2USBHub, record: AccessoryRecord) -> None:
        """Initialize the display sensor."""
        super().__init__(hub, record, "display")

    @property
    def native_value(self) -> str | None:
        """Return the last keypad text."""
        return self.bridge.display or None
