"""Shared entity helpers for the ad2usb integration."""

from __future__ import annotations

from typing import Any

from homeassistant.core import callback
from homeassistant.helpers.device_registry import DeviceInfo
from homeassistant.helpers.entity import Entity

from .const import DOMAIN, MANUFACTURER, MODEL
from .hub import AD2USBHub
from .identity import AccessoryRecord, DeviceIdentity


def device_info_for_record(record: AccessoryRecord) -> DeviceInfo:
    """Build device info for the device backing an accessory record."""
    identity = record.identity
    return DeviceInfo(
        identifiers={(DOMAIN, identity.key)},
        manufacturer=MANUFACTURER,
        model=MODEL,
        name=record.name,
        serial_number=identity.serial_number,
    )


def build_unique_id(identity: DeviceIdentity, key: str) -> str:
    """Build a stable unique ID in <identity>:<key> format."""
    return f"{identity.key}:{key}"


class AD2USBEntity(Entity):
    """Entity bound to one field group of an accessory bridge."""

    _attr_has_entity_name = True
    _attr_should_poll = False

    # Bridge field names that trigger a state write.
    tracked_fields: frozenset[str] = frozenset()

    def __init__(self, hub: AD2USBHub, record: AccessoryRecord, key: str) -> None:
        """Initialize the entity."""
        self._hub = hub
        self._record = record
        self._attr_unique_id = build_unique_id(record.identity, key)
        self._attr_device_info = device_info_for_record(record)

    @property
    def bridge(self) -> Any:
        return self._record.bridge

    @property
    def available(self) -> bool:
        """Return if the panel connection is up."""
        return self._hub.is_connected

    async def async_added_to_hass(self) -> None:
        """Subscribe to bridge and connection updates."""
        await super().async_added_to_hass()
        self.async_on_remove(self.bridge.add_listener(self._handle_bridge_update))
        self.async_on_remove(
            self._hub.add_availability_listener(self._handle_availability_update)
        )

    @callback
    def _handle_bridge_update(self, changed: tuple[str, ...]) -> None:
        if self.tracked_fields.intersection(changed):
            self.async_write_ha_state()

    @callback
    def _handle_availability_update(self) -> None:
        self.async_write_ha_state()
