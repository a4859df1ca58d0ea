"""Binary sensors for AD2USB RF contacts and motion sensors."""

from __future__ import annotations

import logging

from homeassistant.components.binary_sensor import (
    BinarySensorDeviceClass,
    BinarySensorEntity,
)
from homeassistant.config_entries import ConfigEntry
from homeassistant.const import STATE_OFF, STATE_ON, EntityCategory
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddConfigEntryEntitiesCallback
from homeassistant.helpers.restore_state import RestoreEntity

from .bridge import (
    FIELD_BATTERY_LOW,
    FIELD_CONTACT,
    FIELD_MOTION,
    ContactBridge,
    ContactState,
    MotionBridge,
    SensorBridge,
)
from .const import DATA_HUB, DOMAIN
from .entity import AD2USBEntity
from .hub import AD2USBHub
from .identity import AccessoryRecord, DeviceKind

_LOGGER = logging.getLogger(__name__)


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddConfigEntryEntitiesCallback,
) -> None:
    """Set up AD2USB RF sensors from a config entry."""
    hub: AD2USBHub = hass.data[DOMAIN][entry.entry_id][DATA_HUB]
    entities: list[BinarySensorEntity] = []
    for record in hub.records_of_kind(DeviceKind.CONTACT):
        entities.append(AD2USBContactBinarySensor(hub, record))
        entities.append(AD2USBBatteryBinarySensor(hub, record))
    for record in hub.records_of_kind(DeviceKind.MOTION):
        entities.append(AD2USBMotionBinarySensor(hub, record))
        entities.append(AD2USBBatteryBinarySensor(hub, record))
    _LOGGER.debug("Adding %s RF sensor entities", len(entities))
    async_add_entities(entities)


class _RestoringSensor(AD2USBEntity, BinarySensorEntity, RestoreEntity):
    """RF sensor that falls back to its last state until the first reading."""

    async def async_added_to_hass(self) -> None:
        """Seed the bridge from the restored state, then subscribe."""
        await super().async_added_to_hass()
        if self.is_on is not None:
            return
        last_state = await self.async_get_last_state()
        if last_state is None or last_state.state not in (STATE_ON, STATE_OFF):
            return
        self._seed(last_state.state == STATE_ON)

    def _seed(self, is_on: bool) -> None:
        raise NotImplementedError


class AD2USBContactBinarySensor(_RestoringSensor):
    """Door or window contact; on while the contact is not detected."""

    _attr_name = None
    _attr_device_class = BinarySensorDeviceClass.OPENING
    tracked_fields = frozenset({FIELD_CONTACT})

    def __init__(self, hub: AD2USBHub, record: AccessoryRecord) -> None:
        """Initialize the contact entity."""
        super().__init__(hub, record, "contact")

    @property
    def bridge(self) -> ContactBridge:
        return self._record.bridge

    @property
    def is_on(self) -> bool | None:
        """Return if the contact is open."""
        state = self.bridge.contact_state
        if state is None:
            return None
        return state is ContactState.NOT_DETECTED

    def _seed(self, is_on: bool) -> None:
        self.bridge.seed(
            contact=ContactState.NOT_DETECTED if is_on else ContactState.DETECTED
        )


class AD2USBMotionBinarySensor(_RestoringSensor):
    """Motion sensor; on while motion is detected."""

    _attr_name = None
    _attr_device_class = BinarySensorDeviceClass.MOTION
    tracked_fields = frozenset({FIELD_MOTION})

    def __init__(self, hub: AD2USBHub, record: AccessoryRecord) -> None:
        """Initialize the motion entity."""
        super().__init__(hub, record, "motion")

    @property
    def bridge(self) -> MotionBridge:
        return self._record.bridge

    @property
    def is_on(self) -> bool | None:
        """Return if motion is detected."""
        return self.bridge.motion_detected

    def _seed(self, is_on: bool) -> None:
        self.bridge.seed(motion=is_on)


class AD2USBBatteryBinarySensor(_RestoringSensor):
    """Low battery flag reported by the RF transmitter."""

    _attr_name = "Battery"
    _attr_device_class = BinarySensorDeviceClass.BATTERY
    _attr_entity_category = EntityCategory.DIAGNOSTIC
    tracked_fields = frozenset({FIELD_BATTERY_LOW})

    def __init__(self, hub: AD2USBHub, record: AccessoryRecord) -> None:
        """Initialize the battery entity."""
        super().__init__(hub, record, "battery")

    @property
    def bridge(self) -> SensorBridge:
        return self._record.bridge

    @property
    def is_on(self) -> bool | None:
        """Return if the battery is low."""
        return self.bridge.battery_low

    def _seed(self, is_on: bool) -> None:
        self.bridge.seed(battery_low=is_on)
