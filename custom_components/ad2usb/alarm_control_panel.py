"""Alarm control panel platform for the AD2USB partition."""

from __future__ import annotations

import logging
from typing import Any

from homeassistant.components.alarm_control_panel import (
    AlarmControlPanelEntity,
    AlarmControlPanelEntityFeature,
    AlarmControlPanelState,
)
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddConfigEntryEntitiesCallback

from .bridge import PartitionBridge
from .const import DATA_HUB, DOMAIN
from .entity import AD2USBEntity
from .hub import AD2USBHub
from .identity import AccessoryRecord, DeviceKind
from .states import FIELD_CURRENT, FIELD_DISPLAY, FIELD_TARGET, PartitionState

_LOGGER = logging.getLogger(__name__)

_HA_STATE_BY_PARTITION_STATE = {
    PartitionState.DISARMED: AlarmControlPanelState.DISARMED,
    PartitionState.AWAY_ARMED: AlarmControlPanelState.ARMED_AWAY,
    PartitionState.STAY_ARMED: AlarmControlPanelState.ARMED_HOME,
    PartitionState.NIGHT_ARMED: AlarmControlPanelState.ARMED_NIGHT,
}


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddConfigEntryEntitiesCallback,
) -> None:
    """Set up the AD2USB partition from a config entry."""
    hub: AD2USBHub = hass.data[DOMAIN][entry.entry_id][DATA_HUB]
    async_add_entities(
        AD2USBPartitionAlarmControlPanel(hub, record)
        for record in hub.records_of_kind(DeviceKind.PARTITION)
    )


class AD2USBPartitionAlarmControlPanel(AD2USBEntity, AlarmControlPanelEntity):
    """Security system for the single AD2USB partition."""

    _attr_name = None
    _attr_code_arm_required = False
    _attr_supported_features = (
        AlarmControlPanelEntityFeature.ARM_AWAY
        | AlarmControlPanelEntityFeature.ARM_HOME
        | AlarmControlPanelEntityFeature.ARM_NIGHT
    )
    tracked_fields = frozenset({FIELD_CURRENT, FIELD_TARGET, FIELD_DISPLAY})

    def __init__(self, hub: AD2USBHub, record: AccessoryRecord) -> None:
        """Initialize the partition entity."""
        super().__init__(hub, record, "security_system")

    @property
    def bridge(self) -> PartitionBridge:
        return self._record.bridge

    @property
    def alarm_state(self) -> AlarmControlPanelState | None:
        """Return the confirmed panel state."""
        return _HA_STATE_BY_PARTITION_STATE[self.bridge.current_state]

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Return the requested state and the keypad display."""
        return {
            "target_state": _HA_STATE_BY_PARTITION_STATE[self.bridge.target_state],
            "display": self.bridge.display,
        }

    async def async_alarm_disarm(self, code: str | None = None) -> None:
        """Disarm the partition."""
        _LOGGER.info("Disarming...")
        self.bridge.request_target(PartitionState.DISARMED)

    async def async_alarm_arm_away(self, code: str | None = None) -> None:
        """Arm the partition in away mode."""
        _LOGGER.info("Arming Away...")
        self.bridge.request_target(PartitionState.AWAY_ARMED)

    async def async_alarm_arm_home(self, code: str | None = None) -> None:
        """Arm the partition in stay mode."""
        _LOGGER.info("Arming Stay...")
        self.bridge.request_target(PartitionState.STAY_ARMED)

    async def async_alarm_arm_night(self, code: str | None = None) -> None:
        """Arm the partition in night mode."""
        _LOGGER.info("Arming Night...")
        self.bridge.request_target(PartitionState.NIGHT_ARMED)
