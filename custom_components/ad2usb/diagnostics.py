"""Diagnostics support for AD2USB."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import fields, is_dataclass
import enum
from typing import Any

from homeassistant.components.diagnostics import async_redact_data
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant

from .bridge import ContactBridge, MotionBridge, PartitionBridge
from .const import CONF_PIN, DATA_HUB, DOMAIN
from .hub import AD2USBHub
from .identity import AccessoryRecord

TO_REDACT = {CONF_PIN}


async def async_get_config_entry_diagnostics(
    hass: HomeAssistant, entry: ConfigEntry
) -> dict[str, Any]:
    """Return diagnostics for a config entry."""
    data = hass.data.get(DOMAIN, {}).get(entry.entry_id)
    hub: AD2USBHub | None = data.get(DATA_HUB) if data else None
    return {
        "entry_id": entry.entry_id,
        "data": async_redact_data(dict(entry.data), TO_REDACT),
        "connected": hub.is_connected if hub is not None else False,
        "accessories": [
            _record_to_dict(record) for record in hub.records
        ]
        if hub is not None
        else [],
    }


def _record_to_dict(record: AccessoryRecord) -> dict[str, Any]:
    """Describe one accessory record with its live values."""
    return {
        "key": record.identity.key,
        "kind": record.kind.value,
        "accessory_id": record.accessory_id,
        "config": async_redact_data(_to_jsonable(record.config), TO_REDACT),
        "values": _bridge_values(record.bridge),
    }


def _bridge_values(bridge: Any) -> dict[str, Any]:
    if isinstance(bridge, PartitionBridge):
        return _to_jsonable(
            {
                "current": bridge.current_state,
                "target": bridge.target_state,
                "display": bridge.display,
            }
        )
    if isinstance(bridge, ContactBridge):
        return _to_jsonable(
            {"contact": bridge.contact_state, "battery_low": bridge.battery_low}
        )
    if isinstance(bridge, MotionBridge):
        return _to_jsonable(
            {"motion": bridge.motion_detected, "battery_low": bridge.battery_low}
        )
    return {}


def _to_jsonable(value: Any) -> Any:
    """Normalize records to JSON-safe types."""
    if value is None:
        return None
    if is_dataclass(value) and not isinstance(value, type):
        return {
            field.name: _to_jsonable(getattr(value, field.name))
            for field in fields(value)
        }
    if isinstance(value, Mapping):
        return {str(key): _to_jsonable(val) for key, val in value.items()}
    if isinstance(value, list | tuple):
        return [_to_jsonable(item) for item in value]
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, (str, int, float, bool)):
        return value
    return str(value)
