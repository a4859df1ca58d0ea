"""Set up the ad2usb integration."""

from __future__ import annotations

import contextlib
import logging

import voluptuous as vol

from homeassistant.config_entries import SOURCE_IMPORT, ConfigEntry
from homeassistant.const import CONF_HOST, CONF_PORT, Platform
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import ConfigEntryNotReady
from homeassistant.helpers import config_validation as cv
from homeassistant.helpers import device_registry as dr
from homeassistant.helpers.typing import ConfigType

from .const import (
    CONF_PARTITION_NAME,
    CONF_PIN,
    CONF_RF_CONTACTS,
    CONF_RF_MOTION_SENSORS,
    DATA_HUB,
    DOMAIN,
)
from .errors import AD2USBConnectionError
from .hub import AD2USBHub, HubConfig, persisted_accessories
from .identity import DeviceIdentity, PersistedAccessory

_LOGGER = logging.getLogger(__name__)

PLATFORMS: list[Platform] = [
    Platform.ALARM_CONTROL_PANEL,
    Platform.BINARY_SENSOR,
    Platform.SENSOR,
]

# Required keys are checked in async_setup so a missing one disables the
# integration with a warning instead of failing configuration validation.
CONFIG_SCHEMA = vol.Schema(
    {
        DOMAIN: vol.Schema(
            {
                vol.Optional(CONF_HOST): cv.string,
                vol.Optional(CONF_PORT): cv.port,
                vol.Optional(CONF_PIN): cv.string,
                vol.Optional(CONF_PARTITION_NAME): cv.string,
                vol.Optional(CONF_RF_CONTACTS, default=[]): cv.ensure_list,
                vol.Optional(CONF_RF_MOTION_SENSORS, default=[]): cv.ensure_list,
            },
            extra=vol.ALLOW_EXTRA,
        )
    },
    extra=vol.ALLOW_EXTRA,
)


async def async_setup(hass: HomeAssistant, config: ConfigType) -> bool:
    """Import the YAML configuration into a config entry."""
    conf = config.get(DOMAIN)
    if conf is None:
        return True
    missing = [key for key in (CONF_HOST, CONF_PORT, CONF_PIN) if not conf.get(key)]
    if missing:
        _LOGGER.warning(
            "Ignoring AD2USB setup because it is not configured (missing %s)",
            ", ".join(missing),
        )
        # An entry imported from an earlier YAML block would keep the old pin.
        for entry in hass.config_entries.async_entries(DOMAIN):
            if entry.source == SOURCE_IMPORT:
                _LOGGER.warning("Removing AD2USB entry %s imported from YAML", entry.title)
                await hass.config_entries.async_remove(entry.entry_id)
        return True
    hass.async_create_task(
        hass.config_entries.flow.async_init(
            DOMAIN, context={"source": SOURCE_IMPORT}, data=dict(conf)
        )
    )
    return True


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up AD2USB from a config entry."""
    config = HubConfig.from_mapping(entry.data)
    hub = AD2USBHub(hass, config)
    hub.async_setup_accessories(
        entry.entry_id, persisted_accessories(hass, entry.entry_id)
    )
    try:
        await hub.async_connect()
    except AD2USBConnectionError as err:
        _LOGGER.exception("Failed to set up connection to %s:%s", config.host, config.port)
        with contextlib.suppress(Exception):
            await hub.async_disconnect()
        raise ConfigEntryNotReady(
            f"Unable to connect to AD2USB at {config.host}:{config.port}"
        ) from err

    hass.data.setdefault(DOMAIN, {})[entry.entry_id] = {DATA_HUB: hub}
    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
    return True


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload an AD2USB config entry."""
    unload_ok = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
    if unload_ok:
        data = hass.data.get(DOMAIN, {}).pop(entry.entry_id, None)
        if data is not None:
            hub: AD2USBHub = data[DATA_HUB]
            await hub.async_disconnect()
    return unload_ok


async def async_remove_config_entry_device(
    hass: HomeAssistant, entry: ConfigEntry, device_entry: dr.DeviceEntry
) -> bool:
    """Allow removing a device only once the configuration no longer names it."""
    data = hass.data.get(DOMAIN, {}).get(entry.entry_id)
    if data is None:
        return True
    hub: AD2USBHub = data[DATA_HUB]
    persisted = [
        PersistedAccessory(key=key, accessory_id=device_entry.id)
        for domain, key in device_entry.identifiers
        if domain == DOMAIN and DeviceIdentity.from_key(key) is not None
    ]
    if not persisted:
        return True
    return bool(hub.orphaned(persisted))
