"""Config flow for the ad2usb integration."""

from __future__ import annotations

import logging
from typing import Any

import voluptuous as vol

from homeassistant.config_entries import ConfigFlow, ConfigFlowResult
from homeassistant.const import CONF_HOST, CONF_PORT
from homeassistant.helpers import config_validation as cv
from homeassistant.helpers.selector import selector

from .const import (
    CONF_PARTITION_NAME,
    CONF_PIN,
    CONF_RF_CONTACTS,
    CONF_RF_MOTION_SENSORS,
    DEFAULT_PARTITION_NAME,
    DEFAULT_PORT,
    DOMAIN,
)
from .driver import AD2USBDriver
from .errors import AD2USBConnectionError

_LOGGER = logging.getLogger(__name__)

STEP_USER_DATA_SCHEMA = vol.Schema(
    {
        vol.Required(CONF_HOST): cv.string,
        vol.Required(CONF_PORT, default=DEFAULT_PORT): cv.port,
        vol.Required(CONF_PIN): selector({"text": {"type": "password"}}),
        vol.Optional(CONF_PARTITION_NAME, default=DEFAULT_PARTITION_NAME): cv.string,
    }
)


class AD2USBConfigFlow(ConfigFlow, domain=DOMAIN):
    """Handle a config flow for AD2USB."""

    VERSION = 1
    MINOR_VERSION = 1

    async def async_step_user(
        self, user_input: dict[str, Any] | None = None
    ) -> ConfigFlowResult:
        """Handle the initial step."""
        errors: dict[str, str] = {}
        if user_input is not None:
            await self.async_set_unique_id(DOMAIN)
            self._abort_if_unique_id_configured()
            pin = str(user_input[CONF_PIN]).strip()
            if not pin.isdigit():
                errors[CONF_PIN] = "invalid_pin"
            else:
                errors = await self._async_test_connection(
                    user_input[CONF_HOST], user_input[CONF_PORT]
                )
            if not errors:
                data = {
                    CONF_HOST: user_input[CONF_HOST],
                    CONF_PORT: user_input[CONF_PORT],
                    CONF_PIN: pin,
                    CONF_PARTITION_NAME: user_input.get(
                        CONF_PARTITION_NAME, DEFAULT_PARTITION_NAME
                    ),
                    CONF_RF_CONTACTS: [],
                    CONF_RF_MOTION_SENSORS: [],
                }
                return self.async_create_entry(
                    title=data[CONF_PARTITION_NAME], data=data
                )

        return self.async_show_form(
            step_id="user",
            data_schema=STEP_USER_DATA_SCHEMA,
            errors=errors,
        )

    async def async_step_import(self, import_data: dict[str, Any]) -> ConfigFlowResult:
        """Create or update the entry from configuration.yaml."""
        data = {
            CONF_HOST: import_data[CONF_HOST],
            CONF_PORT: import_data[CONF_PORT],
            CONF_PIN: str(import_data[CONF_PIN]),
            CONF_PARTITION_NAME: import_data.get(CONF_PARTITION_NAME)
            or DEFAULT_PARTITION_NAME,
            CONF_RF_CONTACTS: list(import_data.get(CONF_RF_CONTACTS) or []),
            CONF_RF_MOTION_SENSORS: list(import_data.get(CONF_RF_MOTION_SENSORS) or []),
        }
        await self.async_set_unique_id(DOMAIN)
        self._abort_if_unique_id_configured(updates=data)
        return self.async_create_entry(title=data[CONF_PARTITION_NAME], data=data)

    async def _async_test_connection(self, host: str, port: int) -> dict[str, str]:
        """Open and close the socket once."""
        driver = AD2USBDriver(self.hass.loop, host, port)
        try:
            await driver.async_connect()
        except AD2USBConnectionError as err:
            _LOGGER.debug("Connection test failed: %s", err)
            return {"base": "cannot_connect"}
        finally:
            await driver.async_disconnect()
        return {}
