"""Hub orchestrating the AD2USB driver, device registry and bridges."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
import logging
from typing import Any, cast

from homeassistant.const import CONF_HOST, CONF_PORT
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers import device_registry as dr

from .bridge import ContactBridge, MotionBridge, PartitionBridge, SensorBridge
from .const import CONF_RF_CONTACTS, CONF_RF_MOTION_SENSORS, DOMAIN, MANUFACTURER, MODEL
from .driver import AD2USBDriver, DriverEvent
from .events import (
    ArmedAway,
    ArmedNight,
    ArmedStay,
    ConnectionStateChanged,
    Disarmed,
    LcdText,
    RfRaw,
)
from .identity import (
    AccessoryDecision,
    AccessoryRecord,
    CreateAccessory,
    DeviceIdentity,
    DeviceKind,
    PartitionConfig,
    PersistedAccessory,
    SensorConfig,
    orphaned_accessories,
    parse_partition_config,
    parse_sensor_configs,
    reconcile_accessories,
)
from .states import PanelCommand, PartitionStateMachine

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class HubConfig:
    """Validated integration options."""

    host: str
    port: int
    partition: PartitionConfig
    contacts: tuple[SensorConfig, ...] = field(default_factory=tuple)
    motions: tuple[SensorConfig, ...] = field(default_factory=tuple)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> HubConfig:
        return cls(
            host=str(data[CONF_HOST]),
            port=int(data[CONF_PORT]),
            partition=parse_partition_config(data),
            contacts=tuple(
                parse_sensor_configs(data.get(CONF_RF_CONTACTS), DeviceKind.CONTACT)
            ),
            motions=tuple(
                parse_sensor_configs(
                    data.get(CONF_RF_MOTION_SENSORS), DeviceKind.MOTION
                )
            ),
        )


def persisted_accessories(
    hass: HomeAssistant, entry_id: str
) -> list[PersistedAccessory]:
    """Return the devices the registry already holds for a config entry."""
    registry = dr.async_get(hass)
    persisted: list[PersistedAccessory] = []
    for device in dr.async_entries_for_config_entry(registry, entry_id):
        for domain, key in device.identifiers:
            if domain != DOMAIN or DeviceIdentity.from_key(key) is None:
                continue
            persisted.append(
                PersistedAccessory(
                    key=key,
                    accessory_id=device.id,
                    name=device.name_by_user or device.name,
                )
            )
    return persisted


class AD2USBHub:
    """Own the panel connection, the accessory registry and the bridges."""

    def __init__(
        self,
        hass: HomeAssistant,
        config: HubConfig,
        *,
        driver: AD2USBDriver | None = None,
    ) -> None:
        """Initialize the hub."""
        self._hass = hass
        self._config = config
        self._driver = driver or AD2USBDriver(hass.loop, config.host, config.port)
        self._machine = PartitionStateMachine(config.partition.pin, self._send_command)
        self._partition_bridge = PartitionBridge(self._machine)
        self._records: dict[str, AccessoryRecord] = {}
        self._sensor_bridges: list[SensorBridge] = []
        self._driver_unsubscribe: Callable[[], None] | None = None
        self._availability_listeners: list[Callable[[], None]] = []
        self._connected = False

    @property
    def config(self) -> HubConfig:
        return self._config

    @property
    def driver(self) -> AD2USBDriver:
        return self._driver

    @property
    def is_connected(self) -> bool:
        """Return if the panel connection is up."""
        return self._connected

    @property
    def partition_bridge(self) -> PartitionBridge:
        return self._partition_bridge

    @property
    def records(self) -> list[AccessoryRecord]:
        return list(self._records.values())

    def records_of_kind(self, kind: DeviceKind) -> list[AccessoryRecord]:
        return [record for record in self._records.values() if record.kind is kind]

    def get_record(self, key: str) -> AccessoryRecord | None:
        return self._records.get(key)

    def orphaned(
        self, persisted: Iterable[PersistedAccessory]
    ) -> list[PersistedAccessory]:
        """Return persisted devices that the current options no longer name."""
        return orphaned_accessories(
            self._config.partition,
            self._config.contacts,
            self._config.motions,
            persisted,
        )

    @callback
    def async_setup_accessories(
        self, entry_id: str, persisted: Iterable[PersistedAccessory]
    ) -> list[AccessoryDecision]:
        """Reconcile options against persisted devices and bind every record.

        Must run before async_connect so no event reaches an unbound bridge.
        """
        decisions = reconcile_accessories(
            self._config.partition,
            self._config.contacts,
            self._config.motions,
            persisted,
        )
        registry = dr.async_get(self._hass)
        self._records.clear()
        self._sensor_bridges.clear()
        for decision in decisions:
            identity = decision.identity
            record = AccessoryRecord(identity=identity, config=decision.config)
            if isinstance(decision, CreateAccessory):
                device = registry.async_get_or_create(
                    config_entry_id=entry_id,
                    identifiers={(DOMAIN, identity.key)},
                    manufacturer=MANUFACTURER,
                    model=MODEL,
                    name=decision.config.name,
                    serial_number=identity.serial_number,
                )
                record.accessory_id = device.id
                _LOGGER.debug("Registered %s as %s", identity.key, device.id)
            else:
                record.accessory_id = decision.persisted.accessory_id
                _LOGGER.debug(
                    "Restored %s from %s", identity.key, decision.persisted.accessory_id
                )
            record.bridge = self._build_bridge(record)
            self._records[identity.key] = record
        _LOGGER.info("Partition ready to go!")
        return decisions

    def _build_bridge(self, record: AccessoryRecord) -> Any:
        if record.kind is DeviceKind.PARTITION:
            return self._partition_bridge
        config = cast(SensorConfig, record.config)
        bridge: SensorBridge
        if record.kind is DeviceKind.CONTACT:
            bridge = ContactBridge(config)
        else:
            bridge = MotionBridge(config)
        self._sensor_bridges.append(bridge)
        return bridge

    async def async_connect(self) -> None:
        """Subscribe to the driver and open the panel connection."""
        if self._driver_unsubscribe is None:
            self._driver_unsubscribe = self._driver.subscribe(self._dispatch)
        try:
            await self._driver.async_connect()
        except Exception:
            self._driver_unsubscribe()
            self._driver_unsubscribe = None
            raise

    async def async_disconnect(self) -> None:
        """Close the connection and detach from the driver and state machine."""
        if self._driver_unsubscribe is not None:
            self._driver_unsubscribe()
            self._driver_unsubscribe = None
        await self._driver.async_disconnect()
        self._partition_bridge.close()
        self._set_connected(False)

    def add_availability_listener(self, listener: Callable[[], None]) -> Callable[[], None]:
        """Register a callback for connection changes."""
        self._availability_listeners.append(listener)

        def _remove() -> None:
            if listener in self._availability_listeners:
                self._availability_listeners.remove(listener)

        return _remove

    @callback
    def _dispatch(self, event: DriverEvent) -> None:
        """Route one driver event to the state machine or sensor bridges."""
        if isinstance(event, (ArmedAway, ArmedStay, ArmedNight, Disarmed, LcdText)):
            self._machine.handle_event(event)
        elif isinstance(event, RfRaw):
            for bridge in self._sensor_bridges:
                bridge.handle_rf(event)
        elif isinstance(event, ConnectionStateChanged):
            self._set_connected(event.connected)
        else:
            _LOGGER.debug("Ignoring unsupported driver event: %r", event)

    def _set_connected(self, connected: bool) -> None:
        if connected == self._connected:
            return
        self._connected = connected
        for listener in list(self._availability_listeners):
            listener()

    def _send_command(self, command: PanelCommand, pin: str) -> None:
        """Command sink for the partition state machine."""
        _LOGGER.debug("Sending %s to the panel", command.value)
        self._hass.async_add_executor_job(self._driver.send_command, command, pin)
