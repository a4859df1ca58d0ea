"""Identity helpers for the ad2usb integration.

Every configured device maps to a deterministic identity key. The key is the
device registry identifier, so the same transmitter loop lands on the same
device after a restart. Reconciliation against the persisted devices is a pure
decision: restore what is already known, create what is not.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
import json
import logging
from typing import Any

import voluptuous as vol

from .const import (
    CONF_LOOP,
    CONF_NAME,
    CONF_PARTITION_NAME,
    CONF_PIN,
    CONF_SERIAL,
    DEFAULT_PARTITION_NAME,
    PARTITION_SERIAL_NUMBER,
)
from .decoder import validate_loop

_LOGGER = logging.getLogger(__name__)


def _non_empty_string(value: Any) -> str:
    if value is None or isinstance(value, (dict, list, bool)):
        raise vol.Invalid("expected a string")
    text = str(value).strip()
    if not text:
        raise vol.Invalid("value must not be empty")
    return text


SENSOR_SCHEMA = vol.Schema(
    {
        vol.Required(CONF_SERIAL): _non_empty_string,
        vol.Required(CONF_LOOP): validate_loop,
        vol.Required(CONF_NAME): _non_empty_string,
    },
    extra=vol.REMOVE_EXTRA,
)


class DeviceKind(str, Enum):
    """Kinds of device the bridge exposes."""

    PARTITION = "partition"
    CONTACT = "contact"
    MOTION = "motion"


@dataclass(frozen=True, slots=True)
class PartitionConfig:
    name: str
    pin: str


@dataclass(frozen=True, slots=True)
class SensorConfig:
    serial: str
    loop: int
    name: str


DeviceConfig = PartitionConfig | SensorConfig


@dataclass(frozen=True, slots=True)
class DeviceIdentity:
    """Stable identity of a logical device."""

    kind: DeviceKind
    serial: str | None = None
    loop: int | None = None

    @classmethod
    def for_partition(cls) -> DeviceIdentity:
        return cls(DeviceKind.PARTITION)

    @classmethod
    def for_sensor(cls, kind: DeviceKind, serial: str, loop: int) -> DeviceIdentity:
        if kind is DeviceKind.PARTITION:
            raise ValueError("Sensor identities need a sensor kind")
        return cls(kind, serial, loop)

    @classmethod
    def from_key(cls, key: str) -> DeviceIdentity | None:
        """Parse an identity key; None when it is not one of ours."""
        if key == DeviceKind.PARTITION.value:
            return cls.for_partition()
        parts = key.split(":")
        if len(parts) != 3:
            return None
        kind_value, serial, loop = parts
        try:
            kind = DeviceKind(kind_value)
            loop_number = int(loop)
        except ValueError:
            return None
        if kind is DeviceKind.PARTITION:
            return None
        return cls(kind, serial, loop_number)

    @property
    def key(self) -> str:
        """Return the registry key, e.g. "partition" or "contact:1234567:2"."""
        if self.kind is DeviceKind.PARTITION:
            return self.kind.value
        return f"{self.kind.value}:{self.serial}:{self.loop}"

    @property
    def serial_number(self) -> str:
        """Return the serial number shown in the device metadata."""
        if self.kind is DeviceKind.PARTITION:
            return PARTITION_SERIAL_NUMBER
        return f"{self.serial}:{self.loop}"


@dataclass(frozen=True, slots=True)
class PersistedAccessory:
    """A device the host already knows about from a previous run."""

    key: str
    accessory_id: str
    name: str | None = None


@dataclass(frozen=True, slots=True)
class CreateAccessory:
    identity: DeviceIdentity
    config: DeviceConfig


@dataclass(frozen=True, slots=True)
class RestoreAccessory:
    identity: DeviceIdentity
    config: DeviceConfig
    persisted: PersistedAccessory


AccessoryDecision = CreateAccessory | RestoreAccessory


@dataclass(slots=True)
class AccessoryRecord:
    """A configured device bound to its registry entry and live bridge."""

    identity: DeviceIdentity
    config: DeviceConfig
    accessory_id: str | None = None
    bridge: Any | None = None

    @property
    def kind(self) -> DeviceKind:
        return self.identity.kind

    @property
    def name(self) -> str:
        return self.config.name


def parse_partition_config(conf: Mapping[str, Any]) -> PartitionConfig:
    """Build the partition config from integration options."""
    name = conf.get(CONF_PARTITION_NAME) or DEFAULT_PARTITION_NAME
    return PartitionConfig(name=str(name), pin=str(conf[CONF_PIN]))


def parse_sensor_configs(
    entries: Iterable[Any] | None, kind: DeviceKind
) -> list[SensorConfig]:
    """Validate sensor entries one by one, skipping invalid or duplicate ones."""
    configs: list[SensorConfig] = []
    seen: set[tuple[str, int]] = set()
    for entry in entries or ():
        try:
            data = SENSOR_SCHEMA(entry)
        except vol.Invalid as err:
            _LOGGER.warning(
                "Invalid %s sensor in config (%s). Not loading it.", kind.value, err
            )
            continue
        config = SensorConfig(
            serial=data[CONF_SERIAL], loop=data[CONF_LOOP], name=data[CONF_NAME]
        )
        if (config.serial, config.loop) in seen:
            _LOGGER.warning(
                "Duplicate %s sensor %s:%s in config. Not loading it.",
                kind.value,
                config.serial,
                config.loop,
            )
            continue
        seen.add((config.serial, config.loop))
        _LOGGER.debug(
            "Loading %s sensor - %s", kind.value, json.dumps(data, sort_keys=True)
        )
        configs.append(config)
    return configs


def reconcile_accessories(
    partition: PartitionConfig,
    contacts: Sequence[SensorConfig],
    motions: Sequence[SensorConfig],
    persisted: Iterable[PersistedAccessory],
) -> list[AccessoryDecision]:
    """Decide, for each configured device, whether to restore or create it."""
    known = {accessory.key: accessory for accessory in persisted}
    decisions: list[AccessoryDecision] = []
    for identity, config in _configured_devices(partition, contacts, motions):
        existing = known.get(identity.key)
        if existing is None:
            decisions.append(CreateAccessory(identity, config))
        else:
            decisions.append(RestoreAccessory(identity, config, existing))
    return decisions


def orphaned_accessories(
    partition: PartitionConfig,
    contacts: Sequence[SensorConfig],
    motions: Sequence[SensorConfig],
    persisted: Iterable[PersistedAccessory],
) -> list[PersistedAccessory]:
    """Return persisted devices that no configured device claims."""
    configured = {
        identity.key for identity, _ in _configured_devices(partition, contacts, motions)
    }
    return [accessory for accessory in persisted if accessory.key not in configured]


def _configured_devices(
    partition: PartitionConfig,
    contacts: Sequence[SensorConfig],
    motions: Sequence[SensorConfig],
) -> Iterable[tuple[DeviceIdentity, DeviceConfig]]:
    yield DeviceIdentity.for_partition(), partition
    for config in contacts:
        yield (
            DeviceIdentity.for_sensor(DeviceKind.CONTACT, config.serial, config.loop),
            config,
        )
    for config in motions:
        yield (
            DeviceIdentity.for_sensor(DeviceKind.MOTION, config.serial, config.loop),
            config,
        )
