import logging

import pytest

from custom_components.ad2usb.identity import (
    CreateAccessory,
    DeviceIdentity,
    DeviceKind,
    PartitionConfig,
    PersistedAccessory,
    RestoreAccessory,
    SensorConfig,
    orphaned_accessories,
    parse_partition_config,
    parse_sensor_configs,
    reconcile_accessories,
)

PARTITION = PartitionConfig(name="Security System", pin="1234")
FRONT_DOOR = SensorConfig(serial="1234567", loop=2, name="Front Door")
HALLWAY = SensorConfig(serial="7654321", loop=1, name="Hallway")


def test_identity_keys_are_stable_across_runs():
    first = DeviceIdentity.for_sensor(DeviceKind.CONTACT, "1234567", 2)
    second = DeviceIdentity.for_sensor(DeviceKind.CONTACT, "1234567", 2)

    assert first.key == second.key == "contact:1234567:2"
    assert DeviceIdentity.for_partition().key == "partition"


def test_contact_and_motion_on_same_loop_have_distinct_keys():
    contact = DeviceIdentity.for_sensor(DeviceKind.CONTACT, "1234567", 1)
    motion = DeviceIdentity.for_sensor(DeviceKind.MOTION, "1234567", 1)

    assert contact.key != motion.key


def test_serial_number_metadata():
    assert DeviceIdentity.for_partition().serial_number == "DefaultSerial"
    sensor = DeviceIdentity.for_sensor(DeviceKind.MOTION, "7654321", 3)
    assert sensor.serial_number == "7654321:3"


def test_sensor_identity_needs_sensor_kind():
    with pytest.raises(ValueError):
        DeviceIdentity.for_sensor(DeviceKind.PARTITION, "1", 1)


@pytest.mark.parametrize(
    ("key", "expected"),
    [
        ("partition", DeviceIdentity(DeviceKind.PARTITION)),
        ("contact:1234567:2", DeviceIdentity(DeviceKind.CONTACT, "1234567", 2)),
        ("motion:7654321:1", DeviceIdentity(DeviceKind.MOTION, "7654321", 1)),
        ("window:1234567:2", None),
        ("contact:1234567:x", None),
        ("partition:1:1", None),
        ("contact:1234567", None),
    ],
)
def test_from_key(key, expected):
    assert DeviceIdentity.from_key(key) == expected


def test_partition_name_defaults():
    assert parse_partition_config({"pin": "1234"}) == PARTITION
    named = parse_partition_config({"pin": 1234, "partition_name": "House"})
    assert named == PartitionConfig(name="House", pin="1234")


def test_invalid_sensor_entries_are_skipped(caplog):
    entries = [
        {"serial": "1234567", "loop": 2, "name": "Front Door"},
        {"serial": "1111111", "name": "No Loop"},
        {"serial": "2222222", "loop": 9, "name": "Bad Loop"},
        {"serial": "3333333", "loop": 2.7, "name": "Fractional Loop"},
        {"loop": 1, "name": "No Serial"},
        "not a mapping",
        {"serial": "7654321", "loop": "1", "name": "Hallway"},
    ]

    with caplog.at_level(logging.WARNING):
        configs = parse_sensor_configs(entries, DeviceKind.CONTACT)

    assert configs == [FRONT_DOOR, HALLWAY]
    assert caplog.text.count("Not loading it.") == 5


def test_duplicate_sensor_entries_are_skipped(caplog):
    entries = [
        {"serial": "1234567", "loop": 2, "name": "Front Door"},
        {"serial": "1234567", "loop": 2, "name": "Front Door Again"},
    ]

    with caplog.at_level(logging.WARNING):
        configs = parse_sensor_configs(entries, DeviceKind.CONTACT)

    assert configs == [FRONT_DOOR]
    assert "Duplicate contact sensor 1234567:2" in caplog.text


def test_missing_sensor_list_is_empty():
    assert parse_sensor_configs(None, DeviceKind.MOTION) == []


def test_reconcile_creates_unknown_and_restores_known():
    persisted = [PersistedAccessory(key="contact:1234567:2", accessory_id="dev-1")]

    decisions = reconcile_accessories(PARTITION, [FRONT_DOOR], [HALLWAY], persisted)

    assert decisions == [
        CreateAccessory(DeviceIdentity.for_partition(), PARTITION),
        RestoreAccessory(
            DeviceIdentity(DeviceKind.CONTACT, "1234567", 2), FRONT_DOOR, persisted[0]
        ),
        CreateAccessory(DeviceIdentity(DeviceKind.MOTION, "7654321", 1), HALLWAY),
    ]


def test_orphaned_accessories_are_the_unclaimed_ones():
    kept = PersistedAccessory(key="partition", accessory_id="dev-1")
    stale = PersistedAccessory(key="motion:9999999:4", accessory_id="dev-2")

    assert orphaned_accessories(PARTITION, [FRONT_DOOR], [], [kept, stale]) == [stale]
