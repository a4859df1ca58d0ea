import pytest
import voluptuous as vol

from custom_components.ad2usb.decoder import (
    SensorReading,
    decode_rf_reading,
    loop_bit,
    validate_loop,
)
from custom_components.ad2usb.events import RfRaw


def _rf(serial="1234567", *, battery=True, supervision=False, loops=(False, True, False, False)):
    return RfRaw(serial=serial, supervision=supervision, battery=battery, loops=loops)


def test_reading_for_matching_serial_and_loop():
    reading = decode_rf_reading(_rf(), "1234567", 2)

    assert reading == SensorReading(
        serial="1234567", loop=2, battery_low=False, active=True
    )


def test_battery_flag_is_inverted_into_battery_low():
    reading = decode_rf_reading(_rf(battery=False), "1234567", 1)

    assert reading is not None
    assert reading.battery_low is True
    assert reading.active is False


def test_other_serial_produces_no_reading():
    assert decode_rf_reading(_rf(serial="7654321"), "1234567", 2) is None


def test_supervision_has_no_effect():
    plain = decode_rf_reading(_rf(supervision=False), "1234567", 2)
    supervised = decode_rf_reading(_rf(supervision=True), "1234567", 2)

    assert plain == supervised


@pytest.mark.parametrize("loop", [0, 5, -1])
def test_out_of_range_loop_is_no_reading(loop):
    assert loop_bit((True, True, True, True), loop) is None
    assert decode_rf_reading(_rf(loops=(True, True, True, True)), "1234567", loop) is None


def test_loop_bit_reads_one_based_index():
    loops = (True, False, False, True)

    assert loop_bit(loops, 1) is True
    assert loop_bit(loops, 2) is False
    assert loop_bit(loops, 4) is True


def test_validate_loop_accepts_numbers_and_numeric_strings():
    assert validate_loop(1) == 1
    assert validate_loop("4") == 4
    assert validate_loop(3.0) == 3


@pytest.mark.parametrize("value", [0, 5, "x", None, True, 2.7, "2.7", "-1"])
def test_validate_loop_rejects_bad_values(value):
    with pytest.raises(vol.Invalid):
        validate_loop(value)
