"""Decode raw RF telemetry into per-sensor readings."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import voluptuous as vol

from .events import RfRaw

LOOP_COUNT = 4


@dataclass(frozen=True, slots=True)
class SensorReading:
    """One loop of one RF transmitter at a point in time."""

    serial: str
    loop: int
    battery_low: bool
    # Raw loop bit; contact and motion bridges read it with opposite polarity.
    active: bool


def is_valid_loop(loop: object) -> bool:
    """Return True if loop is a 1-based index into the four transmitter loops."""
    return isinstance(loop, int) and not isinstance(loop, bool) and 1 <= loop <= LOOP_COUNT


def validate_loop(value: object) -> int:
    """Voluptuous validator for a configured loop number.

    Accepts whole numbers and digit-only strings; fractions are rejected
    rather than truncated onto another loop.
    """
    if isinstance(value, float) and not value.is_integer():
        raise vol.Invalid(f"loop must be a whole number, got {value!r}")
    if isinstance(value, str) and not value.strip().isdigit():
        raise vol.Invalid(f"loop must be a number, got {value!r}")
    try:
        loop = int(value)  # type: ignore[call-overload]
    except (TypeError, ValueError) as err:
        raise vol.Invalid(f"loop must be a number, got {value!r}") from err
    if isinstance(value, bool) or not is_valid_loop(loop):
        raise vol.Invalid(f"loop must be between 1 and {LOOP_COUNT}, got {value!r}")
    return loop


def loop_bit(loops: Sequence[bool], loop: int) -> bool | None:
    """Return the bit for a 1-based loop, or None when out of range."""
    if not is_valid_loop(loop) or len(loops) < loop:
        return None
    return bool(loops[loop - 1])


def decode_rf_reading(event: RfRaw, serial: str, loop: int) -> SensorReading | None:
    """Return the reading for (serial, loop), or None if the event is not for it.

    The supervision flag is decoded by the driver but has no effect here.
    """
    if event.serial != serial:
        return None
    active = loop_bit(event.loops, loop)
    if active is None:
        return None
    return SensorReading(
        serial=serial,
        loop=loop,
        battery_low=not event.battery,
        active=active,
    )
