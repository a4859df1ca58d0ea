"""
ad2usb/events.py

Typed panel events.

Rules:
- The driver adapter constructs these from AlarmDecoder messages.
- Events are immutable and delivered once per subscriber.
- The hub dispatches on the concrete class; KIND is for logs and diagnostics.
"""

from __future__ import annotations

from dataclasses import dataclass

LoopBits = tuple[bool, bool, bool, bool]


@dataclass(frozen=True, slots=True)
class PanelEvent:
    KIND = "panel_event"

    @property
    def kind(self) -> str:
        return self.KIND


# -------------------------
# Partition arm state
# -------------------------

@dataclass(frozen=True, slots=True)
class ArmedAway(PanelEvent):
    KIND = "armed_away"


@dataclass(frozen=True, slots=True)
class ArmedStay(PanelEvent):
    KIND = "armed_stay"


@dataclass(frozen=True, slots=True)
class ArmedNight(PanelEvent):
    KIND = "armed_night"


@dataclass(frozen=True, slots=True)
class Disarmed(PanelEvent):
    KIND = "disarmed"


# -------------------------
# Keypad display
# -------------------------

@dataclass(frozen=True, slots=True)
class LcdText(PanelEvent):
    KIND = "lcd_text"

    text: str


# -------------------------
# RF receiver telemetry
# -------------------------

@dataclass(frozen=True, slots=True)
class RfRaw(PanelEvent):
    KIND = "rf_raw"

    serial: str
    supervision: bool
    # True while the transmitter reports a healthy battery.
    battery: bool
    loops: LoopBits


ArmEvent = ArmedAway | ArmedStay | ArmedNight | Disarmed


# -------------------------
# Driver lifecycle (not a panel event)
# -------------------------

@dataclass(frozen=True, slots=True)
class ConnectionStateChanged:
    KIND = "connection_state_changed"

    connected: bool
    reason: str | None = None
