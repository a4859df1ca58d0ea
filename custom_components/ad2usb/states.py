"""
ad2usb/states.py

Partition arm state (single partition).

Principles:
- current only moves on a confirming panel event.
- target moves on a confirming panel event or, speculatively, on a request.
- A request that is never confirmed leaves target and current apart; there
  is no timeout and no retry.
- No I/O here; commands leave through the injected sink.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
import logging

from .events import ArmedAway, ArmedNight, ArmedStay, ArmEvent, Disarmed, LcdText

_LOGGER = logging.getLogger(__name__)

FIELD_CURRENT = "current"
FIELD_TARGET = "target"
FIELD_DISPLAY = "display"


class PartitionState(str, Enum):
    """Arm states of the security partition."""

    DISARMED = "disarmed"
    AWAY_ARMED = "away_armed"
    STAY_ARMED = "stay_armed"
    NIGHT_ARMED = "night_armed"


class PanelCommand(str, Enum):
    """Commands accepted by the panel driver."""

    ARM_AWAY = "arm_away"
    ARM_STAY = "arm_stay"
    ARM_NIGHT = "arm_night"
    DISARM = "disarm"


STATE_BY_EVENT: dict[type[ArmEvent], PartitionState] = {
    ArmedAway: PartitionState.AWAY_ARMED,
    ArmedStay: PartitionState.STAY_ARMED,
    ArmedNight: PartitionState.NIGHT_ARMED,
    Disarmed: PartitionState.DISARMED,
}

COMMAND_BY_STATE: dict[PartitionState, PanelCommand] = {
    PartitionState.AWAY_ARMED: PanelCommand.ARM_AWAY,
    PartitionState.STAY_ARMED: PanelCommand.ARM_STAY,
    PartitionState.NIGHT_ARMED: PanelCommand.ARM_NIGHT,
    PartitionState.DISARMED: PanelCommand.DISARM,
}

CommandSink = Callable[[PanelCommand, str], None]
ChangeListener = Callable[[tuple[str, ...]], None]


class PartitionStateMachine:
    """Current/target arm state of the one security partition.

    Not thread-safe; the hub only touches it from the event loop.
    """

    def __init__(self, pin: str, send_command: CommandSink) -> None:
        self._pin = pin
        self._send_command = send_command
        self._current = PartitionState.DISARMED
        self._target = PartitionState.DISARMED
        self._display = ""
        self._listeners: list[ChangeListener] = []
        self._listener_error_types: set[type] = set()

    @property
    def current(self) -> PartitionState:
        return self._current

    @property
    def target(self) -> PartitionState:
        return self._target

    @property
    def display(self) -> str:
        return self._display

    def add_listener(self, listener: ChangeListener) -> Callable[[], None]:
        """Register a change listener; returns a callable that removes it."""
        if listener not in self._listeners:
            self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    def handle_event(self, event: ArmEvent | LcdText) -> tuple[str, ...]:
        """Apply a panel event and return the names of the fields it changed."""
        if isinstance(event, LcdText):
            _LOGGER.debug("LCD - %s", event.text)
            return self._apply(display=event.text)
        state = STATE_BY_EVENT[type(event)]
        _LOGGER.debug("Panel reports %s", state.value)
        return self._apply(current=state, target=state)

    def request_target(self, state: PartitionState) -> tuple[str, ...]:
        """Send the command for state and record it as the target.

        current is left alone until the panel confirms.
        """
        state = PartitionState(state)
        command = COMMAND_BY_STATE[state]
        _LOGGER.info("Requesting %s", command.value)
        self._send_command(command, self._pin)
        return self._apply(target=state)

    def _apply(
        self,
        *,
        current: PartitionState | None = None,
        target: PartitionState | None = None,
        display: str | None = None,
    ) -> tuple[str, ...]:
        changed: list[str] = []
        if current is not None and current is not self._current:
            self._current = current
            changed.append(FIELD_CURRENT)
        if target is not None and target is not self._target:
            self._target = target
            changed.append(FIELD_TARGET)
        if display is not None and display != self._display:
            self._display = display
            changed.append(FIELD_DISPLAY)
        if changed:
            self._notify(tuple(changed))
        return tuple(changed)

    def _notify(self, changed: tuple[str, ...]) -> None:
        for listener in list(self._listeners):
            try:
                listener(changed)
            except Exception as exc:  # noqa: BLE001
                exc_type = type(exc)
                if exc_type not in self._listener_error_types:
                    self._listener_error_types.add(exc_type)
                    _LOGGER.warning("Partition listener failed: %s", exc_type.__name__)
