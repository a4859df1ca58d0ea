"""Per-device bridges between panel state and entity values."""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
import logging

from .decoder import SensorReading, decode_rf_reading
from .events import RfRaw
from .identity import SensorConfig
from .states import ChangeListener, PartitionState, PartitionStateMachine

_LOGGER = logging.getLogger(__name__)

FIELD_BATTERY_LOW = "battery_low"
FIELD_CONTACT = "contact"
FIELD_MOTION = "motion"


class ContactState(str, Enum):
    """Contact sensor reading as the panel reports it."""

    DETECTED = "detected"
    NOT_DETECTED = "not_detected"


class _Listeners:
    """Change listeners shared by the bridges."""

    def __init__(self, name: str) -> None:
        self._name = name
        self._callbacks: list[ChangeListener] = []
        self._error_types: set[type] = set()

    def add(self, listener: ChangeListener) -> Callable[[], None]:
        if listener not in self._callbacks:
            self._callbacks.append(listener)

        def _remove() -> None:
            if listener in self._callbacks:
                self._callbacks.remove(listener)

        return _remove

    def notify(self, changed: tuple[str, ...]) -> None:
        for listener in list(self._callbacks):
            try:
                listener(changed)
            except Exception as exc:  # noqa: BLE001
                exc_type = type(exc)
                if exc_type not in self._error_types:
                    self._error_types.add(exc_type)
                    _LOGGER.warning(
                        "Listener for %s failed: %s", self._name, exc_type.__name__
                    )


class PartitionBridge:
    """Expose the partition state machine to the security system entities."""

    def __init__(self, machine: PartitionStateMachine) -> None:
        self._machine = machine
        self._listeners = _Listeners("partition")
        self._unsubscribe = machine.add_listener(self._listeners.notify)

    @property
    def current_state(self) -> PartitionState:
        return self._machine.current

    @property
    def target_state(self) -> PartitionState:
        return self._machine.target

    @property
    def display(self) -> str:
        return self._machine.display

    def add_listener(self, listener: ChangeListener) -> Callable[[], None]:
        return self._listeners.add(listener)

    def request_target(self, state: PartitionState) -> None:
        """Forward a target state write to the state machine as a command."""
        self._machine.request_target(state)

    def close(self) -> None:
        self._unsubscribe()


class SensorBridge:
    """Shared RF handling for one loop of one transmitter."""

    state_field: str = ""

    def __init__(self, config: SensorConfig) -> None:
        self._config = config
        self._battery_low: bool | None = None
        self._listeners = _Listeners(f"{config.serial}:{config.loop}")

    @property
    def serial(self) -> str:
        return self._config.serial

    @property
    def loop(self) -> int:
        return self._config.loop

    @property
    def battery_low(self) -> bool | None:
        return self._battery_low

    def add_listener(self, listener: ChangeListener) -> Callable[[], None]:
        return self._listeners.add(listener)

    def handle_rf(self, event: RfRaw) -> tuple[str, ...]:
        """Apply an RF event; events for other transmitters change nothing."""
        reading = decode_rf_reading(event, self._config.serial, self._config.loop)
        if reading is None:
            return ()
        changed: list[str] = []
        if reading.battery_low != self._battery_low:
            self._battery_low = reading.battery_low
            changed.append(FIELD_BATTERY_LOW)
        if self._apply_reading(reading):
            changed.append(self.state_field)
        if changed:
            self._listeners.notify(tuple(changed))
        return tuple(changed)

    def seed(self, *, battery_low: bool | None = None, **values: object) -> None:
        """Fill unknown values from a restored state without notifying."""
        if self._battery_low is None and battery_low is not None:
            self._battery_low = battery_low
        self._seed_state(values)

    def _apply_reading(self, reading: SensorReading) -> bool:
        raise NotImplementedError

    def _seed_state(self, values: dict[str, object]) -> None:
        raise NotImplementedError


class ContactBridge(SensorBridge):
    """Contact sensor: a set loop bit means contact detected."""

    state_field = FIELD_CONTACT

    def __init__(self, config: SensorConfig) -> None:
        super().__init__(config)
        self._contact_state: ContactState | None = None

    @property
    def contact_state(self) -> ContactState | None:
        return self._contact_state

    def _apply_reading(self, reading: SensorReading) -> bool:
        state = ContactState.DETECTED if reading.active else ContactState.NOT_DETECTED
        if state is self._contact_state:
            return False
        self._contact_state = state
        return True

    def _seed_state(self, values: dict[str, object]) -> None:
        state = values.get(FIELD_CONTACT)
        if self._contact_state is None and isinstance(state, ContactState):
            self._contact_state = state


class MotionBridge(SensorBridge):
    """Motion sensor: a set loop bit means secure, so motion is its negation."""

    state_field = FIELD_MOTION

    def __init__(self, config: SensorConfig) -> None:
        super().__init__(config)
        self._motion_detected: bool | None = None

    @property
    def motion_detected(self) -> bool | None:
        return self._motion_detected

    def _apply_reading(self, reading: SensorReading) -> bool:
        detected = not reading.active
        if detected == self._motion_detected:
            return False
        self._motion_detected = detected
        return True

    def _seed_state(self, values: dict[str, object]) -> None:
        detected = values.get(FIELD_MOTION)
        if self._motion_detected is None and isinstance(detected, bool):
            self._motion_detected = detected
