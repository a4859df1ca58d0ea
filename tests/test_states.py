import pytest

from custom_components.ad2usb.events import (
    ArmedAway,
    ArmedNight,
    ArmedStay,
    Disarmed,
    LcdText,
)
from custom_components.ad2usb.states import (
    FIELD_CURRENT,
    FIELD_DISPLAY,
    FIELD_TARGET,
    PanelCommand,
    PartitionState,
    PartitionStateMachine,
)

PIN = "1234"

EVENT_STATES = [
    (ArmedAway(), PartitionState.AWAY_ARMED),
    (ArmedStay(), PartitionState.STAY_ARMED),
    (ArmedNight(), PartitionState.NIGHT_ARMED),
    (Disarmed(), PartitionState.DISARMED),
]


class _CommandLog:
    def __init__(self) -> None:
        self.sent: list[tuple[PanelCommand, str]] = []

    def __call__(self, command: PanelCommand, pin: str) -> None:
        self.sent.append((command, pin))


def _machine() -> tuple[PartitionStateMachine, _CommandLog]:
    commands = _CommandLog()
    return PartitionStateMachine(PIN, commands), commands


def test_initial_state_is_disarmed():
    machine, _ = _machine()

    assert machine.current is PartitionState.DISARMED
    assert machine.target is PartitionState.DISARMED
    assert machine.display == ""


@pytest.mark.parametrize("prior_event", [event for event, _ in EVENT_STATES])
@pytest.mark.parametrize(("event", "state"), EVENT_STATES)
def test_panel_event_sets_current_and_target(prior_event, event, state):
    machine, commands = _machine()
    machine.handle_event(prior_event)

    machine.handle_event(event)

    assert machine.current is state
    assert machine.target is state
    assert commands.sent == []


def test_repeated_event_is_idempotent():
    machine, _ = _machine()
    seen: list[tuple[str, ...]] = []
    machine.add_listener(seen.append)

    first = machine.handle_event(ArmedAway())
    second = machine.handle_event(ArmedAway())

    assert first == (FIELD_CURRENT, FIELD_TARGET)
    assert second == ()
    assert seen == [(FIELD_CURRENT, FIELD_TARGET)]


@pytest.mark.parametrize(
    ("state", "command"),
    [
        (PartitionState.AWAY_ARMED, PanelCommand.ARM_AWAY),
        (PartitionState.STAY_ARMED, PanelCommand.ARM_STAY),
        (PartitionState.NIGHT_ARMED, PanelCommand.ARM_NIGHT),
        (PartitionState.DISARMED, PanelCommand.DISARM),
    ],
)
def test_request_sends_one_command_and_moves_only_target(state, command):
    machine, commands = _machine()
    machine.handle_event(ArmedStay())

    machine.request_target(state)

    assert commands.sent == [(command, PIN)]
    assert machine.target is state
    assert machine.current is PartitionState.STAY_ARMED


def test_armed_stay_while_disarmed():
    machine, _ = _machine()

    machine.handle_event(ArmedStay())

    assert machine.current is PartitionState.STAY_ARMED
    assert machine.target is PartitionState.STAY_ARMED


def test_disarm_request_waits_for_confirmation():
    machine, commands = _machine()
    machine.handle_event(ArmedStay())

    changed = machine.request_target(PartitionState.DISARMED)

    assert changed == (FIELD_TARGET,)
    assert commands.sent == [(PanelCommand.DISARM, PIN)]
    assert machine.target is PartitionState.DISARMED
    assert machine.current is PartitionState.STAY_ARMED

    machine.handle_event(Disarmed())

    assert machine.current is PartitionState.DISARMED
    assert machine.target is PartitionState.DISARMED
    assert len(commands.sent) == 1


def test_unconfirmed_request_stays_divergent():
    machine, _ = _machine()

    machine.request_target(PartitionState.AWAY_ARMED)
    machine.handle_event(LcdText(text="READY"))

    assert machine.target is PartitionState.AWAY_ARMED
    assert machine.current is PartitionState.DISARMED


def test_lcd_text_updates_display_only():
    machine, _ = _machine()
    machine.handle_event(ArmedAway())

    changed = machine.handle_event(LcdText(text="ARMED ***AWAY***"))

    assert changed == (FIELD_DISPLAY,)
    assert machine.display == "ARMED ***AWAY***"
    assert machine.current is PartitionState.AWAY_ARMED


def test_failing_listener_does_not_block_others():
    machine, _ = _machine()
    seen: list[tuple[str, ...]] = []

    def _bad(changed: tuple[str, ...]) -> None:
        raise RuntimeError("boom")

    machine.add_listener(_bad)
    machine.add_listener(seen.append)

    machine.handle_event(ArmedNight())

    assert seen == [(FIELD_CURRENT, FIELD_TARGET)]


def test_removed_listener_is_not_called():
    machine, _ = _machine()
    seen: list[tuple[str, ...]] = []
    remove = machine.add_listener(seen.append)

    remove()
    machine.handle_event(ArmedAway())

    assert seen == []
