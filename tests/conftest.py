"""Global fixtures for the AD2USB integration."""

from __future__ import annotations

from collections.abc import Generator
from types import SimpleNamespace
from typing import Any
from unittest.mock import patch

import pytest

pytest_plugins = "pytest_homeassistant_custom_component"


@pytest.fixture(autouse=True)
def auto_enable_custom_integrations(enable_custom_integrations: Any) -> None:  # noqa: D103
    return


class FakeEvent:
    """Stand-in for an AlarmDecoder event slot supporting += and -=."""

    def __init__(self) -> None:
        self.handlers: list[Any] = []

    def __iadd__(self, handler: Any) -> FakeEvent:
        self.handlers.append(handler)
        return self

    def __isub__(self, handler: Any) -> FakeEvent:
        if handler in self.handlers:
            self.handlers.remove(handler)
        return self

    def fire(self, sender: Any, **kwargs: Any) -> None:
        for handler in list(self.handlers):
            handler(sender, **kwargs)


class FakeAlarmDecoder:
    """Records what the driver does with an AlarmDecoder."""

    def __init__(self, host: str, port: int) -> None:
        self.host = host
        self.port = port
        self.on_message = FakeEvent()
        self.on_rfx_message = FakeEvent()
        self.on_close = FakeEvent()
        self.open_error: BaseException | None = None
        self.opened = False
        self.sent: list[str] = []

    def open(self) -> FakeAlarmDecoder:
        if self.open_error is not None:
            raise self.open_error
        self.opened = True
        return self

    def close(self) -> None:
        self.opened = False

    def send(self, data: str) -> None:
        self.sent.append(data)

    def fire_message(self, text: str = "", **flags: Any) -> None:
        message = SimpleNamespace(
            text=text,
            armed_away=flags.get("armed_away", False),
            armed_home=flags.get("armed_home", False),
            entry_delay_off=flags.get("entry_delay_off", False),
        )
        self.on_message.fire(self, message=message)

    def fire_rfx(
        self,
        serial: str,
        loops: tuple[bool, bool, bool, bool],
        *,
        battery_low: bool = False,
        supervision: bool = False,
    ) -> None:
        message = SimpleNamespace(
            serial_number=serial,
            value=0,
            battery=battery_low,
            supervision=supervision,
            loop=list(loops),
        )
        self.on_rfx_message.fire(self, message=message)

    def fire_close(self) -> None:
        self.on_close.fire(self)


class FakeDecoderFactory:
    """Creates FakeAlarmDecoder instances and remembers them."""

    def __init__(self) -> None:
        self.created: list[FakeAlarmDecoder] = []
        self.open_error: BaseException | None = None

    def __call__(self, host: str, port: int) -> FakeAlarmDecoder:
        decoder = FakeAlarmDecoder(host, port)
        decoder.open_error = self.open_error
        self.created.append(decoder)
        return decoder

    @property
    def last(self) -> FakeAlarmDecoder:
        return self.created[-1]


@pytest.fixture
def decoder_factory() -> Generator[FakeDecoderFactory]:
    """Patch the driver so it builds fake decoders instead of opening sockets."""
    factory = FakeDecoderFactory()
    with patch("custom_components.ad2usb.driver._create_decoder", factory):
        yield factory
