"""AlarmDecoder-backed panel driver for the ad2usb integration."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
import contextlib
import logging
import threading
from typing import Any

from alarmdecoder import AlarmDecoder
from alarmdecoder.devices import SocketDevice
from alarmdecoder.util import CommError, NoDeviceError

from .const import RECONNECT_MAX_DELAY
from .errors import AD2USBConnectionError
from .events import (
    ArmedAway,
    ArmedNight,
    ArmedStay,
    ConnectionStateChanged,
    Disarmed,
    LcdText,
    PanelEvent,
    RfRaw,
)
from .states import PanelCommand

_LOGGER = logging.getLogger(__name__)

DriverEvent = PanelEvent | ConnectionStateChanged
DriverCallback = Callable[[DriverEvent], None]

# Ademco keypad sequences, prefixed with the user code.
KEYS_BY_COMMAND: dict[PanelCommand, str] = {
    PanelCommand.ARM_AWAY: "2",
    PanelCommand.ARM_STAY: "3",
    PanelCommand.ARM_NIGHT: "33",
    PanelCommand.DISARM: "1",
}


def _create_decoder(host: str, port: int) -> AlarmDecoder:
    """Return an AlarmDecoder bound to a ser2sock socket."""
    return AlarmDecoder(SocketDevice(interface=(host, port)))


def arm_event_for_message(message: Any) -> PanelEvent:
    """Derive the partition arm event a keypad message implies."""
    if getattr(message, "armed_away", False):
        return ArmedAway()
    if getattr(message, "armed_home", False):
        text = str(getattr(message, "text", "") or "")
        if "NIGHT" in text.upper() or getattr(message, "entry_delay_off", False):
            return ArmedNight()
        return ArmedStay()
    return Disarmed()


def rf_event_for_message(message: Any) -> RfRaw:
    """Translate an AlarmDecoder RFX message into RfRaw."""
    loops = list(getattr(message, "loop", None) or ())
    loops = (loops + [False] * 4)[:4]
    return RfRaw(
        serial=str(message.serial_number),
        supervision=bool(getattr(message, "supervision", False)),
        # AlarmDecoder flags a low battery; RfRaw carries battery health.
        battery=not bool(getattr(message, "battery", False)),
        loops=(bool(loops[0]), bool(loops[1]), bool(loops[2]), bool(loops[3])),
    )


class AD2USBDriver:
    """Own one AlarmDecoder connection and emit typed panel events.

    AlarmDecoder calls back on its reader thread; every event is handed to
    subscribers on the event loop.
    """

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        host: str,
        port: int,
        *,
        decoder_factory: Callable[[str, int], Any] | None = None,
    ) -> None:
        self._loop = loop
        self._host = host
        self._port = port
        self._decoder_factory = decoder_factory or _create_decoder
        self._decoder: Any | None = None
        self._connect_lock = asyncio.Lock()
        self._subscribers: list[DriverCallback] = []
        self._subscriber_lock = threading.Lock()
        self._subscriber_error_types: set[type] = set()
        self._last_arm_kind: str | None = None
        self._last_text: str | None = None
        self._stopping = False
        self._reconnect_task: asyncio.Task[None] | None = None
        self._reconnect_attempts = 0
        self._on_connected: Callable[[], None] | None = None

    @property
    def host(self) -> str:
        return self._host

    @property
    def port(self) -> int:
        return self._port

    @property
    def is_connected(self) -> bool:
        return self._decoder is not None

    def subscribe(self, callback: DriverCallback) -> Callable[[], None]:
        """Subscribe to driver events; returns an unsubscribe callable."""
        with self._subscriber_lock:
            if callback not in self._subscribers:
                self._subscribers.append(callback)
        return lambda: self.unsubscribe(callback)

    def unsubscribe(self, callback: DriverCallback) -> bool:
        with self._subscriber_lock:
            if callback not in self._subscribers:
                return False
            self._subscribers.remove(callback)
        return True

    async def async_connect(
        self, on_connected: Callable[[], None] | None = None
    ) -> None:
        """Open the socket and start delivering events."""
        self._stopping = False
        if on_connected is not None:
            self._on_connected = on_connected
        _LOGGER.info(
            "Attempting connection to %s on port %s...", self._host, self._port
        )
        await self._async_connect()

    async def _async_connect(self) -> None:
        async with self._connect_lock:
            await self._async_close_decoder()
            decoder = self._decoder_factory(self._host, self._port)
            decoder.on_message += self._handle_message
            decoder.on_rfx_message += self._handle_rfx_message
            decoder.on_close += self._handle_close
            try:
                await self._loop.run_in_executor(None, decoder.open)
            except (NoDeviceError, CommError, OSError) as err:
                self._detach(decoder)
                raise AD2USBConnectionError(self._host, self._port, str(err)) from err
            self._decoder = decoder
            self._last_arm_kind = None
            self._last_text = None
        _LOGGER.info("Connected to AD2USB service")
        self._emit(ConnectionStateChanged(connected=True))
        if self._on_connected is not None:
            self._on_connected()

    async def async_disconnect(self) -> None:
        """Close the socket and stop reconnecting."""
        self._stopping = True
        if self._reconnect_task is not None:
            self._reconnect_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._reconnect_task
            self._reconnect_task = None
        async with self._connect_lock:
            await self._async_close_decoder()

    async def _async_close_decoder(self) -> None:
        decoder = self._decoder
        if decoder is None:
            return
        self._decoder = None
        self._detach(decoder)
        await self._loop.run_in_executor(None, decoder.close)

    def _detach(self, decoder: Any) -> None:
        decoder.on_message -= self._handle_message
        decoder.on_rfx_message -= self._handle_rfx_message
        decoder.on_close -= self._handle_close

    # --- commands (fire and forget) ---

    def arm_away(self, pin: str) -> None:
        self.send_command(PanelCommand.ARM_AWAY, pin)

    def arm_stay(self, pin: str) -> None:
        self.send_command(PanelCommand.ARM_STAY, pin)

    def arm_night(self, pin: str) -> None:
        self.send_command(PanelCommand.ARM_NIGHT, pin)

    def disarm(self, pin: str) -> None:
        self.send_command(PanelCommand.DISARM, pin)

    def send_command(self, command: PanelCommand, pin: str) -> None:
        """Write the keypad sequence for command.

        Blocking; run it in an executor. Confirmation, if any, arrives later as
        an ordinary panel event, so nothing is awaited or retried here.
        """
        decoder = self._decoder
        if decoder is None:
            _LOGGER.warning("Dropping %s: panel is not connected", command.value)
            return
        try:
            decoder.send(f"{pin}{KEYS_BY_COMMAND[command]}")
        except (CommError, OSError) as err:
            _LOGGER.error("Failed to send %s to the panel: %s", command.value, err)

    # --- AlarmDecoder callbacks (reader thread) ---

    def _handle_message(self, sender: Any, message: Any = None, **kwargs: Any) -> None:
        if message is None:
            return
        self._loop.call_soon_threadsafe(self._process_message, message)

    def _handle_rfx_message(
        self, sender: Any, message: Any = None, **kwargs: Any
    ) -> None:
        if message is None:
            return
        try:
            event = rf_event_for_message(message)
        except (AttributeError, TypeError, ValueError) as err:
            _LOGGER.debug("Ignoring malformed RFX message: %s", err)
            return
        self._loop.call_soon_threadsafe(self._emit, event)

    def _handle_close(self, sender: Any = None, **kwargs: Any) -> None:
        self._loop.call_soon_threadsafe(self._connection_closed)

    # --- event loop side ---

    def _process_message(self, message: Any) -> None:
        """Emit arm and display events only when they change."""
        arm_event = arm_event_for_message(message)
        if arm_event.kind != self._last_arm_kind:
            self._last_arm_kind = arm_event.kind
            self._emit(arm_event)
        text = getattr(message, "text", None)
        if isinstance(text, str) and text != self._last_text:
            self._last_text = text
            self._emit(LcdText(text=text))

    def _connection_closed(self) -> None:
        decoder = self._decoder
        if decoder is None:
            return
        self._decoder = None
        self._detach(decoder)
        _LOGGER.info("Panel connection lost")
        self._emit(ConnectionStateChanged(connected=False, reason="closed"))
        self._schedule_reconnect(decoder)

    def _schedule_reconnect(self, stale: Any | None = None) -> None:
        if self._stopping:
            return
        if self._reconnect_task is not None and not self._reconnect_task.done():
            return
        _LOGGER.debug("Creating reconnect task")
        self._reconnect_task = self._loop.create_task(
            self._async_reconnect_loop(stale)
        )

    async def _async_reconnect_loop(self, stale: Any | None = None) -> None:
        """Reconnect with exponential backoff until successful or stopped."""
        if stale is not None:
            await self._loop.run_in_executor(None, stale.close)
        while not self._stopping:
            self._reconnect_attempts += 1
            delay = min(RECONNECT_MAX_DELAY, 2**self._reconnect_attempts)
            _LOGGER.debug(
                "Reconnect attempt %s sleeping for %s seconds",
                self._reconnect_attempts,
                delay,
            )
            await asyncio.sleep(delay)
            if self._stopping:
                return
            try:
                await self._async_connect()
            except AD2USBConnectionError as err:
                _LOGGER.debug("Reconnect attempt failed: %s", err)
            else:
                self._reconnect_attempts = 0
                return

    def _emit(self, event: DriverEvent) -> None:
        with self._subscriber_lock:
            callbacks = list(self._subscribers)
        for cb in callbacks:
            try:
                cb(event)
            except Exception as exc:  # noqa: BLE001
                exc_type = type(exc)
                if exc_type not in self._subscriber_error_types:
                    self._subscriber_error_types.add(exc_type)
                    _LOGGER.warning("Subscriber callback failed: %s", exc_type.__name__)
