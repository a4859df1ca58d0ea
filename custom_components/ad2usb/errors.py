"""Exceptions raised by the ad2usb integration."""

from __future__ import annotations


class AD2USBError(Exception):
    """Base error for the ad2usb integration."""


class AD2USBConnectionError(AD2USBError):
    """Raised when the AD2USB socket cannot be opened."""

    def __init__(self, host: str, port: int, reason: str | None = None) -> None:
        self.host = host
        self.port = port
        self.reason = reason
        message = f"Unable to connect to AD2USB at {host}:{port}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
