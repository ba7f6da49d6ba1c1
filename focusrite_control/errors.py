"""Client error types for FocusriteControlServer interactions."""

from __future__ import annotations


class FocusriteClientError(Exception):
    """Base error for Focusrite Control client failures."""


class FocusriteConnectError(FocusriteClientError):
    """TCP connection to the control server failed or timed out."""


class FocusriteTransportError(FocusriteClientError):
    """Socket error after the connection was established."""


class FocusriteProtocolError(FocusriteClientError):
    """Malformed or unexpected payload received from the server."""

    def __init__(self, message: str, payload: str | None = None) -> None:
        super().__init__(message)
        self.payload = payload


class FocusriteMissingControl(FocusriteClientError):
    """Requested control has no mapping on the current device."""

    def __init__(self, control: str, message: str) -> None:
        super().__init__(message)
        self.control = control
