"""Outbound command builders for the FocusriteControlServer protocol.

Each builder returns the XML body of one message; framing is applied by
the transport when the body is written to the socket.
"""

from __future__ import annotations

from typing import Any
from xml.sax.saxutils import escape

_ATTR_ENTITIES = {'"': "&quot;"}


def _attr(value: Any) -> str:
    """Render a value as an escaped, double-quoted attribute value."""
    return '"' + escape(format_value(value), _ATTR_ENTITIES) + '"'


def format_value(value: Any) -> str:
    """Stringify a value for the wire.

    Booleans use the server's lowercase spelling; everything else is sent
    as ``str(value)`` with no further coercion.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_client_details(*, hostname: str, client_key: str) -> str:
    """Construct the client-details handshake.

    The server remembers approved clients by ``client_key``; reusing the
    same key across restarts avoids a new approval prompt.
    """
    return f"<client-details hostname={_attr(hostname)} client-key={_attr(client_key)}/>"


def build_keep_alive() -> str:
    """Construct a keep-alive heartbeat."""
    return "<keep-alive/>"


def build_device_subscribe(*, device_id: str) -> str:
    """Construct a subscription request for a device's value stream."""
    return f"<device-subscribe devid={_attr(device_id)}/>"


def build_set(*, device_id: str, item_id: str, value: Any) -> str:
    """Construct a single-item set command."""
    return (
        f"<set devid={_attr(device_id)}>"
        f"<item id={_attr(item_id)} value={_attr(value)}/>"
        "</set>"
    )
