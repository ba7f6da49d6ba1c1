"""Transport layer for the Focusrite Control client.

This package contains all socket IO and wire framing.

Components:
- framing: Length-prefixed frame encoder and stream reassembly
- tcp: TCP connection helper
- tcp_client: Framed message iteration over a TCP stream
"""

from .framing import (
    HEADER_SIZE,
    MAX_PAYLOAD_SIZE,
    FrameAssembler,
    encode_frame,
)
from .tcp import DEFAULT_HOST, DEFAULT_PORT, open_tcp_connection
from .tcp_client import (
    FocusriteTcpClient,
    FocusriteTcpMessage,
    FocusriteTcpMessageType,
)

__all__ = [
    "DEFAULT_HOST",
    "DEFAULT_PORT",
    "HEADER_SIZE",
    "MAX_PAYLOAD_SIZE",
    "FocusriteTcpClient",
    "FocusriteTcpMessage",
    "FocusriteTcpMessageType",
    "FrameAssembler",
    "encode_frame",
    "open_tcp_connection",
]
