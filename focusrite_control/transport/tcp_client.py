"""Framed TCP client wrapper for FocusriteControlServer."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from ..errors import (
    FocusriteClientError,
    FocusriteProtocolError,
    FocusriteTransportError,
)
from .framing import FrameAssembler, encode_frame
from .tcp import DEFAULT_HOST, DEFAULT_PORT, open_tcp_connection

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator

_LOGGER = logging.getLogger(__name__)

READ_CHUNK_SIZE = 65536


class FocusriteTcpMessageType(Enum):
    """Normalized stream message types."""

    TEXT = "text"
    CLOSED = "closed"
    ERROR = "error"


@dataclass(frozen=True)
class FocusriteTcpMessage:
    """Normalized stream message.

    ``data`` holds the XML payload for TEXT messages; ``error`` holds the
    cause for ERROR messages.
    """

    type: FocusriteTcpMessageType
    data: str | None = None
    error: FocusriteClientError | None = None


class FocusriteTcpClient:
    """Wrapper around an asyncio stream speaking the length-prefixed protocol."""

    def __init__(self) -> None:
        self._reader: asyncio.StreamReader | None = None
        self._writer: asyncio.StreamWriter | None = None
        self._assembler = FrameAssembler()

    @property
    def is_open(self) -> bool:
        """Whether a stream is attached and not closing."""
        return self._writer is not None and not self._writer.is_closing()

    async def connect(
        self,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        *,
        timeout: float = 10.0,
    ) -> None:
        """Connect to the control server."""
        self._reader, self._writer = await open_tcp_connection(
            host,
            port,
            timeout=timeout,
        )
        self._assembler.reset()

    async def close(self) -> None:
        """Close the stream."""
        writer = self._writer
        self._writer = None
        self._reader = None
        if writer is None:
            return
        writer.close()
        try:
            await writer.wait_closed()
        except OSError as err:
            _LOGGER.debug("Error while closing stream: %s", err)

    async def send_payload(self, payload: str) -> None:
        """Frame and send one XML payload.

        Raises:
            FocusriteTransportError: If not connected or the write fails.
        """
        if self._writer is None:
            raise FocusriteTransportError("Stream is not connected")
        try:
            self._writer.write(encode_frame(payload))
            await self._writer.drain()
        except (OSError, RuntimeError) as err:
            raise FocusriteTransportError(f"Write failed: {err}") from err

    def __aiter__(self) -> AsyncIterator[FocusriteTcpMessage]:
        if self._reader is None:
            raise FocusriteTransportError("Stream is not connected")
        return self._iter_messages()

    async def _iter_messages(self) -> AsyncIterator[FocusriteTcpMessage]:
        reader = self._reader
        if reader is None:
            raise FocusriteTransportError("Stream is not connected")

        while True:
            try:
                chunk = await reader.read(READ_CHUNK_SIZE)
            except OSError as err:
                yield FocusriteTcpMessage(
                    FocusriteTcpMessageType.ERROR,
                    error=FocusriteTransportError(f"Read failed: {err}"),
                )
                break

            if not chunk:
                break

            for message in self._drain(chunk):
                yield message

        yield FocusriteTcpMessage(FocusriteTcpMessageType.CLOSED)

    def _drain(self, chunk: bytes) -> Iterator[FocusriteTcpMessage]:
        """Yield every frame the chunk completes, reporting bad frames.

        Frames already buffered behind a bad one are delivered without
        waiting for another read.
        """
        data = chunk
        while True:
            try:
                for payload in self._assembler.feed(data):
                    yield FocusriteTcpMessage(FocusriteTcpMessageType.TEXT, payload)
            except FocusriteProtocolError as err:
                yield FocusriteTcpMessage(FocusriteTcpMessageType.ERROR, error=err)
                data = b""
                continue
            return
