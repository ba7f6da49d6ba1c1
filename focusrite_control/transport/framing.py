"""Length-prefixed framing for the FocusriteControlServer TCP stream.

Every message on the wire is::

    Length=XXXXXX <payload>

where ``XXXXXX`` is the payload size in bytes as six uppercase hex digits,
followed by a single space and exactly that many UTF-8 bytes. Messages are
sent back-to-back with no terminator.
"""

from __future__ import annotations

import re
from collections.abc import Iterator

from ..errors import FocusriteProtocolError

HEADER_PREFIX = b"Length="
HEADER_SIZE = len(HEADER_PREFIX) + 6 + 1
MAX_PAYLOAD_SIZE = 0xFFFFFF

_HEADER_RE = re.compile(rb"Length=([0-9A-Fa-f]{6}) ")


def encode_frame(payload: str) -> bytes:
    """Wrap an XML body in a length-prefixed frame.

    Args:
        payload: XML body to send.

    Returns:
        Header and UTF-8 encoded body, ready for a single socket write.

    Raises:
        ValueError: If the encoded body exceeds ``MAX_PAYLOAD_SIZE`` bytes.
    """
    body = payload.encode("utf-8")
    if len(body) > MAX_PAYLOAD_SIZE:
        raise ValueError(
            f"Payload must be at most {MAX_PAYLOAD_SIZE} bytes, got {len(body)}"
        )
    return b"%s%06X %s" % (HEADER_PREFIX, len(body), body)


class FrameAssembler:
    """Reassemble payloads from arbitrarily chunked socket reads.

    Usage::

        assembler = FrameAssembler()
        for payload in assembler.feed(chunk):
            handle(payload)
    """

    def __init__(self) -> None:
        self._buffer = bytearray()

    @property
    def pending(self) -> int:
        """Number of buffered bytes not yet forming a complete frame."""
        return len(self._buffer)

    def reset(self) -> None:
        """Drop any partially received frame."""
        self._buffer.clear()

    def feed(self, chunk: bytes) -> Iterator[str]:
        """Append a chunk and iterate over every payload it completes, in order.

        Payloads completed before a bad frame are still yielded. After an
        error, ``feed(b"")`` resumes draining whatever is still buffered.

        Raises:
            FocusriteProtocolError: If the buffer does not start with a valid
                header, or a payload is not valid UTF-8. The offending bytes
                are discarded so the next read starts clean.
        """
        self._buffer.extend(chunk)
        return self._drain()

    def _drain(self) -> Iterator[str]:
        while len(self._buffer) >= HEADER_SIZE:
            match = _HEADER_RE.match(self._buffer, 0, HEADER_SIZE)
            if match is None:
                garbage = bytes(self._buffer[:HEADER_SIZE])
                self._buffer.clear()
                raise FocusriteProtocolError(f"Invalid frame header: {garbage!r}")

            length = int(match.group(1), 16)
            end = HEADER_SIZE + length
            if len(self._buffer) < end:
                break

            raw = bytes(self._buffer[HEADER_SIZE:end])
            del self._buffer[:end]
            try:
                payload = raw.decode("utf-8")
            except UnicodeDecodeError as err:
                raise FocusriteProtocolError(
                    "Frame payload is not valid UTF-8"
                ) from err
            yield payload
