"""TCP helpers for FocusriteControlServer transport."""

from __future__ import annotations

import asyncio

from ..errors import FocusriteConnectError

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 49152


async def open_tcp_connection(
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
    *,
    timeout: float = 10.0,
) -> tuple[asyncio.StreamReader, asyncio.StreamWriter]:
    """Open a TCP connection to the control server.

    Args:
        host: Server host (the daemon listens on localhost by default)
        port: Server port
        timeout: Connection timeout in seconds

    Raises:
        FocusriteConnectError: If the connection times out or is refused.
    """
    try:
        return await asyncio.wait_for(
            asyncio.open_connection(host, port),
            timeout=timeout,
        )
    except TimeoutError as err:
        raise FocusriteConnectError(
            f"Connection to {host}:{port} timed out"
        ) from err
    except OSError as err:
        raise FocusriteConnectError(
            f"Connection to {host}:{port} failed: {err}"
        ) from err
