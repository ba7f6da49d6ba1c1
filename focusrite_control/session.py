"""High-level session manager for FocusriteControlServer communication.

This module provides the canonical API for applications that mirror and
control a Focusrite interface. It handles:
- Connection management and the client-details handshake
- Connection state machine (disconnected/connecting/connected/approved)
- Keepalive and fixed-delay reconnect
- Message routing into the device registry
- Optimistic local writes

Usage:
    session = FocusriteSession(FocusriteConfig(client_id=stored_id))
    session.on(SessionEvent.VALUE_CHANGED, my_value_handler)
    await session.connect()
    ...
    await session.set_value(device_id, item_id, "true")
    await session.disconnect()
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable
from enum import Enum
from typing import Any

from .config import FocusriteConfig
from .errors import (
    FocusriteClientError,
    FocusriteConnectError,
    FocusriteProtocolError,
    FocusriteTransportError,
)
from .models import Device
from .protocol import (
    build_client_details,
    build_device_subscribe,
    build_keep_alive,
    build_set,
    format_value,
)
from .registry import DeviceRegistry, short_source_label
from .router import MessageKind, RoutedMessage, removal_device_id, route
from .transport.tcp_client import FocusriteTcpClient, FocusriteTcpMessageType

_LOGGER = logging.getLogger(__name__)

_TRUE_VALUES = frozenset({"true", "1"})


class ConnectionState(Enum):
    """Connection lifecycle states."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    APPROVED = "approved"


class SessionEvent(Enum):
    """Events emitted by :class:`FocusriteSession`.

    Callback arguments:
        CONNECTED, DISCONNECTED, APPROVED: none
        ERROR: the :class:`FocusriteClientError`
        DEBUG: a message string
        DEVICE_ARRIVED: the :class:`Device`
        DEVICE_REMOVED: the device id
        VALUE_CHANGED: a :class:`ValueChange`
    """

    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    APPROVED = "approved"
    ERROR = "error"
    DEBUG = "debug"
    DEVICE_ARRIVED = "device-arrived"
    DEVICE_REMOVED = "device-removed"
    VALUE_CHANGED = "value-changed"


class FocusriteSession:
    """Client for one FocusriteControlServer connection."""

    def __init__(self, config: FocusriteConfig | None = None) -> None:
        """Initialize session.

        Args:
            config: Connection settings. A default config (localhost, fresh
                client id) is used when omitted; persist its ``client_id``
                to avoid re-approval on the next run.
        """
        self.config = config or FocusriteConfig()
        self._tag = f"{self.config.host}:{self.config.port}"

        # Connection state
        self._client: FocusriteTcpClient | None = None
        self._connection_state = ConnectionState.DISCONNECTED
        self._approved = False
        self._listen_task: asyncio.Task[None] | None = None
        self._reconnect_task: asyncio.Task[None] | None = None
        self._shutdown_requested = False

        # Keepalive
        self._ping_task: asyncio.Task[None] | None = None

        # Device mirror
        self._registry = DeviceRegistry()

        # Callbacks
        self._listeners: dict[SessionEvent, list[Callable[..., Any]]] = {
            event: [] for event in SessionEvent
        }
        self._callback_tasks: set[asyncio.Task[Any]] = set()

    # -------------------------------------------------------------------------
    # Public API: Connection Management
    # -------------------------------------------------------------------------

    async def connect(self) -> None:
        """Connect to the server and send the client-details handshake.

        Returns once the socket is connected. Approval arrives later as the
        APPROVED event.

        Raises:
            FocusriteConnectError: If the TCP connection cannot be opened.
        """
        self._shutdown_requested = False
        self._cancel_reconnect()
        await self._open_connection()

    async def disconnect(self) -> None:
        """Close the connection and stop all timers. Safe in any state."""
        _LOGGER.info("[%s] Disconnecting", self._tag)
        self._shutdown_requested = True
        was_connected = self._connection_state is not ConnectionState.DISCONNECTED

        self._cancel_reconnect()
        self._stop_keepalive()
        await self._teardown_client()

        self._approved = False
        self._set_state(ConnectionState.DISCONNECTED)
        if was_connected:
            self._emit(SessionEvent.DISCONNECTED)

    @property
    def connection_state(self) -> ConnectionState:
        """Get current connection state."""
        return self._connection_state

    @property
    def is_connected(self) -> bool:
        """Whether the socket is connected (approved or not)."""
        return self._connection_state in (
            ConnectionState.CONNECTED,
            ConnectionState.APPROVED,
        )

    @property
    def approved(self) -> bool:
        """Whether the server has approved this client.

        Writes sent before approval may be silently ignored by the server.
        """
        return self._approved

    # -------------------------------------------------------------------------
    # Public API: Callbacks
    # -------------------------------------------------------------------------

    def on(self, event: SessionEvent | str, callback: Callable[..., Any]) -> None:
        """Register a callback for an event.

        Callbacks run on the event loop; coroutine callbacks are scheduled as
        tasks. Exceptions raised by callbacks are logged and never reach the
        connection.
        """
        self._listeners[SessionEvent(event)].append(callback)

    def off(self, event: SessionEvent | str, callback: Callable[..., Any]) -> None:
        """Remove a previously registered callback."""
        listeners = self._listeners[SessionEvent(event)]
        if callback in listeners:
            listeners.remove(callback)

    # -------------------------------------------------------------------------
    # Public API: Device Mirror
    # -------------------------------------------------------------------------

    @property
    def registry(self) -> DeviceRegistry:
        return self._registry

    @property
    def devices(self) -> list[Device]:
        return self._registry.devices

    def get_device(self, device_id: str) -> Device | None:
        return self._registry.get_device(device_id)

    def get_item_value(self, device_id: str, item_id: str) -> str | None:
        return self._registry.get_item_value(device_id, item_id)

    def get_source_name(self, source_id: str) -> str | None:
        return self._registry.get_source_name(source_id)

    @staticmethod
    def short_source_label(source_name: str | None) -> str | None:
        return short_source_label(source_name)

    # -------------------------------------------------------------------------
    # Public API: Commands
    # -------------------------------------------------------------------------

    async def set_value(self, device_id: str, item_id: str, value: Any) -> bool:
        """Write a control value.

        The local mirror is updated before the command is sent, because the
        server does not guarantee an echo. A later server update for the
        same item overwrites the local value.

        Returns:
            True if the command was written to the socket.
        """
        text = format_value(value)
        self._registry.set_local_value(device_id, item_id, text)
        sent = await self._send(
            build_set(device_id=device_id, item_id=item_id, value=text)
        )
        self._debug(f"SET: device={device_id} item={item_id} value={text}")
        return sent

    async def toggle_value(self, device_id: str, item_id: str) -> bool:
        """Flip a boolean control; unknown items are treated as false."""
        current = self._registry.get_item_value(device_id, item_id)
        is_on = (current or "").lower() in _TRUE_VALUES
        return await self.set_value(device_id, item_id, "false" if is_on else "true")

    async def subscribe(self, device_id: str) -> bool:
        """Request the value stream for a device."""
        return await self._send(build_device_subscribe(device_id=device_id))

    # -------------------------------------------------------------------------
    # Internal: Connection State Machine
    # -------------------------------------------------------------------------

    def _set_state(self, state: ConnectionState) -> None:
        if self._connection_state is not state:
            _LOGGER.debug(
                "[%s] State: %s → %s",
                self._tag,
                self._connection_state.value,
                state.value,
            )
            self._connection_state = state

    async def _open_connection(self) -> None:
        if self._client is not None:
            self._stop_keepalive()
            await self._teardown_client()

        self._set_state(ConnectionState.CONNECTING)
        _LOGGER.info("[%s] Connecting", self._tag)

        client = FocusriteTcpClient()
        try:
            await client.connect(
                self.config.host,
                self.config.port,
                timeout=self.config.connect_timeout,
            )
        except FocusriteConnectError as err:
            _LOGGER.warning("[%s] Connection failed: %s", self._tag, err)
            self._set_state(ConnectionState.DISCONNECTED)
            self._emit(SessionEvent.ERROR, err)
            raise

        self._client = client
        self._approved = False
        self._set_state(ConnectionState.CONNECTED)
        _LOGGER.info("[%s] Connected, waiting for approval", self._tag)
        self._emit(SessionEvent.CONNECTED)

        await self._send(
            build_client_details(
                hostname=self.config.client_name,
                client_key=self.config.client_id,
            )
        )
        self._start_keepalive()
        self._listen_task = asyncio.create_task(self._listen(client))

    async def _teardown_client(self) -> None:
        """Cancel the listener and close the socket, if any."""
        listen_task = self._listen_task
        self._listen_task = None
        await self._cancel_task(listen_task)

        client = self._client
        self._client = None
        if client is not None:
            await client.close()

    async def _handle_close(self, client: FocusriteTcpClient) -> None:
        """Tear down after the server closed the stream."""
        if client is not self._client:
            return

        _LOGGER.info("[%s] Connection closed by server", self._tag)
        self._stop_keepalive()
        self._client = None
        self._listen_task = None
        await client.close()

        self._approved = False
        self._set_state(ConnectionState.DISCONNECTED)
        self._emit(SessionEvent.DISCONNECTED)
        self._schedule_reconnect()

    def _schedule_reconnect(self) -> None:
        """Schedule one reconnect attempt after the fixed delay."""
        if self._shutdown_requested or self._reconnect_task is not None:
            return

        delay = self.config.reconnect_delay
        _LOGGER.info("[%s] Reconnecting in %.1fs", self._tag, delay)
        self._reconnect_task = asyncio.create_task(self._reconnect_after_delay(delay))

    def _cancel_reconnect(self) -> None:
        task = self._reconnect_task
        self._reconnect_task = None
        if task is not None and task is not asyncio.current_task():
            task.cancel()

    async def _reconnect_after_delay(self, delay: float) -> None:
        failed = False
        try:
            await asyncio.sleep(delay)
            await self._open_connection()
        except FocusriteConnectError:
            failed = True
        except asyncio.CancelledError:
            _LOGGER.debug("[%s] Reconnect cancelled", self._tag)
            raise
        finally:
            if self._reconnect_task is asyncio.current_task():
                self._reconnect_task = None
        if failed:
            self._schedule_reconnect()

    @staticmethod
    async def _cancel_task(task: asyncio.Task[Any] | None) -> None:
        if task is None or task.done() or task is asyncio.current_task():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    # -------------------------------------------------------------------------
    # Internal: Message Listener
    # -------------------------------------------------------------------------

    async def _listen(self, client: FocusriteTcpClient) -> None:
        """Read frames until the stream closes."""
        message_count = 0
        try:
            async for message in client:
                if message.type is FocusriteTcpMessageType.TEXT:
                    message_count += 1
                    await self._handle_payload(message.data or "")
                elif message.type is FocusriteTcpMessageType.ERROR:
                    self._handle_stream_error(message.error)
                elif message.type is FocusriteTcpMessageType.CLOSED:
                    break
        except asyncio.CancelledError:
            _LOGGER.debug(
                "[%s] Listener cancelled (%d messages)", self._tag, message_count
            )
            raise
        except Exception as err:
            _LOGGER.exception("[%s] Unexpected listener error: %s", self._tag, err)

        await self._handle_close(client)

    def _handle_stream_error(self, error: FocusriteClientError | None) -> None:
        if isinstance(error, FocusriteProtocolError):
            _LOGGER.warning("[%s] Dropped malformed frame: %s", self._tag, error)
        else:
            _LOGGER.error("[%s] Socket error: %s", self._tag, error)
            if error is None:
                error = FocusriteTransportError("Unknown socket error")
        self._emit(SessionEvent.ERROR, error)

    async def _handle_payload(self, payload: str) -> None:
        """Route one payload; parse failures never end the connection."""
        try:
            message = route(payload)
            await self._dispatch(message, payload)
        except FocusriteProtocolError as err:
            _LOGGER.warning("[%s] Invalid message: %s", self._tag, err)
            self._emit(SessionEvent.ERROR, err)

    async def _dispatch(self, message: RoutedMessage, payload: str) -> None:
        kind = message.kind
        root = message.root

        if kind is MessageKind.SERVER_ANNOUNCEMENT:
            self._debug("Received server announcement")
        elif root is None or kind is MessageKind.UNKNOWN:
            self._debug(f"Unknown message: {payload[:100]}...")
        elif kind is MessageKind.DEVICE_ARRIVAL:
            for device in self._registry.apply_arrival(root):
                _LOGGER.info(
                    "[%s] Device arrived: %s (%s)", self._tag, device.name, device.id
                )
                self._emit(SessionEvent.DEVICE_ARRIVED, device)
                self._debug(
                    f"Device arrived: {device.name} ({device.id}) - "
                    f"{len(device.hardware_inputs)} inputs, "
                    f"{len(device.mixes)} mixes, {len(device.outputs)} outputs"
                )
                await self.subscribe(device.id)
        elif kind is MessageKind.DEVICE_REMOVAL:
            device_id = removal_device_id(root)
            self._registry.remove_device(device_id)
            _LOGGER.info("[%s] Device removed: %s", self._tag, device_id)
            self._emit(SessionEvent.DEVICE_REMOVED, device_id)
        elif kind is MessageKind.APPROVAL:
            self._approved = True
            self._set_state(ConnectionState.APPROVED)
            _LOGGER.info("[%s] Client approved", self._tag)
            self._emit(SessionEvent.APPROVED)
        elif kind is MessageKind.VALUE_UPDATE:
            for change in self._registry.apply_update(root):
                self._emit(SessionEvent.VALUE_CHANGED, change)

    # -------------------------------------------------------------------------
    # Internal: Sending
    # -------------------------------------------------------------------------

    async def _send(self, body: str) -> bool:
        """Send one message; failures are reported through the ERROR event."""
        client = self._client
        if client is None or not self.is_connected:
            _LOGGER.debug("[%s] Not connected, dropping %s", self._tag, body[:60])
            return False

        try:
            await client.send_payload(body)
            return True
        except FocusriteTransportError as err:
            _LOGGER.error("[%s] Failed to send: %s", self._tag, err)
            self._emit(SessionEvent.ERROR, err)
            return False

    # -------------------------------------------------------------------------
    # Internal: Keepalive
    # -------------------------------------------------------------------------

    def _start_keepalive(self) -> None:
        """Start the heartbeat, replacing any running one."""
        self._stop_keepalive()
        self._ping_task = asyncio.create_task(self._keepalive_loop())

    def _stop_keepalive(self) -> None:
        task = self._ping_task
        self._ping_task = None
        if task is not None and task is not asyncio.current_task():
            task.cancel()

    async def _keepalive_loop(self) -> None:
        try:
            while True:
                await asyncio.sleep(self.config.keepalive_interval)
                await self._send(build_keep_alive())
        except asyncio.CancelledError:
            _LOGGER.debug("[%s] Keepalive cancelled", self._tag)
            raise

    # -------------------------------------------------------------------------
    # Internal: Events
    # -------------------------------------------------------------------------

    def _debug(self, message: str) -> None:
        _LOGGER.debug("[%s] %s", self._tag, message)
        self._emit(SessionEvent.DEBUG, message)

    def _emit(self, event: SessionEvent, *args: Any) -> None:
        for callback in list(self._listeners[event]):
            try:
                result = callback(*args)
            except Exception as err:
                _LOGGER.exception(
                    "[%s] %s callback error: %s", self._tag, event.value, err
                )
                continue
            if inspect.iscoroutine(result):
                task = asyncio.ensure_future(result)
                self._callback_tasks.add(task)
                task.add_done_callback(self._callback_done)

    def _callback_done(self, task: asyncio.Task[Any]) -> None:
        self._callback_tasks.discard(task)
        if task.cancelled():
            return
        err = task.exception()
        if err is not None:
            _LOGGER.error("[%s] Async callback error: %s", self._tag, err)
