"""Client for the Focusrite Control server protocol.

Mirrors the device tree of Focusrite interfaces and writes control values
over the server's length-prefixed XML TCP protocol.
"""

__version__ = "0.1.0"

from .config import FocusriteConfig, generate_client_id, load_config, save_config
from .controls import DeviceControls, pan_to_device, select_device
from .errors import (
    FocusriteClientError,
    FocusriteConnectError,
    FocusriteMissingControl,
    FocusriteProtocolError,
    FocusriteTransportError,
)
from .models import (
    Device,
    HardwareInput,
    InputSourceControl,
    Item,
    Mix,
    MixInput,
    Monitoring,
    Output,
)
from .protocol import (
    build_client_details,
    build_device_subscribe,
    build_keep_alive,
    build_set,
)
from .registry import DeviceRegistry, ValueChange, short_source_label
from .session import ConnectionState, FocusriteSession, SessionEvent

__all__ = [
    "ConnectionState",
    "Device",
    "DeviceControls",
    "DeviceRegistry",
    "FocusriteClientError",
    "FocusriteConfig",
    "FocusriteConnectError",
    "FocusriteMissingControl",
    "FocusriteProtocolError",
    "FocusriteSession",
    "FocusriteTransportError",
    "HardwareInput",
    "InputSourceControl",
    "Item",
    "Mix",
    "MixInput",
    "Monitoring",
    "Output",
    "SessionEvent",
    "ValueChange",
    "__version__",
    "build_client_details",
    "build_device_subscribe",
    "build_keep_alive",
    "build_set",
    "generate_client_id",
    "load_config",
    "pan_to_device",
    "save_config",
    "select_device",
    "short_source_label",
]
