"""Client configuration.

The client id is the only state that must survive restarts: the server
remembers approved clients by it. Callers own its persistence; this module
only loads and saves it alongside the connection settings.
"""

from __future__ import annotations

import dataclasses
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .transport.tcp import DEFAULT_HOST, DEFAULT_PORT

DEFAULT_CLIENT_NAME = "focusrite-control"
DEFAULT_KEEPALIVE_INTERVAL = 3.0
DEFAULT_RECONNECT_DELAY = 5.0
DEFAULT_CONNECT_TIMEOUT = 10.0


def generate_client_id() -> str:
    """Return a fresh client id."""
    return str(uuid.uuid4())


@dataclass(frozen=True)
class FocusriteConfig:
    """Connection settings for a session.

    Attributes:
        host: Control server host.
        port: Control server port.
        client_name: Host label shown in the server's approval prompt.
        client_id: Persistent client key.
        keepalive_interval: Heartbeat period (seconds).
        reconnect_delay: Fixed delay before reconnecting (seconds).
        connect_timeout: TCP connect timeout (seconds).
    """

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    client_name: str = DEFAULT_CLIENT_NAME
    client_id: str = field(default_factory=generate_client_id)
    keepalive_interval: float = DEFAULT_KEEPALIVE_INTERVAL
    reconnect_delay: float = DEFAULT_RECONNECT_DELAY
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT

    def __post_init__(self) -> None:
        if not 1 <= self.port <= 65535:
            raise ValueError(f"Port must be 1-65535, got {self.port}")
        for name in ("keepalive_interval", "reconnect_delay", "connect_timeout"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        if not self.client_id:
            raise ValueError("client_id must not be empty")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FocusriteConfig:
        """Build a config from a mapping, ignoring unknown keys."""
        known = {f.name for f in dataclasses.fields(cls)}
        values = {k: v for k, v in data.items() if k in known and v is not None}
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)


def load_config(path: str | Path) -> FocusriteConfig:
    """Load a config from a YAML file.

    A missing file or a file without ``client_id`` yields a fresh id; save
    the returned config to keep it.

    Raises:
        ValueError: If the file is not a YAML mapping or holds invalid values.
    """
    path = Path(path)
    if not path.exists():
        return FocusriteConfig()

    with path.open(encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        return FocusriteConfig()
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    return FocusriteConfig.from_dict(data)


def save_config(config: FocusriteConfig, path: str | Path) -> None:
    """Write a config to a YAML file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(config.to_dict(), f, sort_keys=False)
