"""Device model mirrored from the control server."""

from __future__ import annotations

from dataclasses import dataclass, field

DEFAULT_MODE_VALUES: tuple[str, ...] = ("Mic", "Line")


@dataclass
class Item:
    """An addressable control or state value.

    Attributes:
        id: Server-assigned item id.
        path: Name of the nearest enclosing element.
        value: String-encoded value, None until known.
        name: Display name, defaults to the id.
        type: Server type tag, "unknown" when absent.
        min: Optional lower bound as sent by the server.
        max: Optional upper bound as sent by the server.
    """

    id: str
    path: str = ""
    value: str | None = None
    name: str = ""
    type: str = "unknown"
    min: str | None = None
    max: str | None = None

    def __post_init__(self) -> None:
        if not self.name:
            self.name = self.id


@dataclass
class HardwareInput:
    """A physical input channel and the item ids of its controls."""

    id: str
    name: str
    air: str | None = None
    mode: str | None = None
    mode_values: list[str] = field(default_factory=lambda: list(DEFAULT_MODE_VALUES))
    phantom: str | None = None
    pad: str | None = None
    hpf: str | None = None
    phase: str | None = None
    gain: str | None = None
    stereo: str | None = None


@dataclass
class MixInput:
    """One channel strip of a mix."""

    gain: str
    pan: str | None = None
    mute: str | None = None
    solo: str | None = None


@dataclass
class Mix:
    """A submix bus; ``inputs`` position is the channel index."""

    id: str
    name: str
    inputs: list[MixInput] = field(default_factory=list)
    meter: str | None = None


@dataclass
class Output:
    """A line output with volume and mute item ids."""

    id: str
    name: str
    volume: str | None = None
    mute: str | None = None
    monitor: bool = False


@dataclass
class Monitoring:
    """Monitor controls from the exclusive hardware-controls block."""

    gain: str | None = None
    dim: str | None = None
    mute: str | None = None


@dataclass
class InputSourceControl:
    """Mixer input routing: source selector item and its selected source id."""

    id: str
    value: str | None = None


@dataclass
class Device:
    """A device announced by the server."""

    id: str
    name: str = "Unknown"
    model: str = ""
    serial: str = ""
    items: dict[str, Item] = field(default_factory=dict)
    hardware_inputs: list[HardwareInput] = field(default_factory=list)
    mixes: list[Mix] = field(default_factory=list)
    outputs: list[Output] = field(default_factory=list)
    monitoring: Monitoring = field(default_factory=Monitoring)
    input_source_controls: list[InputSourceControl] = field(default_factory=list)
    source_names: dict[str, str] = field(default_factory=dict)

    def get_item_value(self, item_id: str) -> str | None:
        """Return the mirrored value of an item, or None if unknown."""
        item = self.items.get(item_id)
        return item.value if item is not None else None

    def __repr__(self) -> str:
        return (
            f"Device(id={self.id!r}, name={self.name!r}, "
            f"inputs={len(self.hardware_inputs)}, mixes={len(self.mixes)}, "
            f"outputs={len(self.outputs)})"
        )
