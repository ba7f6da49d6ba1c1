"""Live device registry and value synchronization.

The registry is the single owner of the mirrored device and item maps.
It is only mutated from the session's listener task or from synchronous
caller writes on the same event loop.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .device_parser import parse_arrival
from .errors import FocusriteProtocolError
from .models import Device, Item
from .xmldoc import Element

_LOGGER = logging.getLogger(__name__)

_SHORT_LABELS: tuple[tuple[str, str], ...] = (
    ("Analogue ", "An"),
    ("Playback ", "Pb"),
    ("S/PDIF ", "SP"),
    ("SPDIF ", "SP"),
    ("ADAT ", "AD"),
    ("Loopback ", "Lb"),
)


@dataclass(frozen=True)
class ValueChange:
    """A value reported for one item."""

    device_id: str
    item_id: str
    value: str | None


def short_source_label(source_name: str | None) -> str | None:
    """Abbreviate a source name for compact labels.

    "Analogue 1" becomes "An1", "Playback 3" becomes "Pb3". Each prefix is
    replaced once, then the first remaining space is removed.
    """
    if not source_name:
        return None
    label = source_name
    for prefix, short in _SHORT_LABELS:
        label = label.replace(prefix, short, 1)
    return label.replace(" ", "", 1)


class DeviceRegistry:
    """Mirror of every device announced by the server."""

    def __init__(self) -> None:
        self._devices: dict[str, Device] = {}
        self._source_names: dict[str, str] = {}

    @property
    def devices(self) -> list[Device]:
        """Registered devices in arrival order."""
        return list(self._devices.values())

    def get_device(self, device_id: str) -> Device | None:
        return self._devices.get(device_id)

    def get_item_value(self, device_id: str, item_id: str) -> str | None:
        device = self._devices.get(device_id)
        if device is None:
            return None
        return device.get_item_value(item_id)

    def get_source_name(self, source_id: str) -> str | None:
        return self._source_names.get(source_id)

    @property
    def source_names(self) -> dict[str, str]:
        """Source id to name table from the most recent arrival."""
        return dict(self._source_names)

    def clear(self) -> None:
        self._devices.clear()
        self._source_names.clear()

    # -------------------------------------------------------------------------
    # Inbound payloads
    # -------------------------------------------------------------------------

    def apply_arrival(self, root: Element) -> list[Device]:
        """Register every device in an arrival payload.

        A device whose id is already registered is replaced, never merged.
        The source-name table is rebuilt from the arriving devices.
        """
        devices = parse_arrival(root)
        if not devices:
            raise FocusriteProtocolError("Device arrival contains no usable device")

        self._source_names = {}
        for device in devices:
            self._source_names.update(device.source_names)
            if device.id in self._devices:
                _LOGGER.debug("Replacing device %s", device.id)
                # Re-inserting keeps arrival order meaningful.
                del self._devices[device.id]
            self._devices[device.id] = device
        return devices

    def remove_device(self, device_id: str) -> Device | None:
        return self._devices.pop(device_id, None)

    def apply_update(self, root: Element) -> list[ValueChange]:
        """Apply a value-update payload.

        Returns one change per reported item, whether or not the device or
        item was known beforehand.

        Raises:
            FocusriteProtocolError: If the payload carries no device id.
        """
        device_id = root.get("devid")
        if not device_id:
            raise FocusriteProtocolError("Value update carries no devid")

        elements = [root] if root.name == "item" else list(root.children_named("item"))
        changes: list[ValueChange] = []
        for element in elements:
            item_id = element.get("id")
            if not item_id:
                _LOGGER.debug("Skipping item without id in update for %s", device_id)
                continue
            value = element.get("value")
            self._store(device_id, item_id, value)
            changes.append(ValueChange(device_id, item_id, value))
        return changes

    # -------------------------------------------------------------------------
    # Local writes
    # -------------------------------------------------------------------------

    def set_local_value(self, device_id: str, item_id: str, value: str) -> bool:
        """Apply an optimistic write to the mirror.

        A later authoritative update for the same item overwrites it.

        Returns:
            True if the device is registered.
        """
        return self._store(device_id, item_id, value)

    def _store(self, device_id: str, item_id: str, value: str | None) -> bool:
        device = self._devices.get(device_id)
        if device is None:
            return False
        item = device.items.get(item_id)
        if item is None:
            device.items[item_id] = Item(id=item_id, value=value)
        else:
            item.value = value
        return True
