"""Build :class:`Device` models from device-arrival payloads.

The server describes each device as one large XML tree. Two passes are
made over it:

- a generic walk that flattens every ``item`` element into the device's
  item map, recording only the name of the nearest enclosing element as
  the item's path;
- scoped structural extraction that derives hardware inputs, mixes,
  outputs, monitoring controls and mixer input routing from explicit
  subtrees (for example, outputs are only read inside ``outputs``).
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator

from .errors import FocusriteProtocolError
from .models import (
    DEFAULT_MODE_VALUES,
    Device,
    HardwareInput,
    InputSourceControl,
    Item,
    Mix,
    MixInput,
    Monitoring,
    Output,
)
from .xmldoc import Element

_LOGGER = logging.getLogger(__name__)

SOURCE_CATEGORIES: tuple[str, ...] = ("analogue", "playback", "spdif", "adat", "loopback")

_TRUE_VALUES = frozenset({"true", "1"})


def _named(element: Element) -> str | None:
    """Return the element's non-blank name attribute."""
    name = element.get("name")
    if name is None or not name.strip():
        return None
    return name


def _is_mix(element: Element) -> bool:
    return element.name == "mix"


def _is_outputs(element: Element) -> bool:
    return element.name == "outputs"


def _is_input_block(element: Element) -> bool:
    return element.name == "input"


def device_elements(root: Element) -> list[Element]:
    """Return the device elements of an arrival payload."""
    if root.name == "device":
        return [root]
    if root.name == "device-arrival":
        return list(root.children_named("device"))
    return []


def parse_device(element: Element) -> Device:
    """Build a device model from one ``device`` element."""
    device_id = element.get("id")
    if not device_id:
        raise FocusriteProtocolError("Device element has no id")

    device = Device(
        id=device_id,
        name=element.get("name") or "Unknown",
        model=element.get("model") or "",
        serial=element.get("serial") or "",
    )

    _collect_items(element, device.items)
    device.hardware_inputs = parse_hardware_inputs(element)
    device.source_names = parse_source_names(element)
    device.input_source_controls = parse_input_source_controls(element)
    device.outputs = parse_outputs(element)
    device.monitoring = parse_monitoring(element)
    device.mixes = parse_mixes(element)
    _register_controls(element, device)

    _LOGGER.debug(
        "Parsed device %s (%s): %d items, %d inputs, %d mixes, %d outputs",
        device.name,
        device.id,
        len(device.items),
        len(device.hardware_inputs),
        len(device.mixes),
        len(device.outputs),
    )
    return device


def parse_arrival(root: Element) -> list[Device]:
    """Build every device announced by an arrival payload.

    Device elements that cannot be parsed are logged and skipped so that
    their siblings still register.
    """
    devices: list[Device] = []
    for element in device_elements(root):
        try:
            devices.append(parse_device(element))
        except FocusriteProtocolError as err:
            _LOGGER.warning("Skipping device element: %s", err)
    return devices


# -----------------------------------------------------------------------------
# Generic item walk
# -----------------------------------------------------------------------------


def _walk_with_parent(
    root: Element,
    *,
    prune: Callable[[Element], bool] | None = None,
) -> Iterator[tuple[Element, Element]]:
    """Like :meth:`Element.walk`, pairing each element with its parent."""
    stack = [(root, root.elements)]
    while stack:
        parent, children = stack[-1]
        child = next(children, None)
        if child is None:
            stack.pop()
            continue
        yield child, parent
        if prune is None or not prune(child):
            stack.append((child, child.elements))


def _is_item(element: Element) -> bool:
    return element.name == "item"


def _collect_items(device: Element, items: dict[str, Item]) -> None:
    # Only the nearest container name is kept as the path, not the full chain.
    for child, parent in _walk_with_parent(device, prune=_is_item):
        if child.name != "item":
            continue
        item_id = child.get("id")
        if not item_id:
            continue
        items[item_id] = Item(
            id=item_id,
            path=item_id if parent is device else parent.name,
            value=child.get("value"),
            name=child.get("name") or item_id,
            type=child.get("type") or "unknown",
            min=child.get("min"),
            max=child.get("max"),
        )


# -----------------------------------------------------------------------------
# Structural extraction
# -----------------------------------------------------------------------------


def parse_hardware_inputs(device: Element) -> list[HardwareInput]:
    """Extract analogue inputs and their control ids, in document order."""
    inputs: list[HardwareInput] = []
    for block in device.iter_named("analogue", prune=_is_outputs):
        block_id = block.get("id")
        name = _named(block)
        if not block_id or name is None:
            continue
        if "-" in name or "Monitor" in name:
            continue

        hw_input = HardwareInput(
            id=block_id,
            name=name,
            air=block.first_id("air"),
            phantom=block.first_id("phantom"),
            pad=block.first_id("pad"),
            hpf=block.first_id("highpass", "hpf"),
            phase=block.first_id("polarity", "phase"),
            gain=block.first_id("gain"),
            stereo=block.first_id("stereolink", "stereo"),
        )

        mode = next(
            (el for el in block.iter_named("mode") if el.get("id")),
            None,
        )
        if mode is not None:
            hw_input.mode = mode.get("id")
            values: list[str] = []
            for enum in mode.iter_named("enum"):
                value = enum.get("value")
                if value and value not in values:
                    values.append(value)
            hw_input.mode_values = values or list(DEFAULT_MODE_VALUES)

        inputs.append(hw_input)
    return inputs


def parse_source_names(device: Element) -> dict[str, str]:
    """Build the source id to display name table."""
    names: dict[str, str] = {}
    for category in SOURCE_CATEGORIES:
        for element in device.iter_named(category):
            source_id = element.get("id")
            name = _named(element)
            if source_id and name is not None:
                names[source_id] = name
    return names


def parse_input_source_controls(device: Element) -> list[InputSourceControl]:
    """Extract mixer input routing selectors outside of individual mixes."""
    controls: list[InputSourceControl] = []
    for section in device.iter_named("inputs", prune=_is_mix):
        for block in section.children_named("input"):
            source = block.find_first("source")
            if source is None:
                continue
            source_id = source.get("id")
            if not source_id:
                continue
            controls.append(
                InputSourceControl(id=source_id, value=source.get("value"))
            )
    return controls


def parse_outputs(device: Element) -> list[Output]:
    """Extract line outputs strictly inside the outputs section."""
    section = device.find_first("outputs")
    if section is None:
        return []

    outputs: list[Output] = []
    for block in section.iter_named("analogue"):
        block_id = block.get("id")
        name = _named(block)
        if not block_id or name is None:
            continue

        output = Output(
            id=block_id,
            name=name,
            volume=block.first_id("gain"),
            mute=block.first_id("mute"),
            monitor=(block.get("monitor") or "").lower() in _TRUE_VALUES,
        )
        if output.volume or output.mute:
            outputs.append(output)
    return outputs


def _is_exclusive(element: Element) -> bool:
    return any(
        "exclusive" in key or "exclusive" in value
        for key, value in element.attributes.items()
    )


def parse_monitoring(device: Element) -> Monitoring:
    """Extract monitor gain/dim/mute from the exclusive hardware controls."""
    monitoring = Monitoring()
    section = device.find_first("monitoring")
    if section is None:
        return monitoring

    controls = next(
        (el for el in section.iter_named("hardware-controls") if _is_exclusive(el)),
        None,
    )
    if controls is None:
        return monitoring

    monitoring.gain = controls.first_id("gain")
    monitoring.dim = controls.first_id("dim")
    monitoring.mute = controls.first_id("mute")
    return monitoring


def parse_mixes(device: Element) -> list[Mix]:
    """Extract named mixes and their channel strips in document order."""
    mixes: list[Mix] = []
    for block in device.iter_named("mix"):
        mix_id = block.get("id")
        name = _named(block)
        if not mix_id or name is None:
            continue

        mix = Mix(id=mix_id, name=name, meter=block.first_id("meter"))
        for strip in block.iter_named("input", prune=_is_input_block):
            gain = strip.first_id("gain")
            if gain is None:
                continue
            mix.inputs.append(
                MixInput(
                    gain=gain,
                    pan=strip.first_id("pan"),
                    mute=strip.first_id("mute"),
                    solo=strip.first_id("solo"),
                )
            )
        mixes.append(mix)
    return mixes


# -----------------------------------------------------------------------------
# Control registration
# -----------------------------------------------------------------------------


def _referenced_ids(device: Device) -> list[str]:
    ids: list[str | None] = []
    for hw_input in device.hardware_inputs:
        ids.extend(
            (
                hw_input.air,
                hw_input.mode,
                hw_input.phantom,
                hw_input.pad,
                hw_input.hpf,
                hw_input.phase,
                hw_input.gain,
                hw_input.stereo,
            )
        )
    for mix in device.mixes:
        ids.append(mix.meter)
        for strip in mix.inputs:
            ids.extend((strip.gain, strip.pan, strip.mute, strip.solo))
    for output in device.outputs:
        ids.extend((output.volume, output.mute))
    monitoring = device.monitoring
    ids.extend((monitoring.gain, monitoring.dim, monitoring.mute))
    ids.extend(control.id for control in device.input_source_controls)
    return [item_id for item_id in ids if item_id]


def _index_elements(element: Element) -> dict[str, tuple[Element, str]]:
    """Map each descendant id to its first element and that element's parent name."""
    index: dict[str, tuple[Element, str]] = {}
    for child, parent in _walk_with_parent(element):
        child_id = child.get("id")
        if child_id and child_id not in index:
            index[child_id] = (child, parent.name)
    return index


def _register_controls(element: Element, device: Device) -> None:
    """Add an item for every control id the structural pass references."""
    missing = [i for i in _referenced_ids(device) if i not in device.items]
    if not missing:
        return

    index = _index_elements(element)
    for item_id in missing:
        control, parent = index[item_id]
        device.items[item_id] = Item(
            id=item_id,
            path=parent,
            value=control.get("value"),
            name=control.get("name") or item_id,
            type=control.get("type") or control.name,
            min=control.get("min"),
            max=control.get("max"),
        )
