"""Classify inbound payloads for dispatch."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .errors import FocusriteProtocolError
from .xmldoc import Element, parse_document


class MessageKind(Enum):
    """Inbound message kinds, in classification precedence order."""

    SERVER_ANNOUNCEMENT = "server-announcement"
    DEVICE_ARRIVAL = "device-arrival"
    DEVICE_REMOVAL = "device-removal"
    APPROVAL = "approval"
    VALUE_UPDATE = "value-update"
    UNKNOWN = "unknown"


_ROOT_KINDS: tuple[tuple[frozenset[str], MessageKind], ...] = (
    (frozenset({"server-announcement"}), MessageKind.SERVER_ANNOUNCEMENT),
    (frozenset({"device", "device-arrival"}), MessageKind.DEVICE_ARRIVAL),
    (frozenset({"device-removal"}), MessageKind.DEVICE_REMOVAL),
    (frozenset({"approval"}), MessageKind.APPROVAL),
    (frozenset({"set", "item"}), MessageKind.VALUE_UPDATE),
)


@dataclass(frozen=True)
class RoutedMessage:
    """A parsed payload and its kind.

    ``root`` is None for server announcements, which are not parsed.
    """

    kind: MessageKind
    root: Element | None = None


def classify(root: Element) -> MessageKind:
    """Return the kind of a parsed payload."""
    for names, kind in _ROOT_KINDS:
        if root.name in names:
            return kind
    return MessageKind.UNKNOWN


def route(payload: str) -> RoutedMessage:
    """Parse and classify one payload.

    Raises:
        FocusriteProtocolError: If the payload is not well-formed XML.
    """
    if payload.lstrip().startswith("<server-announcement"):
        return RoutedMessage(MessageKind.SERVER_ANNOUNCEMENT)
    root = parse_document(payload)
    return RoutedMessage(classify(root), root)


def removal_device_id(root: Element) -> str:
    """Extract the device id from a device-removal payload.

    Raises:
        FocusriteProtocolError: If no id is present.
    """
    device_id = root.get("id")
    if device_id:
        return device_id
    for element in root.walk():
        device_id = element.get("id")
        if device_id:
            return device_id
    raise FocusriteProtocolError("Device removal carries no device id")
