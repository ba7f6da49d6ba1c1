"""Typed XML document model.

Payloads are parsed with :mod:`xml.etree.ElementTree` and converted into a
small immutable tree of :class:`Element` and :class:`Text` nodes so the
device parser can traverse them with explicit tag and attribute checks.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field

from .errors import FocusriteProtocolError


@dataclass(frozen=True)
class Text:
    """Character data between elements."""

    value: str


@dataclass(frozen=True)
class Element:
    """An XML element with its attributes and ordered children."""

    name: str
    attributes: dict[str, str] = field(default_factory=dict)
    children: tuple[Element | Text, ...] = ()

    def get(self, key: str, default: str | None = None) -> str | None:
        """Return an attribute value."""
        return self.attributes.get(key, default)

    @property
    def elements(self) -> Iterator[Element]:
        """Direct child elements, in document order."""
        for child in self.children:
            if isinstance(child, Element):
                yield child

    def children_named(self, name: str) -> Iterator[Element]:
        """Direct child elements with the given tag."""
        for child in self.elements:
            if child.name == name:
                yield child

    def walk(
        self,
        *,
        prune: Callable[[Element], bool] | None = None,
    ) -> Iterator[Element]:
        """Yield descendant elements depth-first in document order.

        The element itself is not yielded. When ``prune`` returns True for
        an element, that element is yielded but its subtree is skipped.
        """
        stack = [self.elements]
        while stack:
            child = next(stack[-1], None)
            if child is None:
                stack.pop()
                continue
            yield child
            if prune is None or not prune(child):
                stack.append(child.elements)

    def iter_named(
        self,
        name: str,
        *,
        prune: Callable[[Element], bool] | None = None,
    ) -> Iterator[Element]:
        """Descendant elements with the given tag."""
        for element in self.walk(prune=prune):
            if element.name == name:
                yield element

    def find_first(self, name: str) -> Element | None:
        """First descendant element with the given tag, or None."""
        return next(self.iter_named(name), None)

    def first_id(self, *names: str) -> str | None:
        """Id attribute of the first descendant matching ``names``.

        Names are tried in order of preference; the first name with a match
        carrying an ``id`` wins.
        """
        for name in names:
            for element in self.iter_named(name):
                element_id = element.get("id")
                if element_id:
                    return element_id
        return None


_Frame = tuple[ET.Element, Iterator[ET.Element], list[Element | Text]]


def _open(node: ET.Element) -> _Frame:
    children: list[Element | Text] = []
    if node.text and node.text.strip():
        children.append(Text(node.text))
    return node, iter(node), children


def _convert(root: ET.Element) -> Element:
    # Explicit stack: nesting depth is bounded by the payload, not the interpreter.
    stack = [_open(root)]
    while True:
        node, pending, children = stack[-1]
        child = next(pending, None)
        if child is not None:
            stack.append(_open(child))
            continue

        stack.pop()
        element = Element(
            name=node.tag,
            attributes=dict(node.attrib),
            children=tuple(children),
        )
        if not stack:
            return element
        siblings = stack[-1][2]
        siblings.append(element)
        if node.tail and node.tail.strip():
            siblings.append(Text(node.tail))


def parse_document(payload: str) -> Element:
    """Parse an XML payload into an :class:`Element` tree.

    Raises:
        FocusriteProtocolError: If the payload is not well-formed XML.
    """
    try:
        root = ET.fromstring(payload)
    except ET.ParseError as err:
        raise FocusriteProtocolError(f"Malformed XML: {err}", payload) from err
    return _convert(root)
