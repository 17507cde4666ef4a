"""Closed document model for canonical records.

A canonical record is decoded once into a tree of the node types below;
flattening then matches structurally over this closed set instead of
inspecting arbitrary Python values.

Decoding never fails: values it cannot represent become ``OpaqueNode`` and
mapping keys that are not strings are kept aside in ``MappingNode.invalid_keys``
so the consumer can report them against the right path.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class BoolNode:
    value: bool


@dataclass(frozen=True, slots=True)
class NumberNode:
    value: int | float


@dataclass(frozen=True, slots=True)
class StringNode:
    value: str


@dataclass(frozen=True, slots=True)
class NullNode:
    pass


@dataclass(frozen=True, slots=True)
class OpaqueNode:
    """A value of a type with no JSON counterpart."""

    type_name: str


@dataclass(frozen=True, slots=True)
class SequenceNode:
    items: tuple[Node, ...]


@dataclass(frozen=True, slots=True)
class MappingNode:
    entries: tuple[tuple[str, Node], ...]
    invalid_keys: tuple[str, ...] = ()


Node = BoolNode | NumberNode | StringNode | NullNode | OpaqueNode | SequenceNode | MappingNode

_NODE_TYPES = (BoolNode, NumberNode, StringNode, NullNode, OpaqueNode, SequenceNode, MappingNode)


def is_node(value: object) -> bool:
    return isinstance(value, _NODE_TYPES)


def decode_document(value: Any) -> Node:
    """Decode a JSON-shaped Python value into a document node.

    Mapping order is preserved. ``bool`` is checked before numbers since it is
    a subclass of ``int``.
    """
    if value is None:
        return NullNode()
    if isinstance(value, bool):
        return BoolNode(value)
    if isinstance(value, int | float):
        return NumberNode(value)
    if isinstance(value, str):
        return StringNode(value)
    if isinstance(value, Mapping):
        entries: list[tuple[str, Node]] = []
        invalid: list[str] = []
        for key, child in value.items():
            if isinstance(key, str):
                entries.append((key, decode_document(child)))
            else:
                invalid.append(repr(key))
        return MappingNode(tuple(entries), tuple(invalid))
    if isinstance(value, Sequence) and not isinstance(value, bytes | bytearray):
        return SequenceNode(tuple(decode_document(item) for item in value))
    return OpaqueNode(type(value).__name__)
