"""Core data structures for kubewatch."""

from kubewatch.models.config import HECConfig, KubeWatchConfig, WatchConfig
from kubewatch.models.document import (
    BoolNode,
    MappingNode,
    Node,
    NullNode,
    NumberNode,
    OpaqueNode,
    SequenceNode,
    StringNode,
)
from kubewatch.models.events import CanonicalRecord, EventKind, FlatRecord, WatchEvent, WatchState
from kubewatch.models.resources import ApiSurface, ResourceDescriptor

__all__ = [
    "ApiSurface",
    "BoolNode",
    "CanonicalRecord",
    "EventKind",
    "FlatRecord",
    "HECConfig",
    "KubeWatchConfig",
    "MappingNode",
    "Node",
    "NullNode",
    "NumberNode",
    "OpaqueNode",
    "ResourceDescriptor",
    "SequenceNode",
    "StringNode",
    "WatchConfig",
    "WatchEvent",
    "WatchState",
]
