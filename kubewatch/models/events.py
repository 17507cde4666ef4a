"""Watch event data structures and enumerations."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

CanonicalRecord = dict[str, Any]
FlatRecord = dict[str, str]


class EventKind(StrEnum):
    """Change notifications surfaced by a watch loop."""

    ADDED = "ADDED"
    DELETED = "DELETED"


class WatchState(StrEnum):
    """Lifecycle of a single resource watch loop."""

    PENDING = "pending"
    WATCHING = "watching"
    RECONNECTING = "reconnecting"
    STOPPED = "stopped"
    FAILED = "failed"


@dataclass(frozen=True)
class WatchEvent:
    """One add/delete notification for a watched resource.

    Produced by a ResourceWatcher and consumed exactly once by the
    EventPipeline; never retained.
    """

    resource_name: str
    kind: EventKind
    payload: Any
