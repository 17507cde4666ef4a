"""Error taxonomy for kubewatch.

ConfigurationError -- fatal at startup; nothing is watched.
EncodingError      -- per event; the event is logged and dropped.
SchemaAnomaly      -- per field during flattening; reported, never raised out of flatten().
DeliveryError      -- fatal; every watch loop is stopped.
"""

from __future__ import annotations


class KubeWatchError(Exception):
    """Base class for all kubewatch errors."""


class ConfigurationError(KubeWatchError):
    """Raised when the process cannot start watching."""


class UnknownResource(ConfigurationError):
    """Raised when a resource name is not in the registry."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown resource: {name!r}")
        self.name = name


class EncodingError(KubeWatchError):
    """Raised when a payload cannot be rendered to a canonical record."""

    def __init__(self, resource_name: str, reason: str) -> None:
        super().__init__(f"Cannot encode {resource_name} payload: {reason}")
        self.resource_name = resource_name
        self.reason = reason


class SchemaAnomaly(KubeWatchError):
    """A document field that could not be flattened.

    Instances are handed to the flatten anomaly callback; the offending field
    is omitted and the rest of the record is still produced.
    """

    def __init__(self, path: str, detail: str) -> None:
        super().__init__(f"{path or '<root>'}: {detail}")
        self.path = path
        self.detail = detail


class DeliveryError(KubeWatchError):
    """Raised when a fatal sink rejects or fails to receive a record."""

    def __init__(self, sink: str, reason: str) -> None:
        super().__init__(f"Delivery to {sink} failed: {reason}")
        self.sink = sink
        self.reason = reason
