"""Sink interface and the fan-out that delivers each record to every sink.

Sink       -- ABC every delivery target implements.
SinkFanout -- Renders a record once and writes it to each sink in order.
              Failures of non-fatal sinks are logged; a fatal sink's failure
              raises DeliveryError to the calling watch loop.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from collections.abc import Sequence

import structlog

from kubewatch.errors import DeliveryError
from kubewatch.models.events import CanonicalRecord, FlatRecord
from kubewatch.observability.metrics import deliveries_total

_log = structlog.get_logger(component="sinks.manager")


class Sink(ABC):
    """Abstract base class for all record sinks.

    ``write`` raises on failure; the fan-out decides whether that failure is
    fatal based on the ``fatal`` flag.
    """

    fatal: bool = False

    @property
    @abstractmethod
    def name(self) -> str:
        """Sink identifier used in metrics and logs."""

    @abstractmethod
    async def write(self, body: str) -> None:
        """Deliver one rendered record."""

    async def close(self) -> None:  # noqa: B027
        """Release any resources held by the sink."""


def render(record: CanonicalRecord | FlatRecord) -> str:
    """Render *record* as a single compact JSON line."""
    return json.dumps(record, separators=(",", ":"), ensure_ascii=False)


class SinkFanout:
    """Synchronous, once-only delivery of a record to every configured sink.

    No batching, retry or queueing: ``deliver`` returns once every sink has
    been written to, in the caller's task.
    """

    def __init__(self, sinks: Sequence[Sink]) -> None:
        self._sinks = list(sinks)

    @property
    def sinks(self) -> list[Sink]:
        return list(self._sinks)

    async def deliver(self, record: CanonicalRecord | FlatRecord) -> None:
        """Write *record* to every sink.

        Raises:
            DeliveryError: a fatal sink failed. Sinks after it are not tried.
        """
        body = render(record)
        for sink in self._sinks:
            try:
                await sink.write(body)
            except Exception as exc:  # noqa: BLE001
                deliveries_total.labels(sink=sink.name, success="false").inc()
                if sink.fatal:
                    if isinstance(exc, DeliveryError):
                        raise
                    raise DeliveryError(sink.name, str(exc)) from exc
                _log.error("sink_write_failed", sink=sink.name, error=str(exc))
                continue
            deliveries_total.labels(sink=sink.name, success="true").inc()

    async def close(self) -> None:
        for sink in self._sinks:
            try:
                await sink.close()
            except Exception as exc:  # noqa: BLE001
                _log.warning("sink_close_failed", sink=sink.name, error=str(exc))
