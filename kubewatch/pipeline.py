"""Per-event processing: normalize, optionally flatten, deliver."""

from __future__ import annotations

import structlog

from kubewatch.errors import EncodingError
from kubewatch.models.events import WatchEvent
from kubewatch.observability.metrics import events_dropped_total
from kubewatch.sinks.manager import SinkFanout
from kubewatch.transform.flatten import ROOT_PREFIX, flatten
from kubewatch.transform.normalizer import EventNormalizer

_log = structlog.get_logger(component="pipeline")


class EventPipeline:
    """Runs one WatchEvent through to the sinks inside the calling watch loop.

    Encoding and flattening failures are contained: the event is logged,
    counted under ``events_dropped_total`` and dropped. A DeliveryError from a
    fatal sink propagates to the caller.
    """

    def __init__(
        self,
        normalizer: EventNormalizer,
        fanout: SinkFanout,
        flatten_output: bool = False,
        root_prefix: str = ROOT_PREFIX,
    ) -> None:
        self._normalizer = normalizer
        self._fanout = fanout
        self._flatten = flatten_output
        self._root_prefix = root_prefix

    async def process(self, event: WatchEvent) -> None:
        try:
            record = self._normalizer.normalize(event)
        except EncodingError as exc:
            _drop(event, "encoding", exc.reason)
            return

        if self._flatten:
            try:
                record = flatten(record, self._root_prefix)
            except Exception as exc:  # noqa: BLE001
                _drop(event, "flatten", str(exc) or type(exc).__name__)
                return

        await self._fanout.deliver(record)


def _drop(event: WatchEvent, reason: str, error: str) -> None:
    events_dropped_total.labels(resource=event.resource_name, reason=reason).inc()
    _log.error("event_dropped", resource=event.resource_name, type=event.kind.value, reason=reason, error=error)
