"""ResourceWatcher: one long-running watch loop for a single resource type.

The loop never replays state that existed before it started. Priming issues a
list call that matches no object, which returns an empty item list but a
current collection resourceVersion; the watch then starts from that version,
so only transitions that happen afterwards are surfaced. There is no periodic
resync.

Stream ends (server-side timeout) reopen the watch from the last seen
resourceVersion. Transient API and connection errors are retried with
exponential back-off. An expired resourceVersion (HTTP 410) re-primes with the
empty baseline, which skips whatever changed in between rather than
re-emitting existing objects.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable
from typing import Any

import structlog
from kubernetes_asyncio.client.rest import ApiException  # type: ignore[import-untyped]

from kubewatch.errors import DeliveryError
from kubewatch.models.events import EventKind, WatchEvent, WatchState
from kubewatch.models.resources import ResourceDescriptor
from kubewatch.observability.metrics import events_total, watch_restarts_total
from kubewatch.pipeline import EventPipeline
from kubewatch.runtime import RunContext

_log = structlog.get_logger(component="collector.watcher")

# Underscores are not allowed in object names, so this selector matches nothing.
BASELINE_FIELD_SELECTOR = "metadata.name=kubewatch_none"

_INITIAL_BACKOFF = 1.0
_MAX_BACKOFF = 30.0
_HTTP_GONE = 410
_END_OF_STREAM = object()

_EVENT_KINDS = {
    "ADDED": EventKind.ADDED,
    "DELETED": EventKind.DELETED,
}


class ResourceVersionExpired(Exception):
    """The watch's resourceVersion is too old; the loop must re-prime."""


class ResourceWatcher:
    """Watches one resource type and feeds its add/delete events to the pipeline.

    Args:
        descriptor:      Registry entry for the resource.
        api:             Client for the descriptor's API surface.
        pipeline:        Receives every add/delete event, in stream order.
        context:         Shared run context; a fatal delivery error fails it.
        namespace:       Namespace to watch; "" watches all namespaces.
        watch_factory:   Builds a watch object exposing ``stream(func, **kwargs)``
                         as an async iterator and async context management.
        timeout_seconds: Server-side timeout of each watch request.
    """

    def __init__(
        self,
        descriptor: ResourceDescriptor,
        api: Any,
        pipeline: EventPipeline,
        context: RunContext,
        namespace: str,
        watch_factory: Callable[[], Any],
        timeout_seconds: int = 300,
    ) -> None:
        self.descriptor = descriptor
        self._pipeline = pipeline
        self._context = context
        self._watch_factory = watch_factory
        self._timeout_seconds = timeout_seconds

        method_name, self._scope_kwargs = descriptor.list_call(namespace)
        self._list_fn = getattr(api, method_name)
        self._resource_version: str | None = None
        self.state = WatchState.PENDING

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def resource_version(self) -> str | None:
        return self._resource_version

    async def prime(self) -> None:
        """Establish the empty baseline and remember its resourceVersion."""
        result = await self._list_fn(field_selector=BASELINE_FIELD_SELECTOR, **self._scope_kwargs)
        self._resource_version = result.metadata.resource_version
        _log.debug("watch_primed", resource=self.name, resource_version=self._resource_version)

    async def run(self) -> None:
        """Watch until the run context stops or a fatal delivery error occurs."""
        backoff = _INITIAL_BACKOFF
        _log.info("watching_resource", resource=self.name, api_surface=self.descriptor.api_surface.value)
        while not self._context.stopping:
            try:
                if self._resource_version is None:
                    await self.prime()
                self.state = WatchState.WATCHING
                await self._watch_once()
                backoff = _INITIAL_BACKOFF
            except DeliveryError as exc:
                self.state = WatchState.FAILED
                _log.critical("delivery_failed", resource=self.name, sink=exc.sink, error=exc.reason)
                self._context.fail(exc)
                return
            except ResourceVersionExpired:
                watch_restarts_total.labels(resource=self.name, reason="expired").inc()
                _log.info("resource_version_expired", resource=self.name, resource_version=self._resource_version)
                self._resource_version = None
            except Exception as exc:  # noqa: BLE001
                self.state = WatchState.RECONNECTING
                watch_restarts_total.labels(resource=self.name, reason="error").inc()
                _log.warning("watch_error", resource=self.name, error=str(exc), retry_in=backoff)
                if await self._context.sleep(backoff):
                    break
                backoff = min(backoff * 2, _MAX_BACKOFF)
        self.state = WatchState.STOPPED

    async def _watch_once(self) -> None:
        async with self._watch_factory() as watch:
            stream = aiter(
                watch.stream(
                    self._list_fn,
                    resource_version=self._resource_version,
                    timeout_seconds=self._timeout_seconds,
                    **self._scope_kwargs,
                )
            )
            try:
                while (event := await self._next_event(stream)) is not None:
                    # A record being delivered is finished before the loop exits.
                    await self._dispatch(event)
                    if self._context.stopping:
                        return
            except ApiException as exc:
                if exc.status == _HTTP_GONE:
                    raise ResourceVersionExpired() from exc
                raise

    async def _next_event(self, stream: AsyncIterator[dict[str, Any]]) -> dict[str, Any] | None:
        """Wait for the next stream event, or None if the stream ended or a stop was requested.

        Only this wait is interrupted on shutdown.
        """
        pending = asyncio.ensure_future(_pull(stream))
        stop = asyncio.ensure_future(self._context.wait())
        try:
            await asyncio.wait({pending, stop}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            stop.cancel()
            if not pending.done():
                pending.cancel()
                await asyncio.wait({pending})
        if pending.cancelled():
            return None
        event = pending.result()
        return None if event is _END_OF_STREAM else event

    async def _dispatch(self, event: dict[str, Any]) -> None:
        event_type = event.get("type", "")
        raw = event.get("raw_object")

        if event_type == "ERROR":
            if isinstance(raw, dict) and raw.get("code") == _HTTP_GONE:
                raise ResourceVersionExpired()
            raise ApiException(status=_error_code(raw), reason=str(raw))

        self._track_resource_version(event)

        kind = _EVENT_KINDS.get(event_type)
        if kind is None:
            return
        events_total.labels(resource=self.name, type=kind.value).inc()
        await self._pipeline.process(WatchEvent(resource_name=self.name, kind=kind, payload=event.get("object")))

    def _track_resource_version(self, event: dict[str, Any]) -> None:
        raw = event.get("raw_object")
        version: str | None = None
        if isinstance(raw, dict):
            version = raw.get("metadata", {}).get("resourceVersion")
        else:
            metadata = getattr(event.get("object"), "metadata", None)
            version = getattr(metadata, "resource_version", None)
        if version:
            self._resource_version = version


async def _pull(stream: AsyncIterator[dict[str, Any]]) -> Any:
    try:
        return await anext(stream)
    except StopAsyncIteration:
        return _END_OF_STREAM


def _error_code(raw: Any) -> int | None:
    if isinstance(raw, dict) and isinstance(raw.get("code"), int):
        return raw["code"]
    return None
