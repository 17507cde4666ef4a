"""WatchSupervisor: starts one independent watch loop per requested resource.

Start-up is all-or-nothing. Every resource name is resolved and every watcher
primed before the first loop is spawned; any failure is a ConfigurationError
and nothing is watched. After that, loops run until the shared RunContext is
stopped, either by a signal or by a fatal delivery error in any loop. A
stopping loop finishes the record it is delivering before it exits.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable
from typing import Any

import structlog
from kubernetes_asyncio import watch as k8s_watch  # type: ignore[import-untyped]

from kubewatch.collector.watcher import ResourceWatcher
from kubewatch.errors import ConfigurationError
from kubewatch.models.events import WatchState
from kubewatch.models.resources import ApiSurface
from kubewatch.pipeline import EventPipeline
from kubewatch.registry import ResourceRegistry
from kubewatch.runtime import RunContext

_log = structlog.get_logger(component="collector.supervisor")


class WatchSupervisor:
    """Owns the watch loops and their lifecycle.

    Args:
        registry:        Resource name -> descriptor lookup.
        api_factory:     Returns the client for an API surface.
        pipeline:        Shared by every loop; called sequentially within a loop.
        context:         Shared cancellation signal.
        namespace:       Namespace filter; "" means all namespaces.
        watch_factory:   Builds watch objects (``kubernetes_asyncio.watch.Watch``).
        timeout_seconds: Server-side timeout of each watch request.
        stop_grace_seconds: How long stop() waits for loops to finish an
                         in-flight delivery before cancelling them.
    """

    def __init__(
        self,
        registry: ResourceRegistry,
        api_factory: Callable[[ApiSurface], Any],
        pipeline: EventPipeline,
        context: RunContext,
        namespace: str = "",
        watch_factory: Callable[[], Any] = k8s_watch.Watch,
        timeout_seconds: int = 300,
        stop_grace_seconds: float = 30.0,
    ) -> None:
        self._registry = registry
        self._api_factory = api_factory
        self._pipeline = pipeline
        self._context = context
        self._namespace = namespace
        self._watch_factory = watch_factory
        self._timeout_seconds = timeout_seconds
        self._stop_grace_seconds = stop_grace_seconds

        self._watchers: list[ResourceWatcher] = []
        self._tasks: list[asyncio.Task[None]] = []

    @property
    def watchers(self) -> list[ResourceWatcher]:
        return list(self._watchers)

    def status(self) -> dict[str, str]:
        """Current WatchState of every loop, keyed by resource name."""
        return {w.name: w.state.value for w in self._watchers}

    async def start(self, resources: Iterable[str]) -> None:
        """Resolve, prime, then spawn one task per resource.

        Raises:
            ConfigurationError: a name is unknown, or the cluster API refused
                or failed the baseline list for any resource.
        """
        descriptors = self._registry.resolve(resources)
        if not descriptors:
            raise ConfigurationError("No resources to watch")

        apis: dict[ApiSurface, Any] = {}
        watchers = []
        for descriptor in descriptors:
            if descriptor.api_surface not in apis:
                apis[descriptor.api_surface] = self._api_factory(descriptor.api_surface)
            watchers.append(
                ResourceWatcher(
                    descriptor=descriptor,
                    api=apis[descriptor.api_surface],
                    pipeline=self._pipeline,
                    context=self._context,
                    namespace=self._namespace,
                    watch_factory=self._watch_factory,
                    timeout_seconds=self._timeout_seconds,
                )
            )

        results = await asyncio.gather(*(w.prime() for w in watchers), return_exceptions=True)
        for watcher, result in zip(watchers, results, strict=True):
            if isinstance(result, BaseException):
                raise ConfigurationError(f"Cannot list {watcher.name}: {result}") from result

        self._watchers = watchers
        for watcher in watchers:
            task = asyncio.create_task(watcher.run(), name=f"watch-{watcher.name}")
            self._tasks.append(task)
        _log.info(
            "watch_supervisor_started",
            resources=[w.name for w in watchers],
            namespace=self._namespace or "*",
        )

    async def run(self) -> None:
        """Block until the run context is stopped, then stop every loop."""
        await self._context.wait()
        await self.stop()

    async def stop(self) -> None:
        """Stop every loop and wait for it to finish.

        Loops exit on their own between events, so a record being delivered
        reaches every sink first. Loops still running after the grace period
        are cancelled.
        """
        self._context.request_stop("supervisor stopped")
        if self._tasks:
            _, pending = await asyncio.wait(self._tasks, timeout=self._stop_grace_seconds)
            for task in pending:
                _log.warning("watch_loop_cancelled", task=task.get_name(), grace_seconds=self._stop_grace_seconds)
                task.cancel()
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()
        for watcher in self._watchers:
            if watcher.state != WatchState.FAILED:
                watcher.state = WatchState.STOPPED
        _log.info("watch_supervisor_stopped")
