"""Shared fixtures for kubewatch integration tests.

Provides a scripted fake cluster (list + watch) and recording sinks so the
supervisor, pipeline and fan-out can be exercised together without a real
Kubernetes API or Splunk collector.
"""

from __future__ import annotations

import asyncio
import io
import json
from collections import defaultdict
from collections.abc import Callable
from types import SimpleNamespace
from typing import Any

import pytest

from kubewatch.collector import watcher as watcher_module
from kubewatch.collector.supervisor import WatchSupervisor
from kubewatch.models.resources import ApiSurface
from kubewatch.pipeline import EventPipeline
from kubewatch.registry import ResourceRegistry
from kubewatch.runtime import RunContext
from kubewatch.sinks import ConsoleSink, Sink, SinkFanout
from kubewatch.transform.normalizer import EventNormalizer

# ---------------------------------------------------------------------------
# Event factory helpers
# ---------------------------------------------------------------------------


def make_object(name: str, resource_version: str, namespace: str = "default", **fields: Any) -> dict[str, Any]:
    """Create a JSON-shaped Kubernetes object."""
    obj: dict[str, Any] = {"metadata": {"name": name, "namespace": namespace, "resourceVersion": resource_version}}
    obj.update(fields)
    return obj


def make_event(event_type: str, obj: Any) -> dict[str, Any]:
    """Create a watch stream event as yielded by kubernetes_asyncio's Watch."""
    raw = obj if isinstance(obj, dict) else None
    return {"type": event_type, "object": obj, "raw_object": raw}


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Poll *predicate* until it holds or *timeout* expires."""
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.005)


# ---------------------------------------------------------------------------
# Fake cluster
# ---------------------------------------------------------------------------


class FakeCluster:
    """Scripted list/watch behaviour keyed by client method name.

    ``script(method, *batches)`` queues watch streams for a method: each batch
    is one stream; an Exception in a batch is raised at that point. Once the
    scripted streams are used up, further streams block until cancelled.
    """

    def __init__(self) -> None:
        self.resource_version = "100"
        self.list_calls: list[tuple[str, dict[str, Any]]] = []
        self.watch_calls: list[tuple[str, dict[str, Any]]] = []
        self.list_errors: dict[str, Exception] = {}
        self.api_surfaces: list[ApiSurface] = []
        self._streams: dict[str, list[list[Any]]] = defaultdict(list)

    def script(self, method: str, *batches: list[Any]) -> None:
        self._streams[method].extend(batches)

    def api(self, surface: ApiSurface) -> FakeApi:
        self.api_surfaces.append(surface)
        return FakeApi(self)

    def watch(self) -> FakeWatch:
        return FakeWatch(self)

    def next_stream(self, method: str) -> list[Any] | None:
        streams = self._streams[method]
        return streams.pop(0) if streams else None


class FakeApi:
    def __init__(self, cluster: FakeCluster) -> None:
        self._cluster = cluster

    def __getattr__(self, method: str) -> Callable[..., Any]:
        if not method.startswith("list_"):
            raise AttributeError(method)
        cluster = self._cluster

        async def _list(**kwargs: Any) -> SimpleNamespace:
            cluster.list_calls.append((method, kwargs))
            if method in cluster.list_errors:
                raise cluster.list_errors[method]
            return SimpleNamespace(items=[], metadata=SimpleNamespace(resource_version=cluster.resource_version))

        _list.__name__ = method
        return _list


class FakeWatch:
    def __init__(self, cluster: FakeCluster) -> None:
        self._cluster = cluster

    async def __aenter__(self) -> FakeWatch:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        return None

    async def stream(self, func: Callable[..., Any], **kwargs: Any):
        self._cluster.watch_calls.append((func.__name__, kwargs))
        batch = self._cluster.next_stream(func.__name__)
        if batch is None:
            await asyncio.Event().wait()
            return
        for item in batch:
            if isinstance(item, Exception):
                raise item
            yield item


# ---------------------------------------------------------------------------
# Sinks
# ---------------------------------------------------------------------------


class RecordingSink(Sink):
    """Stands in for the HEC sink; optionally fails on the N-th write."""

    fatal = True

    def __init__(self, fail_on: int | None = None) -> None:
        self.bodies: list[str] = []
        self._fail_on = fail_on
        self._writes = 0

    @property
    def name(self) -> str:
        return "remote"

    async def write(self, body: str) -> None:
        self._writes += 1
        if self._fail_on is not None and self._writes >= self._fail_on:
            raise RuntimeError("collector unavailable")
        self.bodies.append(body)


class PacedSink(Sink):
    """Remote stand-in whose writes take time, keyed by object name.

    ``delays`` maps an object name to how long its write takes; names in
    ``fail`` raise once their delay has passed. Writes cut off by task
    cancellation are kept in ``cancelled``.
    """

    fatal = True

    def __init__(self, delays: dict[str, float] | None = None, fail: frozenset[str] = frozenset()) -> None:
        self.bodies: list[str] = []
        self.cancelled: list[str] = []
        self._delays = delays or {}
        self._fail = fail

    @property
    def name(self) -> str:
        return "remote"

    async def write(self, body: str) -> None:
        name = json.loads(body)["metadata"]["name"]
        try:
            await asyncio.sleep(self._delays.get(name, 0))
        except asyncio.CancelledError:
            self.cancelled.append(body)
            raise
        if name in self._fail:
            raise RuntimeError("collector unavailable")
        self.bodies.append(body)


def identity(obj: Any) -> Any:
    return obj


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _fast_backoff(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(watcher_module, "_INITIAL_BACKOFF", 0.01)
    monkeypatch.setattr(watcher_module, "_MAX_BACKOFF", 0.02)


@pytest.fixture()
def cluster() -> FakeCluster:
    return FakeCluster()


@pytest.fixture()
def console() -> io.StringIO:
    return io.StringIO()


@pytest.fixture()
def context() -> RunContext:
    return RunContext()


@pytest.fixture()
async def build_supervisor(cluster: FakeCluster, console: io.StringIO, context: RunContext):
    """Factory wiring a supervisor to the fake cluster and a console stream."""
    supervisors: list[WatchSupervisor] = []

    def _build(
        *extra_sinks: Sink,
        namespace: str = "",
        flatten_output: bool = False,
        root_prefix: str = "kubewatch",
        serialize: Callable[[Any], Any] = identity,
        stop_grace_seconds: float = 5.0,
    ) -> WatchSupervisor:
        pipeline = EventPipeline(
            normalizer=EventNormalizer(serialize),
            fanout=SinkFanout([ConsoleSink(console), *extra_sinks]),
            flatten_output=flatten_output,
            root_prefix=root_prefix,
        )
        supervisor = WatchSupervisor(
            registry=ResourceRegistry(),
            api_factory=cluster.api,
            pipeline=pipeline,
            context=context,
            namespace=namespace,
            watch_factory=cluster.watch,
            timeout_seconds=60,
            stop_grace_seconds=stop_grace_seconds,
        )
        supervisors.append(supervisor)
        return supervisor

    yield _build

    context.request_stop("test teardown")
    for supervisor in supervisors:
        await supervisor.stop()


def console_lines(console: io.StringIO) -> list[str]:
    return console.getvalue().splitlines()
