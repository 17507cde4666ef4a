"""Application bootstrap for kubewatch.

Wires the components in dependency order and owns the asyncio lifecycle.
Startup order: config → logging → resource resolution → K8s client → sinks
              → pipeline → watch supervisor (prime all, then spawn loops)
              → health API

Any startup failure is fatal and happens before the first record is written.
Shutdown is cooperative: a signal or a fatal delivery error stops the shared
RunContext, every watch loop finishes the record it is delivering and exits,
then sinks and clients are closed.
"""

from __future__ import annotations

import asyncio
import signal
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, TextIO

from kubewatch.config import load_config
from kubewatch.errors import ConfigurationError
from kubewatch.models.config import KubeWatchConfig
from kubewatch.models.resources import ApiSurface
from kubewatch.observability.logging import get_logger, setup_logging
from kubewatch.registry import ResourceRegistry
from kubewatch.runtime import RunContext

if TYPE_CHECKING:
    import structlog

    from kubewatch.collector.supervisor import WatchSupervisor
    from kubewatch.sinks.manager import SinkFanout

_SHUTDOWN_GRACE_SECONDS = 15

_API_CLASSES: dict[ApiSurface, str] = {
    ApiSurface.CORE_V1: "CoreV1Api",
    ApiSurface.APPS_V1: "AppsV1Api",
    ApiSurface.AUTOSCALING_V1: "AutoscalingV1Api",
    ApiSurface.BATCH_V1: "BatchV1Api",
    ApiSurface.NETWORKING_V1: "NetworkingV1Api",
}


class KubeWatchApp:
    """Application root. Owns every component and coordinates their lifecycle.

    ``stop()`` is safe to call on an app that never started or already stopped.
    """

    def __init__(
        self,
        resources: Sequence[str],
        namespace: str = "",
        flatten: bool = False,
        kubeconfig: str = "",
        registry: ResourceRegistry | None = None,
        stream: TextIO | None = None,
    ) -> None:
        self._resources = list(resources)
        self._namespace = namespace
        self._flatten = flatten
        self._kubeconfig = kubeconfig
        self._registry = registry or ResourceRegistry()
        self._stream = stream

        self.config: KubeWatchConfig | None = None
        self.context = RunContext()

        self._api_client: Any = None
        self._fanout: SinkFanout | None = None
        self._supervisor: WatchSupervisor | None = None
        self._api_server: Any = None
        self._api_task: asyncio.Task[None] | None = None

        self._running = False
        self._stopped = False
        self._log: structlog.stdlib.BoundLogger | None = None

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start all components in dependency order.

        Raises:
            ConfigurationError: the process must not begin watching.
        """
        # --- 1. Configuration -------------------------------------------
        self.config = load_config(
            resources=self._resources,
            namespace=self._namespace,
            flatten=self._flatten,
            kubeconfig=self._kubeconfig,
        )

        # --- 2. Logging -------------------------------------------------
        setup_logging(self.config.log.level)
        self._log = get_logger("app")
        self._log.info("kubewatch starting", version=_kubewatch_version())

        # --- 3. Resource names, before touching the cluster -------------
        self._registry.resolve(self.config.watch.resources)

        # --- 4. Kubernetes client ---------------------------------------
        await self._start_k8s_client()

        # --- 5. Sinks ---------------------------------------------------
        self._start_sinks()

        # --- 6. Pipeline + watch supervisor -----------------------------
        await self._start_supervisor()

        # --- 7. Health API ----------------------------------------------
        self._start_api()

        self._running = True
        self._log.info("kubewatch started", resources=self.config.watch.resources)

    async def _start_k8s_client(self) -> None:
        """Load kubeconfig (out-of-cluster) or the service account (in-cluster)."""
        assert self._log is not None
        assert self.config is not None
        import kubernetes_asyncio.config as k8s_config  # type: ignore[import-untyped]
        from kubernetes_asyncio import client as k8s_client  # type: ignore[import-untyped]

        kubeconfig = self.config.watch.kubeconfig
        try:
            if kubeconfig:
                await k8s_config.load_kube_config(config_file=kubeconfig)
                self._log.info("running out-of-cluster using kubeconfig", file=kubeconfig)
            else:
                k8s_config.load_incluster_config()
                self._log.info("running in-cluster using service account")
        except (k8s_config.ConfigException, OSError, ValueError) as exc:
            raise ConfigurationError(f"Cannot load cluster credentials: {exc}") from exc

        self._api_client = k8s_client.ApiClient()

    def api_for(self, surface: ApiSurface) -> Any:
        """Build the typed API client for *surface*."""
        from kubernetes_asyncio import client as k8s_client  # type: ignore[import-untyped]

        return getattr(k8s_client, _API_CLASSES[surface])(self._api_client)

    def _start_sinks(self) -> None:
        assert self.config is not None
        from kubewatch.sinks import build_fanout

        try:
            self._fanout = build_fanout(self.config.hec, stream=self._stream)
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc

    async def _start_supervisor(self) -> None:
        assert self.config is not None
        assert self._fanout is not None
        from kubewatch.collector.supervisor import WatchSupervisor
        from kubewatch.pipeline import EventPipeline
        from kubewatch.transform.normalizer import EventNormalizer

        pipeline = EventPipeline(
            normalizer=EventNormalizer(self._api_client.sanitize_for_serialization),
            fanout=self._fanout,
            flatten_output=self.config.watch.flatten,
        )
        supervisor = WatchSupervisor(
            registry=self._registry,
            api_factory=self.api_for,
            pipeline=pipeline,
            context=self.context,
            namespace=self.config.watch.namespace,
            timeout_seconds=self.config.watch.timeout_seconds,
            stop_grace_seconds=self.config.hec.timeout_seconds + _SHUTDOWN_GRACE_SECONDS,
        )
        await supervisor.start(self.config.watch.resources)
        self._supervisor = supervisor

    def _start_api(self) -> None:
        """Serve /healthz and /metrics with uvicorn unless the port is 0."""
        assert self._log is not None
        assert self.config is not None
        if self.config.api.port == 0:
            self._log.info("health api disabled")
            return

        import uvicorn  # type: ignore[import-untyped]

        from kubewatch.api import create_app

        uv_config = uvicorn.Config(
            app=create_app(supervisor=self._supervisor, context=self.context),
            host="0.0.0.0",
            port=self.config.api.port,
            log_config=None,  # structlog handles all logging
            access_log=False,
        )
        server = uvicorn.Server(uv_config)
        self._api_task = asyncio.create_task(server.serve(), name="health-api")
        self._api_server = server
        self._log.info("health api started", port=self.config.api.port)

    # ------------------------------------------------------------------
    # Run / shutdown
    # ------------------------------------------------------------------

    async def run(self) -> int:
        """Watch until stopped; return the process exit code."""
        assert self._supervisor is not None
        await self._supervisor.run()
        return 1 if self.context.failure is not None else 0

    async def stop(self) -> None:
        """Stop every component in reverse startup order, logging each failure."""
        if self._stopped or (not self._running and self._log is None):
            return
        self._stopped = True

        log = self._log or get_logger("app")
        log.info("kubewatch shutting down", reason=self.context.reason or None)
        self._running = False
        self.context.request_stop("shutdown")

        if self._api_server is not None and self._api_task is not None:
            self._api_server.should_exit = True
            try:
                await asyncio.wait_for(self._api_task, timeout=_SHUTDOWN_GRACE_SECONDS)
            except TimeoutError:
                log.warning("health api stop timed out", timeout=_SHUTDOWN_GRACE_SECONDS)
            self._api_server = None
            self._api_task = None

        if self._supervisor is not None:
            await self._supervisor.stop()

        if self._fanout is not None:
            await self._fanout.close()
            self._fanout = None

        if self._api_client is not None:
            try:
                await self._api_client.close()
            except Exception as exc:  # noqa: BLE001
                log.debug("k8s client close raised (non-fatal)", error=str(exc))
            self._api_client = None

        log.info("kubewatch stopped")


def _kubewatch_version() -> str:
    from kubewatch import __version__

    return __version__


# ---------------------------------------------------------------------------
# Async entrypoint
# ---------------------------------------------------------------------------


async def main(
    resources: Sequence[str],
    namespace: str = "",
    flatten: bool = False,
    kubeconfig: str = "",
) -> None:
    """Create the app, register OS signals, run until shutdown is requested."""
    # stdout carries records only; logging must target stderr before config loads.
    setup_logging()
    app = KubeWatchApp(resources, namespace=namespace, flatten=flatten, kubeconfig=kubeconfig)
    loop = asyncio.get_running_loop()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, app.context.request_stop, sig.name)

    try:
        await app.start()
        exit_code = await app.run()
    except ConfigurationError as exc:
        get_logger("app").critical("fatal startup error", error=str(exc))
        raise SystemExit(1) from exc
    finally:
        await app.stop()

    if exit_code:
        get_logger("app").critical("kubewatch stopped after fatal error", error=str(app.context.failure))
        raise SystemExit(exit_code)
