"""FastAPI application factory for the health and metrics endpoints.

Usage::

    from kubewatch.api.app import create_app

    app = create_app(supervisor=supervisor, context=context)

``GET /healthz`` reports every watch loop's state and answers 503 once a loop
has failed or shutdown has begun, so a liveness probe restarts the pod.
``GET /metrics`` serves the Prometheus counters.
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Response
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from kubewatch.models.events import WatchState


def create_app(supervisor: Any, context: Any) -> FastAPI:
    """Create the kubewatch FastAPI application.

    Args:
        supervisor: Anything with a ``status() -> dict[str, str]`` method.
        context:    RunContext; its ``stopping`` flag marks the process unhealthy.
    """
    from kubewatch import __version__

    app = FastAPI(
        title="kubewatch",
        summary="Kubernetes watch forwarder health endpoints",
        version=__version__,
        docs_url=None,
        redoc_url=None,
    )
    app.state.supervisor = supervisor
    app.state.context = context

    @app.get("/healthz")
    async def healthz() -> JSONResponse:
        watchers = app.state.supervisor.status()
        healthy = not app.state.context.stopping and WatchState.FAILED.value not in watchers.values()
        return JSONResponse(
            status_code=200 if healthy else 503,
            content={"status": "ok" if healthy else "degraded", "watchers": watchers},
        )

    @app.get("/metrics")
    async def metrics() -> Response:
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return app
