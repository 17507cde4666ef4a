"""Health and metrics HTTP endpoints for kubewatch.

Exposes:
    create_app -- FastAPI application factory.
"""

from kubewatch.api.app import create_app

__all__ = ["create_app"]
