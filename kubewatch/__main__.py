"""Entry point for `python -m kubewatch`.

Usage:
    python -m kubewatch pods services --namespace default
"""

from __future__ import annotations

from kubewatch.cli import cli

cli()
