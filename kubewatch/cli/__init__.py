"""kubewatch command-line interface.

Exposes:
    cli -- Click command entry point (registered as the ``kubewatch`` script).
"""

from kubewatch.cli.main import cli

__all__ = ["cli"]
