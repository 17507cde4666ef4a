"""``kubewatch`` command: parse options, then hand over to the async app."""

from __future__ import annotations

import asyncio

import click

from kubewatch import __version__
from kubewatch.config import default_kubeconfig_path
from kubewatch.registry import SUPPORTED_RESOURCES


@click.command(
    context_settings={"help_option_names": ["-h", "--help"]},
    help="Watches Kubernetes resources via its API and outputs to stdout and Splunk HEC.",
)
@click.argument(
    "resources",
    nargs=-1,
    required=True,
    type=click.Choice(SUPPORTED_RESOURCES, case_sensitive=False),
)
@click.option(
    "--kubeconfig",
    type=click.Path(exists=True, dir_okay=False),
    default=lambda: default_kubeconfig_path() or None,
    show_default="~/.kube/config if present, else in-cluster",
    help="Path to the kubeconfig file.",
)
@click.option(
    "--namespace",
    default="",
    show_default="all namespaces",
    help="Namespace to watch.",
)
@click.option(
    "--flatten/--no-flatten",
    default=False,
    help="Emit flattened key/value JSON instead of nested JSON.",
)
@click.version_option(__version__, prog_name="kubewatch")
def cli(resources: tuple[str, ...], kubeconfig: str | None, namespace: str, flatten: bool) -> None:
    from kubewatch.app import main

    # Names arrive lower-cased by the choice type. Repeated names would start
    # duplicate loops and deliver each event twice.
    unique = list(dict.fromkeys(resources))
    asyncio.run(main(unique, namespace=namespace, flatten=flatten, kubeconfig=kubeconfig or ""))
