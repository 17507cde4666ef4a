"""Record sinks for kubewatch.

Exports:
    Sink        -- Abstract base for all sinks.
    SinkFanout  -- Delivers a record to every sink, applying per-sink failure policy.
    ConsoleSink -- Newline-delimited JSON on stdout (best effort).
    HECSink     -- Splunk HTTP Event Collector (fatal on failure).
    build_fanout -- Factory used by the application bootstrap.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, TextIO

import structlog

from kubewatch.sinks.console import ConsoleSink
from kubewatch.sinks.hec import HECSink
from kubewatch.sinks.manager import Sink, SinkFanout, render

if TYPE_CHECKING:
    from kubewatch.models.config import HECConfig

_log = structlog.get_logger(component="sinks")

__all__ = [
    "ConsoleSink",
    "HECSink",
    "Sink",
    "SinkFanout",
    "build_fanout",
    "render",
]


def build_fanout(config: HECConfig, stream: TextIO | None = None) -> SinkFanout:
    """Build the console sink plus, when a collector host is configured, the HEC sink."""
    sinks: list[Sink] = [ConsoleSink(stream)]
    if config.enabled:
        sinks.append(HECSink(config))
        _log.info("hec_sink_enabled", url=config.url, index=config.index or None)
    else:
        _log.info("hec_sink_disabled", reason="SPLUNK_HEC_HOST is not set")
    return SinkFanout(sinks)
