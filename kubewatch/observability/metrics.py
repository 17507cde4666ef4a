"""Prometheus counters exposed on the health API's /metrics endpoint."""

from __future__ import annotations

from prometheus_client import Counter

events_total = Counter(
    "kubewatch_events_total",
    "Add/delete notifications received from watch streams.",
    ["resource", "type"],
)

events_dropped_total = Counter(
    "kubewatch_events_dropped_total",
    "Notifications dropped before delivery.",
    ["resource", "reason"],
)

schema_anomalies_total = Counter(
    "kubewatch_schema_anomalies_total",
    "Fields omitted while flattening records.",
)

deliveries_total = Counter(
    "kubewatch_deliveries_total",
    "Record deliveries per sink.",
    ["sink", "success"],
)

watch_restarts_total = Counter(
    "kubewatch_watch_restarts_total",
    "Watch streams reopened after an error or expiry.",
    ["resource", "reason"],
)
