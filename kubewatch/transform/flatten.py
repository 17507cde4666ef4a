"""Flatten a canonical record into ``{path: string}`` pairs.

Keys are built top-down from the root prefix:

* mapping entries append ``"_" + key``
* a sequence emits ``<path>#`` holding its length, then each element under
  ``<path><index>`` (no separator)
* booleans become ``"true"`` / ``"false"``, numbers a fixed-point decimal,
  strings are copied verbatim

The transform is lossy: ``True``, ``"true"`` and the number ``1`` vs the
string ``"1"`` are indistinguishable in the output. Consumers that index only
flat string fields accept that trade-off.

Fields that cannot be flattened (nulls, values with no JSON counterpart,
non-string mapping keys, keys that collide with an earlier path) are reported
as SchemaAnomaly and omitted; the rest of the record is still produced.
"""

from __future__ import annotations

from collections.abc import Callable
from decimal import Decimal
from typing import Any, assert_never

import structlog

from kubewatch.errors import SchemaAnomaly
from kubewatch.models.document import (
    BoolNode,
    MappingNode,
    Node,
    NullNode,
    NumberNode,
    OpaqueNode,
    SequenceNode,
    StringNode,
    decode_document,
    is_node,
)
from kubewatch.models.events import FlatRecord
from kubewatch.observability.metrics import schema_anomalies_total

_log = structlog.get_logger(component="transform.flatten")

ROOT_PREFIX = "kubewatch"

AnomalyHandler = Callable[[SchemaAnomaly], None]


def format_number(value: int | float) -> str:
    """Render a number as a plain decimal: no exponent, no trailing zeros.

    ``2`` and ``2.0`` both render as ``"2"``; ``1e-5`` as ``"0.00001"``.
    """
    if isinstance(value, int):
        return str(value)
    return format(Decimal(repr(value)).normalize(), "f")


def log_anomaly(anomaly: SchemaAnomaly) -> None:
    schema_anomalies_total.inc()
    _log.warning("schema_anomaly", path=anomaly.path, detail=anomaly.detail)


def flatten(
    doc: Node | Any,
    root_prefix: str = ROOT_PREFIX,
    *,
    on_anomaly: AnomalyHandler | None = None,
) -> FlatRecord:
    """Flatten *doc* into a new FlatRecord.

    Args:
        doc:         A document node, or any JSON-shaped value (decoded first).
        root_prefix: Prefix every key starts with.
        on_anomaly:  Called once per omitted field. Defaults to a warning log.
    """
    node = doc if is_node(doc) else decode_document(doc)
    out: FlatRecord = {}
    _walk(node, root_prefix, out, on_anomaly or log_anomaly)
    return out


def _child_key(prefix: str, key: str) -> str:
    return f"{prefix}_{key}" if prefix else key


def _emit(out: FlatRecord, key: str, value: str, report: AnomalyHandler) -> None:
    if key in out:
        report(SchemaAnomaly(key, "duplicate key; keeping first value"))
        return
    out[key] = value


def _walk(node: Node, prefix: str, out: FlatRecord, report: AnomalyHandler) -> None:
    match node:
        case BoolNode(value=value):
            _emit(out, prefix, "true" if value else "false", report)
        case NumberNode(value=value):
            _emit(out, prefix, format_number(value), report)
        case StringNode(value=value):
            _emit(out, prefix, value, report)
        case MappingNode(entries=entries, invalid_keys=invalid_keys):
            for bad_key in invalid_keys:
                report(SchemaAnomaly(prefix, f"map key is not a string: {bad_key}"))
            for key, child in entries:
                _walk(child, _child_key(prefix, key), out, report)
        case SequenceNode(items=items):
            _emit(out, f"{prefix}#", str(len(items)), report)
            for index, child in enumerate(items):
                _walk(child, f"{prefix}{index}", out, report)
        case NullNode():
            report(SchemaAnomaly(prefix, "null value"))
        case OpaqueNode(type_name=type_name):
            report(SchemaAnomaly(prefix, f"unsupported value of type {type_name}"))
        case _:
            assert_never(node)
