"""Configuration loading from command-line options and environment variables.

Splunk settings keep the ``SPLUNK_*`` names used by existing deployments;
kubewatch's own settings use the ``KUBEWATCH_`` prefix.
"""

from __future__ import annotations

import os
from collections.abc import Sequence

from kubewatch.errors import ConfigurationError
from kubewatch.models.config import APIConfig, HECConfig, KubeWatchConfig, LogConfig, WatchConfig
from kubewatch.observability.logging import LOG_LEVELS


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"KUBEWATCH_{key}", default)


def _splunk(key: str, default: str = "") -> str:
    return os.environ.get(f"SPLUNK_{key}", default)


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("true", "1", "yes"):
        return True
    if lowered in ("false", "0", "no", ""):
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {value!r}")


def _parse_int(name: str, value: str, min_val: int | None = None, max_val: int | None = None) -> int:
    try:
        parsed = int(value)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from None
    if min_val is not None:
        parsed = max(parsed, min_val)
    if max_val is not None:
        parsed = min(parsed, max_val)
    return parsed


def _validate_log_level(value: str) -> str:
    if value.lower() not in LOG_LEVELS:
        raise ConfigurationError(f"Invalid log level: {value}. Must be one of {sorted(LOG_LEVELS)}")
    return value.lower()


def _validate_port(name: str, value: str) -> int:
    port = _parse_int(name, value)
    if not 1 <= port <= 65535:
        raise ConfigurationError(f"{name} must be between 1 and 65535, got {port}")
    return port


def load_hec_config() -> HECConfig:
    """Build the HEC sink settings.

    An empty ``SPLUNK_HEC_HOST`` disables remote delivery. Once a host is set,
    port and token become mandatory.
    """
    host = _splunk("HEC_HOST").strip()
    if not host:
        return HECConfig(enabled=False)

    port = _splunk("HEC_PORT").strip()
    token = _splunk("HEC_TOKEN").strip()
    missing = [name for name, value in (("SPLUNK_HEC_PORT", port), ("SPLUNK_HEC_TOKEN", token)) if not value]
    if missing:
        raise ConfigurationError(f"SPLUNK_HEC_HOST is set but {', '.join(missing)} is missing")

    return HECConfig(
        enabled=True,
        host=host,
        port=_validate_port("SPLUNK_HEC_PORT", port),
        token=token,
        event_host=_splunk("HOST"),
        index=_splunk("INDEX"),
        source=_splunk("SOURCE"),
        sourcetype=_splunk("SOURCETYPE"),
        insecure_skip_verify=_parse_bool(
            "SPLUNK_HEC_INSECURE_SKIP_VERIFY", _splunk("HEC_INSECURE_SKIP_VERIFY", "true")
        ),
        timeout_seconds=float(_parse_int("SPLUNK_HEC_TIMEOUT", _splunk("HEC_TIMEOUT", "10"), min_val=1, max_val=300)),
    )


def load_config(
    resources: Sequence[str],
    namespace: str = "",
    flatten: bool = False,
    kubeconfig: str = "",
) -> KubeWatchConfig:
    """Combine command-line options with SPLUNK_* and KUBEWATCH_* environment variables.

    Raises:
        ConfigurationError: an environment value is malformed or incomplete.
    """
    return KubeWatchConfig(
        watch=WatchConfig(
            resources=list(resources),
            namespace=namespace,
            flatten=flatten,
            kubeconfig=kubeconfig,
            timeout_seconds=_parse_int("KUBEWATCH_WATCH_TIMEOUT", _env("WATCH_TIMEOUT", "300"), 30, 3600),
        ),
        hec=load_hec_config(),
        api=APIConfig(port=_parse_int("KUBEWATCH_API_PORT", _env("API_PORT", "8080"), 0, 65535)),
        log=LogConfig(level=_validate_log_level(_env("LOG_LEVEL", "info"))),
    )


def default_kubeconfig_path() -> str:
    """Return ``~/.kube/config`` if it exists, else "" (in-cluster configuration)."""
    path = os.path.join(os.path.expanduser("~"), ".kube", "config")
    return path if os.path.exists(path) else ""
