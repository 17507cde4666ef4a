"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class WatchConfig:
    """What to watch and how to render it."""

    resources: list[str] = field(default_factory=list)
    namespace: str = ""
    flatten: bool = False
    kubeconfig: str = ""
    timeout_seconds: int = 300


@dataclass
class HECConfig:
    """Splunk HTTP Event Collector sink configuration.

    ``enabled`` is False when no collector host is configured; records then
    only go to the console.
    """

    enabled: bool = False
    host: str = ""
    port: int = 8088
    token: str = ""
    event_host: str = ""
    index: str = ""
    source: str = ""
    sourcetype: str = ""
    insecure_skip_verify: bool = True
    timeout_seconds: float = 10.0

    @property
    def url(self) -> str:
        return f"https://{self.host}:{self.port}"


@dataclass
class APIConfig:
    """Health and metrics endpoint configuration. Port 0 disables it."""

    port: int = 8080


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "info"


@dataclass
class KubeWatchConfig:
    """Top-level kubewatch configuration."""

    watch: WatchConfig = field(default_factory=WatchConfig)
    hec: HECConfig = field(default_factory=HECConfig)
    api: APIConfig = field(default_factory=APIConfig)
    log: LogConfig = field(default_factory=LogConfig)
