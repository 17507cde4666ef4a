"""Unit tests for configuration loading."""

from __future__ import annotations

import pytest

from kubewatch.config import default_kubeconfig_path, load_config, load_hec_config
from kubewatch.errors import ConfigurationError

_ENV_KEYS = [
    "SPLUNK_HEC_HOST",
    "SPLUNK_HEC_PORT",
    "SPLUNK_HEC_TOKEN",
    "SPLUNK_HOST",
    "SPLUNK_INDEX",
    "SPLUNK_SOURCE",
    "SPLUNK_SOURCETYPE",
    "SPLUNK_HEC_INSECURE_SKIP_VERIFY",
    "SPLUNK_HEC_TIMEOUT",
    "KUBEWATCH_LOG_LEVEL",
    "KUBEWATCH_API_PORT",
    "KUBEWATCH_WATCH_TIMEOUT",
]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def _set_hec(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SPLUNK_HEC_HOST", "splunk.example")
    monkeypatch.setenv("SPLUNK_HEC_PORT", "8088")
    monkeypatch.setenv("SPLUNK_HEC_TOKEN", "secret-token")


class TestDefaults:
    def test_defaults(self) -> None:
        config = load_config(["pods"])
        assert config.watch.resources == ["pods"]
        assert config.watch.namespace == ""
        assert config.watch.flatten is False
        assert config.watch.timeout_seconds == 300
        assert config.hec.enabled is False
        assert config.api.port == 8080
        assert config.log.level == "info"

    def test_options_are_carried(self) -> None:
        config = load_config(["pods", "services"], namespace="default", flatten=True, kubeconfig="/tmp/kc")
        assert config.watch.resources == ["pods", "services"]
        assert config.watch.namespace == "default"
        assert config.watch.flatten is True
        assert config.watch.kubeconfig == "/tmp/kc"


class TestHECConfig:
    def test_full_hec_config(self, monkeypatch: pytest.MonkeyPatch) -> None:
        _set_hec(monkeypatch)
        monkeypatch.setenv("SPLUNK_HOST", "cluster-a")
        monkeypatch.setenv("SPLUNK_INDEX", "k8s")
        monkeypatch.setenv("SPLUNK_SOURCE", "kubewatch")
        monkeypatch.setenv("SPLUNK_SOURCETYPE", "_json")
        hec = load_hec_config()
        assert hec.enabled is True
        assert hec.url == "https://splunk.example:8088"
        assert hec.token == "secret-token"
        assert (hec.event_host, hec.index, hec.source, hec.sourcetype) == ("cluster-a", "k8s", "kubewatch", "_json")
        assert hec.insecure_skip_verify is True
        assert hec.timeout_seconds == 10.0

    def test_host_without_port_or_token(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SPLUNK_HEC_HOST", "splunk.example")
        with pytest.raises(ConfigurationError, match="SPLUNK_HEC_PORT, SPLUNK_HEC_TOKEN"):
            load_hec_config()

    def test_invalid_port(self, monkeypatch: pytest.MonkeyPatch) -> None:
        _set_hec(monkeypatch)
        monkeypatch.setenv("SPLUNK_HEC_PORT", "http")
        with pytest.raises(ConfigurationError, match="integer"):
            load_hec_config()
        monkeypatch.setenv("SPLUNK_HEC_PORT", "70000")
        with pytest.raises(ConfigurationError, match="between"):
            load_hec_config()

    def test_tls_verification_toggle(self, monkeypatch: pytest.MonkeyPatch) -> None:
        _set_hec(monkeypatch)
        monkeypatch.setenv("SPLUNK_HEC_INSECURE_SKIP_VERIFY", "false")
        assert load_hec_config().insecure_skip_verify is False
        monkeypatch.setenv("SPLUNK_HEC_INSECURE_SKIP_VERIFY", "maybe")
        with pytest.raises(ConfigurationError, match="boolean"):
            load_hec_config()

    def test_timeout_is_clamped(self, monkeypatch: pytest.MonkeyPatch) -> None:
        _set_hec(monkeypatch)
        monkeypatch.setenv("SPLUNK_HEC_TIMEOUT", "0")
        assert load_hec_config().timeout_seconds == 1.0
        monkeypatch.setenv("SPLUNK_HEC_TIMEOUT", "9999")
        assert load_hec_config().timeout_seconds == 300.0


class TestKubeWatchSettings:
    def test_log_level(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KUBEWATCH_LOG_LEVEL", "DEBUG")
        assert load_config(["pods"]).log.level == "debug"
        monkeypatch.setenv("KUBEWATCH_LOG_LEVEL", "verbose")
        with pytest.raises(ConfigurationError, match="Invalid log level"):
            load_config(["pods"])

    def test_api_port_zero_disables(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KUBEWATCH_API_PORT", "0")
        assert load_config(["pods"]).api.port == 0

    def test_watch_timeout_is_clamped(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KUBEWATCH_WATCH_TIMEOUT", "5")
        assert load_config(["pods"]).watch.timeout_seconds == 30


class TestKubeconfigPath:
    def test_existing_home_kubeconfig(self, monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
        (tmp_path / ".kube").mkdir()
        (tmp_path / ".kube" / "config").write_text("apiVersion: v1\n")
        monkeypatch.setenv("HOME", str(tmp_path))
        assert default_kubeconfig_path() == str(tmp_path / ".kube" / "config")

    def test_missing_kubeconfig_means_in_cluster(self, monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
        monkeypatch.setenv("HOME", str(tmp_path))
        assert default_kubeconfig_path() == ""
