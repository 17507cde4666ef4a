"""Splunk HTTP Event Collector sink.

Each record is POSTed on its own to ``/services/collector/event``. The event
body is the same JSON string written to the console, with the configured
host/index/source/sourcetype labels attached. The collector is the system of
record, so any failure is fatal to the process.
"""

from __future__ import annotations

import time
from typing import Any

import httpx
import structlog

from kubewatch.errors import DeliveryError
from kubewatch.models.config import HECConfig
from kubewatch.sinks.manager import Sink

_log = structlog.get_logger(component="sinks.hec")

_EVENT_PATH = "/services/collector/event"


class HECSink(Sink):
    """Delivers records to a Splunk HEC endpoint.

    One ``httpx.AsyncClient`` is shared by every watch loop; concurrent
    ``write`` calls are safe.

    Args:
        config:    Collector location, token and event labels.
        transport: Optional httpx transport (tests inject a MockTransport).
    """

    fatal = True

    def __init__(self, config: HECConfig, transport: httpx.AsyncBaseTransport | None = None) -> None:
        if not config.host:
            raise ValueError("HEC host must not be empty")
        if not config.token:
            raise ValueError("HEC token must not be empty")
        self._config = config
        self._client = httpx.AsyncClient(
            base_url=config.url,
            headers={"Authorization": f"Splunk {config.token}"},
            timeout=config.timeout_seconds,
            verify=not config.insecure_skip_verify,
            transport=transport,
        )

    @property
    def name(self) -> str:
        return "hec"

    def build_payload(self, body: str) -> dict[str, Any]:
        """Wrap a rendered record in the HEC event envelope; empty labels are omitted."""
        payload: dict[str, Any] = {"event": body, "time": round(time.time(), 3)}
        labels = {
            "host": self._config.event_host,
            "index": self._config.index,
            "source": self._config.source,
            "sourcetype": self._config.sourcetype,
        }
        payload.update({key: value for key, value in labels.items() if value})
        return payload

    async def write(self, body: str) -> None:
        """POST one event.

        Raises:
            DeliveryError: timeout, transport error, non-2xx status, or a
                non-zero HEC status code in the response body.
        """
        try:
            response = await self._client.post(_EVENT_PATH, json=self.build_payload(body))
        except httpx.TimeoutException as exc:
            raise DeliveryError(self.name, f"request timed out after {self._config.timeout_seconds}s") from exc
        except httpx.HTTPError as exc:
            raise DeliveryError(self.name, str(exc)) from exc

        if not response.is_success:
            raise DeliveryError(self.name, f"HTTP {response.status_code}: {response.text[:200]}")

        code = _hec_code(response)
        if code not in (None, 0):
            raise DeliveryError(self.name, f"collector rejected event (code {code}): {response.text[:200]}")
        _log.debug("hec_event_sent", status_code=response.status_code)

    async def close(self) -> None:
        await self._client.aclose()


def _hec_code(response: httpx.Response) -> int | None:
    try:
        data = response.json()
    except ValueError:
        return None
    if isinstance(data, dict) and isinstance(data.get("code"), int):
        return data["code"]
    return None
