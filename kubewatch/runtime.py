"""Shared run context: one cancellation signal for every watch loop."""

from __future__ import annotations

import asyncio
import contextlib

import structlog

_log = structlog.get_logger(component="runtime")


class RunContext:
    """Cooperative shutdown signal shared by the supervisor and its loops.

    ``request_stop`` is used for external shutdown (signals); ``fail`` records
    the fatal error that caused the stop. Only the first failure is kept.
    """

    def __init__(self) -> None:
        self._stop = asyncio.Event()
        self._failure: BaseException | None = None
        self._reason = ""

    @property
    def stopping(self) -> bool:
        return self._stop.is_set()

    @property
    def failure(self) -> BaseException | None:
        return self._failure

    @property
    def reason(self) -> str:
        return self._reason

    def request_stop(self, reason: str) -> None:
        if self._stop.is_set():
            return
        self._reason = reason
        _log.info("stop_requested", reason=reason)
        self._stop.set()

    def fail(self, exc: BaseException) -> None:
        if self._failure is None:
            self._failure = exc
        self.request_stop(f"fatal: {exc}")

    async def wait(self) -> None:
        await self._stop.wait()

    async def sleep(self, seconds: float) -> bool:
        """Sleep up to *seconds*; return True if a stop was requested meanwhile."""
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(self._stop.wait(), timeout=seconds)
        return self._stop.is_set()
