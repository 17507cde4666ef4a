"""Console sink: one JSON line per record on stdout."""

from __future__ import annotations

import sys
from typing import TextIO

from kubewatch.sinks.manager import Sink


class ConsoleSink(Sink):
    """Writes each record as a line to *stream* (stdout by default).

    Best effort: the fan-out logs write failures and carries on.
    """

    fatal = False

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    @property
    def name(self) -> str:
        return "console"

    async def write(self, body: str) -> None:
        stream = self._stream or sys.stdout
        stream.write(body + "\n")
        stream.flush()
