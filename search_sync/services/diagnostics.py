"""Destinations for the per-batch record size report.

A batch run from a console writes the report to a stream; requests coming
through the admin API collect it as a notice returned to the caller.
Everything else logs it.
"""

import logging
import sys
from typing import Optional, Protocol, TextIO

logger = logging.getLogger(__name__)


class DiagnosticSink(Protocol):
    """Receives one formatted report per batch."""

    separator: str

    def emit(self, message: str) -> None: ...


class LoggingSink:
    """Log the report as a warning."""

    separator = "\n"

    def __init__(self, target: Optional[logging.Logger] = None):
        self._logger = target or logger

    def emit(self, message: str) -> None:
        self._logger.warning(message)


class ConsoleSink:
    """Write the report to a console stream (stdout by default).

    Used by the batch reindexing script (``python -m search_sync.reindex``).
    """

    separator = "\n"

    def __init__(self, stream: Optional[TextIO] = None):
        self._stream = stream

    def emit(self, message: str) -> None:
        stream = self._stream or sys.stdout
        stream.write(message + "\n")
        stream.flush()


class NoticeSink:
    """Collect reports as user-facing notices (HTML line breaks)."""

    separator = "<br>"

    def __init__(self):
        self.messages: list[str] = []

    def emit(self, message: str) -> None:
        self.messages.append(message)

    def drain(self) -> list[str]:
        """Return and forget the collected notices."""
        messages, self.messages = self.messages, []
        return messages
