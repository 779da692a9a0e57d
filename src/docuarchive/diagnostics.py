"""Injectable sinks for recoverable parsing and extraction warnings."""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, List, Optional

from .telemetry import log_event

__all__ = [
    "CODEC_FAILURE",
    "EMPTY_METADATA_KEY",
    "INVALID_METADATA_BLOCK",
    "MALFORMED_METADATA_LINE",
    "MALFORMED_SECTION",
    "PATH_TRAVERSAL_REJECTED",
    "SECTION_FAILURE",
    "WRITE_FAILURE",
    "CollectingDiagnosticSink",
    "DiagnosticEvent",
    "DiagnosticSink",
    "LoggingDiagnosticSink",
    "default_sink",
]

MALFORMED_SECTION = "malformed_section"
MALFORMED_METADATA_LINE = "malformed_metadata_line"
EMPTY_METADATA_KEY = "empty_metadata_key"
INVALID_METADATA_BLOCK = "invalid_metadata_block"
CODEC_FAILURE = "codec_failure"
SECTION_FAILURE = "section_failure"
PATH_TRAVERSAL_REJECTED = "path_traversal_rejected"
WRITE_FAILURE = "write_failure"


@dataclass(frozen=True, slots=True)
class DiagnosticEvent:
    """A structured warning: a stable code, a readable message and context."""

    code: str
    message: str
    context: dict[str, Any] = field(default_factory=dict)


class DiagnosticSink(ABC):
    """Receives diagnostic events emitted by the archive components."""

    @abstractmethod
    def emit(self, event: DiagnosticEvent) -> None:
        """Record a single diagnostic event."""

    def warn(self, code: str, message: str, **context: Any) -> None:
        self.emit(DiagnosticEvent(code=code, message=message, context=context))


class LoggingDiagnosticSink(DiagnosticSink):
    """Forward diagnostics to the structured logger."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger or logging.getLogger("docuarchive.diagnostics")

    def emit(self, event: DiagnosticEvent) -> None:
        log_event(
            self.logger,
            event.code,
            level="warning",
            message=event.message,
            details=dict(event.context),
        )


class CollectingDiagnosticSink(DiagnosticSink):
    """Keep diagnostics in memory so callers can inspect them afterwards."""

    def __init__(self, forward: Optional[DiagnosticSink] = None) -> None:
        self.events: List[DiagnosticEvent] = []
        self._forward = forward
        self._lock = threading.Lock()

    def emit(self, event: DiagnosticEvent) -> None:
        with self._lock:
            self.events.append(event)
        if self._forward is not None:
            self._forward.emit(event)

    def codes(self) -> list[str]:
        return [event.code for event in self.events]

    def clear(self) -> None:
        with self._lock:
            self.events.clear()


_DEFAULT_SINK = LoggingDiagnosticSink()


def default_sink() -> DiagnosticSink:
    return _DEFAULT_SINK
