"""Structured lifecycle logging for archive parsing and extraction."""

from __future__ import annotations

import logging
import traceback
from typing import Any, Optional


LOGGER = logging.getLogger("docuarchive.telemetry")
AUDIT_LOGGER = logging.getLogger("docuarchive.extract.audit")


def _format_exception(error: BaseException) -> str:
    return "".join(traceback.format_exception(error.__class__, error, error.__traceback__))


def log_event(
    logger: Optional[logging.Logger],
    step: str,
    *,
    level: str = "info",
    source: str | None = None,
    duration_ms: float | None = None,
    exc: BaseException | str | None = None,
    details: dict[str, Any] | None = None,
    extra: dict[str, Any] | None = None,
    **payload: Any,
) -> None:
    """Emit a structured log event with the agreed-upon schema."""

    logger = logger or LOGGER
    event: dict[str, Any] = {"step": step, "module": logger.name}
    if source:
        event["source"] = source
    if duration_ms is not None:
        event["duration_ms"] = round(duration_ms, 3)
    if details is not None:
        event["details"] = details
    if extra:
        event.update(extra)
    event.update(payload)

    exc_info = None
    if exc is not None:
        if isinstance(exc, BaseException):
            event["exc"] = _format_exception(exc)
            exc_info = (exc.__class__, exc, exc.__traceback__)
        else:
            event["exc"] = str(exc)

    log_method = getattr(logger, level.lower(), logger.info)
    log_method(event, exc_info=exc_info)


def emit_parse_event(
    step: str,
    *,
    source: str,
    streaming: bool,
    sections: int | None = None,
    records: int | None = None,
    duration_ms: float | None = None,
    error: BaseException | None = None,
) -> None:
    details = {
        "streaming": streaming,
        "sections": sections,
        "records": records,
    }
    level = "error" if error else "info"
    log_event(LOGGER, step, level=level, source=source, duration_ms=duration_ms, details=details, exc=error)


def emit_extract_event(
    step: str,
    *,
    destination: str,
    file_name: str | None = None,
    size_bytes: int | None = None,
    written: int | None = None,
    skipped: int | None = None,
    failed: int | None = None,
) -> None:
    details = {
        "file": file_name,
        "size_bytes": size_bytes,
        "written": written,
        "skipped": skipped,
        "failed": failed,
    }
    log_event(AUDIT_LOGGER, step, destination=destination, details=details)
