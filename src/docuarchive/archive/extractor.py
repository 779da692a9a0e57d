"""Write embedded file records into a destination directory."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final, Iterable, List, Optional

from ..diagnostics import PATH_TRAVERSAL_REJECTED, WRITE_FAILURE, DiagnosticSink, default_sink
from ..errors import DestinationInvalidError
from ..telemetry import emit_extract_event
from .models import EmbeddedFileRecord, sentinel_filename

LOGGER = logging.getLogger(__name__)

_ILLEGAL_CHARS_RE: Final[re.Pattern[str]] = re.compile(r'[<>:"/\\|?*\x00-\x1f]')
_PARENT_REFERENCE_RE: Final[re.Pattern[str]] = re.compile(r"\.\.+")


def sanitize_filename(filename: str, fallback: str) -> str:
    """Return a single path component safe to create inside the destination.

    Path separators and characters illegal on common filesystems become
    ``_``; runs of two or more dots collapse to ``_``. ``fallback`` is used
    when nothing usable remains.
    """

    sanitized = _ILLEGAL_CHARS_RE.sub("_", filename or "")
    sanitized = _PARENT_REFERENCE_RE.sub("_", sanitized).strip()
    if not sanitized.strip("._ "):
        sanitized = _PARENT_REFERENCE_RE.sub("_", _ILLEGAL_CHARS_RE.sub("_", fallback)).strip()
    if sanitized in {"", "."}:
        sanitized = "unknown"
    return sanitized


def _is_within(root: Path, candidate: Path) -> bool:
    root_text = os.path.normcase(str(root))
    candidate_text = os.path.normcase(str(candidate))
    return candidate_text.startswith(root_text.rstrip(os.sep) + os.sep)


@dataclass(slots=True)
class ExtractedFile:
    filename: str
    path: Path
    size: int


@dataclass(slots=True)
class SkippedFile:
    filename: str
    reason: str


@dataclass(slots=True)
class ExtractionReport:
    """Outcome of one extraction run; per-file problems never abort the batch."""

    destination: Path
    written: List[ExtractedFile] = field(default_factory=list)
    skipped: List[SkippedFile] = field(default_factory=list)
    failed: List[SkippedFile] = field(default_factory=list)


class DiskExtractor:
    """Validate the destination directory and write each record into it.

    Two records whose names sanitize to the same string are written to the
    same path; the later record wins.
    """

    def __init__(self, sink: Optional[DiagnosticSink] = None) -> None:
        self.sink = sink or default_sink()

    def prepare_destination(self, destination: str | os.PathLike[str]) -> Path:
        """Resolve ``destination`` and make sure it is a writable directory."""

        if isinstance(destination, os.PathLike):
            destination = os.fspath(destination)
        if not isinstance(destination, str) or not destination.strip():
            raise DestinationInvalidError("Invalid output directory: must be a non-empty string")

        root = Path(destination).resolve()
        if root.exists():
            if not root.is_dir():
                raise DestinationInvalidError(f"Output path '{destination}' exists but is not a directory")
            if not os.access(root, os.W_OK | os.X_OK):
                raise DestinationInvalidError(
                    f"Access denied to output directory '{destination}': insufficient permissions to write files."
                )
            return root

        try:
            root.mkdir(parents=True, exist_ok=True)
        except OSError as error:
            raise DestinationInvalidError(
                f"Failed to create output directory '{destination}': {error}", cause=error
            ) from error
        LOGGER.info("Created output directory %s", root)
        return root

    def extract(
        self, records: Iterable[EmbeddedFileRecord], destination: str | os.PathLike[str]
    ) -> ExtractionReport:
        root = self.prepare_destination(destination)
        report = ExtractionReport(destination=root)

        for record in records:
            fallback = sentinel_filename(record.guid, record.extension, record.section_index)
            name = sanitize_filename(record.filename, fallback)
            target = (root / name).resolve()
            if not _is_within(root, target):
                self.sink.warn(
                    PATH_TRAVERSAL_REJECTED,
                    f"Skipping file with suspicious path: {record.filename}",
                    filename=record.filename,
                    resolved=str(target),
                )
                report.skipped.append(SkippedFile(filename=record.filename, reason=PATH_TRAVERSAL_REJECTED))
                continue

            # text records already carry their text encoded with the parse encoding
            try:
                target.write_bytes(record.content)
            except OSError as error:
                self.sink.warn(
                    WRITE_FAILURE,
                    f"Failed to write file {name}: {error}",
                    filename=record.filename,
                    path=str(target),
                )
                report.failed.append(SkippedFile(filename=record.filename, reason=str(error)))
                continue

            report.written.append(ExtractedFile(filename=name, path=target, size=record.size))
            emit_extract_event("extract.file", destination=str(root), file_name=name, size_bytes=record.size)

        emit_extract_event(
            "extract.completed",
            destination=str(root),
            written=len(report.written),
            skipped=len(report.skipped),
            failed=len(report.failed),
        )
        return report


def extract_files_to_disk(
    records: Iterable[EmbeddedFileRecord],
    destination: str | os.PathLike[str],
    *,
    sink: Optional[DiagnosticSink] = None,
) -> ExtractionReport:
    """Write ``records`` under ``destination`` and return what happened to each."""

    return DiskExtractor(sink=sink).extract(records, destination)
