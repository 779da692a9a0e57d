"""Parsing of the ``KEY/value`` header block that precedes each payload."""
from __future__ import annotations

from typing import Optional

from ..diagnostics import (
    EMPTY_METADATA_KEY,
    INVALID_METADATA_BLOCK,
    MALFORMED_METADATA_LINE,
    DiagnosticSink,
    default_sink,
)
from .models import METADATA_SEPARATOR, MetadataMapping


def parse_metadata(block: str, sink: Optional[DiagnosticSink] = None) -> MetadataMapping:
    """Parse header lines into a mapping.

    Blank lines are ignored. Lines without the separator and lines with an
    empty key are skipped with a diagnostic. Values may contain the separator
    since only its first occurrence splits a line. Duplicate keys keep the
    last value.
    """

    sink = sink or default_sink()
    if not isinstance(block, str):
        sink.warn(INVALID_METADATA_BLOCK, "Invalid metadata block provided", block_type=type(block).__name__)
        return MetadataMapping()

    values: dict[str, str] = {}
    for line_number, line in enumerate(block.split("\n"), start=1):
        stripped = line.strip()
        if not stripped:
            continue
        key, separator, value = stripped.partition(METADATA_SEPARATOR)
        if not separator:
            sink.warn(
                MALFORMED_METADATA_LINE,
                f"Malformed metadata line (missing '{METADATA_SEPARATOR}' delimiter)",
                line=stripped,
                line_number=line_number,
            )
            continue
        key = key.strip()
        if not key:
            sink.warn(EMPTY_METADATA_KEY, "Empty metadata key found", line=stripped, line_number=line_number)
            continue
        values[key] = value.strip()
    return MetadataMapping(values)


class MetadataParser:
    """Header parser bound to a diagnostic sink and a single-byte text encoding.

    Multi-byte encoded values are not decoded specially; with the default
    ``latin-1`` every byte maps to exactly one character.
    """

    def __init__(self, sink: Optional[DiagnosticSink] = None, encoding: str = "latin-1") -> None:
        self.sink = sink or default_sink()
        self.encoding = encoding

    def parse(self, block: str | bytes) -> MetadataMapping:
        if isinstance(block, (bytes, bytearray)):
            block = bytes(block).decode(self.encoding, errors="replace")
        return parse_metadata(block, self.sink)
