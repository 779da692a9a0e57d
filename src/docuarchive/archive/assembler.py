"""Build :class:`EmbeddedFileRecord` objects from raw archive sections."""
from __future__ import annotations

from typing import Optional

from ..diagnostics import MALFORMED_SECTION, DiagnosticSink, default_sink
from .metadata import MetadataParser
from .models import (
    SIGNATURE_MARKER,
    EmbeddedFileRecord,
    LineRange,
    RawSection,
    normalize_extension,
    sentinel_filename,
)
from .normalization import ContentNormalizer, strip_payload_remnants


def compute_line_range(section: RawSection, document: bytes) -> Optional[LineRange]:
    """Locate ``section`` in the full document and return its 1-based line span."""

    position = document.find(section.data)
    if position == -1:
        return None
    start = document.count(b"\n", 0, position) + 1
    return LineRange(start=start, end=start + section.data.count(b"\n"))


class RecordAssembler:
    """Split a section at the signature marker and normalize both halves.

    Assembly keeps no state between sections, so one assembler may be shared
    by several worker threads.
    """

    def __init__(
        self,
        metadata_parser: Optional[MetadataParser] = None,
        normalizer: Optional[ContentNormalizer] = None,
        sink: Optional[DiagnosticSink] = None,
    ) -> None:
        self.sink = sink or default_sink()
        self.metadata_parser = metadata_parser or MetadataParser(sink=self.sink)
        self.normalizer = normalizer or ContentNormalizer(sink=self.sink)

    def assemble(self, section: RawSection, document: Optional[bytes] = None) -> Optional[EmbeddedFileRecord]:
        """Return the record for ``section`` or ``None`` when it has no signature marker.

        ``document`` is the complete archive; when given, the record carries
        its line range. Streaming callers leave it out and the range stays
        ``None``.
        """

        marker = section.data.find(SIGNATURE_MARKER)
        if marker == -1:
            self.sink.warn(
                MALFORMED_SECTION,
                f"Section {section.index} missing {SIGNATURE_MARKER.decode()} marker, skipping",
                section=section.index,
                size_bytes=len(section.data),
            )
            return None

        metadata = self.metadata_parser.parse(section.data[:marker])
        payload = strip_payload_remnants(section.data[marker + len(SIGNATURE_MARKER) :])
        normalized = self.normalizer.normalize(metadata, payload)

        extension = normalized.extension or normalize_extension(metadata.get("EXT"))
        filename = (normalized.filename or metadata.get("FILENAME")).strip()
        if not filename:
            filename = sentinel_filename(metadata.get("GUID"), extension, section.index)
        if normalized.filename:
            metadata = metadata.with_value("FILENAME", normalized.filename)

        return EmbeddedFileRecord(
            filename=filename,
            extension=extension,
            type=metadata.get("TYPE"),
            doctype=metadata.get("DOCTYPE"),
            sha1=metadata.get("SHA1"),
            guid=metadata.get("GUID"),
            env_guid=metadata.get("ENV_GUID"),
            content=normalized.content,
            kind=normalized.kind,
            text=normalized.text,
            section_index=section.index,
            line_range=compute_line_range(section, document) if document is not None else None,
            metadata=metadata,
        )
