"""Compound archive scanning, normalization and extraction."""
from __future__ import annotations

from .assembler import RecordAssembler, compute_line_range
from .codecs import CodecResult, ImageCodec, PillowImageCodec, SignatureScanCodec, scan_image_signature
from .extractor import DiskExtractor, ExtractionReport, extract_files_to_disk, sanitize_filename
from .metadata import MetadataParser, parse_metadata
from .models import (
    DELIMITER,
    SIGNATURE_MARKER,
    ContentKind,
    EmbeddedFileRecord,
    LineRange,
    MetadataMapping,
    RawSection,
)
from .normalization import ContentNormalizer, NormalizedPayload
from .pipeline import ArchiveParser, ArchiveParserConfig, parse_compound_file
from .scanner import ScannerState, SectionScanner

__all__ = [
    "DELIMITER",
    "SIGNATURE_MARKER",
    "ArchiveParser",
    "ArchiveParserConfig",
    "CodecResult",
    "ContentKind",
    "ContentNormalizer",
    "DiskExtractor",
    "EmbeddedFileRecord",
    "ExtractionReport",
    "ImageCodec",
    "LineRange",
    "MetadataMapping",
    "MetadataParser",
    "NormalizedPayload",
    "PillowImageCodec",
    "RawSection",
    "RecordAssembler",
    "ScannerState",
    "SectionScanner",
    "SignatureScanCodec",
    "compute_line_range",
    "extract_files_to_disk",
    "parse_compound_file",
    "parse_metadata",
    "sanitize_filename",
    "scan_image_signature",
]
