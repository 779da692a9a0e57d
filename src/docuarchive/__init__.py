"""Recover embedded files from proprietary ``**%%DOCU`` compound archives."""

from .archive import (
    ArchiveParser,
    DiskExtractor,
    EmbeddedFileRecord,
    extract_files_to_disk,
    parse_compound_file,
)
from .errors import DestinationInvalidError, DocuArchiveError, SourceUnavailableError

__all__ = [
    "ArchiveParser",
    "DestinationInvalidError",
    "DiskExtractor",
    "DocuArchiveError",
    "EmbeddedFileRecord",
    "SourceUnavailableError",
    "extract_files_to_disk",
    "parse_compound_file",
]
