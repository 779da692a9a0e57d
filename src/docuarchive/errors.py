"""Common exceptions raised while parsing and extracting compound archives."""
from __future__ import annotations

from pathlib import Path


class DocuArchiveError(RuntimeError):
    """Base class for fatal archive processing failures."""

    def __init__(self, message: str, *, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.__cause__ = cause


class SourceUnavailableError(DocuArchiveError):
    """Raised when the archive source is missing or cannot be read.

    ``kind`` is one of ``"not_found"``, ``"access_denied"`` or ``"io_error"``.
    """

    NOT_FOUND = "not_found"
    ACCESS_DENIED = "access_denied"
    IO_ERROR = "io_error"

    def __init__(self, path: str | Path, kind: str, *, cause: Exception | None = None) -> None:
        self.path = str(path)
        self.kind = kind
        if kind == self.NOT_FOUND:
            message = f"File not found: {self.path}"
        elif kind == self.ACCESS_DENIED:
            message = f"Access denied: {self.path}"
        else:
            detail = f": {cause}" if cause is not None else ""
            message = f"Failed to read archive {self.path}{detail}"
        super().__init__(message, cause=cause)

    @classmethod
    def from_os_error(cls, path: str | Path, error: OSError) -> "SourceUnavailableError":
        if isinstance(error, FileNotFoundError):
            return cls(path, cls.NOT_FOUND, cause=error)
        if isinstance(error, PermissionError):
            return cls(path, cls.ACCESS_DENIED, cause=error)
        return cls(path, cls.IO_ERROR, cause=error)


class DestinationInvalidError(DocuArchiveError):
    """Raised when the extraction destination cannot receive files."""


class ScannerClosedError(DocuArchiveError):
    """Raised when bytes are fed to a scanner that was finished or aborted."""


class CodecError(DocuArchiveError):
    """Raised by image codecs when a payload is not a decodable image."""
