"""Data models shared by the archive scanner, assembler and extractor."""
from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

DELIMITER = b"**%%DOCU"
SIGNATURE_MARKER = b"_SIG/D.C."
METADATA_SEPARATOR = "/"

METADATA_KEYS = ("FILENAME", "EXT", "TYPE", "DOCTYPE", "SHA1", "GUID", "ENV_GUID")


class ContentKind(str, Enum):
    """Payload families the normalizer knows how to clean up."""

    IMAGE = "IMAGE"
    PLAINTEXT = "PLAINTEXT"
    XML = "XML"
    FORM = "FORM"
    BINARY = "BINARY"

    @classmethod
    def detect(cls, declared_type: str, doctype: str = "", extension: str = "") -> "ContentKind":
        """Pick the kind from the declared TYPE, then DOCTYPE, then a ``.txt`` extension."""

        for value in (declared_type, doctype):
            upper = (value or "").upper()
            for kind in (cls.IMAGE, cls.PLAINTEXT, cls.XML, cls.FORM):
                if kind.value in upper:
                    return kind
        if (extension or "").lower() in {".txt", "txt"}:
            return cls.PLAINTEXT
        return cls.BINARY

    @property
    def is_text(self) -> bool:
        return self in (ContentKind.PLAINTEXT, ContentKind.XML, ContentKind.FORM)


@dataclass(frozen=True, slots=True)
class RawSection:
    """Bytes between two delimiter tokens, numbered in discovery order."""

    index: int
    data: bytes


class MetadataMapping(Mapping[str, str]):
    """Read-only header mapping; missing keys read as an empty string via :meth:`get`."""

    __slots__ = ("_values",)

    def __init__(self, values: Optional[Mapping[str, str]] = None) -> None:
        self._values: dict[str, str] = dict(values or {})

    def __getitem__(self, key: str) -> str:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, MetadataMapping):
            return self._values == other._values
        if isinstance(other, Mapping):
            return self._values == dict(other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"MetadataMapping({self._values!r})"

    def get(self, key: str, default: str = "") -> str:  # type: ignore[override]
        return self._values.get(key, default)

    def with_value(self, key: str, value: str) -> "MetadataMapping":
        updated = dict(self._values)
        updated[key] = value
        return MetadataMapping(updated)

    def serialize(self) -> str:
        """Render the mapping back into ``KEY/value`` header lines."""

        return "".join(f"{key}{METADATA_SEPARATOR}{value}\n" for key, value in self._values.items())


@dataclass(frozen=True, slots=True)
class LineRange:
    """1-based line span of a section inside the full archive document."""

    start: int
    end: int


@dataclass(frozen=True, slots=True)
class EmbeddedFileRecord:
    """An embedded file recovered from one archive section."""

    filename: str
    extension: str
    type: str
    doctype: str
    sha1: str
    guid: str
    env_guid: str
    content: bytes
    kind: ContentKind = ContentKind.BINARY
    text: Optional[str] = None
    section_index: int = 0
    line_range: Optional[LineRange] = None
    metadata: MetadataMapping = field(default_factory=MetadataMapping, compare=False, repr=False)

    def __post_init__(self) -> None:
        if not self.filename:
            raise ValueError("EmbeddedFileRecord.filename must not be empty")

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def start_line(self) -> Optional[int]:
        return self.line_range.start if self.line_range else None

    @property
    def end_line(self) -> Optional[int]:
        return self.line_range.end if self.line_range else None


def normalize_extension(extension: str) -> str:
    extension = (extension or "").strip()
    if extension and not extension.startswith("."):
        return f".{extension}"
    return extension


def sentinel_filename(guid: str, extension: str, section_index: int) -> str:
    """Fallback name used when a section declares no usable FILENAME."""

    identifier = (guid or "").strip()[:8] or f"section{section_index}"
    return f"unknown_{identifier}{normalize_extension(extension)}"
