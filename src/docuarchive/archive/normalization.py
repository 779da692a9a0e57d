"""Heuristic recovery of clean payloads from raw section content."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional

from ..diagnostics import CODEC_FAILURE, DiagnosticSink, default_sink
from ..errors import CodecError
from .codecs import ImageCodec, PillowImageCodec, scan_image_signature
from .models import SIGNATURE_MARKER, ContentKind, MetadataMapping

LOGGER = logging.getLogger(__name__)

MIN_TEXT_RUN = 10
XML_START_LITERALS = ("<?xml", "<FORMINFO", "<VALUATION_RESPONSE")

# Detected format -> extension used to correct a ``.jpg`` declared filename.
ALTERNATE_IMAGE_EXTENSIONS = {
    "webp": ".webp",
    "png": ".png",
    "gif": ".gif",
}

_PRINTABLE_RUN_RE = re.compile(rb"[\x20-\x7e\t\n\r]{%d,}" % MIN_TEXT_RUN)
_LEADING_NOISE_RE = re.compile(r"^[^\x20-\x7e\u00a0-\uffff]+")
_TEXT_REMNANT_RE = re.compile(r"\*\*%%.*\Z", re.DOTALL)
_TEXT_STARS_RE = re.compile(r"\*\*\Z")
_BYTES_REMNANT_RE = re.compile(rb"\*\*%%[^\n]*\Z")
_BYTES_STARS_RE = re.compile(rb"\*\*\Z")


def strip_text_remnants(text: str) -> str:
    """Remove a trailing delimiter fragment and a final ``**``, then trim."""

    text = _TEXT_REMNANT_RE.sub("", text)
    text = _TEXT_STARS_RE.sub("", text.rstrip())
    return text.strip()


def strip_payload_remnants(data: bytes) -> bytes:
    """Remove a trailing delimiter fragment and a final ``**`` from raw bytes."""

    data = _BYTES_REMNANT_RE.sub(b"", data)
    return _BYTES_STARS_RE.sub(b"", data)


@dataclass(frozen=True, slots=True)
class NormalizedPayload:
    kind: ContentKind
    content: bytes
    text: Optional[str] = None
    filename: Optional[str] = None
    extension: Optional[str] = None
    image_format: Optional[str] = None


class ContentNormalizer:
    """Dispatch a payload to the cleanup routine for its declared content kind."""

    def __init__(
        self,
        codec: Optional[ImageCodec] = None,
        sink: Optional[DiagnosticSink] = None,
        encoding: str = "latin-1",
    ) -> None:
        self.codec = codec if codec is not None else PillowImageCodec()
        self.sink = sink or default_sink()
        self.encoding = encoding

    def normalize(self, metadata: MetadataMapping, raw: bytes) -> NormalizedPayload:
        kind = ContentKind.detect(metadata.get("TYPE"), metadata.get("DOCTYPE"), metadata.get("EXT"))
        if kind is ContentKind.IMAGE:
            return self.normalize_image(metadata, raw)
        if kind is ContentKind.PLAINTEXT:
            return self._text_payload(kind, self.extract_text(raw))
        if kind in (ContentKind.XML, ContentKind.FORM):
            return self._text_payload(kind, self.extract_xml(raw))
        return NormalizedPayload(kind=kind, content=bytes(raw))

    def normalize_image(self, metadata: MetadataMapping, raw: bytes) -> NormalizedPayload:
        try:
            result = self.codec.inspect(raw)
        except CodecError as error:
            self.sink.warn(
                CODEC_FAILURE,
                "Image codec rejected payload; falling back to signature scan",
                filename=metadata.get("FILENAME"),
                error=str(error),
            )
            return NormalizedPayload(kind=ContentKind.IMAGE, content=scan_image_signature(raw))

        filename = None
        extension = None
        declared = metadata.get("FILENAME")
        replacement = ALTERNATE_IMAGE_EXTENSIONS.get(result.format)
        if replacement and declared.lower().endswith(".jpg"):
            filename = declared[: -len(".jpg")] + replacement
            if metadata.get("EXT").lower() in {".jpg", "jpg"}:
                extension = replacement
            LOGGER.info("Detected %s image declared as %s; renaming to %s", result.format, declared, filename)
        return NormalizedPayload(
            kind=ContentKind.IMAGE,
            content=result.data,
            filename=filename,
            extension=extension,
            image_format=result.format,
        )

    def extract_text(self, raw: bytes) -> str:
        """Recover readable text, skipping binary noise in front of it."""

        match = _PRINTABLE_RUN_RE.search(raw)
        if match:
            return strip_text_remnants(self._decode(raw[match.start() :]))

        marker = raw.find(SIGNATURE_MARKER)
        if marker != -1:
            text = self._decode(raw[marker + len(SIGNATURE_MARKER) :])
        else:
            text = self._decode(raw)
        return strip_text_remnants(_LEADING_NOISE_RE.sub("", text))

    def extract_xml(self, raw: bytes) -> str:
        """Slice decoded content from the first known XML start literal."""

        text = self._decode(raw)
        for literal in XML_START_LITERALS:
            start = text.find(literal)
            if start != -1:
                return strip_text_remnants(text[start:])
        return text.strip()

    def _decode(self, data: bytes) -> str:
        return data.decode(self.encoding, errors="replace")

    def _text_payload(self, kind: ContentKind, text: str) -> NormalizedPayload:
        content = text.encode(self.encoding, errors="replace")
        return NormalizedPayload(kind=kind, content=content, text=text)
