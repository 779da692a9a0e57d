"""Image codec capability used to validate embedded image payloads."""
from __future__ import annotations

import io
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from PIL import Image, UnidentifiedImageError

from ..errors import CodecError

LOGGER = logging.getLogger(__name__)

RIFF_MAGIC = b"RIFF"
WEBP_FOURCC = b"WEBP"
JPEG_SOI = b"\xff\xd8"

__all__ = [
    "CodecResult",
    "ImageCodec",
    "PillowImageCodec",
    "SignatureScanCodec",
    "scan_image_signature",
]


@dataclass(frozen=True, slots=True)
class CodecResult:
    """Detected image format (lower-case, e.g. ``"jpeg"``) and validated bytes."""

    format: str
    data: bytes


class ImageCodec(ABC):
    """Abstract interface for image inspection backends."""

    @abstractmethod
    def inspect(self, data: bytes) -> CodecResult:
        """Detect the image format of ``data``; raise :class:`CodecError` if unreadable."""


class PillowImageCodec(ImageCodec):
    """Decode images with Pillow, optionally re-encoding them in their own format."""

    def __init__(self, reencode: bool = False) -> None:
        self.reencode = reencode

    def inspect(self, data: bytes) -> CodecResult:
        try:
            with Image.open(io.BytesIO(data)) as image:
                image.load()
                image_format = (image.format or "").lower()
                if not image_format:
                    raise CodecError("Pillow could not determine the image format")
                if not self.reencode:
                    return CodecResult(format=image_format, data=data)
                output = io.BytesIO()
                image.save(output, format=image.format)
                return CodecResult(format=image_format, data=output.getvalue())
        except CodecError:
            raise
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError, SyntaxError) as error:
            raise CodecError(f"Unreadable image stream: {error}", cause=error) from error


def _signature_offset(data: bytes) -> tuple[int, str]:
    riff_position = data.find(RIFF_MAGIC)
    if riff_position != -1:
        fourcc = data[riff_position + 8 : riff_position + 12]
        return riff_position, "webp" if fourcc == WEBP_FOURCC else "riff"
    jpeg_position = data.find(JPEG_SOI)
    if jpeg_position != -1:
        return jpeg_position, "jpeg"
    return -1, ""


def scan_image_signature(data: bytes) -> bytes:
    """Truncate leading noise up to the first RIFF magic, else the first JPEG SOI.

    RIFF is looked for first. When neither signature occurs the bytes are
    returned unchanged.
    """

    position, _ = _signature_offset(data)
    if position == -1:
        return data
    if position:
        LOGGER.debug("Dropping %s bytes before image signature", position)
    return data[position:]


class SignatureScanCodec(ImageCodec):
    """Codec that relies only on byte signatures; needs no imaging library."""

    def inspect(self, data: bytes) -> CodecResult:
        position, image_format = _signature_offset(data)
        if position == -1:
            raise CodecError("No RIFF or JPEG signature found in image payload")
        return CodecResult(format=image_format, data=data[position:])
