from __future__ import annotations

import pytest

from docuarchive.archive.codecs import PillowImageCodec, SignatureScanCodec, scan_image_signature
from docuarchive.errors import CodecError

WEBP_HEADER = b"RIFF\x24\x00\x00\x00WEBPVP8 "


def test_pillow_codec_detects_jpeg(jpeg_bytes: bytes) -> None:
    result = PillowImageCodec().inspect(jpeg_bytes)

    assert result.format == "jpeg"
    assert result.data == jpeg_bytes


def test_pillow_codec_detects_png(png_bytes: bytes) -> None:
    assert PillowImageCodec().inspect(png_bytes).format == "png"


def test_pillow_codec_reencodes_when_requested(png_bytes: bytes) -> None:
    result = PillowImageCodec(reencode=True).inspect(png_bytes)

    assert result.format == "png"
    assert result.data.startswith(b"\x89PNG")


def test_pillow_codec_rejects_prefixed_stream(jpeg_bytes: bytes) -> None:
    with pytest.raises(CodecError):
        PillowImageCodec().inspect(b"\x00junk" + jpeg_bytes)


def test_pillow_codec_rejects_garbage() -> None:
    with pytest.raises(CodecError):
        PillowImageCodec().inspect(b"definitely not an image")


def test_signature_scan_prefers_riff_over_jpeg() -> None:
    data = b"noise\xff\xd8\xff\xe0later" + WEBP_HEADER
    assert scan_image_signature(data) == WEBP_HEADER


def test_signature_scan_truncates_to_jpeg_marker() -> None:
    assert scan_image_signature(b"\x01\x02\x03\xff\xd8\xff\xe0rest") == b"\xff\xd8\xff\xe0rest"


def test_signature_scan_passes_through_unknown_bytes() -> None:
    assert scan_image_signature(b"plain bytes") == b"plain bytes"


def test_signature_codec_reports_formats() -> None:
    codec = SignatureScanCodec()

    assert codec.inspect(b"xx" + WEBP_HEADER).format == "webp"
    assert codec.inspect(b"xxRIFF\x00\x00\x00\x00WAVEfmt ").format == "riff"
    assert codec.inspect(b"xx\xff\xd8data").format == "jpeg"


def test_signature_codec_raises_without_signature() -> None:
    with pytest.raises(CodecError):
        SignatureScanCodec().inspect(b"nothing here")
