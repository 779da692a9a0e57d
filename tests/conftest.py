"""Shared fixtures for archive parsing tests."""
from __future__ import annotations

import io
import os
import tempfile
from typing import Callable, Iterable, Mapping, Optional

import pytest
from PIL import Image

# ``docuarchive.main`` configures file logging on import; keep it out of the repository.
os.environ.setdefault("DOCUARCHIVE_LOG_DIR", tempfile.mkdtemp(prefix="docuarchive-logs-"))

from docuarchive.config import reset_settings_cache  # noqa: E402
from docuarchive.diagnostics import CollectingDiagnosticSink  # noqa: E402

ArchiveSection = tuple[Mapping[str, str], bytes]


def build_section(headers: Mapping[str, str], payload: bytes, *, marker: bool = True) -> bytes:
    header = "".join(f"{key}/{value}\n" for key, value in headers.items()).encode("latin-1")
    return b"**%%DOCU\n" + header + (b"_SIG/D.C." if marker else b"") + payload


def build_archive(sections: Iterable[ArchiveSection], preamble: bytes = b"ARCHIVE HEADER v1\n") -> bytes:
    return preamble + b"".join(build_section(headers, payload) for headers, payload in sections)


@pytest.fixture
def sink() -> CollectingDiagnosticSink:
    return CollectingDiagnosticSink()


@pytest.fixture
def make_archive() -> Callable[..., bytes]:
    return build_archive


@pytest.fixture
def make_section() -> Callable[..., bytes]:
    return build_section


def _encode_image(image_format: str, size: tuple[int, int] = (8, 8), color: Optional[tuple] = None) -> bytes:
    image = Image.new("RGB", size, color or (200, 30, 30))
    buffer = io.BytesIO()
    image.save(buffer, format=image_format)
    return buffer.getvalue()


@pytest.fixture(scope="session")
def jpeg_bytes() -> bytes:
    return _encode_image("JPEG")


@pytest.fixture(scope="session")
def png_bytes() -> bytes:
    return _encode_image("PNG")


@pytest.fixture(autouse=True)
def _fresh_settings() -> Iterable[None]:
    reset_settings_cache()
    yield
    reset_settings_cache()
