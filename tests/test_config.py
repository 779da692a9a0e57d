from __future__ import annotations

from pathlib import Path

import pytest

from docuarchive.archive.pipeline import ArchiveParserConfig
from docuarchive.config import ArchiveSettings, get_settings


def test_defaults_without_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "DOCUARCHIVE_CHUNK_SIZE",
        "DOCUARCHIVE_MAX_WORKERS",
        "DOCUARCHIVE_TEXT_ENCODING",
        "DOCUARCHIVE_REENCODE_IMAGES",
        "DOCUARCHIVE_OUTPUT_DIR",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = ArchiveSettings.from_env()

    assert settings.chunk_size == 64 * 1024
    assert settings.max_workers == 1
    assert settings.text_encoding == "latin-1"
    assert settings.reencode_images is False
    assert settings.output_dir == Path("extracted_output")


def test_values_are_read_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DOCUARCHIVE_CHUNK_SIZE", "1024")
    monkeypatch.setenv("DOCUARCHIVE_MAX_WORKERS", "4")
    monkeypatch.setenv("DOCUARCHIVE_TEXT_ENCODING", "cp1252")
    monkeypatch.setenv("DOCUARCHIVE_REENCODE_IMAGES", "yes")

    config = ArchiveParserConfig.from_settings(get_settings())

    assert config == ArchiveParserConfig(chunk_size=1024, max_workers=4, text_encoding="cp1252", reencode_images=True)


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("DOCUARCHIVE_CHUNK_SIZE", "lots"),
        ("DOCUARCHIVE_CHUNK_SIZE", "0"),
        ("DOCUARCHIVE_TEXT_ENCODING", "no-such-codec"),
        ("DOCUARCHIVE_TEXT_ENCODING", "utf-8"),
        ("DOCUARCHIVE_TEXT_ENCODING", "utf-16"),
        ("DOCUARCHIVE_REENCODE_IMAGES", "maybe"),
    ],
)
def test_invalid_values_fall_back_to_defaults(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture, name: str, value: str
) -> None:
    monkeypatch.setenv(name, value)

    with caplog.at_level("WARNING", logger="docuarchive.config"):
        settings = ArchiveSettings.from_env()

    assert settings.chunk_size == 64 * 1024
    assert settings.text_encoding == "latin-1"
    assert settings.reencode_images is False
    assert name in caplog.text


def test_settings_are_cached(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DOCUARCHIVE_MAX_WORKERS", "2")
    first = get_settings()
    monkeypatch.setenv("DOCUARCHIVE_MAX_WORKERS", "8")
    assert get_settings() is first


@pytest.mark.parametrize("encoding", ["latin-1", "cp1252", "cp437", "iso8859-15"])
def test_single_byte_encodings_are_accepted(monkeypatch: pytest.MonkeyPatch, encoding: str) -> None:
    monkeypatch.setenv("DOCUARCHIVE_TEXT_ENCODING", encoding)

    assert ArchiveSettings.from_env().text_encoding == encoding
