"""Environment driven settings for the archive parser and extractor."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

LOGGER = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024
DEFAULT_TEXT_ENCODING = "latin-1"


def _int_from_env(name: str, default: int, *, minimum: int = 1) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        parsed = int(value)
    except ValueError:
        LOGGER.warning("Invalid integer for %s: %s; using default %s", name, value, default)
        return default
    if parsed < minimum:
        LOGGER.warning("Value for %s must be >= %s, got %s; using default %s", name, minimum, parsed, default)
        return default
    return parsed


def _bool_from_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    flag = value.strip().lower()
    if flag in {"1", "true", "yes", "on"}:
        return True
    if flag in {"0", "false", "no", "off"}:
        return False
    LOGGER.warning("Invalid boolean for %s: %s; using default %s", name, value, default)
    return default


_SINGLE_BYTE_SAMPLES = (bytes(range(256)), b"\xc3\xa9\xe2\x82\xac")


def _is_single_byte(encoding: str) -> bool:
    """Return True when every byte decodes to exactly one character."""

    try:
        return all(len(sample.decode(encoding, errors="replace")) == len(sample) for sample in _SINGLE_BYTE_SAMPLES)
    except (LookupError, TypeError, ValueError):
        return False


def _encoding_from_env(name: str, default: str) -> str:
    value = (os.getenv(name) or "").strip()
    if not value:
        return default
    try:
        "".encode(value)
    except LookupError:
        LOGGER.warning("Unknown text encoding for %s: %s; using default %s", name, value, default)
        return default
    if not _is_single_byte(value):
        LOGGER.warning("Text encoding for %s must be single-byte, got %s; using default %s", name, value, default)
        return default
    return value


@dataclass(slots=True)
class ArchiveSettings:
    chunk_size: int = DEFAULT_CHUNK_SIZE
    max_workers: int = 1
    text_encoding: str = DEFAULT_TEXT_ENCODING
    reencode_images: bool = False
    output_dir: Path = Path("extracted_output")
    log_dir: Path = Path("logs")

    @classmethod
    def from_env(cls) -> "ArchiveSettings":
        """Build settings from ``DOCUARCHIVE_*`` environment variables."""

        return cls(
            chunk_size=_int_from_env("DOCUARCHIVE_CHUNK_SIZE", DEFAULT_CHUNK_SIZE),
            max_workers=_int_from_env("DOCUARCHIVE_MAX_WORKERS", 1),
            text_encoding=_encoding_from_env("DOCUARCHIVE_TEXT_ENCODING", DEFAULT_TEXT_ENCODING),
            reencode_images=_bool_from_env("DOCUARCHIVE_REENCODE_IMAGES", False),
            output_dir=Path(os.getenv("DOCUARCHIVE_OUTPUT_DIR") or "extracted_output"),
            log_dir=Path(os.getenv("DOCUARCHIVE_LOG_DIR") or "logs"),
        )


@lru_cache()
def get_settings() -> ArchiveSettings:
    """Return cached settings read from the environment."""

    return ArchiveSettings.from_env()


def reset_settings_cache() -> None:
    """Clear the cached settings (primarily for testing)."""

    get_settings.cache_clear()  # type: ignore[attr-defined]
