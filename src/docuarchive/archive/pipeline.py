"""High level entry point that turns an archive source into embedded file records."""
from __future__ import annotations

import logging
import time
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Deque, Iterable, Iterator, List, Optional

from ..config import ArchiveSettings, get_settings
from ..diagnostics import SECTION_FAILURE, DiagnosticSink, default_sink
from ..errors import SourceUnavailableError
from ..telemetry import emit_parse_event
from .assembler import RecordAssembler
from .codecs import ImageCodec, PillowImageCodec
from .metadata import MetadataParser
from .models import EmbeddedFileRecord, RawSection
from .normalization import ContentNormalizer
from .scanner import SectionScanner

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class ArchiveParserConfig:
    chunk_size: int = 64 * 1024
    max_workers: int = 1
    text_encoding: str = "latin-1"
    reencode_images: bool = False

    @classmethod
    def from_settings(cls, settings: Optional[ArchiveSettings] = None) -> "ArchiveParserConfig":
        settings = settings or get_settings()
        return cls(
            chunk_size=settings.chunk_size,
            max_workers=settings.max_workers,
            text_encoding=settings.text_encoding,
            reencode_images=settings.reencode_images,
        )


def iter_file_chunks(path: str | Path, chunk_size: int) -> Iterator[bytes]:
    """Yield the file in ``chunk_size`` pieces, mapping OS errors to :class:`SourceUnavailableError`."""

    try:
        with open(path, "rb") as handle:
            while True:
                try:
                    chunk = handle.read(chunk_size)
                except OSError as error:
                    raise SourceUnavailableError.from_os_error(path, error) from error
                if not chunk:
                    return
                yield chunk
    except OSError as error:
        raise SourceUnavailableError.from_os_error(path, error) from error


class ArchiveParser:
    """Pipeline orchestrating section scanning, record assembly and ordering.

    Records are always produced in section discovery order, including when
    sections are assembled on a thread pool (``max_workers > 1``).
    """

    def __init__(
        self,
        config: Optional[ArchiveParserConfig] = None,
        *,
        codec: Optional[ImageCodec] = None,
        sink: Optional[DiagnosticSink] = None,
    ) -> None:
        self.config = config or ArchiveParserConfig()
        self.sink = sink or default_sink()
        codec = codec if codec is not None else PillowImageCodec(reencode=self.config.reencode_images)
        self.assembler = RecordAssembler(
            metadata_parser=MetadataParser(sink=self.sink, encoding=self.config.text_encoding),
            normalizer=ContentNormalizer(codec=codec, sink=self.sink, encoding=self.config.text_encoding),
            sink=self.sink,
        )

    def parse(self, path: str | Path, *, streaming: bool = True) -> List[EmbeddedFileRecord]:
        """Parse the archive at ``path``.

        Streaming mode reads the file chunk by chunk and leaves line ranges
        unset. With ``streaming=False`` the whole file is read and every
        record carries its line range.
        """

        started = time.perf_counter()
        source = str(path)
        scanner = SectionScanner()
        if not streaming:
            try:
                data = Path(path).read_bytes()
            except OSError as error:
                unavailable = SourceUnavailableError.from_os_error(path, error)
                emit_parse_event("parse.failed", source=source, streaming=False, error=unavailable)
                raise unavailable from error
            records = list(self._assemble_ordered(scanner.feed_all([data]), document=data))
        else:
            try:
                chunks = iter_file_chunks(path, self.config.chunk_size)
                records = list(self._assemble_ordered(self._scan(chunks, scanner)))
            except SourceUnavailableError as error:
                emit_parse_event("parse.failed", source=source, streaming=True, error=error)
                raise
        emit_parse_event(
            "parse.completed",
            source=source,
            streaming=streaming,
            sections=scanner.sections_emitted,
            records=len(records),
            duration_ms=(time.perf_counter() - started) * 1000,
        )
        return records

    def parse_bytes(self, data: bytes) -> List[EmbeddedFileRecord]:
        """Parse an in-memory archive with full-document context (line ranges set)."""

        scanner = SectionScanner()
        sections = scanner.feed_all([data])
        LOGGER.debug("Scanned %s sections from %s bytes", len(sections), len(data))
        return list(self._assemble_ordered(sections, document=data))

    def iter_records(self, chunks: Iterable[bytes]) -> Iterator[EmbeddedFileRecord]:
        """Stream records from an iterable of byte chunks.

        If ``chunks`` raises, the section still being accumulated is
        discarded and the error propagates; sections completed before the
        failure have already been yielded.
        """

        yield from self._assemble_ordered(self._scan(chunks, SectionScanner()))

    def _scan(self, chunks: Iterable[bytes], scanner: SectionScanner) -> Iterator[RawSection]:
        try:
            for chunk in chunks:
                yield from scanner.feed(chunk)
        except BaseException:
            scanner.abort()
            raise
        yield from scanner.finish()

    def _assemble_ordered(
        self, sections: Iterable[RawSection], document: Optional[bytes] = None
    ) -> Iterator[EmbeddedFileRecord]:
        if self.config.max_workers <= 1:
            for section in sections:
                record = self._assemble_one(section, document)
                if record is not None:
                    yield record
            return

        window = self.config.max_workers * 2
        source_error: Optional[Exception] = None
        with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
            pending: Deque[Future] = deque()
            iterator = iter(sections)
            try:
                while True:
                    try:
                        section = next(iterator)
                    except StopIteration:
                        break
                    except Exception as error:
                        # sections submitted before the source failed are still delivered
                        source_error = error
                        break
                    pending.append(executor.submit(self._assemble_one, section, document))
                    while len(pending) >= window:
                        record = pending.popleft().result()
                        if record is not None:
                            yield record
                while pending:
                    record = pending.popleft().result()
                    if record is not None:
                        yield record
            finally:
                for future in pending:
                    future.cancel()
        if source_error is not None:
            raise source_error

    def _assemble_one(self, section: RawSection, document: Optional[bytes]) -> Optional[EmbeddedFileRecord]:
        try:
            return self.assembler.assemble(section, document)
        except Exception as error:  # pragma: no cover - defensive guard
            LOGGER.exception("Failed to process section %s", section.index)
            self.sink.warn(SECTION_FAILURE, f"Failed to process section {section.index}: {error}", section=section.index)
            return None


def parse_compound_file(
    path: str | Path,
    *,
    streaming: bool = True,
    config: Optional[ArchiveParserConfig] = None,
    codec: Optional[ImageCodec] = None,
    sink: Optional[DiagnosticSink] = None,
) -> List[EmbeddedFileRecord]:
    """Parse the compound archive at ``path`` into embedded file records."""

    parser = ArchiveParser(config or ArchiveParserConfig.from_settings(), codec=codec, sink=sink)
    return parser.parse(path, streaming=streaming)
