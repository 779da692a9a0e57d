"""Incremental splitter that turns arbitrarily chunked bytes into raw sections."""
from __future__ import annotations

import logging
from enum import Enum
from typing import Iterable, List

from ..errors import ScannerClosedError
from .models import DELIMITER, RawSection

LOGGER = logging.getLogger(__name__)


class ScannerState(str, Enum):
    AWAITING_FIRST_DELIMITER = "awaiting_first_delimiter"
    IN_SECTION = "in_section"
    FINISHED = "finished"


class SectionScanner:
    """Locate delimiter tokens across chunk boundaries and emit complete sections.

    Bytes before the first delimiter are a preamble and are dropped. Every
    later delimiter closes the section accumulated since the previous one.
    Only ``len(delimiter) - 1`` trailing bytes are ever held back unscanned, so
    a delimiter split across two ``feed`` calls is still found and the output
    does not depend on how the input was chunked.

    Memory use is bounded by the largest single section plus one chunk, not
    by a constant: an in-progress section is kept until its closing delimiter
    (or :meth:`finish`) arrives.

    A scanner must have a single writer; it performs no locking.
    """

    def __init__(self, delimiter: bytes = DELIMITER) -> None:
        if not delimiter:
            raise ValueError("delimiter must not be empty")
        self.delimiter = delimiter
        self._carry = bytearray()
        self._pending = bytearray()
        self._state = ScannerState.AWAITING_FIRST_DELIMITER
        self._emitted = 0

    @property
    def state(self) -> ScannerState:
        return self._state

    @property
    def sections_emitted(self) -> int:
        return self._emitted

    @property
    def pending_bytes(self) -> int:
        return len(self._pending) + len(self._carry)

    def feed(self, chunk: bytes) -> List[RawSection]:
        """Consume ``chunk`` and return the sections it completed, in order."""

        if self._state is ScannerState.FINISHED:
            raise ScannerClosedError("Cannot feed a scanner that has been finished or aborted")
        if not chunk:
            return []

        self._carry += chunk
        sections: List[RawSection] = []
        delimiter_length = len(self.delimiter)

        while True:
            index = self._carry.find(self.delimiter)
            if index == -1:
                break
            if self._state is ScannerState.IN_SECTION:
                self._pending += self._carry[:index]
                sections.append(self._close_section())
            else:
                LOGGER.debug("Discarding %s preamble bytes before first delimiter", index)
                self._state = ScannerState.IN_SECTION
            del self._carry[: index + delimiter_length]

        # Keep just enough unscanned bytes to complete a split delimiter.
        keep = delimiter_length - 1
        if len(self._carry) > keep:
            settled = len(self._carry) - keep
            if self._state is ScannerState.IN_SECTION:
                self._pending += self._carry[:settled]
            del self._carry[:settled]

        return sections

    def feed_all(self, chunks: Iterable[bytes]) -> List[RawSection]:
        """Feed every chunk and finish; convenience for in-memory inputs."""

        sections: List[RawSection] = []
        for chunk in chunks:
            sections.extend(self.feed(chunk))
        sections.extend(self.finish())
        return sections

    def finish(self) -> List[RawSection]:
        """Flush the trailing section, if any, and close the scanner."""

        if self._state is ScannerState.FINISHED:
            return []
        sections: List[RawSection] = []
        if self._state is ScannerState.IN_SECTION:
            self._pending += self._carry
            if self._pending:
                sections.append(self._close_section())
        self._reset_buffers()
        self._state = ScannerState.FINISHED
        return sections

    def abort(self) -> None:
        """Drop any partially accumulated section without emitting it."""

        if self._state is ScannerState.IN_SECTION and self.pending_bytes:
            LOGGER.info("Scanner aborted; discarding %s pending bytes", self.pending_bytes)
        self._reset_buffers()
        self._state = ScannerState.FINISHED

    def _close_section(self) -> RawSection:
        section = RawSection(index=self._emitted, data=bytes(self._pending))
        self._emitted += 1
        self._pending = bytearray()
        return section

    def _reset_buffers(self) -> None:
        self._carry = bytearray()
        self._pending = bytearray()
