"""Newline splitting over a decompressed block stream.

This module turns decoded blocks into terminator-stripped lines while
holding only the current partial line plus one decoded block in memory.
"""

from __future__ import annotations

from typing import Protocol

from core.constants import CARRIAGE_RETURN, LINE_TERMINATOR
from core.logging_config import get_logger

_LOGGER = get_logger(__name__)


class BlockSource(Protocol):
    """Upstream stage yielding decompressed blocks."""

    def read_block(self) -> bytes:
        """Return the next block, or ``b""`` once exhausted."""


class LineSplitter:
    """Pull-based line reader with a compacting buffer.

    Empty lines between two terminators are emitted as ``b""``. A final
    line without a terminator is emitted unless ``emit_trailing_line`` is
    false, in which case it is dropped and logged.
    """

    def __init__(self, upstream: BlockSource, emit_trailing_line: bool = True) -> None:
        self._upstream = upstream
        self._emit_trailing_line = emit_trailing_line
        self._buffer = bytearray()
        self._position = 0
        self._scan_from = 0
        self._exhausted = False
        self.lines_emitted = 0
        self.peak_buffer_size = 0

    def next_line(self) -> bytes | None:
        """Return the next line without its terminator.

        Returns:
            Line bytes, or ``None`` once the stream is fully consumed.
        """
        while True:
            end = self._buffer.find(LINE_TERMINATOR, self._scan_from)
            if end >= 0:
                return self._emit(end, end + len(LINE_TERMINATOR))
            if self._exhausted:
                return self._drain()
            self._scan_from = len(self._buffer)
            self._refill()

    def __iter__(self) -> "LineSplitter":
        return self

    def __next__(self) -> bytes:
        line = self.next_line()
        if line is None:
            raise StopIteration
        return line

    def _refill(self) -> None:
        block = self._upstream.read_block()
        if not block:
            self._exhausted = True
            return
        if self._position:
            del self._buffer[: self._position]
            self._scan_from -= self._position
            self._position = 0
        self._buffer.extend(block)
        self.peak_buffer_size = max(self.peak_buffer_size, len(self._buffer))

    def _emit(self, end: int, next_position: int) -> bytes:
        line = bytes(self._buffer[self._position : end])
        self._position = next_position
        self._scan_from = next_position
        self.lines_emitted += 1
        if line.endswith(CARRIAGE_RETURN):
            line = line[: -len(CARRIAGE_RETURN)]
        return line

    def _drain(self) -> bytes | None:
        remaining = len(self._buffer) - self._position
        if remaining <= 0:
            self._release()
            return None
        if not self._emit_trailing_line:
            _LOGGER.warning("trailing_line_discarded", byte_count=remaining)
            self._release()
            return None
        return self._emit(len(self._buffer), len(self._buffer))

    def _release(self) -> None:
        self._buffer = bytearray()
        self._position = 0
        self._scan_from = 0
