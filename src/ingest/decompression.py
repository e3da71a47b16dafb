"""Incremental zstd decompression over a chunked byte source.

Decoded output is handed out in blocks of at most ``block_size`` bytes, so
a small, highly compressible object never expands into one large buffer.
Compressed bytes pass through a frame tracker on their way into the
decoder, which lets a stream that stops inside a frame be reported as
truncated.
"""

from __future__ import annotations

from typing import Protocol

import zstandard

from core.constants import DEFAULT_DECODED_BLOCK_BYTES
from core.errors import LogtallyCorruptStreamError

_ZSTD_MAGIC = 0xFD2FB528
_SKIPPABLE_MAGIC = 0x184D2A50
_SKIPPABLE_MAGIC_MASK = 0xFFFFFFF0
_RLE_BLOCK = 1
_RESERVED_BLOCK = 3
_DICT_ID_SIZES = (0, 1, 2, 4)
_CONTENT_SIZE_SIZES = (0, 2, 4, 8)

# Tracker states. The first group collects a small header field; the
# second skips a counted run of bytes.
_MAGIC = "magic"
_DESCRIPTOR = "descriptor"
_BLOCK_HEADER = "block_header"
_SKIPPABLE_SIZE = "skippable_size"
_HEADER_REST = "header_rest"
_BLOCK_BODY = "block_body"
_CHECKSUM = "checksum"
_SKIPPABLE_BODY = "skippable_body"
_INVALID = "invalid"
_FIELD_STATES = (_MAGIC, _DESCRIPTOR, _BLOCK_HEADER, _SKIPPABLE_SIZE)


class ChunkSource(Protocol):
    """Upstream stage yielding raw compressed chunks."""

    source_uri: str

    def read_chunk(self) -> bytes:
        """Return the next chunk, or ``b""`` once exhausted."""


class ZstdFrameTracker:
    """Follow zstd frame and block headers across arbitrary chunk splits.

    The tracker never decodes content. It only knows whether the bytes
    seen so far end exactly on a frame boundary.
    """

    def __init__(self) -> None:
        self._state = _MAGIC
        self._remaining = 4
        self._field = bytearray()
        self._has_checksum = False
        self._last_block = False
        self.frames_completed = 0

    @property
    def at_frame_boundary(self) -> bool:
        """Return True when no frame is partially consumed."""
        return self._state == _MAGIC and not self._field

    def feed(self, data: bytes) -> None:
        """Advance framing state over one compressed chunk."""
        offset = 0
        while offset < len(data) and self._state != _INVALID:
            take = min(self._remaining, len(data) - offset)
            if self._state in _FIELD_STATES:
                self._field += data[offset : offset + take]
            offset += take
            self._remaining -= take
            if self._remaining == 0:
                field = bytes(self._field)
                self._field.clear()
                self._complete(field)

    def _enter(self, state: str, size: int) -> None:
        self._state = state
        self._remaining = size
        if size == 0:
            self._complete(b"")

    def _complete(self, field: bytes) -> None:
        state = self._state
        if state == _MAGIC:
            magic = int.from_bytes(field, "little")
            if magic == _ZSTD_MAGIC:
                self._enter(_DESCRIPTOR, 1)
            elif magic & _SKIPPABLE_MAGIC_MASK == _SKIPPABLE_MAGIC:
                self._enter(_SKIPPABLE_SIZE, 4)
            else:
                self._state = _INVALID
        elif state == _DESCRIPTOR:
            self._has_checksum = bool(field[0] & 0x04)
            self._enter(_HEADER_REST, _frame_header_size(field[0]))
        elif state == _HEADER_REST:
            self._enter(_BLOCK_HEADER, 3)
        elif state == _BLOCK_HEADER:
            header = int.from_bytes(field, "little")
            block_type = (header >> 1) & 0x03
            if block_type == _RESERVED_BLOCK:
                self._state = _INVALID
                return
            self._last_block = bool(header & 0x01)
            self._enter(_BLOCK_BODY, 1 if block_type == _RLE_BLOCK else header >> 3)
        elif state == _BLOCK_BODY:
            if not self._last_block:
                self._enter(_BLOCK_HEADER, 3)
            elif self._has_checksum:
                self._enter(_CHECKSUM, 4)
            else:
                self._end_frame()
        elif state == _CHECKSUM:
            self._end_frame()
        elif state == _SKIPPABLE_SIZE:
            self._enter(_SKIPPABLE_BODY, int.from_bytes(field, "little"))
        elif state == _SKIPPABLE_BODY:
            self._end_frame()

    def _end_frame(self) -> None:
        self.frames_completed += 1
        self._enter(_MAGIC, 4)


def _frame_header_size(descriptor: int) -> int:
    """Return header bytes that follow the frame header descriptor."""
    single_segment = bool(descriptor & 0x20)
    content_size_flag = descriptor >> 6
    size = 0 if single_segment else 1
    size += _DICT_ID_SIZES[descriptor & 0x03]
    if content_size_flag == 0 and single_segment:
        size += 1
    else:
        size += _CONTENT_SIZE_SIZES[content_size_flag]
    return size


class _TrackedChunkReader:
    """File-like ``read`` adapter that reports every chunk to a tracker."""

    def __init__(self, source: ChunkSource, tracker: ZstdFrameTracker) -> None:
        self._source = source
        self._tracker = tracker

    def read(self, size: int = -1) -> bytes:
        chunk = self._source.read_chunk()
        self._tracker.feed(chunk)
        return chunk


class ZstdStreamDecompressor:
    """Single-pass zstd decoder with a pull interface.

    Concatenated frames are decoded back to back. Running out of input
    while a frame is still open is reported as a corrupt stream.
    """

    def __init__(
        self,
        source: ChunkSource,
        max_window_size: int,
        block_size: int = DEFAULT_DECODED_BLOCK_BYTES,
    ) -> None:
        if block_size <= 0:
            raise ValueError(f"block_size must be positive, got {block_size}")
        self._source = source
        self._block_size = block_size
        self._tracker = ZstdFrameTracker()
        context = zstandard.ZstdDecompressor(max_window_size=max_window_size)
        self._reader = context.stream_reader(
            _TrackedChunkReader(source, self._tracker),
            read_across_frames=True,
            closefd=False,
        )
        self._finished = False
        self.bytes_out = 0

    @property
    def frames_completed(self) -> int:
        return self._tracker.frames_completed

    def read_block(self) -> bytes:
        """Decode and return the next block of at most ``block_size`` bytes.

        Returns:
            Decompressed bytes, or ``b""`` once every frame is complete.

        Raises:
            LogtallyCorruptStreamError: For invalid or truncated framing.
        """
        if self._finished:
            return b""
        try:
            block = self._reader.read(self._block_size)
        except zstandard.ZstdError as error:
            raise LogtallyCorruptStreamError(
                f"Corrupt zstd stream in {self._source.source_uri} after "
                f"{self.bytes_out} decompressed bytes: {error}."
            ) from error
        if not block:
            self._finish()
            return b""
        self.bytes_out += len(block)
        return block

    def _finish(self) -> None:
        self._finished = True
        self._reader.close()
        if not self._tracker.at_frame_boundary:
            raise LogtallyCorruptStreamError(
                f"Truncated zstd stream in {self._source.source_uri}: input ended "
                f"inside frame {self.frames_completed + 1}. "
                "Re-upload the complete object."
            )
