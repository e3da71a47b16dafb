"""Unit tests for newline splitting."""

from __future__ import annotations

from ingest.line_splitter import LineSplitter


class _BlockSource:
    def __init__(self, blocks: list[bytes]) -> None:
        self._blocks = list(blocks)
        self.reads = 0

    def read_block(self) -> bytes:
        self.reads += 1
        if not self._blocks:
            return b""
        return self._blocks.pop(0)


def _blocks_of(data: bytes, size: int) -> list[bytes]:
    return [data[offset : offset + size] for offset in range(0, len(data), size)]


def test_next_line_joins_lines_split_across_blocks() -> None:
    """Lines spanning block boundaries should be reassembled once."""
    splitter = LineSplitter(_BlockSource([b'{"a":', b'1}\n{"b"', b":2}\n"]))

    assert list(splitter) == [b'{"a":1}', b'{"b":2}']
    assert splitter.lines_emitted == 2


def test_next_line_emits_empty_lines() -> None:
    """Consecutive terminators should produce empty lines."""
    splitter = LineSplitter(_BlockSource([b"a\n\n\nb\n"]))

    assert list(splitter) == [b"a", b"", b"", b"b"]


def test_next_line_emits_unterminated_trailing_line_by_default() -> None:
    """A final line without a terminator should be emitted."""
    splitter = LineSplitter(_BlockSource([b'{"a":1}\n{"b"', b":2}"]))

    assert list(splitter) == [b'{"a":1}', b'{"b":2}']


def test_next_line_discards_trailing_line_when_disabled() -> None:
    """Trailing partial lines should be dropped when configured."""
    splitter = LineSplitter(
        _BlockSource([b'{"a":1}\n{"b":2}']),
        emit_trailing_line=False,
    )

    assert list(splitter) == [b'{"a":1}']


def test_next_line_strips_carriage_return() -> None:
    """CRLF terminated lines should lose both terminator bytes."""
    splitter = LineSplitter(_BlockSource([b"a\r\nb\r", b"\n"]))

    assert list(splitter) == [b"a", b"b"]


def test_next_line_returns_none_after_exhaustion() -> None:
    """Exhausted splitters should keep returning None without re-reading."""
    source = _BlockSource([b"only\n"])
    splitter = LineSplitter(source)

    assert splitter.next_line() == b"only"
    assert splitter.next_line() is None
    reads = source.reads
    assert splitter.next_line() is None
    assert source.reads == reads


def test_next_line_on_empty_stream_yields_nothing() -> None:
    """Zero decompressed bytes should yield zero lines."""
    splitter = LineSplitter(_BlockSource([]))

    assert list(splitter) == []


def test_buffer_is_bounded_by_longest_line_not_total_size() -> None:
    """Buffering should track the longest line plus one block."""
    long_line = b"x" * 50_000
    data = long_line + b"\n" + b"{}\n" * 100_000
    block_size = 1024
    splitter = LineSplitter(_BlockSource(_blocks_of(data, block_size)))

    line_count = sum(1 for _ in splitter)

    assert line_count == 100_001
    assert len(data) > 300_000
    assert splitter.peak_buffer_size <= len(long_line) + 1 + block_size
