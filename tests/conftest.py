"""Pytest configuration for repository test runs."""

from __future__ import annotations

import io
import sys
from pathlib import Path
from typing import Callable

import pytest
import zstandard


def pytest_sessionstart() -> None:
    """Add src directory to sys.path for test imports."""
    project_root = Path(__file__).resolve().parent.parent
    src_path = project_root / "src"
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))


class FakeObjectFetcher:
    """In-memory object-storage collaborator."""

    def __init__(self, payload: bytes | None = None, error: Exception | None = None) -> None:
        self._payload = payload
        self._error = error
        self.streams: list[io.BytesIO] = []
        self.calls: list[tuple[str, str]] = []

    def fetch(self, bucket: str, key: str) -> io.BytesIO:
        self.calls.append((bucket, key))
        if self._error is not None:
            raise self._error
        stream = io.BytesIO(self._payload or b"")
        self.streams.append(stream)
        return stream


class RecordingNotifier:
    """Progress collaborator that remembers every notification."""

    def __init__(self) -> None:
        self.progress: list[int] = []

    def notify(self, progress: int) -> None:
        self.progress.append(progress)


@pytest.fixture
def compress() -> Callable[[bytes], bytes]:
    """Return a helper that builds one zstd frame with a checksum."""
    compressor = zstandard.ZstdCompressor(level=3, write_checksum=True)
    return compressor.compress


@pytest.fixture
def fake_fetcher_factory() -> Callable[..., FakeObjectFetcher]:
    """Return the in-memory fetcher class for per-test construction."""
    return FakeObjectFetcher


@pytest.fixture
def recording_notifier() -> RecordingNotifier:
    """Return a fresh progress recorder."""
    return RecordingNotifier()
