"""Running record statistics for one ingest run.

This module counts parsed and failed lines under the configured parse
failure policy and emits best-effort progress notifications.
"""

from __future__ import annotations

from typing import Protocol

from core.constants import PROGRESS_EVENT_NAME
from core.logging_config import get_logger
from core.types import ParseFailurePolicy

_LOGGER = get_logger(__name__)


class ProgressNotifier(Protocol):
    """Observability collaborator receiving periodic progress."""

    def notify(self, progress: int) -> None:
        """Report the number of records counted so far."""


class LoggingProgressNotifier:
    """Progress notifier that writes structured log events."""

    def __init__(self, source_uri: str) -> None:
        self._source_uri = source_uri

    def notify(self, progress: int) -> None:
        """Log one progress event."""
        _LOGGER.info(PROGRESS_EVENT_NAME, source_uri=self._source_uri, num_log_events=progress)


class RecordAggregator:
    """Maintain running counts independent of total stream length."""

    def __init__(
        self,
        policy: ParseFailurePolicy,
        progress_interval: int,
        notifier: ProgressNotifier | None = None,
    ) -> None:
        if progress_interval <= 0:
            raise ValueError(f"progress_interval must be positive, got {progress_interval}")
        self._policy = policy
        self._progress_interval = progress_interval
        self._notifier = notifier
        self.record_count = 0
        self.failed_count = 0

    def add_success(self) -> None:
        """Count one successfully parsed record."""
        self._increment()

    def add_failure(self) -> None:
        """Track one malformed line, counting it unless policy is ``skip``."""
        self.failed_count += 1
        if self._policy != "skip":
            self._increment()

    def _increment(self) -> None:
        self.record_count += 1
        if self.record_count % self._progress_interval == 0:
            self._notify()

    def _notify(self) -> None:
        if self._notifier is None:
            return
        try:
            self._notifier.notify(self.record_count)
        except Exception as error:
            _LOGGER.warning(
                "progress_notify_failed",
                num_log_events=self.record_count,
                error=str(error),
            )
