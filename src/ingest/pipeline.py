"""Ingest orchestration for one streaming run.

This module fetches one object, chains decompression, line splitting,
parsing and aggregation, and owns the run-level failure boundary.
"""

from __future__ import annotations

import time

from core.config import LogtallyConfig
from core.errors import LogtallyError, LogtallyRecordParseError
from core.logging_config import get_logger
from core.types import IngestRequest, PipelineOptions, RunSummary
from ingest.aggregator import LoggingProgressNotifier, ProgressNotifier, RecordAggregator
from ingest.byte_source import ObjectFetcher, S3ObjectFetcher, StreamByteSource, create_s3_client
from ingest.decompression import ZstdStreamDecompressor
from ingest.line_splitter import LineSplitter
from ingest.record_parser import parse_record

_LOGGER = get_logger(__name__)


class IngestPipelineRunner:
    """Runner for one fetch, decompress, split, parse and count pass.

    A runner owns its component chain exclusively and is not reused
    across requests.
    """

    def __init__(
        self,
        request: IngestRequest,
        options: PipelineOptions,
        fetcher: ObjectFetcher,
        notifier: ProgressNotifier | None = None,
    ) -> None:
        self._request = request
        self._options = options
        self._fetcher = fetcher
        self._notifier = notifier or LoggingProgressNotifier(request.source_uri)

    def run(self, request_id: str) -> RunSummary:
        """Stream the object to completion and return its summary.

        Args:
            request_id: Invocation request identifier.

        Returns:
            Summary with elapsed time and record counts.

        Raises:
            LogtallySourceError: If the object cannot be fetched or read.
            LogtallyCorruptStreamError: If zstd framing is invalid or truncated.
            LogtallyRecordParseError: On the first bad line under ``fatal`` policy.
        """
        started_at = time.monotonic()
        source_uri = self._request.source_uri
        _LOGGER.info("ingest_started", request_id=request_id, source_uri=source_uri)
        try:
            aggregator, source, splitter = self._consume()
        except LogtallyError as error:
            _LOGGER.error(
                "ingest_failed",
                request_id=request_id,
                source_uri=source_uri,
                error_type=type(error).__name__,
                error=str(error),
            )
            raise
        summary = RunSummary(
            request_id=request_id,
            source_uri=source_uri,
            elapsed_seconds=time.monotonic() - started_at,
            record_count=aggregator.record_count,
            failed_count=aggregator.failed_count,
            peak_buffer_bytes=splitter.peak_buffer_size,
        )
        _log_ingest_completion(summary, source.bytes_read)
        return summary

    def _consume(self) -> tuple[RecordAggregator, StreamByteSource, LineSplitter]:
        stream = self._fetcher.fetch(self._request.bucket, self._request.key)
        try:
            source = StreamByteSource(
                stream, self._request.source_uri, self._options.read_chunk_size
            )
        except ValueError:
            stream.close()
            raise
        with source:
            decompressor = ZstdStreamDecompressor(
                source,
                self._options.max_window_size,
                self._options.decoded_block_size,
            )
            splitter = LineSplitter(decompressor, self._options.emit_trailing_line)
            aggregator = RecordAggregator(
                self._options.parse_failure_policy,
                self._options.progress_interval,
                self._notifier,
            )
            for line in splitter:
                self._parse_and_count(line, splitter.lines_emitted, aggregator)
        return aggregator, source, splitter

    def _parse_and_count(
        self,
        line: bytes,
        line_number: int,
        aggregator: RecordAggregator,
    ) -> None:
        try:
            parse_record(line, line_number)
        except LogtallyRecordParseError as error:
            if self._options.parse_failure_policy == "fatal":
                raise
            _LOGGER.debug(
                "record_parse_failed",
                source_uri=self._request.source_uri,
                line_number=error.line_number,
                error=str(error),
            )
            aggregator.add_failure()
            return
        aggregator.add_success()


def build_pipeline_options(config: LogtallyConfig) -> PipelineOptions:
    """Project runtime config onto per-run pipeline options."""
    return PipelineOptions(
        read_chunk_size=config.read_chunk_size,
        progress_interval=config.progress_interval,
        parse_failure_policy=config.parse_failure_policy,
        emit_trailing_line=config.emit_trailing_line,
        max_window_size=config.zstd_max_window_size,
        decoded_block_size=config.decoded_block_size,
    )


def run_ingest(
    request: IngestRequest,
    request_id: str,
    config: LogtallyConfig,
    fetcher: ObjectFetcher | None = None,
    notifier: ProgressNotifier | None = None,
) -> RunSummary:
    """Run the streaming ingest pipeline for one object.

    Args:
        request: Bucket and key to ingest.
        request_id: Invocation request identifier.
        config: Runtime configuration.
        fetcher: Optional object-storage collaborator; S3 when omitted.
        notifier: Optional progress collaborator; structured logs when omitted.

    Returns:
        Summary of the completed run.

    Raises:
        LogtallyError: Any fatal pipeline failure, unchanged.
    """
    object_fetcher = fetcher or S3ObjectFetcher(create_s3_client(config))
    runner = IngestPipelineRunner(request, build_pipeline_options(config), object_fetcher, notifier)
    return runner.run(request_id)


def _log_ingest_completion(summary: RunSummary, compressed_bytes: int) -> None:
    """Log pipeline completion with contextual metadata."""
    _LOGGER.info(
        "ingest_completed",
        request_id=summary.request_id,
        source_uri=summary.source_uri,
        num_log_events=summary.record_count,
        parse_failures=summary.failed_count,
        peak_buffer_bytes=summary.peak_buffer_bytes,
        compressed_bytes=compressed_bytes,
        elapsed_seconds=round(summary.elapsed_seconds, 3),
    )
