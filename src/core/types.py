"""Shared typed models.

This module defines immutable data models used by the ingest pipeline
and the invocation handler to keep interfaces explicit and stable.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Mapping

from core.constants import (
    DEFAULT_DECODED_BLOCK_BYTES,
    DEFAULT_EMIT_TRAILING_LINE,
    DEFAULT_PARSE_FAILURE_POLICY,
    DEFAULT_PROGRESS_INTERVAL,
    DEFAULT_READ_CHUNK_BYTES,
    DEFAULT_ZSTD_MAX_WINDOW_BYTES,
)
from core.errors import LogtallyRequestError
from core.s3_uri import parse_s3_uri

ParseFailurePolicy = Literal["count", "skip", "fatal"]


@dataclass(frozen=True)
class IngestRequest:
    """Identifies exactly one remote object to ingest.

    Attributes:
        bucket: S3 bucket name.
        key: Object key inside the bucket.
    """

    bucket: str
    key: str

    @property
    def source_uri(self) -> str:
        """Return the ``s3://`` URI of the requested object."""
        return f"s3://{self.bucket}/{self.key}"

    @classmethod
    def from_event(cls, event: Mapping[str, Any]) -> "IngestRequest":
        """Build a request from an inbound invocation payload.

        Accepts either ``bucket`` and ``key`` fields or a single ``uri``
        field in ``s3://bucket/key`` form.

        Args:
            event: Deserialized invocation payload.

        Returns:
            Validated ingest request.

        Raises:
            LogtallyRequestError: If the payload does not name one object.
        """
        if not isinstance(event, Mapping):
            raise LogtallyRequestError(
                f"Invalid ingest event: expected a JSON object, got {type(event).__name__}. "
                "Send {\"bucket\": ..., \"key\": ...}."
            )
        uri = event.get("uri")
        if isinstance(uri, str) and uri:
            location = parse_s3_uri(uri)
            return cls(bucket=location.bucket, key=location.key)
        bucket = event.get("bucket")
        key = event.get("key")
        if not isinstance(bucket, str) or not bucket:
            raise LogtallyRequestError(
                "Invalid ingest event: missing string field 'bucket'. "
                "Send {\"bucket\": ..., \"key\": ...}."
            )
        if not isinstance(key, str) or not key:
            raise LogtallyRequestError(
                "Invalid ingest event: missing string field 'key'. "
                "Send {\"bucket\": ..., \"key\": ...}."
            )
        return cls(bucket=bucket, key=key)


@dataclass(frozen=True)
class PipelineOptions:
    """Tunable behavior of one pipeline run.

    Attributes:
        read_chunk_size: Compressed bytes requested per source read.
        progress_interval: Counted records between progress notifications.
        parse_failure_policy: How malformed lines affect the run.
        emit_trailing_line: Whether an unterminated final line is emitted.
        max_window_size: Largest zstd window the decoder accepts.
        decoded_block_size: Largest decompressed block handed to the splitter.
    """

    read_chunk_size: int = DEFAULT_READ_CHUNK_BYTES
    progress_interval: int = DEFAULT_PROGRESS_INTERVAL
    parse_failure_policy: ParseFailurePolicy = DEFAULT_PARSE_FAILURE_POLICY
    emit_trailing_line: bool = DEFAULT_EMIT_TRAILING_LINE
    max_window_size: int = DEFAULT_ZSTD_MAX_WINDOW_BYTES
    decoded_block_size: int = DEFAULT_DECODED_BLOCK_BYTES


@dataclass(frozen=True)
class RunSummary:
    """Aggregate result of one completed pipeline run.

    Attributes:
        request_id: Invocation request identifier.
        source_uri: Object that was ingested.
        elapsed_seconds: Wall time from start to completion.
        record_count: Counted records under the active parse policy.
        failed_count: Lines that failed JSON parsing.
        peak_buffer_bytes: Largest line buffer held while splitting.
    """

    request_id: str
    source_uri: str
    elapsed_seconds: float
    record_count: int
    failed_count: int = 0
    peak_buffer_bytes: int = 0

    def to_message(self) -> str:
        """Render the human-readable summary line."""
        message = f"elapsed={self.elapsed_seconds:.3f}s num_log_events={self.record_count}"
        if self.failed_count:
            message += f" parse_failures={self.failed_count}"
        return message


@dataclass(frozen=True)
class InvocationResponse:
    """Response envelope returned to the invoking runtime."""

    req_id: str
    msg: str

    @classmethod
    def from_summary(cls, summary: RunSummary) -> "InvocationResponse":
        """Build the response for a completed run."""
        return cls(req_id=summary.request_id, msg=summary.to_message())

    def to_payload(self) -> dict[str, str]:
        """Return a JSON-serializable payload."""
        return {"req_id": self.req_id, "msg": self.msg}
