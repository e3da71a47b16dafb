"""Core constants used across Logtally modules.

This module centralizes defaults and environment variable names.
Keeping values here avoids magic literals in pipeline logic.
"""

from __future__ import annotations

DEFAULT_S3_REGION = "eu-west-1"
DEFAULT_READ_CHUNK_BYTES = 64 * 1024
DEFAULT_PROGRESS_INTERVAL = 1000
DEFAULT_PARSE_FAILURE_POLICY = "count"
DEFAULT_EMIT_TRAILING_LINE = True
DEFAULT_ZSTD_MAX_WINDOW_BYTES = 2**27
DEFAULT_DECODED_BLOCK_BYTES = 128 * 1024
DEFAULT_LOG_LEVEL = "INFO"
SUPPORTED_PARSE_FAILURE_POLICIES = ("count", "skip", "fatal")
SUPPORTED_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LINE_TERMINATOR = b"\n"
CARRIAGE_RETURN = b"\r"
PROGRESS_EVENT_NAME = "ingest_progress"

ENV_S3_REGION = "LOGTALLY_S3_REGION"
ENV_S3_PROFILE = "LOGTALLY_S3_PROFILE"
ENV_S3_ENDPOINT_URL = "LOGTALLY_S3_ENDPOINT_URL"
ENV_READ_CHUNK_BYTES = "LOGTALLY_READ_CHUNK_BYTES"
ENV_PROGRESS_INTERVAL = "LOGTALLY_PROGRESS_INTERVAL"
ENV_PARSE_FAILURE_POLICY = "LOGTALLY_PARSE_FAILURE_POLICY"
ENV_EMIT_TRAILING_LINE = "LOGTALLY_EMIT_TRAILING_LINE"
ENV_ZSTD_MAX_WINDOW_BYTES = "LOGTALLY_ZSTD_MAX_WINDOW_BYTES"
ENV_DECODED_BLOCK_BYTES = "LOGTALLY_DECODED_BLOCK_BYTES"
ENV_LOG_LEVEL = "LOGTALLY_LOG_LEVEL"

NOT_FOUND_ERROR_CODES = ("NoSuchKey", "NoSuchBucket", "NotFound", "404")
ACCESS_DENIED_ERROR_CODES = (
    "AccessDenied",
    "Forbidden",
    "403",
    "InvalidAccessKeyId",
    "SignatureDoesNotMatch",
    "ExpiredToken",
)
TRANSIENT_ERROR_CODES = (
    "InternalError",
    "ServiceUnavailable",
    "SlowDown",
    "RequestTimeout",
    "Throttling",
    "500",
    "503",
)
