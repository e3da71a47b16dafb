"""Public SDK surface for Logtally.

This module provides a stable import path for library users.
It re-exports the pipeline entry points and typed models.
"""

from __future__ import annotations

from core.config import LogtallyConfig
from core.errors import (
    LogtallyAccessDeniedError,
    LogtallyCorruptStreamError,
    LogtallyEmptyBodyError,
    LogtallyError,
    LogtallyNotFoundError,
    LogtallyRecordParseError,
    LogtallyTransientIOError,
)
from core.types import IngestRequest, PipelineOptions, RunSummary
from ingest.byte_source import S3ObjectFetcher, create_s3_client
from ingest.pipeline import IngestPipelineRunner, run_ingest
from invocation.handler import lambda_handler

__all__ = [
    "IngestPipelineRunner",
    "IngestRequest",
    "LogtallyAccessDeniedError",
    "LogtallyConfig",
    "LogtallyCorruptStreamError",
    "LogtallyEmptyBodyError",
    "LogtallyError",
    "LogtallyNotFoundError",
    "LogtallyRecordParseError",
    "LogtallyTransientIOError",
    "PipelineOptions",
    "RunSummary",
    "S3ObjectFetcher",
    "create_s3_client",
    "lambda_handler",
    "run_ingest",
]
