"""Lambda entry point for streaming ingest.

This module maps invocation events onto pipeline runs and pipeline
summaries onto ``{req_id, msg}`` responses. Config and the S3 client are
built once per process and reused across warm invocations.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Mapping
import uuid

from core.config import LogtallyConfig
from core.logging_config import configure_logging
from core.types import IngestRequest, InvocationResponse
from ingest.byte_source import ObjectFetcher, S3ObjectFetcher, create_s3_client
from ingest.pipeline import run_ingest


@dataclass(frozen=True)
class HandlerRuntime:
    """Process-wide collaborators shared by warm invocations."""

    config: LogtallyConfig
    fetcher: ObjectFetcher


def lambda_handler(event: Mapping[str, Any], context: Any) -> dict[str, str]:
    """Ingest the object named by ``event`` and summarize it.

    Args:
        event: Payload with ``bucket`` and ``key`` (or ``uri``).
        context: Lambda context; ``None`` for local invocation.

    Returns:
        Response payload with ``req_id`` and ``msg``.

    Raises:
        LogtallyRequestError: If the event does not name one object.
        LogtallyError: Any fatal pipeline failure, unchanged.
    """
    runtime = load_runtime()
    request = IngestRequest.from_event(event)
    summary = run_ingest(request, _resolve_request_id(context), runtime.config, runtime.fetcher)
    return InvocationResponse.from_summary(summary).to_payload()


@lru_cache(maxsize=1)
def load_runtime() -> HandlerRuntime:
    """Build config, logging and the S3 fetcher once per process."""
    config = LogtallyConfig.from_env()
    configure_logging(config.log_level)
    return HandlerRuntime(config=config, fetcher=S3ObjectFetcher(create_s3_client(config)))


def _resolve_request_id(context: Any) -> str:
    """Return the runtime request id, generating one for local calls."""
    request_id = getattr(context, "aws_request_id", None)
    if isinstance(request_id, str) and request_id:
        return request_id
    return uuid.uuid4().hex
