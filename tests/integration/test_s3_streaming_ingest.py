"""Integration tests for streaming ingest against a stubbed S3 client."""

from __future__ import annotations

from dataclasses import replace
import io

import boto3
import pytest
import zstandard
from botocore.response import StreamingBody
from botocore.stub import Stubber

from core.config import LogtallyConfig
from core.errors import LogtallyAccessDeniedError
from core.types import IngestRequest
from ingest.byte_source import S3ObjectFetcher
from ingest.pipeline import run_ingest
from invocation import handler
from invocation.handler import HandlerRuntime, lambda_handler

_BUCKET = "app-logs"
_KEY = "2024/05/01/events.ndjson.zst"


def _build_client():
    return boto3.client(
        "s3",
        region_name="eu-west-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


def _compressed_log(line_count: int) -> bytes:
    lines = b"".join(
        b'{"ts":"2024-05-01T00:00:%02dZ","level":"info","seq":%d}\n' % (index % 60, index)
        for index in range(line_count)
    )
    compressor = zstandard.ZstdCompressor(level=19, write_checksum=True)
    return compressor.compress(lines)


def _add_object(stubber: Stubber, payload: bytes) -> None:
    stubber.add_response(
        "get_object",
        {"Body": StreamingBody(io.BytesIO(payload), len(payload)), "ContentLength": len(payload)},
        expected_params={"Bucket": _BUCKET, "Key": _KEY},
    )


def test_run_ingest_streams_s3_object() -> None:
    """Pipeline should stream, decompress and count an S3 object."""
    client = _build_client()
    config = replace(LogtallyConfig.from_env(), read_chunk_size=256, progress_interval=500)
    with Stubber(client) as stubber:
        _add_object(stubber, _compressed_log(5000))
        summary = run_ingest(
            IngestRequest(bucket=_BUCKET, key=_KEY),
            "req-int-1",
            config,
            fetcher=S3ObjectFetcher(client),
        )
        stubber.assert_no_pending_responses()

    assert summary.record_count == 5000
    assert summary.failed_count == 0


def test_lambda_handler_round_trip_with_stubbed_s3(monkeypatch) -> None:
    """Handler should return a summary built from the S3 object."""
    client = _build_client()
    runtime = HandlerRuntime(config=LogtallyConfig.from_env(), fetcher=S3ObjectFetcher(client))
    monkeypatch.setattr(handler, "load_runtime", lambda: runtime)
    with Stubber(client) as stubber:
        _add_object(stubber, _compressed_log(1500))
        response = lambda_handler({"bucket": _BUCKET, "key": _KEY}, None)

    assert response["msg"].endswith("num_log_events=1500")


def test_lambda_handler_surfaces_access_denied(monkeypatch) -> None:
    """Authorization failures should abort the invocation."""
    client = _build_client()
    runtime = HandlerRuntime(config=LogtallyConfig.from_env(), fetcher=S3ObjectFetcher(client))
    monkeypatch.setattr(handler, "load_runtime", lambda: runtime)
    with Stubber(client) as stubber:
        stubber.add_client_error(
            "get_object",
            service_error_code="AccessDenied",
            http_status_code=403,
        )
        with pytest.raises(LogtallyAccessDeniedError):
            lambda_handler({"bucket": _BUCKET, "key": _KEY}, None)
