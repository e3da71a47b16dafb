"""Unit tests for S3 fetching and chunked byte sources."""

from __future__ import annotations

from dataclasses import replace
import io

import boto3
import pytest
from botocore.response import StreamingBody
from botocore.stub import Stubber

from core.config import LogtallyConfig
from core.errors import (
    LogtallyAccessDeniedError,
    LogtallyEmptyBodyError,
    LogtallyNotFoundError,
    LogtallySourceError,
    LogtallyTransientIOError,
)
from ingest.byte_source import S3ObjectFetcher, StreamByteSource, create_s3_client

_BUCKET = "logs"
_KEY = "app.ndjson.zst"


class _FailingStream(io.BytesIO):
    def read(self, size: int | None = -1) -> bytes:  # type: ignore[override]
        raise ConnectionResetError("connection reset by peer")


def _build_client() -> object:
    return boto3.client(
        "s3",
        region_name="eu-west-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


def test_read_chunk_splits_body_into_bounded_chunks() -> None:
    """Source should hand out at most chunk_size bytes per read."""
    source = StreamByteSource(io.BytesIO(b"abcdefghij"), "s3://logs/a", chunk_size=4)

    chunks = [source.read_chunk(), source.read_chunk(), source.read_chunk()]

    assert chunks == [b"abcd", b"efgh", b"ij"]
    assert source.read_chunk() == b""
    assert source.read_chunk() == b""
    assert source.bytes_read == 10


def test_read_chunk_raises_empty_body_for_zero_bytes() -> None:
    """A zero-byte body should be reported as an empty object."""
    source = StreamByteSource(io.BytesIO(b""), "s3://logs/empty", chunk_size=16)

    with pytest.raises(LogtallyEmptyBodyError):
        source.read_chunk()


def test_read_chunk_maps_stream_interruption_to_transient_error() -> None:
    """Mid-stream socket failures should surface as transient I/O errors."""
    source = StreamByteSource(_FailingStream(), "s3://logs/a", chunk_size=16)

    with pytest.raises(LogtallyTransientIOError):
        source.read_chunk()


def test_close_releases_stream_once() -> None:
    """Closing the source should close the body and tolerate repeats."""
    stream = io.BytesIO(b"payload")
    with StreamByteSource(stream, "s3://logs/a", chunk_size=16) as source:
        source.read_chunk()

    source.close()

    assert stream.closed


def test_fetch_returns_object_body() -> None:
    """Fetcher should return the unread GetObject body."""
    client = _build_client()
    payload = b"compressed-bytes"
    with Stubber(client) as stubber:
        stubber.add_response(
            "get_object",
            {"Body": StreamingBody(io.BytesIO(payload), len(payload)), "ContentLength": 16},
            expected_params={"Bucket": _BUCKET, "Key": _KEY},
        )
        body = S3ObjectFetcher(client).fetch(_BUCKET, _KEY)

    assert body.read() == payload


@pytest.mark.parametrize(
    ("error_code", "status_code", "expected_error"),
    [
        ("NoSuchKey", 404, LogtallyNotFoundError),
        ("NoSuchBucket", 404, LogtallyNotFoundError),
        ("AccessDenied", 403, LogtallyAccessDeniedError),
        ("SlowDown", 503, LogtallyTransientIOError),
        ("InternalError", 500, LogtallyTransientIOError),
    ],
)
def test_fetch_maps_client_errors(
    error_code: str,
    status_code: int,
    expected_error: type[Exception],
) -> None:
    """S3 error codes should map onto typed source errors."""
    client = _build_client()
    with Stubber(client) as stubber:
        stubber.add_client_error(
            "get_object",
            service_error_code=error_code,
            http_status_code=status_code,
        )
        with pytest.raises(expected_error):
            S3ObjectFetcher(client).fetch(_BUCKET, _KEY)


def test_fetch_maps_unknown_client_error_to_source_error() -> None:
    """Unrecognized S3 errors should still be fatal source errors."""
    client = _build_client()
    with Stubber(client) as stubber:
        stubber.add_client_error(
            "get_object",
            service_error_code="InvalidObjectState",
            http_status_code=400,
        )
        with pytest.raises(LogtallySourceError) as error_info:
            S3ObjectFetcher(client).fetch(_BUCKET, _KEY)

    assert type(error_info.value) is LogtallySourceError


def test_fetch_raises_empty_body_when_body_missing() -> None:
    """A response without a body should be an empty-body failure."""
    client = _build_client()
    with Stubber(client) as stubber:
        stubber.add_response("get_object", {"ContentLength": 0})
        with pytest.raises(LogtallyEmptyBodyError):
            S3ObjectFetcher(client).fetch(_BUCKET, _KEY)


def test_create_s3_client_applies_region_and_endpoint() -> None:
    """Client factory should honor region and endpoint overrides."""
    config = replace(
        LogtallyConfig.from_env(),
        s3_region="us-west-2",
        s3_profile=None,
        s3_endpoint_url="http://localhost:9000",
    )

    client = create_s3_client(config)

    assert client.meta.region_name == "us-west-2"
    assert client.meta.endpoint_url == "http://localhost:9000"
