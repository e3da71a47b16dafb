"""Remote byte sources for ingestion.

This module fetches one S3 object and exposes its body as a sequence of
bounded raw chunks. Storage failures are mapped onto typed source errors.
"""

from __future__ import annotations

from typing import Any, BinaryIO, Protocol

from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectionError as BotoConnectionError,
    HTTPClientError,
    IncompleteReadError,
    NoCredentialsError,
    PartialCredentialsError,
)

from core.config import LogtallyConfig
from core.constants import (
    ACCESS_DENIED_ERROR_CODES,
    NOT_FOUND_ERROR_CODES,
    TRANSIENT_ERROR_CODES,
)
from core.errors import (
    LogtallyAccessDeniedError,
    LogtallyDependencyError,
    LogtallyEmptyBodyError,
    LogtallyNotFoundError,
    LogtallySourceError,
    LogtallyTransientIOError,
)
from core.logging_config import get_logger

_LOGGER = get_logger(__name__)


class ObjectFetcher(Protocol):
    """Object-storage collaborator returning a readable body stream."""

    def fetch(self, bucket: str, key: str) -> BinaryIO:
        """Open the body stream of one object."""


class S3ObjectFetcher:
    """Fetch object bodies with a boto3 S3 client."""

    def __init__(self, s3_client: Any) -> None:
        self._s3_client = s3_client

    def fetch(self, bucket: str, key: str) -> BinaryIO:
        """Issue ``GetObject`` and return the streaming body.

        Args:
            bucket: S3 bucket name.
            key: Object key.

        Returns:
            Unread streaming body.

        Raises:
            LogtallySourceError: Typed subclass for storage failures.
        """
        source_uri = f"s3://{bucket}/{key}"
        try:
            response = self._s3_client.get_object(Bucket=bucket, Key=key)
        except ClientError as error:
            raise _map_client_error(error, source_uri) from error
        except (NoCredentialsError, PartialCredentialsError) as error:
            raise LogtallyAccessDeniedError(
                f"Failed to fetch {source_uri}: no usable AWS credentials. "
                "Configure credentials or LOGTALLY_S3_PROFILE."
            ) from error
        except (HTTPClientError, BotoConnectionError) as error:
            raise LogtallyTransientIOError(
                f"Failed to fetch {source_uri}: {error}. Check network access to S3."
            ) from error
        except BotoCoreError as error:
            raise LogtallySourceError(f"Failed to fetch {source_uri}: {error}.") from error
        body = response.get("Body")
        if body is None:
            raise LogtallyEmptyBodyError(
                f"No body found in S3 response for {source_uri}. "
                "Verify the object was uploaded completely."
            )
        _LOGGER.debug(
            "s3_object_opened",
            source_uri=source_uri,
            content_length=response.get("ContentLength"),
        )
        return body


class StreamByteSource:
    """Chunked reader over one opened object body.

    The source hands out at most ``chunk_size`` bytes per call and
    returns ``b""`` once the body is exhausted.
    """

    def __init__(self, stream: BinaryIO, source_uri: str, chunk_size: int) -> None:
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self._stream = stream
        self._source_uri = source_uri
        self._chunk_size = chunk_size
        self._exhausted = False
        self._closed = False
        self.bytes_read = 0

    @property
    def source_uri(self) -> str:
        return self._source_uri

    def read_chunk(self) -> bytes:
        """Read the next raw chunk.

        Returns:
            Between one and ``chunk_size`` bytes, or ``b""`` at exhaustion.

        Raises:
            LogtallyEmptyBodyError: If the body holds zero bytes.
            LogtallyTransientIOError: If the stream fails mid-read.
        """
        if self._exhausted:
            return b""
        try:
            chunk = self._stream.read(self._chunk_size)
        except (HTTPClientError, BotoConnectionError, IncompleteReadError, OSError) as error:
            raise LogtallyTransientIOError(
                f"Stream from {self._source_uri} interrupted after "
                f"{self.bytes_read} bytes: {error}."
            ) from error
        if not chunk:
            self._exhausted = True
            if self.bytes_read == 0:
                raise LogtallyEmptyBodyError(
                    f"Object {self._source_uri} is empty: zero compressed bytes. "
                    "Upload a zstd-compressed NDJSON object."
                )
            return b""
        self.bytes_read += len(chunk)
        return chunk

    def close(self) -> None:
        """Release the underlying body stream."""
        if self._closed:
            return
        self._closed = True
        self._stream.close()

    def __enter__(self) -> "StreamByteSource":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def create_s3_client(config: LogtallyConfig) -> Any:
    """Create a boto3 S3 client.

    Args:
        config: Runtime config containing region, profile and endpoint.

    Returns:
        Boto3 S3 client.

    Raises:
        LogtallyDependencyError: If boto3 is missing.
    """
    try:
        import boto3
    except ImportError as error:
        raise LogtallyDependencyError(
            "S3 support requires boto3, but it is not installed. "
            "Install boto3 to ingest from S3 objects."
        ) from error
    session_kwargs = _build_boto3_session_kwargs(config)
    session = boto3.session.Session(**session_kwargs)
    client_kwargs: dict[str, str] = {}
    if config.s3_endpoint_url:
        client_kwargs["endpoint_url"] = config.s3_endpoint_url
    return session.client("s3", **client_kwargs)


def _build_boto3_session_kwargs(config: LogtallyConfig) -> dict[str, str]:
    """Build boto3 Session kwargs from config.

    Args:
        config: Runtime config.

    Returns:
        Session keyword arguments.
    """
    kwargs: dict[str, str] = {"region_name": config.s3_region}
    if config.s3_profile:
        kwargs["profile_name"] = config.s3_profile
    return kwargs


def _map_client_error(error: ClientError, source_uri: str) -> LogtallySourceError:
    """Translate a botocore ``ClientError`` into a typed source error."""
    error_code = str(error.response.get("Error", {}).get("Code", ""))
    status_code = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    if error_code in NOT_FOUND_ERROR_CODES or status_code == 404:
        return LogtallyNotFoundError(
            f"Object {source_uri} not found ({error_code or status_code}). "
            "Check the bucket and key."
        )
    if error_code in ACCESS_DENIED_ERROR_CODES or status_code == 403:
        return LogtallyAccessDeniedError(
            f"Access denied for {source_uri} ({error_code or status_code}). "
            "Grant s3:GetObject to the invoking role."
        )
    if error_code in TRANSIENT_ERROR_CODES or (
        isinstance(status_code, int) and status_code >= 500
    ):
        return LogtallyTransientIOError(
            f"Transient S3 failure for {source_uri} ({error_code or status_code}). "
            "Retry the invocation."
        )
    return LogtallySourceError(f"Failed to fetch {source_uri}: {error}.")
