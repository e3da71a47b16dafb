"""Runtime configuration model for Logtally.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from typing import cast

from core.constants import (
    DEFAULT_DECODED_BLOCK_BYTES,
    DEFAULT_EMIT_TRAILING_LINE,
    DEFAULT_LOG_LEVEL,
    DEFAULT_PARSE_FAILURE_POLICY,
    DEFAULT_PROGRESS_INTERVAL,
    DEFAULT_READ_CHUNK_BYTES,
    DEFAULT_S3_REGION,
    DEFAULT_ZSTD_MAX_WINDOW_BYTES,
    ENV_DECODED_BLOCK_BYTES,
    ENV_EMIT_TRAILING_LINE,
    ENV_LOG_LEVEL,
    ENV_PARSE_FAILURE_POLICY,
    ENV_PROGRESS_INTERVAL,
    ENV_READ_CHUNK_BYTES,
    ENV_S3_ENDPOINT_URL,
    ENV_S3_PROFILE,
    ENV_S3_REGION,
    ENV_ZSTD_MAX_WINDOW_BYTES,
    SUPPORTED_LOG_LEVELS,
    SUPPORTED_PARSE_FAILURE_POLICIES,
)
from core.errors import LogtallyConfigError
from core.types import ParseFailurePolicy

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


@dataclass(frozen=True)
class LogtallyConfig:
    """Validated runtime configuration.

    Attributes:
        s3_region: AWS region the S3 client targets.
        s3_profile: Optional AWS profile for boto3 session initialization.
        s3_endpoint_url: Optional S3 endpoint override.
        read_chunk_size: Compressed bytes requested per source read.
        progress_interval: Records between progress notifications.
        parse_failure_policy: One of ``count``, ``skip`` or ``fatal``.
        emit_trailing_line: Whether an unterminated final line is emitted.
        zstd_max_window_size: Largest zstd window the decoder accepts.
        decoded_block_size: Largest decompressed block handed to the splitter.
        log_level: Minimum structured log level.
    """

    s3_region: str
    s3_profile: str | None
    s3_endpoint_url: str | None
    read_chunk_size: int
    progress_interval: int
    parse_failure_policy: ParseFailurePolicy
    emit_trailing_line: bool
    zstd_max_window_size: int
    decoded_block_size: int
    log_level: str

    @classmethod
    def from_env(cls) -> "LogtallyConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            LogtallyConfigError: If environment values are invalid.
        """
        return cls(
            s3_region=os.getenv(ENV_S3_REGION) or DEFAULT_S3_REGION,
            s3_profile=os.getenv(ENV_S3_PROFILE) or None,
            s3_endpoint_url=os.getenv(ENV_S3_ENDPOINT_URL) or None,
            read_chunk_size=_parse_positive_int(ENV_READ_CHUNK_BYTES, DEFAULT_READ_CHUNK_BYTES),
            progress_interval=_parse_positive_int(
                ENV_PROGRESS_INTERVAL, DEFAULT_PROGRESS_INTERVAL
            ),
            parse_failure_policy=cast(
                ParseFailurePolicy,
                _parse_choice(
                    ENV_PARSE_FAILURE_POLICY,
                    DEFAULT_PARSE_FAILURE_POLICY,
                    SUPPORTED_PARSE_FAILURE_POLICIES,
                ),
            ),
            emit_trailing_line=_parse_bool(ENV_EMIT_TRAILING_LINE, DEFAULT_EMIT_TRAILING_LINE),
            zstd_max_window_size=_parse_positive_int(
                ENV_ZSTD_MAX_WINDOW_BYTES, DEFAULT_ZSTD_MAX_WINDOW_BYTES
            ),
            decoded_block_size=_parse_positive_int(
                ENV_DECODED_BLOCK_BYTES, DEFAULT_DECODED_BLOCK_BYTES
            ),
            log_level=_parse_choice(ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL, SUPPORTED_LOG_LEVELS),
        )


def _parse_positive_int(env_name: str, default: int) -> int:
    """Parse a positive integer environment value.

    Args:
        env_name: Environment variable name.
        default: Value used when the variable is unset.

    Returns:
        Parsed positive integer.

    Raises:
        LogtallyConfigError: If value is not a positive integer.
    """
    raw_value = os.getenv(env_name)
    if raw_value is None or not raw_value.strip():
        return default
    try:
        parsed_value = int(raw_value)
    except ValueError as error:
        raise LogtallyConfigError(
            f"Invalid {env_name} value: expected integer, got '{raw_value}'. "
            f"Set {env_name} to a positive number."
        ) from error
    if parsed_value <= 0:
        raise LogtallyConfigError(
            f"Invalid {env_name} value: expected a positive integer, got {parsed_value}. "
            f"Set {env_name} to a value greater than zero."
        )
    return parsed_value


def _parse_choice(env_name: str, default: str, choices: tuple[str, ...]) -> str:
    """Parse an environment value restricted to known choices."""
    raw_value = os.getenv(env_name)
    if raw_value is None or not raw_value.strip():
        return default
    normalized_value = raw_value.strip()
    normalized_value = (
        normalized_value.upper() if default.isupper() else normalized_value.lower()
    )
    if normalized_value not in choices:
        raise LogtallyConfigError(
            f"Invalid {env_name} value '{raw_value}'. "
            f"Supported values: {', '.join(choices)}."
        )
    return normalized_value


def _parse_bool(env_name: str, default: bool) -> bool:
    """Parse a boolean flag environment value."""
    raw_value = os.getenv(env_name)
    if raw_value is None or not raw_value.strip():
        return default
    normalized_value = raw_value.strip().lower()
    if normalized_value in _TRUE_VALUES:
        return True
    if normalized_value in _FALSE_VALUES:
        return False
    raise LogtallyConfigError(
        f"Invalid {env_name} value '{raw_value}': expected a boolean. "
        f"Use one of {', '.join(_TRUE_VALUES + _FALSE_VALUES)}."
    )
