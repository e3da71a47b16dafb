"""Logtally exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each pipeline stage raises a specific error type for debuggability.
"""

from __future__ import annotations


class LogtallyError(Exception):
    """Base exception for all Logtally failures."""


class LogtallyConfigError(LogtallyError):
    """Raised for invalid runtime configuration."""


class LogtallyDependencyError(LogtallyError):
    """Raised when an optional runtime dependency is missing."""


class LogtallyRequestError(LogtallyError):
    """Raised for malformed inbound invocation events."""


class LogtallySourceError(LogtallyError):
    """Raised when the remote object cannot be fetched or read."""


class LogtallyNotFoundError(LogtallySourceError):
    """Raised when the requested bucket or key does not exist."""


class LogtallyAccessDeniedError(LogtallySourceError):
    """Raised for authorization failures against object storage."""


class LogtallyTransientIOError(LogtallySourceError):
    """Raised for network-level interruption while fetching or streaming."""


class LogtallyEmptyBodyError(LogtallySourceError):
    """Raised when the fetched object has no body or zero bytes."""


class LogtallyCorruptStreamError(LogtallyError):
    """Raised for invalid or truncated compressed framing."""


class LogtallyRecordParseError(LogtallyError):
    """Raised when one line is not a well-formed JSON record."""

    def __init__(self, message: str, line_number: int | None = None) -> None:
        super().__init__(message)
        self.line_number = line_number
