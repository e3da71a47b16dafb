"""JSON record parsing for single lines."""

from __future__ import annotations

import json
from typing import Any

from core.errors import LogtallyRecordParseError


def parse_record(line: bytes | str, line_number: int | None = None) -> Any:
    """Parse one line as a self-contained JSON value.

    ``NaN`` and ``Infinity`` are rejected, and so is nesting deeper than the
    decoder can recurse.

    Args:
        line: Terminator-stripped line, UTF-8 bytes or text.
        line_number: Optional one-based position for error context.

    Returns:
        Parsed JSON value. The pipeline never inspects its fields.

    Raises:
        LogtallyRecordParseError: If the line is not valid UTF-8 JSON.
    """
    try:
        return json.loads(line, parse_constant=_reject_constant)
    except RecursionError as error:
        raise _parse_error("nesting is too deep", line_number) from error
    except ValueError as error:
        reason = error.msg if isinstance(error, json.JSONDecodeError) else str(error)
        raise _parse_error(reason, line_number) from error


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid constant {name}")


def _parse_error(reason: str, line_number: int | None) -> LogtallyRecordParseError:
    location = f" at line {line_number}" if line_number is not None else ""
    return LogtallyRecordParseError(
        f"Failed to parse JSON record{location}: {reason}.",
        line_number=line_number,
    )
