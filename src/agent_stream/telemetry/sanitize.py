"""Size-bounding sanitizer for trace payloads.

Trace events are persisted next to the run's content under a hard document
size ceiling, so every retained payload is bounded before storage:

- strings longer than ``max_string_length`` are cut and annotated
- nesting deeper than ``max_depth`` collapses to ``"[Array]"``/``"[Object]"``
- circular references are dropped from their parent container
- non-JSON values (datetimes, bytes, exceptions, pydantic models) are
  converted into JSON-compatible shapes

Collections are walked in full and never shortened: a trace needs every tool
call and message, only individual oversized values are cut.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel

from agent_stream.tools.truncation import truncate_with_marker

DEFAULT_MAX_STRING_LENGTH = 100_000
DEFAULT_MAX_DEPTH = 15

_OMIT = object()


def sanitize_trace_data(
    value: Any,
    *,
    max_string_length: int = DEFAULT_MAX_STRING_LENGTH,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> Any:
    """Return a JSON-compatible, size-bounded copy of ``value``."""
    result = _sanitize(value, 0, set(), max_string_length, max_depth)
    return None if result is _OMIT else result


def sanitize_error(error: BaseException, *, max_string_length: int = DEFAULT_MAX_STRING_LENGTH) -> dict:
    """Describe an exception without its traceback objects."""
    return {
        "name": type(error).__name__,
        "message": truncate_with_marker(str(error), max_string_length),
    }


def _sanitize(value: Any, depth: int, active: set[int], max_len: int, max_depth: int) -> Any:
    if value is None or isinstance(value, bool | int | float):
        return value
    if isinstance(value, str):
        return truncate_with_marker(value, max_len)
    if isinstance(value, datetime | date):
        return value.isoformat()
    if isinstance(value, bytes | bytearray):
        return f"<{len(value)} bytes>"
    if isinstance(value, BaseException):
        return sanitize_error(value, max_string_length=max_len)

    is_sequence = isinstance(value, list | tuple | set | frozenset)
    if not (is_sequence or isinstance(value, Mapping | BaseModel)):
        return truncate_with_marker(str(value), max_len)

    if depth >= max_depth:
        return "[Array]" if is_sequence else "[Object]"

    marker = id(value)
    if marker in active:
        return _OMIT
    active.add(marker)
    try:
        if isinstance(value, BaseModel):
            value = value.model_dump()
        if isinstance(value, Mapping):
            sanitized: dict[str, Any] = {}
            for key, item in value.items():
                cleaned = _sanitize(item, depth + 1, active, max_len, max_depth)
                if cleaned is not _OMIT:
                    sanitized[str(key)] = cleaned
            return sanitized
        items = [_sanitize(item, depth + 1, active, max_len, max_depth) for item in value]
        return [item for item in items if item is not _OMIT]
    finally:
        active.discard(marker)
