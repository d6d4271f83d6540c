"""Shared utilities for agent stream processing."""

from __future__ import annotations

import time
from collections.abc import Mapping
from typing import Any


def now_ms() -> int:
    """Return the current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def get_field(source: Any, name: str) -> Any:
    """Read ``name`` from a mapping or an attribute-bearing object.

    LangChain events mix plain dicts with message objects (``AIMessageChunk``,
    ``ToolMessage``), so payload fields are read through this helper.
    """
    if source is None:
        return None
    if isinstance(source, Mapping):
        return source.get(name)
    return getattr(source, name, None)
