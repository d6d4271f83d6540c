"""Formatters for streamed content.

Handles content normalization, tool output stringification and log previews.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from agent_stream.tools.truncation import truncate_text


def normalize_content_blocks(content: Any) -> list[Any]:
    """Normalize a chunk's content into an ordered list of raw fragments.

    Models stream content in three wire shapes, all mapped to a list:

    - Text: ``"Hello"`` -> ``[{"type": "text", "text": "Hello"}]``
    - Single block: ``{"type": "input_json_delta", ...}`` -> ``[{...}]``
    - Block list: passed through unchanged

    Missing content and blank strings produce an empty list.
    """
    if content is None:
        return []
    if isinstance(content, str):
        return [{"type": "text", "text": content}] if content.strip() else []
    if isinstance(content, list | tuple):
        return list(content)
    if isinstance(content, Mapping):
        return [content]
    return []


def stringify_tool_output(output: Any) -> str:
    """Convert a tool result into the text stored on its content block.

    Message objects (e.g. ``ToolMessage``) contribute their ``content``;
    structured results are pretty-printed as JSON.
    """
    if output is None:
        return ""
    if isinstance(output, str):
        return output
    if not isinstance(output, Mapping | list | tuple) and hasattr(output, "content"):
        return stringify_tool_output(output.content)
    try:
        return json.dumps(output, indent=2, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return str(output)


def stringify_tool_input(payload: Any) -> str:
    """Render an announced tool input as JSON text for streamed accumulation."""
    if payload is None:
        return ""
    if isinstance(payload, str):
        return payload
    if not payload:
        return ""
    try:
        return json.dumps(payload, ensure_ascii=False)
    except (TypeError, ValueError):
        return str(payload)


def preview_for_log(value: Any, max_chars: int = 200) -> str:
    """Short single-value preview used in log messages."""
    return truncate_text(stringify_tool_output(value), max_chars).text
