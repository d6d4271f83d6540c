"""Summaries for oversized tool results and injection of stored data into later tool calls."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from agent_stream.tools.attachment_store import AttachmentDataStore, default_attachment_store

logger = logging.getLogger(__name__)

DEFAULT_ATTACHMENT_THRESHOLD = 4000
MAX_SAMPLE_ROWS = 5
MAX_TEXT_PREVIEW_LENGTH = 500


@dataclass(frozen=True)
class GraphAttachment:
    """A tool result kept out of the model's context."""

    data: Any
    summary: str
    tool_name: str
    tool_call_id: str
    created_at: int


@dataclass(frozen=True)
class OffloadResult:
    """Content to hand back to the model, plus the attachment if one was made."""

    content: str
    attachment: GraphAttachment | None = None


def _attachment_marker(tool_call_id: str) -> str:
    return f"[Data stored as attachment: {tool_call_id}]"


def generate_attachment_summary(data: Any, tool_call_id: str) -> str:
    """Summarize tool result data; tabular data gets a sample of rows.

    Never raises: unexpected data falls back to the bare attachment marker.
    """
    try:
        if isinstance(data, list) and data and isinstance(data[0], Mapping):
            return _tabular_summary(data, tool_call_id)
        return _text_summary(data, tool_call_id)
    except Exception:
        logger.debug("Falling back to bare summary for %s", tool_call_id, exc_info=True)
        return _attachment_marker(tool_call_id)


def _tabular_summary(rows: list[Any], tool_call_id: str) -> str:
    columns = list(rows[0].keys())
    row_label = "row" if len(rows) == 1 else "rows"
    col_label = "column" if len(columns) == 1 else "columns"
    lines = [
        f"{len(rows)} {row_label}, {len(columns)} {col_label} ({', '.join(map(str, columns))})",
        "Sample data:",
    ]
    for row in rows[:MAX_SAMPLE_ROWS]:
        try:
            lines.append(json.dumps(row, ensure_ascii=False))
        except (TypeError, ValueError):
            lines.append("[unserializable row]")
    lines.append(_attachment_marker(tool_call_id))
    return "\n".join(lines)


def _text_summary(data: Any, tool_call_id: str) -> str:
    if isinstance(data, str):
        text = data
    else:
        try:
            text = json.dumps(data, ensure_ascii=False)
        except (TypeError, ValueError):
            text = str(data)
    suffix = "..." if len(text) > MAX_TEXT_PREVIEW_LENGTH else ""
    return "\n".join(
        [
            f"{len(text)} characters",
            f"Preview: {text[:MAX_TEXT_PREVIEW_LENGTH]}{suffix}",
            _attachment_marker(tool_call_id),
        ]
    )


def create_graph_attachment(data: Any, tool_name: str, tool_call_id: str) -> GraphAttachment:
    """Wrap tool result data with its summary."""
    return GraphAttachment(
        data=data,
        summary=generate_attachment_summary(data, tool_call_id),
        tool_name=tool_name,
        tool_call_id=tool_call_id,
        created_at=int(time.time() * 1000),
    )


def offload_tool_result(
    content: str,
    raw_result: Any,
    *,
    tool_name: str,
    tool_call_id: str,
    thread_id: str | None = None,
    threshold: int = DEFAULT_ATTACHMENT_THRESHOLD,
    store: AttachmentDataStore | None = None,
) -> OffloadResult:
    """Replace an oversized tool result with a summary, parking the data.

    Results at or under ``threshold`` characters pass through unchanged.
    """
    if raw_result is None or len(content) <= threshold:
        return OffloadResult(content=content)

    attachment = create_graph_attachment(raw_result, tool_name, tool_call_id)
    (store or default_attachment_store).store(tool_call_id, raw_result, thread_id)
    logger.debug(
        "Offloaded %d-char result of %s as attachment %s", len(content), tool_name, tool_call_id
    )
    return OffloadResult(content=attachment.summary, attachment=attachment)


def latest_attachment(attachments: Mapping[str, GraphAttachment]) -> GraphAttachment | None:
    """Return the most recently created attachment, if any."""
    return max(attachments.values(), key=lambda attachment: attachment.created_at, default=None)


def inject_attachment_data(
    args: Mapping[str, Any],
    attachments: Mapping[str, GraphAttachment],
    arg_name: str = "data",
    source_id: str | None = None,
) -> dict[str, Any]:
    """Fill a tool's missing data argument from a stored attachment.

    Only a truly absent ``arg_name`` is filled; any value the model passed,
    including None or an empty string, is kept. ``source_id`` picks a
    specific attachment, otherwise the latest one is used. Returns a new
    argument dict; ``args`` is never mutated.
    """
    injected = dict(args)
    if not attachments or arg_name in injected:
        return injected

    attachment = attachments.get(source_id) if source_id else latest_attachment(attachments)
    if attachment is None:
        logger.debug("No attachment %s available for injection into %s", source_id, arg_name)
        return injected

    data = attachment.data
    if not isinstance(data, str):
        try:
            data = json.dumps(data, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            logger.warning("Attachment injection from %s failed: %s", attachment.tool_call_id, exc)
            return injected
    injected[arg_name] = data
    logger.debug("Injected attachment %s into argument %s", attachment.tool_call_id, arg_name)
    return injected
