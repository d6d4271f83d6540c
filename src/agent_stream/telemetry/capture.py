"""Trace capture for stream events.

Every incoming event is offered to the capturer. High-volume and duplicate
events are dropped; accepted events are projected into a compact
``TraceEvent`` whose ``metadata`` and ``data`` pass through the sanitizer.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from agent_stream.events import MODEL_STREAM, event_type_of
from agent_stream.models.trace import TraceEvent
from agent_stream.utils import get_field, now_ms

if TYPE_CHECKING:
    from agent_stream.stream_utils.accumulator import StreamAccumulator

logger = logging.getLogger(__name__)

Sanitizer = Callable[[Any], Any]

STREAM_CHUNK_TYPE = "stream_chunk"

# Name fragments of LangGraph plumbing runnables
INFRASTRUCTURE_NAME_MARKERS = ("ChannelWrite", "ChannelRead", "ChannelInvoke", "Branch<")

TIMESTAMP_KEYS = ("timestamp", "time")
DATA_TIMESTAMP_KEYS = ("timestamp", "ts")


def is_infrastructure_name(name: str | None) -> bool:
    """Return True for internal graph plumbing node names."""
    return bool(name) and any(marker in name for marker in INFRASTRUCTURE_NAME_MARKERS)


def drop_reason(event: Any) -> str | None:
    """Explain why an event is kept out of the trace, or None to keep it."""
    event_type = event_type_of(event)
    if not event_type:
        return "missing event type"
    if event_type.lower() == STREAM_CHUNK_TYPE:
        return "stream chunk"
    chunk = get_field(event.get("data"), "chunk")
    chunk_type = get_field(chunk, "type") or get_field(chunk, "event")
    if isinstance(chunk_type, str) and chunk_type.lower() == STREAM_CHUNK_TYPE:
        return "stream chunk"
    if event_type == MODEL_STREAM:
        return "token stream"
    name = event.get("name")
    if is_infrastructure_name(str(name) if name else None):
        return "infrastructure node"
    metadata = event.get("metadata")
    has_node = isinstance(metadata, Mapping) and bool(metadata.get("langgraph_node"))
    if event_type.startswith("on_chain") and not has_node:
        return "top-level chain wrapper"
    return None


def normalize_trace_event(event: Any, sanitizer: Sanitizer) -> TraceEvent | None:
    """Project a raw event into a sanitized trace record, or None to drop it."""
    reason = drop_reason(event)
    if reason is not None:
        logger.debug("Trace skip (%s): type=%s", reason, event_type_of(event) or "-")
        return None

    metadata = _as_dict(sanitizer(event.get("metadata")))
    data = _as_dict(sanitizer(event.get("data")))
    name = event.get("name")
    name = str(name) if name else None

    channel = None
    if metadata is not None and isinstance(metadata.get("stream_channel"), str):
        channel = metadata["stream_channel"]

    return TraceEvent(
        type=event_type_of(event),
        name=name,
        channel=channel,
        node_name=_node_name(metadata, name),
        timestamp=_timestamp(event),
        metadata=metadata,
        data=data,
    )


def capture_trace_event(acc: StreamAccumulator, event: Any, sanitizer: Sanitizer) -> TraceEvent | None:
    """Store the trace projection of ``event`` on the accumulator, if accepted."""
    trace_event = normalize_trace_event(event, sanitizer)
    if trace_event is None:
        return None

    acc.trace_events.append(trace_event)
    if acc.trace_started_at is None:
        acc.trace_started_at = trace_event.timestamp
    if acc.trace_completed_at is None or trace_event.timestamp > acc.trace_completed_at:
        acc.trace_completed_at = trace_event.timestamp
    logger.debug(
        "Captured trace event %s for node %s (%d total)",
        trace_event.type,
        trace_event.node_name,
        len(acc.trace_events),
    )
    return trace_event


def _as_dict(value: Any) -> dict[str, Any] | None:
    return value if isinstance(value, dict) else None


def _node_name(metadata: dict[str, Any] | None, name: str | None) -> str | None:
    if metadata is not None:
        for key in ("langgraph_node", "node_name"):
            value = metadata.get(key)
            if isinstance(value, str) and value:
                return value
    return name


def _timestamp(event: Mapping[str, Any]) -> int:
    data = event.get("data")
    candidates = [event.get(key) for key in TIMESTAMP_KEYS]
    if isinstance(data, Mapping):
        candidates.extend(data.get(key) for key in DATA_TIMESTAMP_KEYS)
    for candidate in candidates:
        if candidate is None or isinstance(candidate, bool):
            continue
        try:
            value = float(candidate)
        except (TypeError, ValueError, OverflowError):
            continue
        # NaN and infinities fall through to the next candidate
        if value and math.isfinite(value):
            return int(value)
    return now_ms()
