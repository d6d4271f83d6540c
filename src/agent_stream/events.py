"""Tagged event variants for orchestration streams.

Raw stream events are loosely-typed dicts keyed by an ``event`` name with a
nested ``data`` payload. ``parse_stream_event`` classifies each one into a
single frozen variant so handlers can be dispatched by type instead of
probing fields ad hoc. The raw event stays available on every variant for
the trace capturer.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from agent_stream.models.content import StreamChannel
from agent_stream.utils import get_field

MODEL_STREAM = "on_chat_model_stream"
MODEL_END = "on_chat_model_end"
TOOL_START = "on_tool_start"
TOOL_END = "on_tool_end"
TOOL_ERROR = "on_tool_error"
CHAIN_END = "on_chain_end"


@dataclass(frozen=True)
class ParsedEvent:
    """Fields shared by every event variant.

    Attributes:
        event_type: The raw ``event`` (or ``type``) value, empty when absent.
        channel: Stream channel from ``metadata.stream_channel``, ``"text"`` by default.
        raw: The original event payload (unchanged).
    """

    event_type: str
    channel: str
    raw: Any
    name: str | None = None
    run_id: str | None = None
    metadata: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ModelStreamEvent(ParsedEvent):
    """Token-level delta from a chat model."""

    content: Any = None


@dataclass(frozen=True)
class ModelEndEvent(ParsedEvent):
    """Completion of one chat model call."""

    output: Any = None
    usage: Mapping[str, Any] | None = None
    model_id: str | None = None


@dataclass(frozen=True)
class ToolStartEvent(ParsedEvent):
    """Tool execution began."""

    input: Any = None


@dataclass(frozen=True)
class ToolEndEvent(ParsedEvent):
    """Tool execution finished with a result."""

    output: Any = None


@dataclass(frozen=True)
class ToolErrorEvent(ParsedEvent):
    """Tool execution failed."""

    error: Any = None


@dataclass(frozen=True)
class ChainEndEvent(ParsedEvent):
    """A runnable (graph node or sub-chain) finished."""

    output: Any = None
    has_channel: bool = False


@dataclass(frozen=True)
class UnhandledEvent(ParsedEvent):
    """Any event with no content or lifecycle meaning."""


def event_type_of(event: Any) -> str:
    """Return the event kind of a raw event, or ``""`` when it has none."""
    if not isinstance(event, Mapping):
        return ""
    kind = event.get("event") or event.get("type")
    return str(kind) if kind else ""


def parse_stream_event(event: Any) -> ParsedEvent:
    """Classify a raw stream event into exactly one variant. Never raises."""
    if not isinstance(event, Mapping):
        return UnhandledEvent(event_type="", channel=StreamChannel.TEXT.value, raw=event)

    metadata = event.get("metadata")
    if not isinstance(metadata, Mapping):
        metadata = {}
    data = event.get("data")
    if not isinstance(data, Mapping):
        data = {}

    stream_channel = metadata.get("stream_channel")
    has_channel = isinstance(stream_channel, str) and bool(stream_channel)
    name = event.get("name")
    run_id = event.get("run_id")
    common: dict[str, Any] = {
        "event_type": event_type_of(event),
        "channel": stream_channel if has_channel else StreamChannel.TEXT.value,
        "raw": event,
        "name": str(name) if name else None,
        "run_id": str(run_id) if run_id else None,
        "metadata": metadata,
    }

    kind = common["event_type"]
    if kind == MODEL_STREAM:
        return ModelStreamEvent(**common, content=get_field(data.get("chunk"), "content"))
    if kind == MODEL_END:
        output = data.get("output")
        return ModelEndEvent(
            **common,
            output=output,
            usage=_usage_of(output),
            model_id=_model_id_of(metadata),
        )
    if kind == TOOL_START:
        return ToolStartEvent(**common, input=data.get("input"))
    if kind == TOOL_END:
        return ToolEndEvent(**common, output=data.get("output"))
    if kind == TOOL_ERROR:
        return ToolErrorEvent(**common, error=data.get("error"))
    if kind == CHAIN_END:
        return ChainEndEvent(**common, output=data.get("output"), has_channel=has_channel)
    return UnhandledEvent(**common)


def _usage_of(output: Any) -> Mapping[str, Any] | None:
    usage = get_field(output, "usage_metadata") or get_field(output, "usageMetadata")
    return usage if isinstance(usage, Mapping) else None


def _model_id_of(metadata: Mapping[str, Any]) -> str | None:
    model_id = metadata.get("modelId") or metadata.get("ls_model_name")
    return str(model_id) if model_id else None
