"""Pydantic models for stream content, traces and settings."""

from agent_stream.models.base import ApiModel
from agent_stream.models.content import (
    ContentBlock,
    ContentChain,
    StoredMessageContent,
    StreamChannel,
)
from agent_stream.models.settings import Settings, load_settings
from agent_stream.models.trace import (
    ModelCallMetrics,
    ModelCallRecord,
    TraceEvent,
    TraceSummary,
)

__all__ = [
    "ApiModel",
    "ContentBlock",
    "ContentChain",
    "ModelCallMetrics",
    "ModelCallRecord",
    "Settings",
    "StoredMessageContent",
    "StreamChannel",
    "TraceEvent",
    "TraceSummary",
    "load_settings",
]
