"""Content models assembled from a run's event stream."""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Literal

from pydantic import Field

from agent_stream.models.base import ApiModel


class StreamChannel(StrEnum):
    """Logical sub-streams a content block can belong to."""

    TEXT = "text"
    PROCESSING = "processing"


class ContentBlock(ApiModel):
    """One unit of assembled output: a span of text or a tool invocation.

    ``input`` collects streamed tool parameters as raw JSON text, fragment by
    fragment. ``output`` is written once, when the tool finishes.
    """

    index: int
    type: Literal["text", "tool_use"]
    text: str | None = None
    name: str | None = None
    id: str | None = None
    input: str | None = None
    output: str | None = None
    metadata: dict[str, Any] | None = None


class ContentChain(ApiModel):
    """Finalized ordered blocks of one channel."""

    channel: str
    steps: list[ContentBlock]
    is_complete: bool = Field(default=True, alias="isComplete")


class StoredMessageContent(ApiModel):
    """Final structured content of a run, ready for persistence."""

    content_chains: list[ContentChain] | None = Field(default=None, alias="contentChains")
    attachments: list[Any] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
    # Flattened primary-channel text kept for older consumers
    text: str = ""
