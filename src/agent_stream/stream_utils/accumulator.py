"""Per-run accumulator state.

Each run creates its own ``StreamAccumulator``; the processor holds no
state of its own, so runs never share mutable data.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from agent_stream.models.content import ContentBlock, StreamChannel
from agent_stream.models.trace import ModelCallRecord, TraceEvent


@dataclass
class ChannelState:
    """Block assembly state of one logical channel.

    A tool block is referenced from at most one of ``pending_tool_blocks``
    (announced, not started) and ``tool_blocks_by_run_id`` (started, not
    finished) at a time, independently of whether it is still the open
    ``current_block`` or already finalized into ``content_chain``.
    """

    content_chain: list[ContentBlock] = field(default_factory=list)
    current_block: ContentBlock | None = None
    pending_tool_blocks: list[ContentBlock] = field(default_factory=list)
    tool_blocks_by_run_id: dict[str, ContentBlock] = field(default_factory=dict)
    next_index: int = 0

    def finalize_current(self) -> ContentBlock | None:
        """Move the open block, if any, to the end of the chain."""
        block = self.current_block
        if block is not None:
            self.content_chain.append(block)
            self.current_block = None
        return block

    def open_block(self, **fields: Any) -> ContentBlock:
        """Finalize the open block and start a new one."""
        self.finalize_current()
        block = ContentBlock(index=self.next_index, **fields)
        self.next_index += 1
        self.current_block = block
        return block


@dataclass
class StreamAccumulator:
    """All mutable state of one run, read once at the end by the assembler."""

    channels: dict[str, ChannelState] = field(
        default_factory=lambda: {
            StreamChannel.TEXT.value: ChannelState(),
            StreamChannel.PROCESSING.value: ChannelState(),
        }
    )
    attachments: list[Any] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)
    model_calls: list[ModelCallRecord] = field(default_factory=list)
    trace_events: list[TraceEvent] = field(default_factory=list)
    trace_started_at: int | None = None
    trace_completed_at: int | None = None

    def channel(self, channel_id: str) -> ChannelState:
        """Return the state of ``channel_id``, creating it on first use."""
        state = self.channels.get(channel_id)
        if state is None:
            state = ChannelState()
            self.channels[channel_id] = state
        return state
