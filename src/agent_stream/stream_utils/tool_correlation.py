"""Correlation of tool lifecycle events with announced tool blocks.

A tool block is announced by the model (pending), correlated to a tool
execution by its ``run_id`` on start, and completed on end. Two tools with
the same name running concurrently can only be told apart by ``run_id``;
streams that never correlated a start fall back to FIFO order.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from agent_stream.models.content import ContentBlock
    from agent_stream.stream_utils.accumulator import ChannelState

logger = logging.getLogger(__name__)


def correlate_tool_start(
    state: ChannelState, name: str | None, run_id: str | None
) -> ContentBlock | None:
    """Bind the oldest pending block named ``name`` to ``run_id``."""
    if not run_id:
        logger.debug("Tool start for %s carries no run_id; leaving it uncorrelated", name)
        return None
    for position, block in enumerate(state.pending_tool_blocks):
        if block.name == name:
            del state.pending_tool_blocks[position]
            state.tool_blocks_by_run_id[run_id] = block
            return block
    logger.debug("No pending tool block named %s to correlate with run %s", name, run_id)
    return None


def resolve_tool_end(
    state: ChannelState, name: str | None, run_id: str | None
) -> ContentBlock | None:
    """Find and release the block a tool end event belongs to.

    Resolution order: exact ``run_id`` match, then the oldest pending block
    with the same name, then the oldest pending block.
    """
    if run_id and run_id in state.tool_blocks_by_run_id:
        return state.tool_blocks_by_run_id.pop(run_id)
    pending = state.pending_tool_blocks
    for position, block in enumerate(pending):
        if block.name == name:
            return pending.pop(position)
    if pending:
        return pending.pop(0)
    return None


def abandon_tool_run(state: ChannelState, run_id: str | None) -> ContentBlock | None:
    """Drop the correlation of a failed run, leaving its block untouched."""
    if not run_id:
        return None
    return state.tool_blocks_by_run_id.pop(run_id, None)


def orphaned_tool_blocks(state: ChannelState) -> list[ContentBlock]:
    """Tool blocks that were announced or started but never completed."""
    return [*state.pending_tool_blocks, *state.tool_blocks_by_run_id.values()]
