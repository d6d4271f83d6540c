"""Content block assembly for one channel.

Block boundaries are inferred from type transitions in the fragment stream:
a text fragment after a tool block opens a new text block, a tool_use
fragment always opens a new tool block, and input_json_delta fragments
extend the open tool block. No explicit start/end markers are needed.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from agent_stream.stream_utils.formatters import stringify_tool_input

if TYPE_CHECKING:
    from collections.abc import Iterable

    from agent_stream.stream_utils.accumulator import ChannelState
    from agent_stream.stream_utils.deltas import DeltaEmitter

logger = logging.getLogger(__name__)

TOOL_USE_TYPES = frozenset({"tool_use", "tool_call"})


def apply_fragments(
    state: ChannelState,
    channel: str,
    fragments: Iterable[Any],
    emitter: DeltaEmitter,
) -> None:
    """Apply normalized fragments to a channel, in order."""
    for fragment in fragments:
        if not isinstance(fragment, Mapping):
            continue
        fragment_type = fragment.get("type")
        if fragment_type in TOOL_USE_TYPES:
            _start_tool_block(state, channel, fragment, emitter)
        elif fragment_type == "input_json_delta":
            _append_tool_input(state, channel, fragment, emitter)
        elif fragment_type == "text":
            _append_text(state, channel, fragment, emitter)
        else:
            logger.debug("Ignoring %s fragment on channel %s", fragment_type, channel)


def _start_tool_block(
    state: ChannelState, channel: str, fragment: Mapping[str, Any], emitter: DeltaEmitter
) -> None:
    block = state.open_block(
        type="tool_use",
        name=_optional_str(fragment.get("name")),
        id=_optional_str(fragment.get("id")),
        input=stringify_tool_input(fragment.get("input")),
        output="",
    )
    state.pending_tool_blocks.append(block)
    emitter.step_started(channel, block)


def _append_tool_input(
    state: ChannelState, channel: str, fragment: Mapping[str, Any], emitter: DeltaEmitter
) -> None:
    block = state.current_block
    if block is None or block.type != "tool_use":
        logger.debug("input_json_delta with no open tool block on channel %s", channel)
        return
    # Anthropic-style chunks carry the partial text as partial_json
    chunk = fragment.get("input")
    if chunk is None:
        chunk = fragment.get("partial_json")
    chunk = chunk if isinstance(chunk, str) else stringify_tool_input(chunk)
    if not chunk:
        return
    block.input = (block.input or "") + chunk
    emitter.tool_input_chunk(channel, block, chunk)


def _append_text(
    state: ChannelState, channel: str, fragment: Mapping[str, Any], emitter: DeltaEmitter
) -> None:
    text = fragment.get("text")
    if not isinstance(text, str) or not text:
        return
    block = state.current_block
    if block is not None and block.type == "text":
        block.text = (block.text or "") + text
    else:
        state.open_block(type="text", text=text)
    emitter.text_chunk(channel, text)


def _optional_str(value: Any) -> str | None:
    return str(value) if value is not None else None
