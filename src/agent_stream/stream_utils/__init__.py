"""Stream utilities for run event processing.

- StreamAccumulator/ChannelState: per-run mutable state
- apply_fragments: assembles content blocks for one channel
- correlate_tool_start/resolve_tool_end/abandon_tool_run: tool lifecycle correlation
- merge_final_output: collects attachments/metadata from chain end events
- DeltaEmitter: forwards incremental UI deltas to an optional sink
- normalize_content_blocks/stringify_tool_output: payload formatting

The processor module wires these together per event.
"""

from agent_stream.stream_utils.accumulator import ChannelState, StreamAccumulator
from agent_stream.stream_utils.channels import apply_fragments
from agent_stream.stream_utils.deltas import DeltaEmitter, PartialSink
from agent_stream.stream_utils.final_output import find_final_output, merge_final_output
from agent_stream.stream_utils.formatters import (
    normalize_content_blocks,
    preview_for_log,
    stringify_tool_input,
    stringify_tool_output,
)
from agent_stream.stream_utils.tool_correlation import (
    abandon_tool_run,
    correlate_tool_start,
    orphaned_tool_blocks,
    resolve_tool_end,
)

__all__ = [
    "ChannelState",
    "DeltaEmitter",
    "PartialSink",
    "StreamAccumulator",
    "abandon_tool_run",
    "apply_fragments",
    "correlate_tool_start",
    "find_final_output",
    "merge_final_output",
    "normalize_content_blocks",
    "orphaned_tool_blocks",
    "preview_for_log",
    "resolve_tool_end",
    "stringify_tool_input",
    "stringify_tool_output",
]
