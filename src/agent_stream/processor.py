"""Stream event processing and result assembly.

``EventProcessor`` is stateless: all run state lives in the
``StreamAccumulator`` passed to each call, so one processor can serve any
number of concurrent runs as long as every run creates its own accumulator.

Per event, the processor:
1. offers the raw event to the trace capturer
2. parses it into a tagged variant and dispatches to that variant's handler
3. mutates the accumulator and, when a sink is given, emits UI deltas

``get_result`` flushes open blocks and assembles the final content, trace
and usage metrics. No handler raises on malformed or unexpected events.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from functools import partial
from typing import Any

from agent_stream.events import (
    ChainEndEvent,
    ModelEndEvent,
    ModelStreamEvent,
    ParsedEvent,
    ToolEndEvent,
    ToolErrorEvent,
    ToolStartEvent,
    parse_stream_event,
)
from agent_stream.metrics import model_call_from_event
from agent_stream.models.content import ContentBlock, ContentChain, StoredMessageContent, StreamChannel
from agent_stream.models.settings import Settings
from agent_stream.models.trace import ModelCallMetrics, TraceSummary
from agent_stream.stream_utils.accumulator import ChannelState, StreamAccumulator
from agent_stream.stream_utils.channels import apply_fragments
from agent_stream.stream_utils.deltas import DeltaEmitter, PartialSink
from agent_stream.stream_utils.final_output import merge_final_output
from agent_stream.stream_utils.formatters import (
    normalize_content_blocks,
    preview_for_log,
    stringify_tool_output,
)
from agent_stream.stream_utils.tool_correlation import (
    abandon_tool_run,
    correlate_tool_start,
    orphaned_tool_blocks,
    resolve_tool_end,
)
from agent_stream.telemetry.capture import Sanitizer, capture_trace_event
from agent_stream.telemetry.sanitize import sanitize_trace_data
from agent_stream.utils import now_ms

logger = logging.getLogger(__name__)

INCOMPLETE_TOOL_METADATA = {"status": "incomplete"}


@dataclass(frozen=True)
class RunResult:
    """Final structured output of one run."""

    content: StoredMessageContent
    trace: TraceSummary | None = None
    metrics: ModelCallMetrics | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire shape handed to persistence."""
        return {
            "content": self.content.to_wire(),
            "trace": self.trace.to_wire() if self.trace is not None else None,
            "metrics": self.metrics.to_wire() if self.metrics is not None else None,
        }


class EventProcessor:
    """Interpret one run's orchestration events into content, trace and metrics."""

    def __init__(self, settings: Settings | None = None, sanitizer: Sanitizer | None = None) -> None:
        self.settings = settings or Settings()
        self.sanitizer: Sanitizer = sanitizer or partial(
            sanitize_trace_data,
            max_string_length=self.settings.trace_max_string_length,
            max_depth=self.settings.trace_max_depth,
        )
        self._handlers: dict[type[ParsedEvent], Callable[..., None]] = {
            ModelStreamEvent: self._on_model_stream,
            ModelEndEvent: self._on_model_end,
            ToolStartEvent: self._on_tool_start,
            ToolEndEvent: self._on_tool_end,
            ToolErrorEvent: self._on_tool_error,
            ChainEndEvent: self._on_chain_end,
        }

    def create_accumulator(self) -> StreamAccumulator:
        """Create new accumulator for a run."""
        return StreamAccumulator()

    def process_event(
        self,
        acc: StreamAccumulator,
        event: Any,
        on_partial: PartialSink | None = None,
    ) -> None:
        """Process one stream event, mutating ``acc``.

        Args:
            acc: The run's accumulator.
            event: Raw event as emitted by the orchestration engine.
            on_partial: Optional sink receiving serialized UI deltas.
        """
        capture_trace_event(acc, event, self.sanitizer)

        parsed = parse_stream_event(event)
        handler = self._handlers.get(type(parsed))
        if handler is None:
            return
        handler(acc, parsed, DeltaEmitter(on_partial))

    def _on_model_stream(self, acc: StreamAccumulator, event: ModelStreamEvent, emitter: DeltaEmitter) -> None:
        fragments = normalize_content_blocks(event.content)
        if fragments:
            apply_fragments(acc.channel(event.channel), event.channel, fragments, emitter)

    def _on_model_end(self, acc: StreamAccumulator, event: ModelEndEvent, emitter: DeltaEmitter) -> None:
        record = model_call_from_event(event)
        if record is None:
            return
        acc.model_calls.append(record)
        logger.debug(
            "Model call recorded: model=%s tokens=%d node=%s (%d total)",
            record.model_id,
            record.total_tokens,
            record.node_name,
            len(acc.model_calls),
        )

    def _on_tool_start(self, acc: StreamAccumulator, event: ToolStartEvent, emitter: DeltaEmitter) -> None:
        logger.info("Tool execution started: %s (run_id=%s)", event.name, event.run_id)
        correlate_tool_start(acc.channel(event.channel), event.name, event.run_id)

    def _on_tool_end(self, acc: StreamAccumulator, event: ToolEndEvent, emitter: DeltaEmitter) -> None:
        block = resolve_tool_end(acc.channel(event.channel), event.name, event.run_id)
        if block is None:
            logger.warning(
                "Tool end for %s (run_id=%s) matched no tool block on channel %s",
                event.name,
                event.run_id,
                event.channel,
            )
            return

        output = stringify_tool_output(event.output)
        block.output = output
        logger.info(
            "Tool execution completed: %s (run_id=%s) output=%s",
            event.name,
            event.run_id,
            preview_for_log(output, self.settings.tool_output_log_preview),
        )
        emitter.tool_output_chunk(event.channel, block, output)

    def _on_tool_error(self, acc: StreamAccumulator, event: ToolErrorEvent, emitter: DeltaEmitter) -> None:
        logger.error(
            "Tool execution failed: %s (run_id=%s) error=%s",
            event.name,
            event.run_id,
            preview_for_log(str(event.error), self.settings.tool_output_log_preview),
        )
        if abandon_tool_run(acc.channel(event.channel), event.run_id) is None:
            logger.warning("Tool error for %s (run_id=%s) matched no started tool block", event.name, event.run_id)

    def _on_chain_end(self, acc: StreamAccumulator, event: ChainEndEvent, emitter: DeltaEmitter) -> None:
        if event.has_channel and event.channel != StreamChannel.TEXT:
            return
        # The top-level graph wrapper re-emits state its nodes already reported
        if not event.metadata.get("langgraph_node"):
            logger.debug("Skipping final output of top-level chain %s", event.name)
            return
        if merge_final_output(acc, event.output):
            logger.debug(
                "Final output merged from %s: %d attachments, %d metadata keys",
                event.name,
                len(acc.attachments),
                len(acc.metadata),
            )

    def get_result(self, acc: StreamAccumulator) -> RunResult:
        """Build the final result from the accumulator.

        Safe to call more than once: open blocks are flushed exactly once.
        """
        chains: list[ContentChain] = []
        for channel_id, state in acc.channels.items():
            state.finalize_current()
            self._mark_orphaned_tools(channel_id, state)
            if state.content_chain:
                chains.append(ContentChain(channel=channel_id, steps=list(state.content_chain)))

        primary = acc.channels.get(StreamChannel.TEXT.value)
        content = StoredMessageContent(
            content_chains=chains or None,
            attachments=list(acc.attachments),
            metadata=dict(acc.metadata),
            text=_flatten_text(primary.content_chain if primary else []),
        )

        trace = self.build_trace(acc)
        metrics = ModelCallMetrics.from_records(acc.model_calls) if acc.model_calls else None
        logger.info(
            "Run result assembled: %d chains, %d trace events, %d model calls",
            len(chains),
            trace.total_events if trace else 0,
            len(acc.model_calls),
        )
        return RunResult(content=content, trace=trace, metrics=metrics)

    def _mark_orphaned_tools(self, channel_id: str, state: ChannelState) -> None:
        orphans = orphaned_tool_blocks(state)
        if not orphans:
            return
        logger.warning(
            "%d tool block(s) on channel %s never completed: %s",
            len(orphans),
            channel_id,
            ", ".join(f"{block.name}#{block.id}" for block in orphans),
        )
        for block in orphans:
            block.metadata = {**(block.metadata or {}), **INCOMPLETE_TOOL_METADATA}

    def build_trace(self, acc: StreamAccumulator) -> TraceSummary | None:
        """Summarize the captured trace, or None when no event was accepted."""
        if not acc.trace_events:
            return None
        started_at = acc.trace_started_at if acc.trace_started_at is not None else now_ms()
        completed_at = acc.trace_completed_at if acc.trace_completed_at is not None else started_at
        return TraceSummary(
            events=list(acc.trace_events),
            started_at=started_at,
            completed_at=completed_at,
            duration_ms=max(0, completed_at - started_at),
            total_events=len(acc.trace_events),
            total_model_calls=len(acc.model_calls),
        )


def _flatten_text(steps: list[ContentBlock]) -> str:
    return "".join(step.text or "" for step in steps if step.type == "text")


_default_processor = EventProcessor()


def create_accumulator() -> StreamAccumulator:
    """Create a fresh accumulator; one per run, never shared."""
    return _default_processor.create_accumulator()


def process_event(acc: StreamAccumulator, event: Any, on_partial: PartialSink | None = None) -> None:
    """Process one event with the default processor."""
    _default_processor.process_event(acc, event, on_partial)


def get_result(acc: StreamAccumulator) -> RunResult:
    """Assemble the result with the default processor."""
    return _default_processor.get_result(acc)
