"""Async driver consuming one run's event stream.

Usage:
    result = await stream_run(graph.astream_events(inputs, version="v2"), on_partial=send)

The driver owns the event-consumption loop around ``EventProcessor``: it
creates the run's accumulator, feeds every event, hands the trace to an
optional sink even when the stream fails, and assembles the result.
Partial results are a valid outcome of an aborted stream.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterable, Awaitable, Callable
from typing import Any

from agent_stream.budget import check_result_budget
from agent_stream.models.trace import TraceSummary
from agent_stream.processor import EventProcessor, RunResult
from agent_stream.stream_utils.accumulator import StreamAccumulator
from agent_stream.stream_utils.deltas import PartialSink
from agent_stream.telemetry.logging_utils import run_log_context

logger = logging.getLogger(__name__)

TraceSink = Callable[[TraceSummary, BaseException | None], Awaitable[None]]


async def stream_run(
    events: AsyncIterable[Any],
    *,
    on_partial: PartialSink | None = None,
    processor: EventProcessor | None = None,
    trace_sink: TraceSink | None = None,
    run_id: str | None = None,
) -> RunResult:
    """Consume ``events`` for one run and return the assembled result.

    Args:
        events: Async stream of raw orchestration events for a single run.
        on_partial: Optional sink receiving serialized UI deltas.
        processor: Processor to use; a default-configured one when omitted.
        trace_sink: Awaited with the trace summary and the stream error (if
            any) once the stream ends, including on failure or cancellation.
        run_id: Identifier attached to log records emitted during the run.

    Raises:
        Exception: The event source's error, re-raised after the trace sink
            ran and the result was assembled.
    """
    processor = processor or EventProcessor()
    acc = processor.create_accumulator()
    stream_error: Exception | None = None

    with run_log_context(run_id):
        try:
            async for event in events:
                try:
                    processor.process_event(acc, event, on_partial)
                except Exception as exc:
                    logger.warning("Error processing stream event: %s", exc)
        except Exception as exc:
            stream_error = exc
            logger.error("Event stream failed: %s", exc)
        finally:
            await _send_trace(processor, acc, trace_sink, stream_error)

        result = processor.get_result(acc)
        for violation in check_result_budget(result, processor.settings):
            logger.warning("Result size budget exceeded: %s", violation.describe())

    if stream_error is not None:
        raise stream_error
    return result


async def _send_trace(
    processor: EventProcessor,
    acc: StreamAccumulator,
    trace_sink: TraceSink | None,
    error: BaseException | None,
) -> None:
    if trace_sink is None:
        return
    trace = processor.build_trace(acc)
    if trace is None:
        logger.debug("No trace events captured; skipping trace sink")
        return
    try:
        await trace_sink(trace, error)
    except Exception as exc:
        logger.error("Trace sink failed: %s", exc)
