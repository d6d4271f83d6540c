from agent_stream.budget import BudgetViolation, check_result_budget
from agent_stream.events import ParsedEvent, parse_stream_event
from agent_stream.models import (
    ContentBlock,
    ContentChain,
    ModelCallMetrics,
    ModelCallRecord,
    Settings,
    StoredMessageContent,
    StreamChannel,
    TraceEvent,
    TraceSummary,
    load_settings,
)
from agent_stream.processor import (
    EventProcessor,
    RunResult,
    create_accumulator,
    get_result,
    process_event,
)
from agent_stream.stream_utils import ChannelState, StreamAccumulator
from agent_stream.streaming import TraceSink, stream_run
from agent_stream.telemetry import install_run_log_filter, run_log_context, sanitize_trace_data

__all__ = [
    "BudgetViolation",
    "ChannelState",
    "ContentBlock",
    "ContentChain",
    "EventProcessor",
    "ModelCallMetrics",
    "ModelCallRecord",
    "ParsedEvent",
    "RunResult",
    "Settings",
    "StoredMessageContent",
    "StreamAccumulator",
    "StreamChannel",
    "TraceEvent",
    "TraceSink",
    "TraceSummary",
    "check_result_budget",
    "create_accumulator",
    "get_result",
    "install_run_log_filter",
    "load_settings",
    "parse_stream_event",
    "process_event",
    "run_log_context",
    "sanitize_trace_data",
    "stream_run",
]
