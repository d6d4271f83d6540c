"""Trace capture, payload sanitization and log correlation."""

from agent_stream.telemetry.capture import (
    INFRASTRUCTURE_NAME_MARKERS,
    capture_trace_event,
    drop_reason,
    normalize_trace_event,
)
from agent_stream.telemetry.logging_utils import (
    RunContextFilter,
    get_current_run_id,
    install_run_log_filter,
    run_log_context,
)
from agent_stream.telemetry.sanitize import sanitize_error, sanitize_trace_data

__all__ = [
    "INFRASTRUCTURE_NAME_MARKERS",
    "RunContextFilter",
    "capture_trace_event",
    "drop_reason",
    "get_current_run_id",
    "install_run_log_filter",
    "normalize_trace_event",
    "run_log_context",
    "sanitize_error",
    "sanitize_trace_data",
]
