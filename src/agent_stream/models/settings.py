"""Pydantic models for processing settings."""

from __future__ import annotations

import os

from dotenv import load_dotenv
from pydantic import BaseModel


class Settings(BaseModel, frozen=True):
    """Limits used while capturing traces and offloading tool results."""

    # Trace sanitization
    trace_max_string_length: int = 100_000
    trace_max_depth: int = 15
    # Log previews of tool outputs
    tool_output_log_preview: int = 200
    # Large tool result offload
    attachment_threshold: int = 4000
    attachment_ttl_seconds: int = 600
    # Soft budgets of the persisted result
    content_text_budget_bytes: int = 1_000_000
    attachments_budget_bytes: int = 100_000
    trace_event_budget_bytes: int = 500_000
    document_limit_bytes: int = 16 * 1024 * 1024


ENV_FIELDS: dict[str, str] = {
    "TRACE_MAX_STRING_LENGTH": "trace_max_string_length",
    "TRACE_MAX_DEPTH": "trace_max_depth",
    "TOOL_OUTPUT_LOG_PREVIEW": "tool_output_log_preview",
    "ATTACHMENT_THRESHOLD": "attachment_threshold",
    "ATTACHMENT_TTL_SECONDS": "attachment_ttl_seconds",
    "CONTENT_TEXT_BUDGET_BYTES": "content_text_budget_bytes",
    "ATTACHMENTS_BUDGET_BYTES": "attachments_budget_bytes",
    "TRACE_EVENT_BUDGET_BYTES": "trace_event_budget_bytes",
    "DOCUMENT_LIMIT_BYTES": "document_limit_bytes",
}


def _parse_positive_int(name: str, value: str) -> int:
    try:
        parsed = int(value)
    except ValueError:
        msg = f"{name} must be an integer, got {value!r}."
        raise ValueError(msg) from None
    if parsed <= 0:
        msg = f"{name} must be positive, got {parsed}."
        raise ValueError(msg)
    return parsed


def load_settings() -> Settings:
    """Load settings from environment variables with defaults."""
    load_dotenv()

    values: dict[str, int] = {}
    for env_name, field_name in ENV_FIELDS.items():
        raw = os.getenv(env_name)
        if raw is None or not raw.strip():
            continue
        values[field_name] = _parse_positive_int(env_name, raw.strip())
    return Settings(**values)
