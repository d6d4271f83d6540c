"""Trace and usage models retained for observability and billing."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from agent_stream.models.base import ApiModel


class TraceEvent(ApiModel):
    """Sanitized projection of an accepted stream event."""

    type: str
    name: str | None = None
    channel: str | None = None
    node_name: str | None = Field(default=None, alias="nodeName")
    timestamp: int
    metadata: dict[str, Any] | None = None
    data: dict[str, Any] | None = None


class TraceSummary(ApiModel):
    """Trace of one run as handed to the caller."""

    events: list[TraceEvent]
    started_at: int = Field(alias="startedAt")
    completed_at: int = Field(alias="completedAt")
    duration_ms: int = Field(alias="durationMs")
    total_events: int = Field(alias="totalEvents")
    total_model_calls: int = Field(default=0, alias="totalModelCalls")


class ModelCallRecord(ApiModel):
    """Token usage of one chat model call."""

    model_id: str = Field(alias="modelId")
    prompt_tokens: int = Field(default=0, alias="promptTokens")
    completion_tokens: int = Field(default=0, alias="completionTokens")
    total_tokens: int = Field(default=0, alias="totalTokens")
    timestamp: int
    node_name: str | None = Field(default=None, alias="nodeName")


class ModelCallMetrics(ApiModel):
    """Usage totals across all model calls of a run."""

    model_calls: list[ModelCallRecord] = Field(alias="modelCalls")
    total_prompt_tokens: int = Field(default=0, alias="totalPromptTokens")
    total_completion_tokens: int = Field(default=0, alias="totalCompletionTokens")
    total_tokens: int = Field(default=0, alias="totalTokens")

    @classmethod
    def from_records(cls, records: list[ModelCallRecord]) -> ModelCallMetrics:
        """Sum token usage across records."""
        return cls(
            model_calls=list(records),
            total_prompt_tokens=sum(r.prompt_tokens for r in records),
            total_completion_tokens=sum(r.completion_tokens for r in records),
            total_tokens=sum(r.total_tokens for r in records),
        )
