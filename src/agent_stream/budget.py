"""Size budget report for assembled run results.

The result is persisted under a hard document size ceiling. Nothing here
truncates or rejects data; oversized fields are only reported so callers
can see which part of a run pushed it over.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from agent_stream.models.settings import Settings
    from agent_stream.processor import RunResult


@dataclass(frozen=True)
class BudgetViolation:
    """A result field whose serialized size exceeds its budget."""

    field: str
    size_bytes: int
    limit_bytes: int

    def describe(self) -> str:
        return f"{self.field}: {self.size_bytes} bytes exceeds {self.limit_bytes} bytes"


def serialized_size(value: Any) -> int:
    """UTF-8 size of ``value`` serialized as JSON."""
    return len(json.dumps(value, ensure_ascii=False, default=str).encode("utf-8"))


def check_result_budget(result: RunResult, settings: Settings) -> list[BudgetViolation]:
    """Compare each persisted field of ``result`` with its budget."""
    violations: list[BudgetViolation] = []

    def check(field: str, size: int, limit: int) -> None:
        if size > limit:
            violations.append(BudgetViolation(field=field, size_bytes=size, limit_bytes=limit))

    content = result.content
    check("content.text", len(content.text.encode("utf-8")), settings.content_text_budget_bytes)
    check("content.attachments", serialized_size(content.attachments), settings.attachments_budget_bytes)
    if result.trace is not None:
        for position, event in enumerate(result.trace.events):
            check(
                f"trace.events[{position}]",
                serialized_size(event.to_wire()),
                settings.trace_event_budget_bytes,
            )
    check("document", serialized_size(result.to_dict()), settings.document_limit_bytes)
    return violations
