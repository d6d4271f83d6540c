"""Model call usage capture.

Token usage is recorded from every chat model completion event so callers
can bill a run without re-reading its trace.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from agent_stream.models.trace import ModelCallRecord
from agent_stream.utils import now_ms

if TYPE_CHECKING:
    from agent_stream.events import ModelEndEvent

logger = logging.getLogger(__name__)


def _token_count(usage: Any, *keys: str) -> int:
    for key in keys:
        value = usage.get(key)
        if isinstance(value, int | float) and not isinstance(value, bool):
            return int(value)
    return 0


def model_call_from_event(event: ModelEndEvent) -> ModelCallRecord | None:
    """Build a usage record from a model end event.

    Returns None when the event lacks token usage or a model id.
    """
    if event.usage is None or not event.model_id:
        logger.debug(
            "Model end without usage or model id (name=%s, has_usage=%s, has_model_id=%s)",
            event.name,
            event.usage is not None,
            bool(event.model_id),
        )
        return None

    usage = event.usage
    node_name = event.metadata.get("langgraph_node") or event.name
    return ModelCallRecord(
        model_id=event.model_id,
        prompt_tokens=_token_count(usage, "input_tokens", "prompt_tokens"),
        completion_tokens=_token_count(usage, "output_tokens", "completion_tokens"),
        total_tokens=_token_count(usage, "total_tokens"),
        timestamp=now_ms(),
        node_name=str(node_name) if node_name else None,
    )
