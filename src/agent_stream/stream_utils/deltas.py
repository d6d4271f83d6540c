"""Incremental UI delta emission."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from typing import Any

from agent_stream.models.content import ContentBlock

logger = logging.getLogger(__name__)

PartialSink = Callable[[str], None]


class DeltaEmitter:
    """Serialize deltas and hand them to an optional sink.

    Envelope: ``{"channel": ..., "delta": {"type": ..., ...}}``. The sink is
    fire-and-forget; a failing sink is logged and never aborts the run.
    """

    def __init__(self, on_partial: PartialSink | None = None) -> None:
        self._on_partial = on_partial

    def emit(self, channel: str, delta: dict[str, Any]) -> None:
        if self._on_partial is None:
            return
        payload = json.dumps({"channel": channel, "delta": delta}, ensure_ascii=False, default=str)
        try:
            self._on_partial(payload)
        except Exception as exc:
            logger.warning("Delta sink failed for %s delta: %s", delta.get("type"), exc)

    def step_started(self, channel: str, block: ContentBlock) -> None:
        self.emit(channel, {"type": "step_started", "step": block.to_wire()})

    def text_chunk(self, channel: str, text: str) -> None:
        self.emit(channel, {"type": "text_chunk", "text": text})

    def tool_input_chunk(self, channel: str, block: ContentBlock, chunk: str) -> None:
        self.emit(channel, {"type": "tool_input_chunk", "stepId": block.id, "chunk": chunk})

    def tool_output_chunk(self, channel: str, block: ContentBlock, chunk: str) -> None:
        self.emit(channel, {"type": "tool_output_chunk", "stepId": block.id, "chunk": chunk})
