"""Extraction of attachments and metadata from a run's final output."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from agent_stream.stream_utils.accumulator import StreamAccumulator

# Graph output keys that wrap the final answer, in lookup order
FINAL_OUTPUT_KEYS = ("answer", "generation")


def find_final_output(output: Any) -> Mapping[str, Any] | None:
    """Locate the part of a chain output holding attachments/metadata.

    Supported shapes:
    - ``{"answer": {"attachments": [...], "metadata": {...}}}``
    - ``{"generation": {"attachments": [...], "metadata": {...}}}``
    - ``{"attachments": [...], "metadata": {...}}``
    """
    if not isinstance(output, Mapping):
        return None
    for key in FINAL_OUTPUT_KEYS:
        nested = output.get(key)
        if isinstance(nested, Mapping):
            return nested
    if "attachments" in output or "metadata" in output:
        return output
    return None


def merge_final_output(acc: StreamAccumulator, output: Any) -> bool:
    """Merge a chain's final attachments and metadata into the accumulator.

    Several sub-chains of one run may each contribute part of the final
    data, so attachments are concatenated and metadata shallow-merged.
    Returns True when anything was found.
    """
    final = find_final_output(output)
    if final is None:
        return False
    attachments = final.get("attachments")
    if isinstance(attachments, list | tuple):
        acc.attachments.extend(attachments)
    metadata = final.get("metadata")
    if isinstance(metadata, Mapping):
        acc.metadata.update(metadata)
    return True
