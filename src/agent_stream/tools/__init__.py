"""Tool-side helpers: truncation, large result offload and attachment injection."""

from agent_stream.tools.attachment_store import (
    GLOBAL_SCOPE,
    AttachmentDataStore,
    clear_attachment_data_store,
    default_attachment_store,
    get_attachment_data,
    store_attachment_data,
)
from agent_stream.tools.attachments import (
    GraphAttachment,
    OffloadResult,
    create_graph_attachment,
    generate_attachment_summary,
    inject_attachment_data,
    latest_attachment,
    offload_tool_result,
)
from agent_stream.tools.truncation import TruncationResult, truncate_text, truncate_with_marker

__all__ = [
    "GLOBAL_SCOPE",
    "AttachmentDataStore",
    "GraphAttachment",
    "OffloadResult",
    "TruncationResult",
    "clear_attachment_data_store",
    "create_graph_attachment",
    "default_attachment_store",
    "generate_attachment_summary",
    "get_attachment_data",
    "inject_attachment_data",
    "latest_attachment",
    "offload_tool_result",
    "store_attachment_data",
    "truncate_text",
    "truncate_with_marker",
]
