"""Streaming event pipeline.

Turns a chunked SSE byte stream into classified chat events.

Responsibilities:
    - Frame splitting with carry-over of partial frames between reads
    - Tolerant JSON decoding of ``data:`` frames
    - Event classification (message, metadata, error, interrupted)
    - Suppression of internal route-decision payloads
"""

from ragchat.streaming.events import (
    EventKind,
    MessageChunk,
    PayloadShape,
    classify_event,
    detect_payload_shape,
    extract_error_message,
    extract_message_chunk,
    extract_message_content,
    extract_node_metadata,
    extract_run_id,
    is_error_event,
    is_interrupted_error_event,
)
from ragchat.streaming.route_filter import extract_route_decision, is_internal_control_payload
from ragchat.streaming.sse import (
    SSEStreamReader,
    StreamUnavailableError,
    format_sse_data,
    parse_sse_line,
    process_sse_buffer,
    split_frames,
)

__all__ = [
    "EventKind",
    "MessageChunk",
    "PayloadShape",
    "SSEStreamReader",
    "StreamUnavailableError",
    "classify_event",
    "detect_payload_shape",
    "extract_error_message",
    "extract_message_chunk",
    "extract_message_content",
    "extract_node_metadata",
    "extract_route_decision",
    "extract_run_id",
    "format_sse_data",
    "is_error_event",
    "is_interrupted_error_event",
    "is_internal_control_payload",
    "parse_sse_line",
    "process_sse_buffer",
    "split_frames",
]
