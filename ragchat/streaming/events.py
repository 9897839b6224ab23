"""Classification and payload extraction for decoded stream events.

Events are plain decoded JSON values of the form ``{"event": ..., "data": ...}``.
The ``data`` field is polymorphic, so its shape is detected once
(``detect_payload_shape``) and each extractor handles only the shapes it
understands.
"""

import json
import logging
from enum import Enum
from typing import Any

from pydantic import BaseModel

from ragchat.streaming.constants import (
    AI_MESSAGE_TYPES,
    ERROR_EVENT,
    INTERRUPT_MESSAGE,
    MESSAGE_EVENT_PREFIX,
    METADATA_EVENT,
    NODE_METADATA_KEY,
    ROUTE_PAYLOAD_MAX_LENGTH,
)
from ragchat.streaming.route_filter import is_internal_control_payload

logger = logging.getLogger(__name__)


class PayloadShape(str, Enum):
    """Shapes the ``data`` field of an event can take."""

    MESSAGE_LIST = "message_list"
    MESSAGES_WRAPPER = "messages_wrapper"
    ERROR = "error"
    TEXT = "text"
    EMPTY = "empty"
    OTHER = "other"


class EventKind(str, Enum):
    """Semantic kind of a decoded event."""

    MESSAGE = "message"
    METADATA = "metadata"
    ERROR = "error"
    INTERRUPTED = "interrupted"
    OTHER = "other"


class MessageChunk(BaseModel):
    """Assistant text carried by one message event.

    Attributes:
        content: Full accumulated message text, trimmed.
        message_id: Upstream message identifier, when provided.
    """

    content: str
    message_id: str | None = None


def detect_payload_shape(data: Any) -> PayloadShape:
    """Detect which variant of the event payload union ``data`` is."""
    if data is None:
        return PayloadShape.EMPTY
    if isinstance(data, str):
        return PayloadShape.TEXT
    if isinstance(data, list):
        return PayloadShape.MESSAGE_LIST
    if isinstance(data, dict):
        if isinstance(data.get("messages"), list):
            return PayloadShape.MESSAGES_WRAPPER
        if "message" in data or "error" in data:
            return PayloadShape.ERROR
    return PayloadShape.OTHER


def _event_name(event: Any) -> str | None:
    if not isinstance(event, dict):
        return None
    name = event.get("event")
    return name if isinstance(name, str) else None


def _event_data(event: Any) -> Any:
    return event.get("data") if isinstance(event, dict) else None


def is_error_event(event: Any) -> bool:
    """Check whether the event is an upstream error event."""
    return _event_name(event) == ERROR_EVENT


def is_interrupted_error_event(event: Any) -> bool:
    """Check whether the event reports a cooperative cancellation.

    Interrupted runs are the expected outcome of stopping a submission and
    must not be reported to the user as failures.
    """
    if not is_error_event(event):
        return False

    data = _event_data(event)
    return isinstance(data, dict) and data.get("message") == INTERRUPT_MESSAGE


def extract_error_message(event: Any) -> str | None:
    """Extract the message of an error event.

    Prefers a plain string payload, then a ``message`` field, then an
    ``error`` field.
    """
    if not is_error_event(event):
        return None

    data = _event_data(event)
    if isinstance(data, str):
        return data
    if isinstance(data, dict):
        if isinstance(data.get("message"), str):
            return data["message"]
        if isinstance(data.get("error"), str):
            return data["error"]
    return None


def extract_message_content(content: Any) -> str | None:
    """Normalize message content to a single string.

    Strings pass through unchanged. A list of content parts is joined from
    each part's ``text`` (or the part itself when it is a string) and
    trimmed. Anything else, or an empty joined result, gives None.
    """
    if isinstance(content, str):
        return content

    if isinstance(content, list):
        parts: list[str] = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and isinstance(part.get("text"), str):
                parts.append(part["text"])
            else:
                parts.append("")
        text = "".join(parts).strip()
        return text or None

    return None


def _message_list(data: Any) -> list[Any] | None:
    shape = detect_payload_shape(data)
    if shape is PayloadShape.MESSAGE_LIST:
        return data
    if shape is PayloadShape.MESSAGES_WRAPPER:
        return data["messages"]
    return None


def _is_assistant_type(message_type: Any) -> bool:
    # Upstream omits the type on some assistant deltas.
    if not message_type:
        return True
    return message_type in AI_MESSAGE_TYPES


def _is_json_object_text(text: str) -> bool:
    if not text.startswith("{"):
        return False
    try:
        return isinstance(json.loads(text), dict)
    except json.JSONDecodeError:
        return False


def extract_message_chunk(
    event: Any,
    *,
    route_payload_max_length: int = ROUTE_PAYLOAD_MAX_LENGTH,
) -> MessageChunk | None:
    """Extract assistant text from a message event.

    Only the last message of the event's message list is considered. Route
    decisions and raw JSON objects are never returned as chat content.

    Args:
        event: A decoded stream event.
        route_payload_max_length: Length ceiling for route-decision filtering.

    Returns:
        The trimmed content and message id, or None if the event carries no
        user-visible assistant text.
    """
    name = _event_name(event)
    if name is None or not name.startswith(MESSAGE_EVENT_PREFIX):
        return None

    messages = _message_list(_event_data(event))
    if not messages:
        return None

    last_message = messages[-1]
    if not isinstance(last_message, dict):
        return None
    if not _is_assistant_type(last_message.get("type")):
        return None

    text = extract_message_content(last_message.get("content"))
    if text is None or not text.strip():
        return None

    text = text.strip()
    if is_internal_control_payload(text, max_length=route_payload_max_length):
        logger.debug(f"Suppressed route decision payload: {text!r}")
        return None
    if _is_json_object_text(text):
        logger.debug("Suppressed JSON object payload on message channel")
        return None

    message_id = last_message.get("id")
    return MessageChunk(
        content=text,
        message_id=message_id if isinstance(message_id, str) else None,
    )


def extract_node_metadata(event: Any) -> dict[str, str]:
    """Map message ids to the graph node that produced them.

    Only ``messages/metadata`` events carry this; entries without a
    well-formed node name are skipped.
    """
    if _event_name(event) != METADATA_EVENT:
        return {}

    data = _event_data(event)
    if not isinstance(data, dict):
        return {}

    nodes: dict[str, str] = {}
    for message_id, wrapper in data.items():
        if not isinstance(wrapper, dict):
            continue
        metadata = wrapper.get("metadata")
        if not isinstance(metadata, dict):
            continue
        node_name = metadata.get(NODE_METADATA_KEY)
        if isinstance(node_name, str) and node_name.strip():
            nodes[message_id] = node_name
    return nodes


def extract_run_id(event: Any) -> str | None:
    """Read the run identifier from an event's ``data.run_id``."""
    data = _event_data(event)
    if isinstance(data, dict) and isinstance(data.get("run_id"), str):
        return data["run_id"]
    return None


def classify_event(event: Any) -> EventKind:
    """Determine the semantic kind of a decoded event."""
    name = _event_name(event)
    if name is None:
        return EventKind.OTHER
    if name == ERROR_EVENT:
        if is_interrupted_error_event(event):
            return EventKind.INTERRUPTED
        return EventKind.ERROR
    if name == METADATA_EVENT:
        return EventKind.METADATA
    if name.startswith(MESSAGE_EVENT_PREFIX):
        return EventKind.MESSAGE
    return EventKind.OTHER
