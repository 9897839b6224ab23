"""Wire-format constants and user-facing error strings for the chat stream."""

SSE_DATA_PREFIX = "data:"
SSE_EVENT_DELIMITER = "\n\n"

MESSAGE_EVENT_PREFIX = "messages"
METADATA_EVENT = "messages/metadata"
PARTIAL_MESSAGE_EVENT = "messages/partial"
RUN_METADATA_EVENT = "metadata"
ERROR_EVENT = "error"

# Error payload message sent when a run is cancelled on request
INTERRUPT_MESSAGE = "interrupt"

AI_MESSAGE_TYPES = ("ai", "assistant")
NODE_METADATA_KEY = "langgraph_node"

# Graph node whose output is a routing decision, never chat content
ROUTE_NODE = "route_query"

# Tuned by hand: long enough for {"route": ..., "reason": ...} objects,
# short enough that a real answer is unlikely to be suppressed.
ROUTE_PAYLOAD_MAX_LENGTH = 240

RETRIEVAL_ASSISTANT_ID = "retrieval_graph"


class ErrorMessages:
    """User-facing error strings."""

    CONNECTION_FAILED = "Unable to connect to the chat backend. Check API_BASE_URL."
    BACKEND_NOT_READY = "Still connecting to the chat backend. Please wait a moment."
    STREAMING_ERROR = "Streaming error. Please try again."
    PROCESSING_ERROR = "Sorry, there was an error processing your message."
    UNKNOWN_ERROR = "Unknown error occurred"
    NO_STREAM_READER = "No reader available on response body"
