"""Streaming chat endpoint.

Runs the retrieval graph for one message and relays its events to the
client as Server-Sent Events.
"""

import logging
from collections.abc import AsyncGenerator, AsyncIterator
from typing import Any

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import StreamingResponse

from ragchat.graph.retrieval import error_event, get_retrieval_graph
from ragchat.models.schemas import ChatRequest
from ragchat.streaming.constants import RETRIEVAL_ASSISTANT_ID
from ragchat.streaming.sse import format_sse_data

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["chat"])


async def _sse_frames(events: AsyncIterator[dict[str, Any]]) -> AsyncGenerator[str]:
    """Frame graph events as SSE; a failure becomes a final error frame."""
    try:
        async for event in events:
            yield format_sse_data(event)
    except Exception as e:
        logger.error(f"Chat stream failed: {e}")
        yield format_sse_data(error_event(str(e)))


@router.post("/chat")
async def chat(request: ChatRequest) -> StreamingResponse:
    """Stream the assistant's answer to a message.

    Args:
        request: Message, thread id, optional assistant id and, for retries
            and edits, the history to restore first.

    Returns:
        A ``text/event-stream`` response of ``data: <json>`` frames.

    Raises:
        400: Missing, blank or oversized fields, or unknown assistant.
        500: The retrieval graph could not be created.
    """
    assistant_id = request.assistant_id or RETRIEVAL_ASSISTANT_ID
    if assistant_id != RETRIEVAL_ASSISTANT_ID:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown assistant: {assistant_id}",
        )

    try:
        graph = get_retrieval_graph()
    except Exception as e:
        logger.error(f"Failed to initialize retrieval graph: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        ) from e

    if request.messages_before_edit is not None:
        graph.threads.set_messages(request.thread_id, request.messages_before_edit)

    events = graph.stream(
        request.message,
        request.thread_id,
        graph.default_config(request.thread_id),
    )
    return StreamingResponse(
        _sse_frames(events),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )
