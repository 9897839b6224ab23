"""httpx client for the chat API.

Opens the streaming chat request and performs the small JSON calls the
chat session needs (thread creation, run cancellation, document listing).
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx

from ragchat.config import ChatSettings, get_chat_settings
from ragchat.models.schemas import ChatMessage, DocumentsResponse
from ragchat.streaming.constants import RETRIEVAL_ASSISTANT_ID

logger = logging.getLogger(__name__)


class ChatRequestError(Exception):
    """Raised when the chat API rejects a request."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def _error_from_response(response: httpx.Response) -> ChatRequestError:
    message = f"Request failed with status {response.status_code}"
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and isinstance(body.get("error"), str):
        message = body["error"]
    return ChatRequestError(message, status_code=response.status_code)


class ChatApiClient:
    """Client for the ragchat HTTP API.

    Args:
        settings: Client settings; loaded from the environment if omitted.
        client: Preconfigured httpx client (tests pass an ASGI transport).
    """

    def __init__(
        self,
        settings: ChatSettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or get_chat_settings()
        self._client = client or httpx.AsyncClient(
            base_url=self._settings.api_base_url,
            timeout=self._settings.request_timeout,
        )

    async def create_thread(self) -> str:
        """Create a thread and return its identifier."""
        response = await self._client.post("/api/threads")
        if response.is_error:
            raise _error_from_response(response)
        return response.json()["thread_id"]

    @asynccontextmanager
    async def stream_chat(
        self,
        message: str,
        thread_id: str,
        *,
        assistant_id: str = RETRIEVAL_ASSISTANT_ID,
        messages_before_edit: list[ChatMessage] | None = None,
    ) -> AsyncIterator[httpx.Response]:
        """Open a streaming chat request.

        Yields:
            The streaming response; its body is an SSE byte stream.

        Raises:
            ChatRequestError: If the API rejects the request.
        """
        payload: dict[str, object] = {
            "message": message,
            "threadId": thread_id,
            "assistantId": assistant_id,
        }
        if messages_before_edit is not None:
            payload["messagesBeforeEdit"] = [m.model_dump() for m in messages_before_edit]

        async with self._client.stream(
            "POST",
            "/api/chat",
            json=payload,
            headers={"Accept": "text/event-stream"},
        ) as response:
            if response.is_error:
                await response.aread()
                raise _error_from_response(response)
            yield response

    async def cancel_run(self, thread_id: str, run_id: str) -> None:
        """Ask the server to cancel a running graph execution."""
        response = await self._client.post(f"/api/threads/{thread_id}/runs/{run_id}/cancel")
        if response.is_error:
            raise _error_from_response(response)

    async def list_documents(self, thread_id: str) -> DocumentsResponse:
        """Fetch the sources indexed for a thread."""
        response = await self._client.get("/api/documents", params={"threadId": thread_id})
        if response.is_error:
            raise _error_from_response(response)
        return DocumentsResponse.model_validate(response.json())

    async def aclose(self) -> None:
        await self._client.aclose()
