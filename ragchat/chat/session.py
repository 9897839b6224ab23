"""Chat session orchestration over the streaming event pipeline.

A ChatSession owns one conversation: its messages, its thread, and at most
one in-flight submission. Submissions consume the SSE stream through
SSEStreamReader and apply classified events to the conversation.

Everything runs on one event loop. The submitting flag is the only guard
against re-entrancy; no locks are needed.
"""

import asyncio
import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from enum import Enum
from typing import Any, Protocol

from ragchat.config import ChatSettings, get_chat_settings
from ragchat.models.schemas import ChatMessage
from ragchat.streaming.constants import ROUTE_NODE, ErrorMessages
from ragchat.streaming.events import (
    extract_error_message,
    extract_message_chunk,
    extract_node_metadata,
    extract_run_id,
    is_error_event,
    is_interrupted_error_event,
)
from ragchat.streaming.sse import ByteStreamSource, SSEStreamReader

logger = logging.getLogger(__name__)

Notifier = Callable[[str, str], None]


class ConnectionStatus(str, Enum):
    """Connection state of a chat session."""

    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"


class ChatBackend(Protocol):
    """Operations a chat session needs from the API (see ChatApiClient)."""

    async def create_thread(self) -> str: ...

    def stream_chat(
        self,
        message: str,
        thread_id: str,
        *,
        messages_before_edit: list[ChatMessage] | None = None,
    ) -> AbstractAsyncContextManager[ByteStreamSource]: ...

    async def cancel_run(self, thread_id: str, run_id: str) -> None: ...


class ChatSession:
    """State machine for one conversation.

    States: idle -> connecting -> connected -> (submitting <-> connected),
    with error reachable from connecting.

    Args:
        backend: API used to create threads, stream runs and cancel them.
        notify: Called with (message, level) for user-facing notifications.
            Levels follow NiceGUI: ``info`` and ``negative``.
        on_change: Called whenever messages or state change.
        settings: Client settings; loaded from the environment if omitted.
    """

    def __init__(
        self,
        backend: ChatBackend,
        notify: Notifier | None = None,
        on_change: Callable[[], None] | None = None,
        settings: ChatSettings | None = None,
    ) -> None:
        self._backend = backend
        self._notify_cb = notify
        self._on_change = on_change
        self._settings = settings or get_chat_settings()

        self.messages: list[ChatMessage] = []
        self.message_nodes: dict[str, str] = {}
        self.status = ConnectionStatus.IDLE
        self.thread_id: str | None = None

        self._submitting = False
        self._run_id: str | None = None
        self._stream_task: asyncio.Task[None] | None = None
        self._stop_requested = False
        self._streamed = False

    @property
    def is_submitting(self) -> bool:
        return self._submitting

    @property
    def run_id(self) -> str | None:
        return self._run_id

    def _notify(self, message: str, level: str) -> None:
        if self._notify_cb is not None:
            self._notify_cb(message, level)

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()

    async def connect(self) -> bool:
        """Create a thread for this session.

        Returns:
            True if the session is connected.
        """
        self.status = ConnectionStatus.CONNECTING
        self._changed()
        try:
            self.thread_id = await self._backend.create_thread()
        except Exception as e:
            logger.error(f"Error creating thread: {e}")
            self.status = ConnectionStatus.ERROR
            self._notify(ErrorMessages.CONNECTION_FAILED, "negative")
            self._changed()
            return False

        self.status = ConnectionStatus.CONNECTED
        logger.info(f"Chat session connected to thread {self.thread_id}")
        self._changed()
        return True

    def _can_submit(self, text: str) -> bool:
        if not text or self._submitting:
            return False
        if self.status is not ConnectionStatus.CONNECTED or not self.thread_id:
            self._notify(ErrorMessages.BACKEND_NOT_READY, "info")
            return False
        return True

    async def submit(
        self,
        text: str,
        messages_before_edit: list[ChatMessage] | None = None,
    ) -> bool:
        """Send a user message and stream the assistant's reply.

        Returns once the stream has ended, failed, or been stopped.

        Args:
            text: The user's message.
            messages_before_edit: Prior history to restore upstream before
                this run (retry and edit).

        Returns:
            False if the submission was rejected without touching the
            conversation, True otherwise.
        """
        text = text.strip()
        if not self._can_submit(text):
            return False

        self.messages.append(ChatMessage(role="user", content=text))
        self.messages.append(ChatMessage(role="assistant", content=""))
        self._submitting = True
        self._run_id = None
        self._stop_requested = False
        self._streamed = False
        self._changed()

        task = asyncio.create_task(self._consume_stream(text, messages_before_edit))
        self._stream_task = task
        try:
            await task
        except asyncio.CancelledError:
            if not self._stop_requested and self._stream_task is task:
                raise
            logger.info("Stream stopped by user")
        except Exception as e:
            logger.error(f"Error sending message: {e}")
            if not self._streamed:
                self._set_assistant_content(ErrorMessages.PROCESSING_ERROR)
                self._notify(str(e) or ErrorMessages.UNKNOWN_ERROR, "negative")
        finally:
            # A stop() followed by a new submit() owns the state from here on.
            if self._stream_task is task:
                self._stream_task = None
                self._submitting = False
                self._run_id = None
            self._changed()
        return True

    async def _consume_stream(
        self,
        text: str,
        messages_before_edit: list[ChatMessage] | None,
    ) -> None:
        async with self._backend.stream_chat(
            text,
            self.thread_id,
            messages_before_edit=messages_before_edit,
        ) as response:
            async with SSEStreamReader(response) as reader:
                async for event in reader:
                    self._handle_event(event)

    def _handle_event(self, event: Any) -> None:
        if self._run_id is None:
            run_id = extract_run_id(event)
            if run_id:
                self._run_id = run_id

        nodes = extract_node_metadata(event)
        if nodes:
            self.message_nodes.update(nodes)
            return

        chunk = extract_message_chunk(
            event,
            route_payload_max_length=self._settings.route_payload_max_length,
        )
        if chunk is not None:
            if chunk.message_id and self.message_nodes.get(chunk.message_id) == ROUTE_NODE:
                return
            self._streamed = True
            self._set_assistant_content(chunk.content)
            return

        if is_error_event(event):
            if is_interrupted_error_event(event):
                logger.info("Run interrupted upstream")
                return
            message = extract_error_message(event) or ErrorMessages.STREAMING_ERROR
            logger.warning(f"Upstream error event: {message}")
            if self._streamed:
                return
            self._set_assistant_content(ErrorMessages.PROCESSING_ERROR)
            self._notify(message, "negative")

    def _set_assistant_content(self, content: str) -> None:
        if self.messages and self.messages[-1].role == "assistant":
            self.messages[-1] = ChatMessage(role="assistant", content=content)
        else:
            self.messages.append(ChatMessage(role="assistant", content=content))
        self._changed()

    async def stop(self) -> None:
        """Stop the in-flight submission.

        Aborts the local stream, then asks the server to cancel the run.
        Never raises; a no-op when nothing is being submitted.
        """
        if not self._submitting:
            return

        self._stop_requested = True
        run_id = self._run_id
        if self._stream_task is not None and self._stream_task is not asyncio.current_task():
            self._stream_task.cancel()

        if run_id and self.thread_id:
            try:
                await self._backend.cancel_run(self.thread_id, run_id)
            except Exception as e:
                logger.debug(f"Error cancelling run {run_id}: {e}")

        self._run_id = None
        self._submitting = False
        self._changed()

    async def edit_and_resubmit(self, index: int, text: str) -> bool:
        """Replace the user message at ``index`` and resubmit from there.

        Messages from ``index`` on are discarded; earlier ones are sent as
        context.

        Returns:
            False if rejected (bad index, blank text, busy, not connected).
        """
        if not 0 <= index < len(self.messages) or self.messages[index].role != "user":
            logger.warning(f"Cannot edit message at index {index}")
            return False
        if not self._can_submit(text.strip()):
            return False

        previous = self.messages[:index]
        self.messages = list(previous)
        return await self.submit(text, messages_before_edit=previous)

    async def retry(self) -> bool:
        """Resubmit the last user message, dropping the reply to it."""
        for index in range(len(self.messages) - 1, -1, -1):
            if self.messages[index].role == "user":
                return await self.edit_and_resubmit(index, self.messages[index].content)
        return False

    async def new_session(self) -> bool:
        """Stop any stream, clear the conversation and open a new thread."""
        await self.stop()
        self.messages.clear()
        self.message_nodes.clear()
        self.thread_id = None
        return await self.connect()
