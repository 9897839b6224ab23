"""In-memory thread history and active-run tracking for the retrieval graph."""

import asyncio
import logging
import uuid

from ragchat.models.schemas import ChatMessage

logger = logging.getLogger(__name__)


class ThreadStore:
    """Conversation history per thread."""

    def __init__(self) -> None:
        self._threads: dict[str, list[ChatMessage]] = {}

    def create(self) -> str:
        thread_id = str(uuid.uuid4())
        self._threads[thread_id] = []
        return thread_id

    def exists(self, thread_id: str) -> bool:
        return thread_id in self._threads

    def get_messages(self, thread_id: str) -> list[ChatMessage]:
        return list(self._threads.get(thread_id, []))

    def set_messages(self, thread_id: str, messages: list[ChatMessage]) -> None:
        """Replace the thread's history, e.g. after the user edits a message."""
        self._threads[thread_id] = list(messages)

    def append(self, thread_id: str, *messages: ChatMessage) -> None:
        self._threads.setdefault(thread_id, []).extend(messages)


class RunRegistry:
    """Tracks running graph executions so they can be cancelled by id."""

    def __init__(self) -> None:
        self._runs: dict[tuple[str, str], asyncio.Event] = {}

    def start(self, thread_id: str) -> str:
        run_id = str(uuid.uuid4())
        self._runs[(thread_id, run_id)] = asyncio.Event()
        return run_id

    def cancel(self, thread_id: str, run_id: str) -> bool:
        """Flag a run for cancellation.

        Returns:
            False if no such run is active.
        """
        cancelled = self._runs.get((thread_id, run_id))
        if cancelled is None:
            return False
        cancelled.set()
        logger.info(f"Cancellation requested for run {run_id} on thread {thread_id}")
        return True

    def is_cancelled(self, thread_id: str, run_id: str) -> bool:
        cancelled = self._runs.get((thread_id, run_id))
        return cancelled is not None and cancelled.is_set()

    def is_active(self, thread_id: str, run_id: str) -> bool:
        return (thread_id, run_id) in self._runs

    def finish(self, thread_id: str, run_id: str) -> None:
        self._runs.pop((thread_id, run_id), None)
