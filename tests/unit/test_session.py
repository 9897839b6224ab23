"""Unit tests for ChatSession."""

import asyncio
from collections.abc import Callable

import pytest
import pytest_check as check

from ragchat.chat.client import ChatRequestError
from ragchat.chat.session import ChatSession, ConnectionStatus
from ragchat.config import ChatSettings
from ragchat.models.schemas import ChatMessage
from ragchat.streaming.constants import ErrorMessages
from tests.fakes import FakeBackend, FakeByteSource, ai_partial, error, node_metadata, run_started, sse


class Recorder:
    """Collects notifications and change callbacks."""

    def __init__(self) -> None:
        self.notifications: list[tuple[str, str]] = []
        self.changes = 0

    def notify(self, message: str, level: str) -> None:
        self.notifications.append((message, level))

    def changed(self) -> None:
        self.changes += 1


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def session(backend: FakeBackend, recorder: Recorder, chat_settings: ChatSettings) -> ChatSession:
    return ChatSession(backend, notify=recorder.notify, on_change=recorder.changed, settings=chat_settings)


@pytest.fixture
async def connected(session: ChatSession) -> ChatSession:
    await session.connect()
    return session


def source(*events: object) -> FakeByteSource:
    return FakeByteSource([sse(*events)])


async def wait_for(condition: Callable[[], object], attempts: int = 100) -> None:
    for _ in range(attempts):
        if condition():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached")


class TestConnect:
    """Tests for thread creation."""

    async def test_connect_success(self, session: ChatSession, recorder: Recorder) -> None:
        assert await session.connect() is True

        check.equal(session.status, ConnectionStatus.CONNECTED)
        check.equal(session.thread_id, "thread-1")
        check.equal(recorder.notifications, [])

    async def test_connect_failure(self, session: ChatSession, backend: FakeBackend, recorder: Recorder) -> None:
        backend.create_error = ChatRequestError("down", status_code=503)

        assert await session.connect() is False

        check.equal(session.status, ConnectionStatus.ERROR)
        check.is_none(session.thread_id)
        check.equal(recorder.notifications, [(ErrorMessages.CONNECTION_FAILED, "negative")])


class TestSubmit:
    """Tests for submitting messages and applying stream events."""

    async def test_streams_reply_with_replace_semantics(
        self, connected: ChatSession, backend: FakeBackend, recorder: Recorder
    ) -> None:
        backend.sources.append(
            source(run_started(), ai_partial("The"), ai_partial("The answer"), ai_partial("The answer is 4"))
        )

        assert await connected.submit("  what is 2+2?  ") is True

        check.equal(
            connected.messages,
            [
                ChatMessage(role="user", content="what is 2+2?"),
                ChatMessage(role="assistant", content="The answer is 4"),
            ],
        )
        check.equal(backend.requests[0]["message"], "what is 2+2?")
        check.equal(backend.requests[0]["thread_id"], "thread-1")
        check.is_false(connected.is_submitting)
        check.is_none(connected.run_id)
        check.equal(recorder.notifications, [])
        check.greater(recorder.changes, 0)

    async def test_route_decision_is_never_shown(self, connected: ChatSession, backend: FakeBackend) -> None:
        backend.sources.append(source(ai_partial('{"route":"retrieve"}'), ai_partial("From your notes: 42")))

        await connected.submit("what's in my notes?")

        assert connected.messages[-1].content == "From your notes: 42"

    async def test_route_node_messages_are_ignored(self, connected: ChatSession, backend: FakeBackend) -> None:
        backend.sources.append(
            source(
                node_metadata("msg-r", "route_query"),
                ai_partial("Checking whether documents are needed", message_id="msg-r"),
                node_metadata("msg-a", "direct_answer"),
                ai_partial("Hello!", message_id="msg-a"),
            )
        )

        await connected.submit("hi")

        check.equal(connected.messages[-1].content, "Hello!")
        check.equal(connected.message_nodes, {"msg-r": "route_query", "msg-a": "direct_answer"})

    async def test_blank_text_is_rejected_silently(
        self, connected: ChatSession, backend: FakeBackend, recorder: Recorder
    ) -> None:
        assert await connected.submit("   ") is False

        check.equal(connected.messages, [])
        check.equal(backend.requests, [])
        check.equal(recorder.notifications, [])

    async def test_rejected_when_not_connected(
        self, session: ChatSession, backend: FakeBackend, recorder: Recorder
    ) -> None:
        assert await session.submit("hello") is False

        check.equal(session.messages, [])
        check.equal(backend.requests, [])
        check.equal(recorder.notifications, [(ErrorMessages.BACKEND_NOT_READY, "info")])

    async def test_rejected_while_submitting(self, connected: ChatSession, backend: FakeBackend) -> None:
        gate = asyncio.Event()
        backend.sources.append(FakeByteSource([sse(run_started(), ai_partial("working"))], block=gate))

        first = asyncio.create_task(connected.submit("first"))
        await wait_for(lambda: connected.messages and connected.messages[-1].content == "working")
        snapshot = list(connected.messages)

        check.is_false(await connected.submit("second"))
        check.equal(connected.messages, snapshot)
        check.equal(len(backend.requests), 1)

        gate.set()
        assert await first is True
        assert connected.is_submitting is False

    async def test_error_event_before_content(
        self, connected: ChatSession, backend: FakeBackend, recorder: Recorder
    ) -> None:
        backend.sources.append(source(run_started(), error("Model overloaded")))

        await connected.submit("hi")

        check.equal(connected.messages[-1].content, ErrorMessages.PROCESSING_ERROR)
        check.equal(recorder.notifications, [("Model overloaded", "negative")])

    async def test_error_event_without_message(
        self, connected: ChatSession, backend: FakeBackend, recorder: Recorder
    ) -> None:
        backend.sources.append(source({"event": "error", "data": {}}))

        await connected.submit("hi")

        assert recorder.notifications == [(ErrorMessages.STREAMING_ERROR, "negative")]

    async def test_error_event_after_content_keeps_answer(
        self, connected: ChatSession, backend: FakeBackend, recorder: Recorder
    ) -> None:
        backend.sources.append(source(ai_partial("Half an answer"), error("boom")))

        await connected.submit("hi")

        check.equal(connected.messages[-1].content, "Half an answer")
        check.equal(recorder.notifications, [])

    async def test_interrupt_keeps_partial_answer(
        self, connected: ChatSession, backend: FakeBackend, recorder: Recorder
    ) -> None:
        backend.sources.append(source(run_started(), ai_partial("The answer is 4"), error("interrupt")))

        await connected.submit("what is 2+2?")

        check.equal(connected.messages[-1].content, "The answer is 4")
        check.equal(recorder.notifications, [])

    async def test_interrupt_with_message_list_is_silent(
        self, connected: ChatSession, backend: FakeBackend, recorder: Recorder
    ) -> None:
        interrupted = {"event": "error", "data": {"message": "interrupt", "messages": []}}
        backend.sources.append(source(run_started(), interrupted))

        await connected.submit("hi")

        check.equal(connected.messages[-1].content, "")
        check.equal(recorder.notifications, [])

    async def test_request_error_before_content(
        self, connected: ChatSession, backend: FakeBackend, recorder: Recorder
    ) -> None:
        backend.stream_error = ChatRequestError("Message is required", status_code=400)

        assert await connected.submit("hi") is True

        check.equal(connected.messages[-1].content, ErrorMessages.PROCESSING_ERROR)
        check.equal(recorder.notifications, [("Message is required", "negative")])
        check.is_false(connected.is_submitting)

    async def test_read_error_after_content_keeps_answer(
        self, connected: ChatSession, backend: FakeBackend, recorder: Recorder
    ) -> None:
        stream = FakeByteSource([sse(ai_partial("Partial"))], error=ConnectionError("reset"))
        backend.sources.append(stream)

        await connected.submit("hi")

        check.equal(connected.messages[-1].content, "Partial")
        check.equal(recorder.notifications, [])
        check.equal(stream.close_count, 1)


class TestStop:
    """Tests for stopping an in-flight submission."""

    async def test_stop_mid_stream(self, connected: ChatSession, backend: FakeBackend, recorder: Recorder) -> None:
        gate = asyncio.Event()
        stream = FakeByteSource([sse(run_started("run-7"), ai_partial("Partial answer"))], block=gate)
        backend.sources.append(stream)

        pending = asyncio.create_task(connected.submit("long question"))
        await wait_for(lambda: connected.run_id == "run-7" and connected.messages[-1].content == "Partial answer")

        await connected.stop()

        check.is_true(await pending)
        check.equal(backend.cancelled, [("thread-1", "run-7")])
        check.equal(stream.close_count, 1)
        check.is_false(connected.is_submitting)
        check.is_none(connected.run_id)
        check.equal(connected.messages[-1].content, "Partial answer")
        check.equal(recorder.notifications, [])

    async def test_stop_swallows_cancel_failure(self, connected: ChatSession, backend: FakeBackend) -> None:
        gate = asyncio.Event()
        backend.sources.append(FakeByteSource([sse(run_started("run-8"))], block=gate))
        backend.cancel_error = ChatRequestError("Run not found", status_code=404)

        pending = asyncio.create_task(connected.submit("question"))
        await wait_for(lambda: connected.run_id == "run-8")

        await connected.stop()

        check.is_true(await pending)
        check.equal(backend.cancelled, [("thread-1", "run-8")])
        check.is_false(connected.is_submitting)

    async def test_stop_before_run_id_skips_cancel(self, connected: ChatSession, backend: FakeBackend) -> None:
        gate = asyncio.Event()
        stream = FakeByteSource([], block=gate)
        backend.sources.append(stream)

        pending = asyncio.create_task(connected.submit("question"))
        await wait_for(lambda: len(backend.requests) == 1)

        await connected.stop()
        await pending

        check.equal(backend.cancelled, [])
        check.is_false(connected.is_submitting)

    async def test_stop_when_idle_is_noop(self, connected: ChatSession, backend: FakeBackend) -> None:
        await connected.stop()

        check.equal(backend.cancelled, [])
        check.is_false(connected.is_submitting)


class TestRetryAndEdit:
    """Tests for retry and edit-and-resubmit."""

    async def test_retry_resends_last_user_message(self, connected: ChatSession, backend: FakeBackend) -> None:
        backend.sources.extend([source(ai_partial("first try")), source(ai_partial("second try"))])
        await connected.submit("question")

        assert await connected.retry() is True

        check.equal(
            connected.messages,
            [
                ChatMessage(role="user", content="question"),
                ChatMessage(role="assistant", content="second try"),
            ],
        )
        check.equal(backend.requests[-1]["message"], "question")
        check.equal(backend.requests[-1]["messages_before_edit"], [])

    async def test_retry_without_history(self, connected: ChatSession, backend: FakeBackend) -> None:
        assert await connected.retry() is False
        assert backend.requests == []

    async def test_edit_truncates_and_sends_prior_history(
        self, connected: ChatSession, backend: FakeBackend
    ) -> None:
        backend.sources.extend(
            [source(ai_partial("a1")), source(ai_partial("a2")), source(ai_partial("a2 edited"))]
        )
        await connected.submit("q1")
        await connected.submit("q2")

        assert await connected.edit_and_resubmit(2, "q2 edited") is True

        prior = [ChatMessage(role="user", content="q1"), ChatMessage(role="assistant", content="a1")]
        check.equal(backend.requests[-1]["messages_before_edit"], prior)
        check.equal(
            connected.messages,
            prior
            + [
                ChatMessage(role="user", content="q2 edited"),
                ChatMessage(role="assistant", content="a2 edited"),
            ],
        )

    @pytest.mark.parametrize("index", [-1, 1, 5])
    async def test_edit_rejects_invalid_index(
        self, connected: ChatSession, backend: FakeBackend, index: int
    ) -> None:
        backend.sources.append(source(ai_partial("a1")))
        await connected.submit("q1")
        snapshot = list(connected.messages)

        assert await connected.edit_and_resubmit(index, "changed") is False
        assert connected.messages == snapshot

    async def test_edit_rejects_blank_text(self, connected: ChatSession, backend: FakeBackend) -> None:
        backend.sources.append(source(ai_partial("a1")))
        await connected.submit("q1")
        snapshot = list(connected.messages)

        assert await connected.edit_and_resubmit(0, "  ") is False
        assert connected.messages == snapshot


class TestNewSession:
    """Tests for starting over."""

    async def test_new_session_clears_and_reconnects(self, connected: ChatSession, backend: FakeBackend) -> None:
        backend.sources.append(source(node_metadata("msg-1", "direct_answer"), ai_partial("hello")))
        await connected.submit("hi")
        backend.thread_id = "thread-2"

        assert await connected.new_session() is True

        check.equal(connected.messages, [])
        check.equal(connected.message_nodes, {})
        check.equal(connected.thread_id, "thread-2")
        check.equal(connected.status, ConnectionStatus.CONNECTED)

    async def test_new_session_stops_stream(self, connected: ChatSession, backend: FakeBackend) -> None:
        gate = asyncio.Event()
        stream = FakeByteSource([sse(run_started("run-3"))], block=gate)
        backend.sources.append(stream)

        pending = asyncio.create_task(connected.submit("question"))
        await wait_for(lambda: connected.run_id == "run-3")

        await connected.new_session()
        await pending

        check.equal(backend.cancelled, [("thread-1", "run-3")])
        check.equal(stream.close_count, 1)
        check.equal(connected.messages, [])
