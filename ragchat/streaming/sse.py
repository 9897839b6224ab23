"""Server-Sent Events framing, parsing, and incremental stream reading.

The wire format is a sequence of ``data: <json>`` frames separated by a
blank line. Frames may arrive split across arbitrary network reads, so
the reader keeps the unterminated tail of the buffer between reads.
"""

import codecs
import json
import logging
from collections import deque
from collections.abc import AsyncIterator
from types import TracebackType
from typing import Any, Protocol

from ragchat.streaming.constants import (
    SSE_DATA_PREFIX,
    SSE_EVENT_DELIMITER,
    ErrorMessages,
)

logger = logging.getLogger(__name__)


class StreamUnavailableError(Exception):
    """Raised when a stream source exposes no readable byte stream."""

    pass


class ByteStreamSource(Protocol):
    """Anything that streams raw bytes and can be closed (e.g. httpx.Response)."""

    def aiter_bytes(self) -> AsyncIterator[bytes]: ...

    async def aclose(self) -> None: ...


def split_frames(buffer: str) -> tuple[list[str], str]:
    """Split a buffer into complete frames and the unterminated remainder.

    The last segment is never a complete frame, even when the buffer ends
    exactly on a delimiter (it is then empty). It must be prepended to the
    next chunk before splitting again.

    Args:
        buffer: Decoded text received so far.

    Returns:
        Tuple of (complete frames in order, remainder).
    """
    segments = buffer.split(SSE_EVENT_DELIMITER)
    remainder = segments.pop()
    return segments, remainder


def parse_sse_line(frame: str) -> Any | None:
    """Decode the JSON payload of a single ``data:`` frame.

    Args:
        frame: One delimiter-bounded frame.

    Returns:
        The decoded value, or None for non-data frames and malformed JSON.
    """
    line = frame.strip()
    if not line.startswith(SSE_DATA_PREFIX):
        return None

    payload = line[len(SSE_DATA_PREFIX):].strip()
    try:
        return json.loads(payload)
    except json.JSONDecodeError as e:
        logger.debug(f"Dropping malformed SSE frame ({e}): {payload[:200]!r}")
        return None


def process_sse_buffer(buffer: str) -> tuple[list[Any], str]:
    """Split a buffer and parse every complete frame.

    Returns:
        Tuple of (parsed events, remainder). Frames that do not parse are
        dropped.
    """
    frames, remainder = split_frames(buffer)
    events = [event for event in map(parse_sse_line, frames) if event is not None]
    return events, remainder


def format_sse_data(payload: Any) -> str:
    """Encode one payload as an SSE data frame."""
    return f"{SSE_DATA_PREFIX} {json.dumps(payload)}{SSE_EVENT_DELIMITER}"


class SSEStreamReader:
    """Pull-based reader turning a byte stream into decoded SSE events.

    Each call to ``__anext__`` returns the next event, reading from the
    source only when no decoded event is pending. The source is closed
    exactly once: at end of stream, when a read raises (cancellation
    included), or when the consumer closes the reader early.

    Usage::

        async with SSEStreamReader(response) as reader:
            async for event in reader:
                ...

    Args:
        source: Object exposing ``aiter_bytes()``, usually a streaming
            ``httpx.Response``.

    Raises:
        StreamUnavailableError: If the source has no byte stream.
    """

    def __init__(self, source: ByteStreamSource | None) -> None:
        read_bytes = getattr(source, "aiter_bytes", None)
        if source is None or not callable(read_bytes):
            raise StreamUnavailableError(ErrorMessages.NO_STREAM_READER)

        self._source = source
        self._chunks: AsyncIterator[bytes] = read_bytes()
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self._pending: deque[Any] = deque()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def __aiter__(self) -> "SSEStreamReader":
        return self

    async def __anext__(self) -> Any:
        while not self._pending:
            if self._closed:
                raise StopAsyncIteration
            try:
                chunk = await anext(self._chunks)
            except StopAsyncIteration:
                self._finish()
                await self.aclose()
                raise
            except BaseException:
                await self.aclose()
                raise
            self._feed(self._decoder.decode(chunk))
        return self._pending.popleft()

    def _feed(self, text: str) -> None:
        if not text:
            return
        events, self._buffer = process_sse_buffer(self._buffer + text)
        self._pending.extend(events)

    def _finish(self) -> None:
        tail = self._buffer + self._decoder.decode(b"", final=True)
        if tail.strip():
            logger.debug(f"Discarding unterminated SSE frame at end of stream: {tail[:200]!r}")
        self._buffer = ""

    async def aclose(self) -> None:
        """Release the underlying stream. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._pending.clear()

        close_chunks = getattr(self._chunks, "aclose", None)
        try:
            if close_chunks is not None:
                await close_chunks()
        finally:
            close_source = getattr(self._source, "aclose", None)
            if close_source is not None:
                await close_source()

    async def __aenter__(self) -> "SSEStreamReader":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
