"""
Incremental parser for Server-Sent Events (SSE) that turns a raw byte stream
into typed provider events.

Bytes are folded into a text buffer, complete event blocks (terminated by a
blank line) are cut from its front, the `data: ` payload of each block is
validated against the caller's event type, and every result, good or bad, is
handed out as a `StreamItem`.
"""

from __future__ import annotations

import codecs
import enum
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterable, Awaitable, Callable, Generic, Iterable, Iterator, Optional, TypeVar, cast

import httpx
from pydantic import TypeAdapter, ValidationError

from ai_client._errors import StreamDecodeError, StreamEncodingError, StreamError, StreamTransportError

logger = logging.getLogger(__name__)

T = TypeVar("T")

EVENT_DELIMITER = "\n\n"
DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"

TRANSPORT_ERRORS = (httpx.HTTPError, httpx.StreamError, OSError)


@dataclass(frozen=True, slots=True)
class SSEEvent:
    """
    Data structure representing a single Server-Sent Event (SSE).
    Stores the raw string content associated with the 'data' field.
    """

    data: str


@dataclass(frozen=True, slots=True)
class StreamItem(Generic[T]):
    """
    One element of an event stream: either a decoded event or the error that
    replaced it.

    Check `ok`, not `value is None`: a JSON `null` payload decodes to None.
    """

    value: Optional[T] = None
    error: Optional[StreamError] = None

    @classmethod
    def success(cls, value: T) -> StreamItem[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, error: StreamError) -> StreamItem[T]:
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the decoded event, or raise the carried error."""
        if self.error is not None:
            raise self.error
        return cast(T, self.value)


class StreamState(enum.Enum):
    AWAITING_INPUT = "awaiting_input"
    HAS_EVENT = "has_event"
    DRAINING = "draining"
    CLOSED = "closed"


class SSEBuffer:
    """
    Text accumulator that cuts complete event blocks off its front.

    Decoding is incremental, so a multi-byte character split across two
    network reads is reassembled instead of being reported as corrupt.
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")("strict")
        self._text = ""
        # Offset below which the text is known to hold no delimiter.
        self._scanned = 0

    @property
    def pending(self) -> str:
        return self._text

    def feed(self, chunk: bytes) -> None:
        """
        Append a chunk of the response body.

        Raises:
            UnicodeDecodeError: If the bytes are not valid UTF-8.
        """
        self._text += self._decoder.decode(chunk)

    def finish(self) -> None:
        """Flush the UTF-8 decoder once the transport has ended."""
        self._text += self._decoder.decode(b"", final=True)

    def next_block(self) -> Optional[str]:
        """
        Remove and return the first complete event block, without its delimiter.

        Returns:
            The block text, or None when no complete block is buffered yet.
        """
        pos = self._text.find(EVENT_DELIMITER, self._scanned)
        if pos < 0:
            self._scanned = max(len(self._text) - len(EVENT_DELIMITER) + 1, 0)
            return None
        block = self._text[:pos]
        self._text = self._text[pos + len(EVENT_DELIMITER):]
        self._scanned = 0
        return block


def extract_data(block: str, *, join_data_lines: bool = False) -> Optional[str]:
    """
    Pull the `data: ` payload out of one event block.

    By default the first `data: ` line that is not the `[DONE]` sentinel is the
    payload; the providers send one data line per event. With
    `join_data_lines=True` every data line is joined with newlines, as the SSE
    standard prescribes for multi-line data.

    Returns:
        The payload, or None if the block carries no data or only the sentinel.
    """
    fragments: list[str] = []
    # Only "\n" splits lines: JSON strings may legally contain U+2028 and friends.
    for raw_line in block.split("\n"):
        line = raw_line.rstrip("\r")
        if not line.startswith(DATA_PREFIX):
            continue
        fragment = line[len(DATA_PREFIX):]
        if not join_data_lines:
            if fragment.strip() == DONE_SENTINEL:
                logger.debug("SSE sentinel %s received", DONE_SENTINEL)
                continue
            return fragment
        fragments.append(fragment)

    if not fragments:
        return None
    payload = "\n".join(fragments)
    if payload.strip() == DONE_SENTINEL:
        logger.debug("SSE sentinel %s received", DONE_SENTINEL)
        return None
    return payload


def decode_event(payload: str, adapter: TypeAdapter[T]) -> StreamItem[T]:
    """
    Validate one payload against the event schema.

    A malformed payload does not raise: it becomes a `StreamDecodeError` item so
    the rest of the stream can still be consumed.
    """
    logger.debug("Received SSE data chunk: %s", payload)
    try:
        return StreamItem.success(adapter.validate_json(payload))
    except ValidationError as e:
        logger.error("Failed to parse stream chunk: %s", e)
        logger.error("Chunk data: %s", payload)
        return StreamItem.failure(
            StreamDecodeError(f"Failed to parse JSON: {e}", payload=payload, cause=e)
        )


def iter_sse_events_from_text(text: str, *, join_data_lines: bool = False) -> Iterator[SSEEvent]:
    """
    Parse SSE events from a fully buffered body.

    Args:
        text: The raw string containing one or multiple SSE events.
        join_data_lines: Join multi-line data instead of keeping the first line.

    Yields:
        SSEEvent objects for every block with a non-sentinel payload. A trailing
        block without its blank-line terminator is not emitted.
    """
    buffer = SSEBuffer()
    buffer.feed(text.encode("utf-8"))
    buffer.finish()
    while (block := buffer.next_block()) is not None:
        data = extract_data(block, join_data_lines=join_data_lines)
        if data is not None:
            yield SSEEvent(data=data)


def _as_adapter(event_type: Any) -> TypeAdapter[Any]:
    if isinstance(event_type, TypeAdapter):
        return event_type
    return TypeAdapter(event_type)


class _StreamDriver(Generic[T]):
    """Transport-independent half of the stream state machine."""

    def __init__(self, event_type: Any, *, join_data_lines: bool = False) -> None:
        self._adapter: TypeAdapter[T] = _as_adapter(event_type)
        self._join_data_lines = join_data_lines
        self._buffer: Optional[SSEBuffer] = SSEBuffer()
        self._exhausted = False
        self.state = StreamState.AWAITING_INPUT

    @property
    def closed(self) -> bool:
        return self.state is StreamState.CLOSED

    def _next_buffered(self) -> Optional[StreamItem[T]]:
        """
        Process buffered blocks until one produces an item.

        Returns None when the buffer holds no further complete block.
        """
        assert self._buffer is not None
        while True:
            block = self._buffer.next_block()
            if block is None:
                self.state = StreamState.DRAINING if self._exhausted else StreamState.AWAITING_INPUT
                return None
            if not self._exhausted:
                self.state = StreamState.HAS_EVENT
            payload = extract_data(block, join_data_lines=self._join_data_lines)
            if payload is None:
                continue
            return decode_event(payload, self._adapter)

    def _receive(self, chunk: bytes) -> Optional[StreamItem[T]]:
        assert self._buffer is not None
        try:
            self._buffer.feed(chunk)
        except UnicodeDecodeError as e:
            logger.error("Invalid UTF-8 in response: %s", e)
            return StreamItem.failure(StreamEncodingError(f"Invalid UTF-8 in response: {e}", cause=e))
        return None

    def _transport_failed(self, exc: BaseException) -> StreamItem[T]:
        logger.error("Stream transport failed: %r", exc)
        return StreamItem.failure(StreamTransportError(f"Stream transport failed: {exc}", cause=exc))

    def _end_of_input(self) -> None:
        assert self._buffer is not None
        self._exhausted = True
        self.state = StreamState.DRAINING
        try:
            self._buffer.finish()
        except UnicodeDecodeError:
            # Solo puede quedar un carácter truncado dentro del evento parcial final.
            logger.debug("Discarding truncated UTF-8 sequence at end of stream")

    def _release_buffer(self) -> None:
        if self._buffer is not None and self._buffer.pending:
            logger.debug("Discarding %d chars of incomplete SSE event", len(self._buffer.pending))
        self._buffer = None
        self.state = StreamState.CLOSED


class EventStream(_StreamDriver[T]):
    """
    Lazy, single-pass sequence of `StreamItem`s decoded from a byte iterable.

    The transport is read only when the buffer holds no complete event, one
    chunk at a time, as the caller asks for the next item. `on_close` is called
    exactly once, on exhaustion, after a terminal error item, on `close()`, on
    context-manager exit, or when an unexpected exception escapes.

    Usage:
        with client.generate_response_streamed(request) as stream:
            for item in stream:
                event = item.unwrap()
    """

    def __init__(
        self,
        chunks: Iterable[bytes],
        event_type: Any,
        *,
        on_close: Callable[[], Any] | None = None,
        join_data_lines: bool = False,
    ) -> None:
        super().__init__(event_type, join_data_lines=join_data_lines)
        self._chunks = iter(chunks)
        self._on_close = on_close

    def __iter__(self) -> EventStream[T]:
        return self

    def __next__(self) -> StreamItem[T]:
        try:
            while not self.closed:
                item = self._next_buffered()
                if item is not None:
                    return item
                if self._exhausted:
                    break
                try:
                    chunk = next(self._chunks)
                except StopIteration:
                    self._end_of_input()
                    continue
                except TRANSPORT_ERRORS as e:
                    item = self._transport_failed(e)
                    self.close()
                    return item
                item = self._receive(chunk)
                if item is not None:
                    self.close()
                    return item
        except BaseException:
            self.close()
            raise
        self.close()
        raise StopIteration

    def close(self) -> None:
        if self.closed:
            return
        self._release_buffer()
        close_chunks = getattr(self._chunks, "close", None)
        try:
            if callable(close_chunks):
                close_chunks()
        finally:
            if self._on_close is not None:
                self._on_close()

    def __enter__(self) -> EventStream[T]:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class AsyncEventStream(_StreamDriver[T]):
    """
    Async counterpart of `EventStream` over an async byte iterable.

    Usage:
        stream = await client.agenerate_response_streamed(request)
        async with stream:
            async for item in stream:
                ...
    """

    def __init__(
        self,
        chunks: AsyncIterable[bytes],
        event_type: Any,
        *,
        on_close: Callable[[], Awaitable[Any]] | None = None,
        join_data_lines: bool = False,
    ) -> None:
        super().__init__(event_type, join_data_lines=join_data_lines)
        self._chunks = chunks.__aiter__()
        self._on_close = on_close

    def __aiter__(self) -> AsyncEventStream[T]:
        return self

    async def __anext__(self) -> StreamItem[T]:
        try:
            while not self.closed:
                item = self._next_buffered()
                if item is not None:
                    return item
                if self._exhausted:
                    break
                try:
                    chunk = await self._chunks.__anext__()
                except StopAsyncIteration:
                    self._end_of_input()
                    continue
                except TRANSPORT_ERRORS as e:
                    item = self._transport_failed(e)
                    await self.aclose()
                    return item
                item = self._receive(chunk)
                if item is not None:
                    await self.aclose()
                    return item
        except BaseException:
            await self.aclose()
            raise
        await self.aclose()
        raise StopAsyncIteration

    async def aclose(self) -> None:
        if self.closed:
            return
        self._release_buffer()
        close_chunks = getattr(self._chunks, "aclose", None)
        try:
            if callable(close_chunks):
                await close_chunks()
        finally:
            if self._on_close is not None:
                await self._on_close()

    async def __aenter__(self) -> AsyncEventStream[T]:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
