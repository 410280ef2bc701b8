"""Server-Sent Events decoding.

Two layers:

1. SSEDecoder turns text lines into ServerSentEvent frames (the SSE line
   protocol: fields, comments, blank-line dispatch).
2. iter_stream_events / aiter_stream_events keep frames whose outer event name
   is "message" and decode their data into typed stream events.

Both iterators are lazy and single-use. A bad frame or a transport failure
raises and ends the iteration.
"""

import logging
from dataclasses import dataclass
from typing import AsyncIterable, AsyncIterator, Iterable, Iterator, List, Optional, Union

import httpx
from jiter import from_json

from difyflow.core.errors import StreamDecodeError, TransportError
from difyflow.core.events import StreamEvent, UnknownEvent, parse_stream_event

logger = logging.getLogger(__name__)

# Outer SSE event name carrying Dify payloads (also the SSE default)
MESSAGE_FRAME = "message"


@dataclass
class ServerSentEvent:
    """One dispatched SSE frame"""
    event: str = MESSAGE_FRAME
    data: str = ""
    id: Optional[str] = None
    retry: Optional[int] = None


class SSEDecoder:
    """Incremental decoder for the SSE line protocol.

    Feed it lines without their terminators; it returns a frame on the blank
    line that closes one. Frames without any data line are not dispatched.
    """

    def __init__(self):
        self._event = ""
        self._data: List[str] = []
        self._last_event_id = ""
        self._retry: Optional[int] = None
        self._first_line = True

    def decode(self, line: str) -> Optional[ServerSentEvent]:
        if self._first_line:
            self._first_line = False
            if line.startswith("\ufeff"):
                line = line[1:]

        if not line:
            return self._dispatch()

        if line.startswith(":"):
            return None

        field, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]

        if field == "event":
            self._event = value
        elif field == "data":
            self._data.append(value)
        elif field == "id":
            if "\0" not in value:
                self._last_event_id = value
        elif field == "retry":
            try:
                self._retry = int(value)
            except ValueError:
                pass
        else:
            logger.debug("Ignoring unknown SSE field %r", field)

        return None

    def _dispatch(self) -> Optional[ServerSentEvent]:
        if not self._data:
            self._event = ""
            self._retry = None
            return None

        sse = ServerSentEvent(
            event=self._event or MESSAGE_FRAME,
            data="\n".join(self._data),
            id=self._last_event_id or None,
            retry=self._retry,
        )
        self._event = ""
        self._data = []
        self._retry = None
        return sse


def decode_frame(sse: ServerSentEvent, strict: bool = True) -> Optional[Union[StreamEvent, UnknownEvent]]:
    """Decode one frame, or return None for frames outside the message channel.

    Raises:
        StreamDecodeError: the frame's data is not JSON or not a valid event
    """
    if sse.event != MESSAGE_FRAME:
        logger.debug("Dropping SSE frame with event %r", sse.event)
        return None

    try:
        payload = from_json(sse.data.encode())
        return parse_stream_event(payload, strict=strict)
    except ValueError as e:
        raise StreamDecodeError(sse.data, e) from e


def iter_stream_events(lines: Iterable[str], strict: bool = True) -> Iterator[Union[StreamEvent, UnknownEvent]]:
    """Decode an iterable of SSE lines (e.g. httpx.Response.iter_lines()) into events."""
    decoder = SSEDecoder()
    try:
        for line in lines:
            sse = decoder.decode(line)
            if sse is None:
                continue
            event = decode_frame(sse, strict)
            if event is not None:
                yield event
    except httpx.HTTPError as e:
        raise TransportError(f"Event stream interrupted: {e}", e) from e


async def aiter_stream_events(lines: AsyncIterable[str], strict: bool = True) -> AsyncIterator[Union[StreamEvent, UnknownEvent]]:
    """Async variant of iter_stream_events (e.g. over httpx.Response.aiter_lines())."""
    decoder = SSEDecoder()
    try:
        async for line in lines:
            sse = decoder.decode(line)
            if sse is None:
                continue
            event = decode_frame(sse, strict)
            if event is not None:
                yield event
    except httpx.HTTPError as e:
        raise TransportError(f"Event stream interrupted: {e}", e) from e
