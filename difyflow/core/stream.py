"""Fold a decoded event stream into a list through a caller-supplied projector"""

import inspect
from typing import AsyncIterable, Awaitable, Callable, Iterable, List, Optional, TypeVar, Union

from difyflow.core.events import AgentMessageEvent, MessageEvent, StreamEvent, UnknownEvent

T = TypeVar("T")

AnyEvent = Union[StreamEvent, UnknownEvent]
Projector = Callable[[AnyEvent], Optional[T]]
AsyncProjector = Callable[[AnyEvent], Union[Optional[T], Awaitable[Optional[T]]]]


def run_stream(events: Iterable[AnyEvent], projector: Projector) -> List[T]:
    """Apply `projector` to every event and collect the non-None results in order.

    Every event is handed over, PingEvent keep-alives included; skipping them
    is up to the projector. The fold ends when `events` is exhausted, not on
    terminal events. Any exception from the stream or the projector
    propagates immediately and discards what was collected so far.
    """
    results: List[T] = []
    for event in events:
        value = projector(event)
        if value is not None:
            results.append(value)
    return results


async def arun_stream(events: AsyncIterable[AnyEvent], projector: AsyncProjector) -> List[T]:
    """Async variant of run_stream. Awaitable projector results are awaited."""
    results: List[T] = []
    async for event in events:
        value = projector(event)
        if inspect.isawaitable(value):
            value = await value
        if value is not None:
            results.append(value)
    return results


def answer_chunks(event: AnyEvent) -> Optional[str]:
    """Projector keeping the answer text of message and agent_message events"""
    if isinstance(event, (MessageEvent, AgentMessageEvent)):
        return event.answer
    return None
