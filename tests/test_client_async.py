"""Tests for AsyncDifyClient / AsyncApi against an httpx.MockTransport"""

import asyncio

import httpx
import pytest

from difyflow import CHAT, WORKFLOW
from difyflow.core.errors import InvalidRequestError, ServiceError, TransportError
from difyflow.core.events import MessageEndEvent
from difyflow.core.stream import answer_chunks
from difyflow.models import (
    ChatMessagesRequest,
    ConversationsDeleteRequest,
    TextToAudioRequest,
    WorkflowsRunRequest,
)

from conftest import BASE_URL, PING, message, message_end, make_async_client, sse_body


def chat_request() -> ChatMessagesRequest:
    return ChatMessagesRequest(query="Hello", user="user-1")


class TestAsyncStreaming:

    @pytest.mark.asyncio
    async def test_hi_scenario(self, recorder):
        recorder.reply_sse(PING, message("Hi"), message(" there"), message_end())

        async with make_async_client(recorder) as client:
            chunks = await client.api().chat_messages_stream(chat_request(), answer_chunks)

        assert chunks == ["Hi", " there"]
        assert str(recorder.last.url) == f"{BASE_URL}/v1/chat-messages"
        assert recorder.last_json()["response_mode"] == "streaming"

    @pytest.mark.asyncio
    async def test_async_projector(self, recorder):
        recorder.reply_sse(message("a"), message("b"), message_end())

        async def projector(event):
            await asyncio.sleep(0)
            return event.answer if event.event == "message" else None

        async with make_async_client(recorder) as client:
            results = await client.api().stream(CHAT, chat_request(), projector)

        assert results == ["a", "b"]

    @pytest.mark.asyncio
    async def test_events_iterator(self, recorder):
        recorder.reply_sse(message("a"), message_end())

        async with make_async_client(recorder) as client:
            events = [e async for e in client.api().workflows_run_events(WorkflowsRunRequest(user="u"))]

        assert isinstance(events[-1], MessageEndEvent)
        assert recorder.last.url.path == "/v1/workflows/run"

    @pytest.mark.asyncio
    async def test_error_status(self, recorder):
        recorder.reply(401, json={"code": "unauthorized", "message": "Invalid API key", "status": 401})

        async with make_async_client(recorder) as client:
            with pytest.raises(ServiceError) as exc_info:
                await client.api().chat_messages_stream(chat_request(), answer_chunks)

        assert exc_info.value.status == 401

    @pytest.mark.asyncio
    async def test_whole_call_timeout(self):
        async def slow(request):
            await asyncio.sleep(1)
            return httpx.Response(200, json={"result": "success"})

        async with make_async_client(slow, timeout=0.05) as client:
            with pytest.raises(TransportError):
                await client.api().stream(CHAT, chat_request(), answer_chunks)

    @pytest.mark.asyncio
    async def test_events_iterator_is_bounded(self):
        async def keep_alive():
            for _ in range(40):
                await asyncio.sleep(0.05)
                yield sse_body(PING)
            yield sse_body(message_end())

        async def handler(request):
            return httpx.Response(200, content=keep_alive(), headers={"content-type": "text/event-stream"})

        seen = []
        async with make_async_client(handler, timeout=0.3) as client:
            with pytest.raises(TransportError, match="within 0.3s"):
                async for event in client.api().chat_messages_events(chat_request()):
                    seen.append(event.event)

        assert seen and set(seen) == {"ping"}

    @pytest.mark.asyncio
    async def test_events_iterator_stalled_read(self):
        async def stalled():
            yield sse_body(PING)
            await asyncio.sleep(1)
            yield sse_body(message_end())

        async def handler(request):
            return httpx.Response(200, content=stalled(), headers={"content-type": "text/event-stream"})

        async with make_async_client(handler, timeout=0.1) as client:
            with pytest.raises(TransportError):
                async for _ in client.api().events(CHAT, chat_request()):
                    pass


class TestAsyncBlocking:

    @pytest.mark.asyncio
    async def test_run_forces_blocking(self, recorder):
        recorder.reply(200, json={
            "event": "message",
            "message_id": "msg-1",
            "conversation_id": "conv-1",
            "mode": "chat",
            "answer": "Hi",
            "created_at": 1,
        })

        async with make_async_client(recorder) as client:
            response = await client.api().chat_messages(chat_request())

        assert response.answer == "Hi"
        assert recorder.last_json()["response_mode"] == "blocking"

    @pytest.mark.asyncio
    async def test_transport_failure(self):
        async def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with make_async_client(refuse) as client:
            with pytest.raises(TransportError):
                await client.api().workflows_run(WorkflowsRunRequest(user="u"))


class TestAsyncControl:

    @pytest.mark.asyncio
    async def test_stop(self, recorder):
        recorder.reply(200, json={"result": "success"})

        async with make_async_client(recorder) as client:
            result = await client.api().stop(WORKFLOW, "task-7", "u")

        assert result.result == "success"
        assert recorder.last.url.path == "/v1/workflows/task-7/stop"
        assert recorder.last_json() == {"user": "u"}

    @pytest.mark.asyncio
    async def test_empty_task_id_rejected_before_io(self, recorder):
        async with make_async_client(recorder) as client:
            with pytest.raises(InvalidRequestError):
                await client.api().chat_messages_stop("", "u")

        assert recorder.requests == []

    @pytest.mark.asyncio
    async def test_delete_and_audio(self, recorder):
        recorder.reply(204)
        recorder.reply(200, content=b"OggS\x00\x02", headers={"content-type": "audio/ogg"})

        async with make_async_client(recorder) as client:
            api = client.api()
            assert await api.conversations_delete(ConversationsDeleteRequest(conversation_id="c", user="u")) is None
            assert await api.text_to_audio(TextToAudioRequest(text="hi", user="u")) == b"OggS\x00\x02"

    @pytest.mark.asyncio
    async def test_hook_on_async_handle(self, recorder):
        recorder.reply(200, json={"result": "success"})

        def tag(request):
            request.headers["X-Tenant"] = "acme"
            return request

        async with make_async_client(recorder) as client:
            await client.api().with_before_send(tag).chat_messages_stop("task-1", "u")

        assert recorder.last.headers["X-Tenant"] == "acme"
