"""Shared fixtures: a recording httpx.MockTransport handler and SSE body builders"""

import json

import httpx
import pytest

from difyflow import AsyncDifyClient, DifyClient

BASE_URL = "https://dify.test"
API_KEY = "app-test-key"


def sse_frame(payload, event: str = None) -> str:
    """Render one SSE frame whose data is `payload` (JSON-encoded unless a str)"""
    data = payload if isinstance(payload, str) else json.dumps(payload)
    lines = [f"event: {event}"] if event else []
    lines.append(f"data: {data}")
    return "\n".join(lines) + "\n\n"


def sse_body(*frames) -> bytes:
    return "".join(frame if isinstance(frame, str) else sse_frame(frame) for frame in frames).encode()


def message(answer: str, task_id: str = "task-1", **extra) -> dict:
    return {
        "event": "message",
        "task_id": task_id,
        "id": "msg-1",
        "message_id": "msg-1",
        "conversation_id": "conv-1",
        "answer": answer,
        "created_at": 1705395332,
        **extra,
    }


def message_end(task_id: str = "task-1") -> dict:
    return {
        "event": "message_end",
        "task_id": task_id,
        "id": "msg-1",
        "message_id": "msg-1",
        "conversation_id": "conv-1",
        "metadata": {"usage": {"total_tokens": 12}},
    }


PING = {"event": "ping"}


class Recorder:
    """MockTransport handler that records requests and replays queued responses"""

    def __init__(self):
        self.requests = []
        self._responses = []

    def reply(self, status_code: int = 200, **kwargs) -> 'Recorder':
        self._responses.append((status_code, kwargs))
        return self

    def reply_sse(self, *frames) -> 'Recorder':
        return self.reply(200, content=sse_body(*frames), headers={"content-type": "text/event-stream"})

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self._responses:
            return httpx.Response(500, json={"code": "no_reply", "message": "nothing queued", "status": 500})
        status_code, kwargs = self._responses.pop(0)
        return httpx.Response(status_code, **kwargs)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self) -> dict:
        return json.loads(self.last.content)


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def client(recorder):
    with DifyClient(base_url=BASE_URL + "/", api_key=API_KEY, timeout=5, transport=httpx.MockTransport(recorder)) as client:
        yield client


@pytest.fixture
def api(client):
    return client.api()


def make_async_client(handler, timeout: float = 5) -> AsyncDifyClient:
    return AsyncDifyClient(base_url=BASE_URL, api_key=API_KEY, timeout=timeout, transport=httpx.MockTransport(handler))
