"""Live tests against a real Dify chat app (skipped without DIFY_API_KEY)"""

import os

import pytest
from dotenv import load_dotenv

from difyflow import ChatMessagesRequest, DifyClient, MessageEndEvent
from difyflow.core.stream import answer_chunks
from difyflow.models import ParametersRequest

load_dotenv()

pytestmark = [
    pytest.mark.live,
    pytest.mark.skipif(not os.environ.get("DIFY_API_KEY"), reason="DIFY_API_KEY not set"),
]

USER = "difyflow-live-test"


def test_chat_stream():
    with DifyClient() as client:
        api = client.api()
        events = list(api.chat_messages_events(ChatMessagesRequest(query="Say hello in one word.", user=USER)))

    assert any(isinstance(e, MessageEndEvent) for e in events)
    assert "".join(filter(None, map(answer_chunks, events)))


def test_parameters():
    with DifyClient() as client:
        response = client.api().parameters(ParametersRequest(user=USER))
    assert isinstance(response.user_input_form, list)
