"""Async Dify client implementation"""

import asyncio
import logging
from contextlib import aclosing
from typing import Any, AsyncIterator, Coroutine, List, Optional, TypeVar, Union

import httpx

from difyflow.config import Config
from difyflow.core.errors import TransportError
from difyflow.core.events import StreamEvent, UnknownEvent
from difyflow.core.response import ensure_no_content, parse_error_response, parse_response
from difyflow.core.sse import aiter_stream_events
from difyflow.core.stream import AsyncProjector, T, arun_stream
from difyflow.core.types import ResponseMode
from difyflow.clients.base import BaseApi, BaseDifyClient, BeforeSend, Deadline, build_config, default_headers
from difyflow.clients.utils import (
    CHAT,
    COMPLETION,
    WORKFLOW,
    ApiPath,
    TaskRoute,
    build_path_request,
    build_request,
    build_stop_request,
    build_task_request,
    build_upload_request,
    is_audio_response,
    require,
    validate_rename,
)
from difyflow.models.request import (
    AudioToTextRequest,
    ChatMessagesRequest,
    CompletionMessagesRequest,
    ConversationsDeleteRequest,
    ConversationsRenameRequest,
    ConversationsRequest,
    FilesUploadRequest,
    MessagesFeedbacksRequest,
    MessagesRequest,
    MessagesSuggestedRequest,
    MetaRequest,
    ParametersRequest,
    TaskRequest,
    TextToAudioRequest,
    WorkflowsRunRequest,
)
from difyflow.models.response import (
    AudioToTextResponse,
    ChatMessagesResponse,
    CompletionMessagesResponse,
    ConversationData,
    ConversationsResponse,
    FilesUploadResponse,
    MessagesResponse,
    MessagesSuggestedResponse,
    MetaResponse,
    ParametersResponse,
    ResultResponse,
    WorkflowsRunResponse,
)

logger = logging.getLogger(__name__)

V = TypeVar("V")


class AsyncDifyClient(BaseDifyClient):
    """Async client for one Dify app.

    Args:
        base_url: API root; defaults to DIFY_BASE_URL, then https://api.dify.ai
        api_key: App key; defaults to DIFY_API_KEY
        timeout: Whole-call time limit in seconds; 0 disables it
        config: Complete configuration, used instead of the arguments above
        transport: Custom httpx transport (e.g. httpx.MockTransport in tests)
    """

    def __init__(
        self,
        base_url: str = None,
        api_key: str = None,
        timeout: float = None,
        config: Config = None,
        transport: httpx.AsyncBaseTransport = None,
    ):
        self.config = build_config(base_url, api_key, timeout, config)
        self.http_client = httpx.AsyncClient(
            timeout=self.config.timeout_or_none,
            headers=default_headers(self.config),
            transport=transport,
        )

    def api(self, before_send: Optional[BeforeSend] = None) -> 'AsyncApi':
        return AsyncApi(self, before_send=before_send)

    async def aclose(self):
        await self.http_client.aclose()

    async def __aenter__(self) -> 'AsyncDifyClient':
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()


class AsyncApi(BaseApi):
    """Call-scoped async handle exposing every Dify endpoint.

    Every awaited call is bounded as a whole by Config.timeout, covering
    connect, send and the full body or event stream.
    """

    client: AsyncDifyClient

    @property
    def http_client(self) -> httpx.AsyncClient:
        return self.client.http_client

    @staticmethod
    async def _bounded(call: Coroutine[Any, Any, V], deadline: Deadline) -> V:
        try:
            timeout = deadline.remaining()
        except TransportError:
            call.close()
            raise
        try:
            return await asyncio.wait_for(call, timeout)
        except asyncio.TimeoutError as e:
            raise TransportError(f"Call did not complete within {deadline.timeout}s", e) from e

    async def _send(self, request: httpx.Request, deadline: Deadline, stream: bool = False) -> httpx.Response:
        request = deadline.apply(self._prepare(request))
        try:
            return await self.http_client.send(request, stream=stream)
        except httpx.HTTPError as e:
            raise TransportError(f"{request.method} {request.url} failed: {e}", e) from e

    async def _request(self, request: httpx.Request) -> httpx.Response:
        deadline = self._deadline()
        return await self._bounded(self._send(request, deadline), deadline)

    @staticmethod
    async def _read(response: httpx.Response) -> str:
        try:
            await response.aread()
        except httpx.HTTPError as e:
            raise TransportError(f"Reading response body failed: {e}", e) from e
        return response.text

    # Task endpoints

    async def run(self, route: TaskRoute, request: TaskRequest):
        """Run a task in blocking mode and return route.response_model.

        Raises:
            InvalidRequestError, ServiceError, TransportError
        """
        http_request = build_task_request(self.http_client, self.base_url, route, request, ResponseMode.BLOCKING)
        response = await self._request(http_request)
        return parse_response(response.text, route.response_model)

    def events(self, route: TaskRoute, request: TaskRequest, strict: bool = True) -> AsyncIterator[Union[StreamEvent, UnknownEvent]]:
        """Run a task in streaming mode and iterate over its decoded events.

        The request is validated immediately and sent when iteration starts.
        The whole iteration is bounded by Config.timeout, counted from this call.
        """
        return self._events(route, request, strict, self._deadline())

    def _events(self, route: TaskRoute, request: TaskRequest, strict: bool, deadline: Deadline) -> AsyncIterator[Union[StreamEvent, UnknownEvent]]:
        http_request = build_task_request(self.http_client, self.base_url, route, request, ResponseMode.STREAMING)
        return self._iter_events(http_request, strict, deadline)

    async def _iter_events(self, http_request: httpx.Request, strict: bool, deadline: Deadline) -> AsyncIterator[Union[StreamEvent, UnknownEvent]]:
        response = await self._bounded(self._send(http_request, deadline, stream=True), deadline)
        try:
            if response.is_error:
                parse_error_response(await self._read(response))
            logger.debug("dify.stream opened url=%s", http_request.url)
            async for event in aiter_stream_events(deadline.alines(response.aiter_lines()), strict=strict):
                yield event
        finally:
            await response.aclose()

    async def stream(self, route: TaskRoute, request: TaskRequest, projector: AsyncProjector, strict: bool = True) -> List[T]:
        """Run a task in streaming mode and fold its events through `projector`.

        Returns:
            The non-None projector results, in stream order
        """
        deadline = self._deadline()
        events = self._events(route, request, strict, deadline)

        async def fold() -> List[T]:
            async with aclosing(events):
                return await arun_stream(events, projector)

        return await self._bounded(fold(), deadline)

    async def stop(self, route: TaskRoute, task_id: str, user: str) -> ResultResponse:
        """Stop a running streaming task. Only streaming tasks can be stopped."""
        http_request = build_stop_request(self.http_client, self.base_url, route, task_id, user)
        response = await self._request(http_request)
        return parse_response(response.text, ResultResponse)

    async def chat_messages(self, request: ChatMessagesRequest) -> ChatMessagesResponse:
        return await self.run(CHAT, request)

    async def chat_messages_stream(self, request: ChatMessagesRequest, projector: AsyncProjector) -> List[T]:
        return await self.stream(CHAT, request, projector)

    def chat_messages_events(self, request: ChatMessagesRequest, strict: bool = True) -> AsyncIterator[Union[StreamEvent, UnknownEvent]]:
        return self.events(CHAT, request, strict=strict)

    async def chat_messages_stop(self, task_id: str, user: str) -> ResultResponse:
        return await self.stop(CHAT, task_id, user)

    async def workflows_run(self, request: WorkflowsRunRequest) -> WorkflowsRunResponse:
        return await self.run(WORKFLOW, request)

    async def workflows_run_stream(self, request: WorkflowsRunRequest, projector: AsyncProjector) -> List[T]:
        return await self.stream(WORKFLOW, request, projector)

    def workflows_run_events(self, request: WorkflowsRunRequest, strict: bool = True) -> AsyncIterator[Union[StreamEvent, UnknownEvent]]:
        return self.events(WORKFLOW, request, strict=strict)

    async def workflows_stop(self, task_id: str, user: str) -> ResultResponse:
        return await self.stop(WORKFLOW, task_id, user)

    async def completion_messages(self, request: CompletionMessagesRequest) -> CompletionMessagesResponse:
        return await self.run(COMPLETION, request)

    async def completion_messages_stream(self, request: CompletionMessagesRequest, projector: AsyncProjector) -> List[T]:
        return await self.stream(COMPLETION, request, projector)

    def completion_messages_events(self, request: CompletionMessagesRequest, strict: bool = True) -> AsyncIterator[Union[StreamEvent, UnknownEvent]]:
        return self.events(COMPLETION, request, strict=strict)

    async def completion_messages_stop(self, task_id: str, user: str) -> ResultResponse:
        return await self.stop(COMPLETION, task_id, user)

    # Files and audio

    async def files_upload(self, request: FilesUploadRequest) -> FilesUploadResponse:
        """Upload an image for later use as a local_file attachment"""
        http_request = build_upload_request(self.http_client, self.base_url, ApiPath.FILES_UPLOAD, request, "image")
        response = await self._request(http_request)
        return parse_response(response.text, FilesUploadResponse)

    async def audio_to_text(self, request: AudioToTextRequest) -> AudioToTextResponse:
        http_request = build_upload_request(self.http_client, self.base_url, ApiPath.AUDIO_TO_TEXT, request, "audio")
        response = await self._request(http_request)
        return parse_response(response.text, AudioToTextResponse)

    async def text_to_audio(self, request: TextToAudioRequest) -> bytes:
        """Synthesize speech; returns the raw audio bytes"""
        require(request, "text")
        http_request = build_request(self.http_client, "POST", ApiPath.TEXT_TO_AUDIO.url(self.base_url), request)
        response = await self._request(http_request)
        if is_audio_response(response):
            return response.content
        parse_error_response(response.text)

    # Messages and conversations

    async def messages_feedbacks(self, request: MessagesFeedbacksRequest) -> ResultResponse:
        http_request = build_path_request(self.http_client, self.base_url, "POST", ApiPath.MESSAGES_FEEDBACKS, request)
        response = await self._request(http_request)
        return parse_response(response.text, ResultResponse)

    async def messages_suggested(self, request: MessagesSuggestedRequest) -> MessagesSuggestedResponse:
        http_request = build_path_request(self.http_client, self.base_url, "GET", ApiPath.MESSAGES_SUGGESTED, request)
        response = await self._request(http_request)
        return parse_response(response.text, MessagesSuggestedResponse)

    async def messages(self, request: MessagesRequest) -> MessagesResponse:
        require(request, "conversation_id")
        http_request = build_request(self.http_client, "GET", ApiPath.MESSAGES.url(self.base_url), request)
        response = await self._request(http_request)
        return parse_response(response.text, MessagesResponse)

    async def conversations(self, request: ConversationsRequest) -> ConversationsResponse:
        require(request, "user")
        http_request = build_request(self.http_client, "GET", ApiPath.CONVERSATIONS.url(self.base_url), request)
        response = await self._request(http_request)
        return parse_response(response.text, ConversationsResponse)

    async def conversations_renaming(self, request: ConversationsRenameRequest) -> ConversationData:
        validate_rename(request)
        http_request = build_path_request(self.http_client, self.base_url, "POST", ApiPath.CONVERSATIONS_RENAME, request)
        response = await self._request(http_request)
        return parse_response(response.text, ConversationData)

    async def conversations_delete(self, request: ConversationsDeleteRequest) -> None:
        """Delete a conversation. Success is an empty 204 response."""
        http_request = build_path_request(self.http_client, self.base_url, "DELETE", ApiPath.CONVERSATIONS_DELETE, request)
        response = await self._request(http_request)
        ensure_no_content(response.status_code, response.text)

    # App information

    async def parameters(self, request: ParametersRequest) -> ParametersResponse:
        require(request, "user")
        http_request = build_request(self.http_client, "GET", ApiPath.PARAMETERS.url(self.base_url), request)
        response = await self._request(http_request)
        return parse_response(response.text, ParametersResponse)

    async def meta(self, request: MetaRequest) -> MetaResponse:
        require(request, "user")
        http_request = build_request(self.http_client, "GET", ApiPath.META.url(self.base_url), request)
        response = await self._request(http_request)
        return parse_response(response.text, MetaResponse)
