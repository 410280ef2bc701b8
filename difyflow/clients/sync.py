"""Sync Dify client implementation"""

import logging
from contextlib import closing
from typing import Iterator, List, Optional, Union

import httpx

from difyflow.config import Config
from difyflow.core.errors import TransportError
from difyflow.core.events import StreamEvent, UnknownEvent
from difyflow.core.response import ensure_no_content, parse_error_response, parse_response
from difyflow.core.sse import iter_stream_events
from difyflow.core.stream import Projector, T, run_stream
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


class DifyClient(BaseDifyClient):
    """Blocking client for one Dify app.

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
        transport: httpx.BaseTransport = None,
    ):
        self.config = build_config(base_url, api_key, timeout, config)
        self.http_client = httpx.Client(
            timeout=self.config.timeout_or_none,
            headers=default_headers(self.config),
            transport=transport,
        )

    def api(self, before_send: Optional[BeforeSend] = None) -> 'Api':
        return Api(self, before_send=before_send)

    def close(self):
        self.http_client.close()

    def __enter__(self) -> 'DifyClient':
        return self

    def __exit__(self, *exc_info):
        self.close()


class Api(BaseApi):
    """Call-scoped handle exposing every Dify endpoint.

    Handles are cheap; create one per call site, or per hook via
    with_before_send().
    """

    client: DifyClient

    @property
    def http_client(self) -> httpx.Client:
        return self.client.http_client

    def _send(self, request: httpx.Request, stream: bool = False, deadline: Deadline = None) -> httpx.Response:
        deadline = deadline or self._deadline()
        request = deadline.apply(self._prepare(request))
        try:
            response = self.http_client.send(request, stream=stream)
        except httpx.HTTPError as e:
            raise TransportError(f"{request.method} {request.url} failed: {e}", e) from e
        if not stream:
            deadline.remaining()
        return response

    @staticmethod
    def _read(response: httpx.Response) -> str:
        try:
            response.read()
        except httpx.HTTPError as e:
            raise TransportError(f"Reading response body failed: {e}", e) from e
        return response.text

    # Task endpoints

    def run(self, route: TaskRoute, request: TaskRequest):
        """Run a task in blocking mode and return route.response_model.

        Raises:
            InvalidRequestError, ServiceError, TransportError
        """
        http_request = build_task_request(self.http_client, self.base_url, route, request, ResponseMode.BLOCKING)
        response = self._send(http_request)
        return parse_response(response.text, route.response_model)

    def events(self, route: TaskRoute, request: TaskRequest, strict: bool = True) -> Iterator[Union[StreamEvent, UnknownEvent]]:
        """Run a task in streaming mode and iterate over its decoded events.

        The request is built (and validated) immediately; it is sent when
        iteration starts. Closing the iterator closes the connection. The
        whole iteration is bounded by Config.timeout, counted from this call.
        """
        http_request = build_task_request(self.http_client, self.base_url, route, request, ResponseMode.STREAMING)
        return self._iter_events(http_request, strict, self._deadline())

    def _iter_events(self, http_request: httpx.Request, strict: bool, deadline: Deadline) -> Iterator[Union[StreamEvent, UnknownEvent]]:
        response = self._send(http_request, stream=True, deadline=deadline)
        try:
            if response.is_error:
                parse_error_response(self._read(response))
            logger.debug("dify.stream opened url=%s", http_request.url)
            yield from iter_stream_events(deadline.lines(response.iter_lines()), strict=strict)
        finally:
            response.close()

    def stream(self, route: TaskRoute, request: TaskRequest, projector: Projector, strict: bool = True) -> List[T]:
        """Run a task in streaming mode and fold its events through `projector`.

        Returns:
            The non-None projector results, in stream order
        """
        with closing(self.events(route, request, strict=strict)) as events:
            return run_stream(events, projector)

    def stop(self, route: TaskRoute, task_id: str, user: str) -> ResultResponse:
        """Stop a running streaming task. Only streaming tasks can be stopped."""
        http_request = build_stop_request(self.http_client, self.base_url, route, task_id, user)
        response = self._send(http_request)
        return parse_response(response.text, ResultResponse)

    def chat_messages(self, request: ChatMessagesRequest) -> ChatMessagesResponse:
        return self.run(CHAT, request)

    def chat_messages_stream(self, request: ChatMessagesRequest, projector: Projector) -> List[T]:
        return self.stream(CHAT, request, projector)

    def chat_messages_events(self, request: ChatMessagesRequest, strict: bool = True) -> Iterator[Union[StreamEvent, UnknownEvent]]:
        return self.events(CHAT, request, strict=strict)

    def chat_messages_stop(self, task_id: str, user: str) -> ResultResponse:
        return self.stop(CHAT, task_id, user)

    def workflows_run(self, request: WorkflowsRunRequest) -> WorkflowsRunResponse:
        return self.run(WORKFLOW, request)

    def workflows_run_stream(self, request: WorkflowsRunRequest, projector: Projector) -> List[T]:
        return self.stream(WORKFLOW, request, projector)

    def workflows_run_events(self, request: WorkflowsRunRequest, strict: bool = True) -> Iterator[Union[StreamEvent, UnknownEvent]]:
        return self.events(WORKFLOW, request, strict=strict)

    def workflows_stop(self, task_id: str, user: str) -> ResultResponse:
        return self.stop(WORKFLOW, task_id, user)

    def completion_messages(self, request: CompletionMessagesRequest) -> CompletionMessagesResponse:
        return self.run(COMPLETION, request)

    def completion_messages_stream(self, request: CompletionMessagesRequest, projector: Projector) -> List[T]:
        return self.stream(COMPLETION, request, projector)

    def completion_messages_events(self, request: CompletionMessagesRequest, strict: bool = True) -> Iterator[Union[StreamEvent, UnknownEvent]]:
        return self.events(COMPLETION, request, strict=strict)

    def completion_messages_stop(self, task_id: str, user: str) -> ResultResponse:
        return self.stop(COMPLETION, task_id, user)

    # Files and audio

    def files_upload(self, request: FilesUploadRequest) -> FilesUploadResponse:
        """Upload an image for later use as a local_file attachment"""
        http_request = build_upload_request(self.http_client, self.base_url, ApiPath.FILES_UPLOAD, request, "image")
        response = self._send(http_request)
        return parse_response(response.text, FilesUploadResponse)

    def audio_to_text(self, request: AudioToTextRequest) -> AudioToTextResponse:
        http_request = build_upload_request(self.http_client, self.base_url, ApiPath.AUDIO_TO_TEXT, request, "audio")
        response = self._send(http_request)
        return parse_response(response.text, AudioToTextResponse)

    def text_to_audio(self, request: TextToAudioRequest) -> bytes:
        """Synthesize speech; returns the raw audio bytes"""
        require(request, "text")
        http_request = build_request(self.http_client, "POST", ApiPath.TEXT_TO_AUDIO.url(self.base_url), request)
        response = self._send(http_request)
        if is_audio_response(response):
            return response.content
        parse_error_response(response.text)

    # Messages and conversations

    def messages_feedbacks(self, request: MessagesFeedbacksRequest) -> ResultResponse:
        http_request = build_path_request(self.http_client, self.base_url, "POST", ApiPath.MESSAGES_FEEDBACKS, request)
        response = self._send(http_request)
        return parse_response(response.text, ResultResponse)

    def messages_suggested(self, request: MessagesSuggestedRequest) -> MessagesSuggestedResponse:
        http_request = build_path_request(self.http_client, self.base_url, "GET", ApiPath.MESSAGES_SUGGESTED, request)
        response = self._send(http_request)
        return parse_response(response.text, MessagesSuggestedResponse)

    def messages(self, request: MessagesRequest) -> MessagesResponse:
        require(request, "conversation_id")
        http_request = build_request(self.http_client, "GET", ApiPath.MESSAGES.url(self.base_url), request)
        response = self._send(http_request)
        return parse_response(response.text, MessagesResponse)

    def conversations(self, request: ConversationsRequest) -> ConversationsResponse:
        require(request, "user")
        http_request = build_request(self.http_client, "GET", ApiPath.CONVERSATIONS.url(self.base_url), request)
        response = self._send(http_request)
        return parse_response(response.text, ConversationsResponse)

    def conversations_renaming(self, request: ConversationsRenameRequest) -> ConversationData:
        validate_rename(request)
        http_request = build_path_request(self.http_client, self.base_url, "POST", ApiPath.CONVERSATIONS_RENAME, request)
        response = self._send(http_request)
        return parse_response(response.text, ConversationData)

    def conversations_delete(self, request: ConversationsDeleteRequest) -> None:
        """Delete a conversation. Success is an empty 204 response."""
        http_request = build_path_request(self.http_client, self.base_url, "DELETE", ApiPath.CONVERSATIONS_DELETE, request)
        response = self._send(http_request)
        ensure_no_content(response.status_code, response.text)

    # App information

    def parameters(self, request: ParametersRequest) -> ParametersResponse:
        require(request, "user")
        http_request = build_request(self.http_client, "GET", ApiPath.PARAMETERS.url(self.base_url), request)
        response = self._send(http_request)
        return parse_response(response.text, ParametersResponse)

    def meta(self, request: MetaRequest) -> MetaResponse:
        require(request, "user")
        http_request = build_request(self.http_client, "GET", ApiPath.META.url(self.base_url), request)
        response = self._send(http_request)
        return parse_response(response.text, MetaResponse)
