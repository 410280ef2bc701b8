"""Request building shared by the sync and async API handles"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Type, TypeVar, Union
from urllib.parse import quote

import httpx
from pydantic import BaseModel

from difyflow.core.errors import InvalidRequestError
from difyflow.core.types import ResponseMode
from difyflow.models.request import (
    AudioToTextRequest,
    ConversationsRenameRequest,
    DifyRequest,
    FilesUploadRequest,
    StreamTaskStopRequest,
    TaskRequest,
)
from difyflow.models.response import (
    ChatMessagesResponse,
    CompletionMessagesResponse,
    WorkflowsRunResponse,
)
from difyflow.utils import content_type

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=TaskRequest)

HttpClient = Union[httpx.Client, httpx.AsyncClient]


class ApiPath(str, Enum):
    """Endpoint paths, relative to the configured base URL"""
    CHAT_MESSAGES = "/v1/chat-messages"
    CHAT_MESSAGES_STOP = "/v1/chat-messages/{task_id}/stop"
    FILES_UPLOAD = "/v1/files/upload"
    MESSAGES_FEEDBACKS = "/v1/messages/{message_id}/feedbacks"
    MESSAGES_SUGGESTED = "/v1/messages/{message_id}/suggested"
    MESSAGES = "/v1/messages"
    CONVERSATIONS = "/v1/conversations"
    CONVERSATIONS_DELETE = "/v1/conversations/{conversation_id}"
    CONVERSATIONS_RENAME = "/v1/conversations/{conversation_id}/name"
    AUDIO_TO_TEXT = "/v1/audio-to-text"
    TEXT_TO_AUDIO = "/v1/text-to-audio"
    PARAMETERS = "/v1/parameters"
    META = "/v1/meta"
    WORKFLOWS_RUN = "/v1/workflows/run"
    WORKFLOWS_STOP = "/v1/workflows/{task_id}/stop"
    COMPLETION_MESSAGES = "/v1/completion-messages"
    COMPLETION_MESSAGES_STOP = "/v1/completion-messages/{task_id}/stop"

    def url(self, base_url: str, **params: str) -> str:
        """Join base_url and this path, percent-encoding each path parameter as one segment"""
        path = self.value
        for name, value in params.items():
            path = path.replace("{" + name + "}", quote(value, safe=""))
        return base_url + path


@dataclass(frozen=True)
class TaskRoute:
    """A task-oriented endpoint family: run (blocking or streaming) and stop"""
    name: str
    run_path: ApiPath
    stop_path: ApiPath
    response_model: Type[BaseModel]


CHAT = TaskRoute("chat", ApiPath.CHAT_MESSAGES, ApiPath.CHAT_MESSAGES_STOP, ChatMessagesResponse)
WORKFLOW = TaskRoute("workflow", ApiPath.WORKFLOWS_RUN, ApiPath.WORKFLOWS_STOP, WorkflowsRunResponse)
COMPLETION = TaskRoute("completion", ApiPath.COMPLETION_MESSAGES, ApiPath.COMPLETION_MESSAGES_STOP, CompletionMessagesResponse)


def require(request: BaseModel, field: str):
    """Raise InvalidRequestError if `field` is empty on `request`"""
    if not getattr(request, field):
        raise InvalidRequestError(type(request).__name__, _camel(field))


def _camel(field: str) -> str:
    return "".join(part.capitalize() for part in field.split("_"))


def with_response_mode(request: R, mode: ResponseMode) -> R:
    """Copy of `request` with its response mode forced to `mode`"""
    return request.model_copy(update={"response_mode": mode})


def build_request(
    http_client: HttpClient,
    method: str,
    url: str,
    request: Optional[DifyRequest] = None,
) -> httpx.Request:
    """Build a JSON (POST/DELETE) or query-string (GET) request."""
    payload: Dict[str, Any] = request.to_payload() if request is not None else {}
    logger.debug("dify.request method=%s url=%s", method, url)

    if method == "GET":
        return http_client.build_request(method, url, params=payload)
    if method in ("POST", "DELETE"):
        return http_client.build_request(method, url, json=payload)
    raise ValueError(f"Method not supported: {method}")


def build_task_request(http_client: HttpClient, base_url: str, route: TaskRoute, request: TaskRequest, mode: ResponseMode) -> httpx.Request:
    return build_request(http_client, "POST", route.run_path.url(base_url), with_response_mode(request, mode))


def build_stop_request(http_client: HttpClient, base_url: str, route: TaskRoute, task_id: str, user: str) -> httpx.Request:
    """Validate and build the stop call for a running task"""
    if not task_id:
        raise InvalidRequestError(StreamTaskStopRequest.__name__, "TaskId")
    request = StreamTaskStopRequest(task_id=task_id, user=user)
    return build_request(http_client, "POST", route.stop_path.url(base_url, **request.path_values()), request)


def build_path_request(http_client: HttpClient, base_url: str, method: str, path: ApiPath, request: DifyRequest) -> httpx.Request:
    """Validate path parameters, substitute them and build the request"""
    for name in request.path_params:
        require(request, name)
    return build_request(http_client, method, path.url(base_url, **request.path_values()), request)


def validate_rename(request: ConversationsRenameRequest):
    require(request, "conversation_id")
    if not request.auto_generate and not request.name:
        raise InvalidRequestError(type(request).__name__, "Name")


def build_upload_request(
    http_client: HttpClient,
    base_url: str,
    path: ApiPath,
    request: Union[FilesUploadRequest, AudioToTextRequest],
    expected: str,
) -> httpx.Request:
    """Sniff the file and build the multipart/form-data upload.

    Args:
        expected: "image" or "audio"; the file must sniff as that kind
    """
    kind = content_type.detect(request.file)
    if kind is None or not kind.mime_type.startswith(expected + "/"):
        raise InvalidRequestError(type(request).__name__, "File")

    filename = f"{expected}_file.{kind.extension}"
    url = path.url(base_url)
    logger.debug("dify.request method=POST url=%s file=%s", url, filename)
    return http_client.build_request(
        "POST",
        url,
        data={"user": request.user},
        files={"file": (filename, request.file, kind.mime_type)},
    )


def is_audio_response(response: httpx.Response) -> bool:
    return response.headers.get("content-type", "").startswith("audio/")
