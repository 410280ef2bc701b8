"""
Difyflow - Client for the Dify conversational and workflow API

Typed requests in; typed results, decoded Server-Sent Event streams or typed
exceptions out. Sync (DifyClient) and async (AsyncDifyClient) flavours.
"""

from difyflow.__version__ import __version__
from difyflow.config import Config
from difyflow.clients import (
    DifyClient, Api,
    AsyncDifyClient, AsyncApi,
    TaskRoute, CHAT, WORKFLOW, COMPLETION,
)
from difyflow.core import (
    DifyError, InvalidRequestError, ServiceError, StreamDecodeError, TransportError,
    StreamEvent, UnknownEvent,
    MessageEvent, MessageFileEvent, MessageEndEvent, MessageReplaceEvent,
    WorkflowStartedEvent, NodeStartedEvent, NodeFinishedEvent, WorkflowFinishedEvent,
    AgentMessageEvent, AgentThoughtEvent, ErrorEvent, PingEvent,
    parse_stream_event, run_stream, arun_stream, answer_chunks,
)
from difyflow.models import (
    ResponseMode, FinishedStatus, FileType, Feedback,
    ChatMessagesRequest, CompletionMessagesRequest, WorkflowsRunRequest,
    RemoteUrlFile, LocalFile,
)

__all__ = [
    "__version__",
    "Config",
    # Clients
    "DifyClient",
    "Api",
    "AsyncDifyClient",
    "AsyncApi",
    "TaskRoute",
    "CHAT",
    "WORKFLOW",
    "COMPLETION",
    # Errors
    "DifyError",
    "InvalidRequestError",
    "ServiceError",
    "StreamDecodeError",
    "TransportError",
    # Streaming events
    "StreamEvent",
    "UnknownEvent",
    "MessageEvent",
    "MessageFileEvent",
    "MessageEndEvent",
    "MessageReplaceEvent",
    "WorkflowStartedEvent",
    "NodeStartedEvent",
    "NodeFinishedEvent",
    "WorkflowFinishedEvent",
    "AgentMessageEvent",
    "AgentThoughtEvent",
    "ErrorEvent",
    "PingEvent",
    "parse_stream_event",
    "run_stream",
    "arun_stream",
    "answer_chunks",
    # Requests
    "ResponseMode",
    "FinishedStatus",
    "FileType",
    "Feedback",
    "ChatMessagesRequest",
    "CompletionMessagesRequest",
    "WorkflowsRunRequest",
    "RemoteUrlFile",
    "LocalFile",
]
