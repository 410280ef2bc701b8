"""Streaming protocol layer: events, SSE decoding, stream folding and error reconciliation"""

from difyflow.core.errors import DifyError, InvalidRequestError, ServiceError, StreamDecodeError, TransportError
from difyflow.core.events import (
    StreamEvent,
    UnknownEvent,
    MessageEvent,
    MessageFileEvent,
    MessageEndEvent,
    MessageReplaceEvent,
    WorkflowStartedEvent,
    NodeStartedEvent,
    NodeFinishedEvent,
    WorkflowFinishedEvent,
    AgentMessageEvent,
    AgentThoughtEvent,
    ErrorEvent,
    PingEvent,
    parse_stream_event,
)
from difyflow.core.response import ErrorResponse, parse_response, parse_error_response, ensure_no_content
from difyflow.core.sse import ServerSentEvent, SSEDecoder, iter_stream_events, aiter_stream_events
from difyflow.core.stream import run_stream, arun_stream, answer_chunks
