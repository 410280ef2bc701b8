"""Stream event types emitted by Dify's SSE endpoints.

Each SSE frame carries a JSON object whose "event" key selects the variant.
StreamEvent is a closed discriminated union over the known variants;
parse_stream_event(strict=False) additionally maps unknown tags to UnknownEvent.
"""

import logging
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from difyflow.core.types import BelongsTo, FileType, FinishedStatus

logger = logging.getLogger(__name__)


class BaseStreamEvent(BaseModel):
    """Fields any event may carry. Unrecognised keys are kept in model_extra."""
    model_config = ConfigDict(extra="allow")

    task_id: Optional[str] = None
    message_id: Optional[str] = None
    conversation_id: Optional[str] = None
    created_at: Optional[int] = None

    @property
    def is_terminal(self) -> bool:
        """True if this event ends the logical stream of its task"""
        return False


# ---------------------------------------------------------------------------
# Payloads nested under "data"
# ---------------------------------------------------------------------------

class ExecutionMetadata(BaseModel):
    model_config = ConfigDict(extra="allow")

    total_tokens: Optional[int] = None
    total_price: Optional[Union[str, float]] = None
    currency: Optional[str] = None


class WorkflowStartedData(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    workflow_id: str
    sequence_number: int
    inputs: Any = None
    created_at: int


class NodeStartedData(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    node_id: str
    node_type: str
    title: str
    index: int
    predecessor_node_id: Optional[str] = None
    inputs: Any = None
    created_at: int


class NodeFinishedData(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    node_id: str
    node_type: Optional[str] = None
    title: Optional[str] = None
    index: int
    predecessor_node_id: Optional[str] = None
    inputs: Any = None
    process_data: Any = None
    outputs: Any = None
    status: FinishedStatus
    error: Optional[str] = None
    elapsed_time: Optional[float] = None
    execution_metadata: Optional[ExecutionMetadata] = None
    created_at: int

    @property
    def is_anomalous(self) -> bool:
        """A finished node should never still be running"""
        return self.status == FinishedStatus.RUNNING


class WorkflowFinishedData(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    workflow_id: str
    status: FinishedStatus
    outputs: Any = None
    error: Optional[str] = None
    elapsed_time: Optional[float] = None
    total_tokens: Optional[int] = None
    total_steps: int
    created_at: int
    finished_at: int

    @property
    def is_anomalous(self) -> bool:
        return self.status == FinishedStatus.RUNNING


# ---------------------------------------------------------------------------
# Variants
# ---------------------------------------------------------------------------

class MessageEvent(BaseStreamEvent):
    """One chunk of generated answer text"""
    event: Literal["message"] = "message"
    task_id: str
    id: str
    answer: str


class MessageFileEvent(BaseStreamEvent):
    """A file became available mid-stream"""
    event: Literal["message_file"] = "message_file"
    id: str
    type: FileType
    belongs_to: BelongsTo
    url: str


class MessageEndEvent(BaseStreamEvent):
    """The message is complete"""
    event: Literal["message_end"] = "message_end"
    task_id: str
    id: str
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @property
    def is_terminal(self) -> bool:
        return True


class MessageReplaceEvent(BaseStreamEvent):
    """Moderation replaced the whole answer"""
    event: Literal["message_replace"] = "message_replace"
    task_id: str
    answer: str


class WorkflowStartedEvent(BaseStreamEvent):
    event: Literal["workflow_started"] = "workflow_started"
    task_id: str
    workflow_run_id: str
    data: WorkflowStartedData


class NodeStartedEvent(BaseStreamEvent):
    event: Literal["node_started"] = "node_started"
    task_id: str
    workflow_run_id: str
    data: NodeStartedData


class NodeFinishedEvent(BaseStreamEvent):
    event: Literal["node_finished"] = "node_finished"
    task_id: str
    workflow_run_id: str
    data: NodeFinishedData


class WorkflowFinishedEvent(BaseStreamEvent):
    event: Literal["workflow_finished"] = "workflow_finished"
    task_id: str
    workflow_run_id: str
    data: WorkflowFinishedData

    @property
    def is_terminal(self) -> bool:
        return True


class AgentMessageEvent(BaseStreamEvent):
    """Answer chunk produced in agent mode"""
    event: Literal["agent_message"] = "agent_message"
    task_id: str
    id: str
    answer: str


class AgentThoughtEvent(BaseStreamEvent):
    """One agent reasoning step, with the tool it called"""
    event: Literal["agent_thought"] = "agent_thought"
    task_id: str
    id: str
    position: int
    thought: str = ""
    observation: str = ""
    tool: str = ""
    tool_labels: Any = Field(default_factory=dict)
    tool_input: str = ""
    message_files: List[str] = Field(default_factory=list)


class ErrorEvent(BaseStreamEvent):
    """The stream failed"""
    event: Literal["error"] = "error"
    status: int
    code: str
    message: str

    @property
    def is_terminal(self) -> bool:
        return True


class PingEvent(BaseStreamEvent):
    """Keep-alive, sent every 10s"""
    event: Literal["ping"] = "ping"


class UnknownEvent(BaseModel):
    """An event whose tag is not part of StreamEvent (lenient decoding only)"""
    event: str
    raw: Dict[str, Any] = Field(default_factory=dict)

    @property
    def task_id(self) -> Optional[str]:
        task_id = self.raw.get("task_id")
        return task_id if isinstance(task_id, str) else None

    @property
    def is_terminal(self) -> bool:
        return False


EVENT_TYPES = (
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
)

# Union type for all streaming events
StreamEvent = Annotated[
    Union[
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
    ],
    Field(discriminator="event"),
]

KNOWN_EVENTS = frozenset(cls.model_fields["event"].default for cls in EVENT_TYPES)

_stream_event_adapter = TypeAdapter(StreamEvent)


def parse_stream_event(payload: Any, strict: bool = True) -> Union[StreamEvent, UnknownEvent]:
    """Validate a decoded JSON object into a stream event.

    Args:
        payload: The JSON object carried by one SSE frame
        strict: When False, objects tagged with an unknown event name become
            UnknownEvent instead of failing validation

    Raises:
        pydantic.ValidationError: payload is not a valid event
    """
    if not strict and isinstance(payload, dict):
        tag = payload.get("event")
        if isinstance(tag, str) and tag not in KNOWN_EVENTS:
            return UnknownEvent(event=tag, raw=payload)

    event = _stream_event_adapter.validate_python(payload)

    if isinstance(event, (NodeFinishedEvent, WorkflowFinishedEvent)) and event.data.is_anomalous:
        logger.warning(
            "%s for task %s reports status 'running'",
            event.event,
            event.task_id,
        )

    return event
