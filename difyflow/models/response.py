"""Response payloads returned by the Dify API"""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from difyflow.core.events import WorkflowFinishedData
from difyflow.core.response import ErrorResponse
from difyflow.core.types import AppMode, BelongsTo, Feedback, FileType, TransferMethod


class ResultResponse(BaseModel):
    """Generic {"result": "success"} acknowledgement"""
    result: str


class ChatMessagesResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    message_id: str
    conversation_id: Optional[str] = None
    created_at: int
    task_id: Optional[str] = None
    event: str
    mode: AppMode
    answer: str
    metadata: Dict[str, Any] = Field(default_factory=dict)


class CompletionMessagesResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    message_id: str
    conversation_id: Optional[str] = None
    created_at: int
    task_id: str
    event: str
    mode: AppMode
    answer: str
    metadata: Dict[str, Any] = Field(default_factory=dict)


class WorkflowsRunResponse(BaseModel):
    workflow_run_id: str
    task_id: str
    data: WorkflowFinishedData


class MessagesSuggestedResponse(BaseModel):
    result: str
    data: List[str]


class MessageFile(BaseModel):
    id: str
    type: FileType
    url: str
    belongs_to: BelongsTo


class MessageFeedback(BaseModel):
    rating: Feedback


class MessageData(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    conversation_id: str
    inputs: Any = None
    query: str
    answer: str
    message_files: List[MessageFile] = Field(default_factory=list)
    feedback: Optional[MessageFeedback] = None
    retriever_resources: List[Any] = Field(default_factory=list)
    created_at: int


class MessagesResponse(BaseModel):
    limit: int
    has_more: bool
    data: List[MessageData]


class ConversationData(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    name: str
    inputs: Dict[str, Any] = Field(default_factory=dict)
    introduction: Optional[str] = None
    created_at: int


class ConversationsResponse(BaseModel):
    has_more: bool
    limit: int
    data: List[ConversationData]


class FeatureToggle(BaseModel):
    enabled: bool = False


class UserInputField(BaseModel):
    """Body of one user_input_form entry, e.g. {"text-input": {...}}"""
    model_config = ConfigDict(extra="allow")

    label: str
    variable: str
    required: bool = False
    options: List[str] = Field(default_factory=list)


class FileUploadSetting(BaseModel):
    model_config = ConfigDict(extra="allow")

    enabled: bool = False
    number_limits: Optional[int] = None
    transfer_methods: List[TransferMethod] = Field(default_factory=list)


class SystemParameters(BaseModel):
    model_config = ConfigDict(extra="allow")

    image_file_size_limit: Optional[Union[str, int]] = None


class ParametersResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    opening_statement: str = ""
    suggested_questions: List[str] = Field(default_factory=list)
    suggested_questions_after_answer: FeatureToggle = Field(default_factory=FeatureToggle)
    speech_to_text: FeatureToggle = Field(default_factory=FeatureToggle)
    retriever_resource: FeatureToggle = Field(default_factory=FeatureToggle)
    annotation_reply: FeatureToggle = Field(default_factory=FeatureToggle)
    user_input_form: List[Dict[str, UserInputField]]
    file_upload: Dict[str, FileUploadSetting] = Field(default_factory=dict)
    system_parameters: SystemParameters

    def input_fields(self) -> List[tuple]:
        """Flatten user_input_form into (control type, field) pairs"""
        return [(kind, item) for entry in self.user_input_form for kind, item in entry.items()]


class ToolIconEmoji(BaseModel):
    background: str
    content: str


ToolIcon = Union[str, ToolIconEmoji]


class MetaResponse(BaseModel):
    tool_icons: Dict[str, ToolIcon]


class AudioToTextResponse(BaseModel):
    text: str


class FilesUploadResponse(BaseModel):
    id: str
    name: str
    size: int
    extension: str
    mime_type: str
    created_by: str
    created_at: int


__all__ = [
    "ErrorResponse",
    "ResultResponse",
    "ChatMessagesResponse",
    "CompletionMessagesResponse",
    "WorkflowsRunResponse",
    "MessagesSuggestedResponse",
    "MessageFile",
    "MessageFeedback",
    "MessageData",
    "MessagesResponse",
    "ConversationData",
    "ConversationsResponse",
    "FeatureToggle",
    "UserInputField",
    "FileUploadSetting",
    "SystemParameters",
    "ParametersResponse",
    "ToolIconEmoji",
    "ToolIcon",
    "MetaResponse",
    "AudioToTextResponse",
    "FilesUploadResponse",
]
