"""Request payloads for the Dify API"""

from typing import Annotated, Any, ClassVar, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, Field

from difyflow.core.types import Feedback, FileType, ResponseMode


class DifyRequest(BaseModel):
    """Base for JSON/query requests.

    Fields listed in `path_params` are substituted into the URL and left out
    of the body or query string.
    """
    path_params: ClassVar[Tuple[str, ...]] = ()

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude=set(self.path_params), exclude_none=True)

    def path_values(self) -> Dict[str, str]:
        return {name: getattr(self, name) for name in self.path_params}


class RemoteUrlFile(BaseModel):
    """File referenced by URL"""
    transfer_method: Literal["remote_url"] = "remote_url"
    type: FileType = FileType.IMAGE
    url: str


class LocalFile(BaseModel):
    """File previously sent to /files/upload"""
    transfer_method: Literal["local_file"] = "local_file"
    type: FileType = FileType.IMAGE
    upload_file_id: str


ChatMessageFile = Annotated[Union[RemoteUrlFile, LocalFile], Field(discriminator="transfer_method")]


class TaskRequest(DifyRequest):
    """Requests that start a task and can be answered blocking or streaming"""
    inputs: Dict[str, Any] = Field(default_factory=dict)
    response_mode: ResponseMode = ResponseMode.BLOCKING
    user: str
    files: List[ChatMessageFile] = Field(default_factory=list)


class ChatMessagesRequest(TaskRequest):
    query: str
    conversation_id: str = ""
    auto_generate_name: bool = True


class CompletionMessagesRequest(TaskRequest):
    query: Optional[str] = None
    conversation_id: Optional[str] = None


class WorkflowsRunRequest(TaskRequest):
    pass


class StreamTaskStopRequest(DifyRequest):
    path_params: ClassVar[Tuple[str, ...]] = ("task_id",)

    task_id: str
    user: str


class MessagesSuggestedRequest(DifyRequest):
    path_params: ClassVar[Tuple[str, ...]] = ("message_id",)

    message_id: str
    user: Optional[str] = None


class MessagesFeedbacksRequest(DifyRequest):
    """Rate a message; a None rating revokes an earlier one"""
    path_params: ClassVar[Tuple[str, ...]] = ("message_id",)

    message_id: str
    rating: Optional[Feedback] = None
    user: str
    content: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload["rating"] = self.rating.value if self.rating else None
        return payload


class MessagesRequest(DifyRequest):
    """History of a conversation, newest page first"""
    conversation_id: str
    user: str
    first_id: Optional[str] = None
    limit: Optional[int] = None


class ConversationsRequest(DifyRequest):
    user: str
    last_id: Optional[str] = None
    limit: Optional[int] = None
    pinned: Optional[bool] = None


class ConversationsRenameRequest(DifyRequest):
    path_params: ClassVar[Tuple[str, ...]] = ("conversation_id",)

    conversation_id: str
    name: Optional[str] = None
    auto_generate: bool = False
    user: str


class ConversationsDeleteRequest(DifyRequest):
    path_params: ClassVar[Tuple[str, ...]] = ("conversation_id",)

    conversation_id: str
    user: str


class TextToAudioRequest(DifyRequest):
    text: str
    user: str
    message_id: Optional[str] = None
    streaming: bool = False


class ParametersRequest(DifyRequest):
    user: str


class MetaRequest(DifyRequest):
    user: str


class AudioToTextRequest(BaseModel):
    """Sent as multipart/form-data"""
    file: bytes
    user: str


class FilesUploadRequest(BaseModel):
    """Sent as multipart/form-data; only images are accepted"""
    file: bytes
    user: str
