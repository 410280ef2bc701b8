"""Data models for difyflow"""

from difyflow.core.types import (
    ResponseMode, FileType, BelongsTo, FinishedStatus, AppMode, Feedback, TransferMethod
)
from difyflow.models.request import (
    DifyRequest,
    TaskRequest,
    ChatMessagesRequest,
    CompletionMessagesRequest,
    WorkflowsRunRequest,
    ChatMessageFile,
    RemoteUrlFile,
    LocalFile,
    StreamTaskStopRequest,
    MessagesSuggestedRequest,
    MessagesFeedbacksRequest,
    MessagesRequest,
    ConversationsRequest,
    ConversationsRenameRequest,
    ConversationsDeleteRequest,
    TextToAudioRequest,
    AudioToTextRequest,
    FilesUploadRequest,
    ParametersRequest,
    MetaRequest,
)
from difyflow.models.response import *  # noqa: F401,F403
from difyflow.models.response import __all__ as _response_all

__all__ = [
    # Enums
    'ResponseMode',
    'FileType',
    'BelongsTo',
    'FinishedStatus',
    'AppMode',
    'Feedback',
    'TransferMethod',
    # Requests
    'DifyRequest',
    'TaskRequest',
    'ChatMessagesRequest',
    'CompletionMessagesRequest',
    'WorkflowsRunRequest',
    'ChatMessageFile',
    'RemoteUrlFile',
    'LocalFile',
    'StreamTaskStopRequest',
    'MessagesSuggestedRequest',
    'MessagesFeedbacksRequest',
    'MessagesRequest',
    'ConversationsRequest',
    'ConversationsRenameRequest',
    'ConversationsDeleteRequest',
    'TextToAudioRequest',
    'AudioToTextRequest',
    'FilesUploadRequest',
    'ParametersRequest',
    'MetaRequest',
    # Responses
    *_response_all,
]
