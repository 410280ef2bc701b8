"""Enumerations shared by requests, responses and stream events"""

from enum import Enum


class ResponseMode(str, Enum):
    """How the service delivers a task's result"""
    BLOCKING = "blocking"
    STREAMING = "streaming"


class FileType(str, Enum):
    IMAGE = "image"
    DOCUMENT = "document"
    AUDIO = "audio"
    VIDEO = "video"
    CUSTOM = "custom"


class BelongsTo(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class FinishedStatus(str, Enum):
    """Execution status of a workflow run or node.

    RUNNING is transient and is not expected on a finished event.
    """
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    STOPPED = "stopped"


class AppMode(str, Enum):
    COMPLETION = "completion"
    WORKFLOW = "workflow"
    CHAT = "chat"
    ADVANCED_CHAT = "advanced-chat"
    AGENT_CHAT = "agent-chat"
    CHANNEL = "channel"


class Feedback(str, Enum):
    LIKE = "like"
    DISLIKE = "dislike"


class TransferMethod(str, Enum):
    REMOTE_URL = "remote_url"
    LOCAL_FILE = "local_file"
