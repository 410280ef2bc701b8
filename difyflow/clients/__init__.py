"""Dify API clients"""

from difyflow.clients.base import BaseDifyClient, BaseApi, BeforeSend
from difyflow.clients.sync import DifyClient, Api
from difyflow.clients.async_ import AsyncDifyClient, AsyncApi
from difyflow.clients.utils import ApiPath, TaskRoute, CHAT, WORKFLOW, COMPLETION

__all__ = [
    "BaseDifyClient",
    "BaseApi",
    "BeforeSend",
    "DifyClient",
    "Api",
    "AsyncDifyClient",
    "AsyncApi",
    "ApiPath",
    "TaskRoute",
    "CHAT",
    "WORKFLOW",
    "COMPLETION",
]
