"""Base classes shared by the sync and async Dify clients"""

import asyncio
import time
from abc import ABC, abstractmethod
from typing import AsyncIterable, AsyncIterator, Callable, Dict, Iterable, Iterator, Optional

import httpx

from difyflow.__version__ import __version__
from difyflow.config import Config
from difyflow.core.errors import TransportError

# Applied to every outgoing request right before it is sent
BeforeSend = Callable[[httpx.Request], httpx.Request]


def build_config(
    base_url: Optional[str] = None,
    api_key: Optional[str] = None,
    timeout: Optional[float] = None,
    config: Optional[Config] = None,
) -> Config:
    """Use `config` as is, otherwise read the environment and apply the explicit arguments"""
    if config is not None:
        return config
    return Config.from_env(base_url=base_url, api_key=api_key, timeout=timeout)


def default_headers(config: Config) -> Dict[str, str]:
    headers = {
        "Cache-Control": "no-cache",
        "User-Agent": f"difyflow/{__version__}",
    }
    if config.api_key:
        headers["Authorization"] = f"Bearer {config.api_key}"
    return headers


class BaseDifyClient(ABC):
    """Holds the immutable configuration and the pooled HTTP client.

    Clients are safe to share; per-call state lives in the API handles
    returned by api().
    """

    config: Config

    @property
    def base_url(self) -> str:
        return self.config.base_url

    @abstractmethod
    def api(self, before_send: Optional[BeforeSend] = None):
        """Return a call-scoped API handle"""
        raise NotImplementedError


class BaseApi(ABC):
    """State common to the API handles: the owning client and the before-send hook"""

    def __init__(self, client: BaseDifyClient, before_send: Optional[BeforeSend] = None):
        self.client = client
        self.before_send = before_send

    @property
    def base_url(self) -> str:
        return self.client.base_url

    def with_before_send(self, hook: Optional[BeforeSend]):
        """Return a new handle on the same client that applies `hook` before each send.

        The current handle is left untouched.
        """
        return type(self)(self.client, before_send=hook)

    def _prepare(self, request: httpx.Request) -> httpx.Request:
        if self.before_send is None:
            return request
        return self.before_send(request)

    def _deadline(self) -> 'Deadline':
        return Deadline(self.client.config.timeout_or_none)


class Deadline:
    """Wall-clock limit shared by every step of one call.

    Started when the call starts; each send gets the remaining time as its
    httpx timeout and each streamed line is checked against it.
    """

    def __init__(self, timeout: Optional[float]):
        self.timeout = timeout
        self.expires_at = None if timeout is None else time.monotonic() + timeout

    def remaining(self) -> Optional[float]:
        """Seconds left, or None without a limit.

        Raises:
            TransportError: the limit has passed
        """
        if self.expires_at is None:
            return None
        left = self.expires_at - time.monotonic()
        if left <= 0:
            raise TransportError(f"Call did not complete within {self.timeout}s")
        return left

    def apply(self, request: httpx.Request) -> httpx.Request:
        left = self.remaining()
        if left is not None:
            request.extensions["timeout"] = httpx.Timeout(left).as_dict()
        return request

    def lines(self, lines: Iterable[str]) -> Iterator[str]:
        for line in lines:
            self.remaining()
            yield line

    async def alines(self, lines: AsyncIterable[str]) -> AsyncIterator[str]:
        iterator = lines.__aiter__()
        while True:
            try:
                line = await asyncio.wait_for(iterator.__anext__(), self.remaining())
            except StopAsyncIteration:
                return
            except asyncio.TimeoutError as e:
                raise TransportError(f"Call did not complete within {self.timeout}s", e) from e
            yield line
