"""Client configuration"""

import os
from dataclasses import dataclass, field, replace
from typing import Optional

DEFAULT_BASE_URL = "https://api.dify.ai"
DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class Config:
    """Immutable settings shared by every call made through a client.

    Args:
        base_url: Dify API root, without the /v1 prefix
        api_key: App API key sent as a bearer token
        timeout: Per-call time limit in seconds (0 disables it)
    """
    base_url: str = DEFAULT_BASE_URL
    api_key: Optional[str] = field(default=None, repr=False)
    timeout: float = DEFAULT_TIMEOUT

    def __post_init__(self):
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))

    @classmethod
    def from_env(cls, **overrides) -> 'Config':
        """Build a config from DIFY_BASE_URL, DIFY_API_KEY and DIFY_TIMEOUT."""
        timeout = os.environ.get("DIFY_TIMEOUT")
        config = cls(
            base_url=os.environ.get("DIFY_BASE_URL") or DEFAULT_BASE_URL,
            api_key=os.environ.get("DIFY_API_KEY"),
            timeout=float(timeout) if timeout else DEFAULT_TIMEOUT,
        )
        overrides = {k: v for k, v in overrides.items() if v is not None}
        return replace(config, **overrides) if overrides else config

    @property
    def timeout_or_none(self) -> Optional[float]:
        return self.timeout if self.timeout and self.timeout > 0 else None
