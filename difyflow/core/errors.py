"""Exceptions raised by difyflow.

Every failure surfaces as a subclass of DifyError:

- InvalidRequestError: caller input rejected locally, before any I/O
- ServiceError: the API answered with a {code, message, status} payload, or
  with a body that matched neither the expected shape nor the error shape
- StreamDecodeError: an SSE frame carried data that is not a valid stream event
- TransportError: the HTTP exchange itself failed (connect, read, timeout)
"""

import json
from typing import Any, Dict, Optional

UNKNOWN_ERROR_CODE = "unknown_error"
UNKNOWN_ERROR_STATUS = 503


class DifyError(Exception):
    """Base class for all difyflow errors"""


class InvalidRequestError(DifyError, ValueError):
    """Raised when a request fails local validation"""

    def __init__(self, request: str, field: str, reason: str = "Illegal"):
        self.request = request
        self.field = field
        self.reason = reason
        super().__init__(f"{request}.{field} {reason}")


class ServiceError(DifyError):
    """Error reported by the Dify service"""

    def __init__(self, code: str, message: str, status: int, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.status = status
        self.details = details or {}
        super().__init__(self.message)

    @classmethod
    def unknown(cls, message: Any) -> 'ServiceError':
        """Synthesize the error used when a body is neither success nor error shaped."""
        return cls(code=UNKNOWN_ERROR_CODE, message=str(message), status=UNKNOWN_ERROR_STATUS)

    @property
    def is_unknown(self) -> bool:
        return self.code == UNKNOWN_ERROR_CODE

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "status": self.status}

    def __str__(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)

    def __repr__(self) -> str:
        return f"ServiceError(code={self.code!r}, message={self.message!r}, status={self.status})"


class StreamDecodeError(DifyError):
    """Raised when an SSE frame's data cannot be decoded into a stream event"""

    def __init__(self, data: str, error: Exception):
        self.data = data
        self.error = error
        super().__init__(f"data: {data}, error: {error}")


class TransportError(DifyError):
    """Raised when the underlying HTTP exchange fails"""

    def __init__(self, message: str, original: Optional[BaseException] = None):
        self.original = original
        super().__init__(message)
