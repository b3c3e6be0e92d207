"""Error hierarchy for the VPSie client."""

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Where in the request pipeline an APIError originated."""

    TRANSPORT = "transport"
    HTTP_STATUS = "http-status"
    ENVELOPE = "envelope"
    DECODE = "decode"


class VPSieError(Exception):
    """Base error class for client errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON output."""
        result: dict[str, Any] = {"error": self.message}
        if self.details:
            result["details"] = self.details
        return result


class APIError(VPSieError):
    """API error with kind, status code and the raw response body."""

    def __init__(
        self,
        message: str,
        kind: ErrorKind,
        status: int = 0,
        body: bytes = b"",
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.kind = kind
        self.status = status
        self.body = body

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value!r}, status={self.status}, message={self.message!r})"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON output."""
        result = super().to_dict()
        result["kind"] = self.kind.value
        if self.status:
            result["status"] = self.status
        return result


class RequestCancelledError(APIError):
    """The caller cancelled the request or its deadline passed."""

    def __init__(self, message: str = "Request cancelled"):
        super().__init__(message, kind=ErrorKind.TRANSPORT)


class ConfigurationError(VPSieError):
    """Client configuration is missing or invalid."""
