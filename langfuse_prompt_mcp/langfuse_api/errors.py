"""Error types specific to the Langfuse API layer.

Purpose:
- Provide the four failure kinds produced by `LangfuseApiClient` and the tool
  layer: API errors, validation errors, authentication errors and rate limits.
- Tag every error with an `ErrorKind` so callers can branch on it without
  inspecting class names or status codes.

Usage:
- Client operations return `ApiResult`; inspect `result.error.kind`.
- Use `to_dict()` to render an error as structured tool output.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    API = "api_error"
    VALIDATION = "validation_error"
    AUTHENTICATION = "authentication_error"
    RATE_LIMIT = "rate_limit_error"


class LangfuseError(Exception):
    """Base error for all Langfuse failures.

    Args:
        message: Human-readable error description.
    """

    kind: ErrorKind = ErrorKind.API

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "message": self.message}


class LangfuseApiError(LangfuseError):
    """Raised when Langfuse answers with a non-success status or cannot be reached.

    Args:
        status_code: HTTP status code (408 for timeouts, 501 for unsupported operations).
        message: Human-readable error description.
        details: Optional structured payload from the server (parsed JSON or raw text).
        transient: True for failures raised before any response arrived
            (timeouts, connection errors).
    """

    kind = ErrorKind.API

    def __init__(
        self,
        status_code: int,
        message: str = "API request failed",
        *,
        details: Optional[Any] = None,
        transient: bool = False,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.details = details
        self.transient = transient

    @property
    def retryable(self) -> bool:
        """Timeouts, network failures and 5xx answers are worth retrying."""
        return self.transient or self.status_code >= 500

    def __str__(self) -> str:
        return f"{self.message} (status {self.status_code})"

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["status"] = self.status_code
        if self.details is not None:
            data["details"] = self.details
        return data


class PromptValidationError(LangfuseError):
    """Raised when a prompt payload fails a local shape or format check.

    Args:
        field: Name (or dotted path) of the offending field.
        constraint: Description of the violated constraint.
    """

    kind = ErrorKind.VALIDATION

    def __init__(self, field: str, constraint: str) -> None:
        super().__init__(f"Validation failed for {field}: {constraint}")
        self.field = field
        self.constraint = constraint

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({"field": self.field, "constraint": self.constraint})
        return data


class LangfuseAuthenticationError(LangfuseError):
    """Raised for missing credentials or a 401/403 answer from Langfuse."""

    kind = ErrorKind.AUTHENTICATION

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message)


class LangfuseRateLimitError(LangfuseError):
    """Raised when Langfuse answers 429.

    Args:
        retry_after: Seconds to wait before retrying, from the `Retry-After` header.
    """

    kind = ErrorKind.RATE_LIMIT

    def __init__(self, retry_after: int, message: str = "Rate limit exceeded") -> None:
        super().__init__(message)
        self.retry_after = retry_after

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["retryAfter"] = self.retry_after
        return data
