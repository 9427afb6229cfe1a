"""Result container returned by every `LangfuseApiClient` operation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from .errors import ErrorKind, LangfuseError

T = TypeVar("T")


@dataclass(frozen=True)
class ApiResult(Generic[T]):
    """Either a success value or exactly one tagged `LangfuseError`.

    Build instances with `success` / `failure` rather than the constructor.
    """

    value: Optional[T] = None
    error: Optional[LangfuseError] = None

    @classmethod
    def success(cls, value: T) -> "ApiResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: LangfuseError) -> "ApiResult[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> Optional[ErrorKind]:
        return self.error.kind if self.error is not None else None

    def unwrap(self) -> T:
        """Return the value, raising the carried error on failure."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]
