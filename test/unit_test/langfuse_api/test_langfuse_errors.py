from __future__ import annotations

import pytest

from langfuse_prompt_mcp.langfuse_api import (
    ApiResult,
    ErrorKind,
    LangfuseApiError,
    LangfuseAuthenticationError,
    LangfuseError,
    LangfuseRateLimitError,
    PromptValidationError,
)


def test_every_error_carries_its_kind() -> None:
    assert LangfuseApiError(500).kind is ErrorKind.API
    assert PromptValidationError("name", "too long").kind is ErrorKind.VALIDATION
    assert LangfuseAuthenticationError().kind is ErrorKind.AUTHENTICATION
    assert LangfuseRateLimitError(30).kind is ErrorKind.RATE_LIMIT
    assert all(
        isinstance(e, LangfuseError)
        for e in (LangfuseApiError(400), PromptValidationError("a", "b"), LangfuseAuthenticationError())
    )


@pytest.mark.parametrize(
    "error, retryable",
    [
        (LangfuseApiError(500), True),
        (LangfuseApiError(503), True),
        (LangfuseApiError(404), False),
        (LangfuseApiError(408), False),
        (LangfuseApiError(408, "Request timeout", transient=True), True),
    ],
)
def test_retryable_classification(error: LangfuseApiError, retryable: bool) -> None:
    assert error.retryable is retryable


def test_to_dict_renders_structured_fields() -> None:
    api = LangfuseApiError(404, details={"error": "nope"}).to_dict()
    assert api == {"kind": "api_error", "message": "API request failed", "status": 404, "details": {"error": "nope"}}

    validation = PromptValidationError("labels.0", "Label cannot be empty")
    assert str(validation) == "Validation failed for labels.0: Label cannot be empty"
    assert validation.to_dict()["field"] == "labels.0"

    assert LangfuseRateLimitError(12).to_dict()["retryAfter"] == 12
    assert str(LangfuseApiError(501, "Unsupported")) == "Unsupported (status 501)"


def test_api_result_success_and_failure() -> None:
    ok: ApiResult[int] = ApiResult.success(3)
    assert ok.ok and ok.kind is None and ok.unwrap() == 3

    failed: ApiResult[int] = ApiResult.failure(LangfuseAuthenticationError())
    assert not failed.ok
    assert failed.value is None
    assert failed.kind is ErrorKind.AUTHENTICATION
    with pytest.raises(LangfuseAuthenticationError):
        failed.unwrap()
