from __future__ import annotations

import asyncio
import base64
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Type, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError

from .errors import (
    LangfuseApiError,
    LangfuseAuthenticationError,
    LangfuseError,
    LangfuseRateLimitError,
    PromptValidationError,
)
from .models import (
    CreatePromptParams,
    LangfuseConfig,
    PromptListPage,
    PromptVersion,
    UpdatePromptLabelsParams,
)
from .result import ApiResult

API_PREFIX = "/api/public/v2"
BATCH_CONCURRENCY = 5
DEFAULT_RETRY_AFTER_SECONDS = 60

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

SleepFunc = Callable[[float], Awaitable[None]]


class LangfuseApiClient:
    """
    Async HTTP client for the Langfuse public prompt-management API.

    Responsibilities:
    - list_prompts
    - get_prompt
    - create_prompt
    - update_prompt_labels
    - delete_prompt (always unsupported upstream)
    - batch_update_labels

    Every call goes through one request path that sends Basic auth, enforces
    the configured timeout, retries timeouts / network failures / 5xx answers
    with exponential backoff and maps failures onto the error taxonomy in
    `errors`. Public operations never raise `LangfuseError`; they return an
    `ApiResult` carrying either the value or the error.

    Note: This client does not cache. Tool handlers own cache keys and
    invalidation.
    """

    def __init__(
        self,
        config: LangfuseConfig,
        *,
        client: Optional[httpx.AsyncClient] = None,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        if not config.public_key or not config.secret_key:
            raise LangfuseAuthenticationError("Missing Langfuse API credentials")
        self.config = config
        self.base_url = config.base_url.rstrip("/")
        self.max_retries = config.max_retries
        self._auth = base64.b64encode(f"{config.public_key}:{config.secret_key}".encode("utf-8")).decode("ascii")
        self._timeout = config.request_timeout / 1000.0
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=self._timeout, follow_redirects=True)
        self._sleep = sleep
        self._logger = logging.getLogger(__name__)

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Basic {self._auth}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def _url(self, path: str) -> str:
        return f"{self.base_url}{API_PREFIX}{path}"

    @staticmethod
    def backoff_delay(attempt: int) -> float:
        """Seconds to wait before retry number ``attempt + 1`` (1s, 2s, 4s, ...)."""
        return float(2**attempt)

    @staticmethod
    def _retry_after(response: httpx.Response) -> int:
        raw = response.headers.get("Retry-After")
        try:
            return int(raw) if raw is not None else DEFAULT_RETRY_AFTER_SECONDS
        except ValueError:
            return DEFAULT_RETRY_AFTER_SECONDS

    async def _send(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        body: Optional[Any] = None,
    ) -> Any:
        """Perform a single attempt and classify its outcome."""
        url = self._url(path)
        self._logger.debug("LangfuseApiClient: %s %s params=%s", method, url, params)
        try:
            # httpx times each phase separately; wait_for bounds the whole exchange
            r = await asyncio.wait_for(
                self._client.request(
                    method,
                    url,
                    headers=self._headers(),
                    params=params or None,
                    json=body,
                    timeout=self._timeout,
                ),
                self._timeout,
            )
        except (httpx.TimeoutException, asyncio.TimeoutError) as e:
            raise LangfuseApiError(408, "Request timeout", transient=True) from e
        except httpx.TransportError as e:
            raise LangfuseApiError(503, "Network error", details=str(e), transient=True) from e

        if r.status_code == 429:
            raise LangfuseRateLimitError(self._retry_after(r))
        if r.status_code in (401, 403):
            raise LangfuseAuthenticationError()
        if not r.is_success:
            try:
                details: Any = r.json()
            except ValueError:
                details = r.text
            raise LangfuseApiError(r.status_code, "API request failed", details=details)
        if not r.content:
            return None
        try:
            return r.json()
        except ValueError as e:
            raise LangfuseApiError(r.status_code, "Response body is not valid JSON", details=r.text) from e

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        body: Optional[Any] = None,
    ) -> Any:
        """Send a request, retrying transient failures up to ``max_retries`` times."""
        attempt = 0
        while True:
            try:
                return await self._send(method, path, params=params, body=body)
            except LangfuseApiError as e:
                if not e.retryable or attempt >= self.max_retries:
                    raise
                delay = self.backoff_delay(attempt)
                self._logger.warning(
                    "LangfuseApiClient: %s %s failed (%s); retry %d/%d in %.0fs",
                    method,
                    path,
                    e,
                    attempt + 1,
                    self.max_retries,
                    delay,
                )
                await self._sleep(delay)
                attempt += 1

    @staticmethod
    def _parse(model: Type[M], data: Any) -> M:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise LangfuseApiError(
                502,
                f"Unexpected response shape for {model.__name__}",
                details=e.errors(include_url=False),
            ) from e

    async def _call(self, operation: str, coro: Awaitable[T]) -> ApiResult[T]:
        try:
            return ApiResult.success(await coro)
        except LangfuseError as e:
            self._logger.debug("LangfuseApiClient.%s failed: kind=%s error=%s", operation, e.kind.value, e)
            return ApiResult.failure(e)

    # Operations

    async def list_prompts(
        self,
        *,
        name: Optional[str] = None,
        label: Optional[str] = None,
        tag: Optional[str] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> ApiResult[PromptListPage]:
        """List prompts; empty filters and a zero page or limit are left out."""
        query = {"name": name, "label": label, "tag": tag, "page": page, "limit": limit}
        params = {k: str(v) for k, v in query.items() if v}
        return await self._call("list_prompts", self._list_prompts(params))

    async def _list_prompts(self, params: Dict[str, str]) -> PromptListPage:
        data = await self._request("GET", "/prompts", params=params)
        page = self._parse(PromptListPage, data)
        self._logger.debug("LangfuseApiClient.list_prompts: got %d prompts", len(page.data))
        return page

    async def get_prompt(
        self,
        name: str,
        *,
        version: Optional[int] = None,
        label: Optional[str] = None,
    ) -> ApiResult[PromptVersion]:
        """Fetch one prompt version.

        ``version`` selects an exact version and wins over ``label``; with
        neither, Langfuse resolves its default (the ``production`` / latest
        version).
        """
        path = f"/prompts/{quote(name, safe='')}"
        params: Optional[Dict[str, str]] = None
        if version is not None:
            path += f"/versions/{version}"
        elif label:
            params = {"label": label}
        return await self._call("get_prompt", self._get_prompt(path, params))

    async def _get_prompt(self, path: str, params: Optional[Dict[str, str]]) -> PromptVersion:
        data = await self._request("GET", path, params=params)
        return self._parse(PromptVersion, data)

    async def create_prompt(self, params: CreatePromptParams) -> ApiResult[PromptVersion]:
        """Create a prompt, or a new version when the name already exists."""
        return await self._call("create_prompt", self._create_prompt(params))

    async def _create_prompt(self, params: CreatePromptParams) -> PromptVersion:
        if params.type == "chat" and not isinstance(params.prompt, list):
            raise PromptValidationError("prompt", "Chat prompts must be an array of messages")
        if params.type == "text" and not isinstance(params.prompt, str):
            raise PromptValidationError("prompt", "Text prompts must be a string")
        data = await self._request("POST", "/prompts", body=params.to_payload())
        created = self._parse(PromptVersion, data)
        self._logger.debug("LangfuseApiClient.create_prompt: created name=%s version=%s", created.name, created.version)
        return created

    async def update_prompt_labels(self, name: str, version: int, new_labels: Sequence[str]) -> ApiResult[PromptVersion]:
        """Replace the label set of one prompt version (not additive)."""
        path = f"/prompts/{quote(name, safe='')}/versions/{version}"
        return await self._call("update_prompt_labels", self._update_prompt_labels(path, list(new_labels)))

    async def _update_prompt_labels(self, path: str, labels: List[str]) -> PromptVersion:
        data = await self._request("PATCH", path, body={"labels": labels})
        return self._parse(PromptVersion, data)

    async def delete_prompt(self, name: str, *, version: Optional[int] = None) -> ApiResult[None]:
        """Always fails with 501: Langfuse has no delete endpoint for prompts."""
        self._logger.debug("LangfuseApiClient.delete_prompt: name=%s version=%s is unsupported", name, version)
        return ApiResult.failure(LangfuseApiError(501, "Delete operation not yet supported by Langfuse API"))

    async def batch_update_labels(self, updates: Sequence[UpdatePromptLabelsParams]) -> List[ApiResult[PromptVersion]]:
        """Apply many label updates, ``BATCH_CONCURRENCY`` at a time.

        Groups run one after another; updates inside a group run concurrently.
        Each update gets its own result, returned in input order, so one failure
        does not hide the outcome of its siblings.
        """
        results: List[ApiResult[PromptVersion]] = []
        for start in range(0, len(updates), BATCH_CONCURRENCY):
            group = updates[start : start + BATCH_CONCURRENCY]
            results.extend(
                await asyncio.gather(*(self.update_prompt_labels(u.name, u.version, u.new_labels) for u in group))
            )
        return results

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "LangfuseApiClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()
