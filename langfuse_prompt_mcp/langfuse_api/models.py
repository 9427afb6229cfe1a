from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from ..schemas.base import BaseSchema, ResponseSchema

DEFAULT_BASE_URL = "https://cloud.langfuse.com"

PromptType = Literal["text", "chat"]


class LangfuseConfig(BaseModel):
    """Connection settings for `LangfuseApiClient`; immutable once built."""

    public_key: Optional[str] = Field(default=None, description="Langfuse public key (Basic-Auth user).")
    secret_key: Optional[str] = Field(default=None, description="Langfuse secret key (Basic-Auth password).")
    base_url: str = Field(
        default=DEFAULT_BASE_URL,
        description="Langfuse host; the client appends /api/public/v2.",
        examples=[DEFAULT_BASE_URL, "http://localhost:3000"],
    )
    request_timeout: int = Field(
        default=30000,
        ge=1,
        description="Per-request timeout in milliseconds.",
        examples=[30000],
    )
    max_retries: int = Field(
        default=3,
        ge=0,
        description="Retries for timeouts, network failures and 5xx answers.",
        examples=[3],
    )

    model_config = ConfigDict(frozen=True)


class ChatMessage(BaseSchema):
    role: Literal["system", "user", "assistant"]
    content: str


class PromptConfig(BaseSchema):
    """Model parameters stored alongside a prompt version.

    Unknown keys are dropped rather than rejected.
    """

    model_config = ConfigDict(extra="ignore")

    model: Optional[str] = None
    temperature: Optional[float] = Field(default=None, ge=0, le=2)
    max_tokens: Optional[int] = Field(default=None, ge=1)
    top_p: Optional[float] = Field(default=None, ge=0, le=1)
    frequency_penalty: Optional[float] = Field(default=None, ge=-2, le=2)
    presence_penalty: Optional[float] = Field(default=None, ge=-2, le=2)
    stop_sequences: Optional[List[str]] = None


class PromptVersion(ResponseSchema):
    """A single prompt version as returned by Langfuse."""

    name: str
    version: int
    type: PromptType = "text"
    prompt: Union[str, List[Dict[str, Any]]]
    config: Optional[Dict[str, Any]] = None
    labels: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    commit_message: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class PromptListItem(ResponseSchema):
    """Prompt summary from the list endpoint."""

    name: str
    type: Optional[PromptType] = None
    latest_version: Optional[int] = None
    versions: List[int] = Field(default_factory=list)
    labels: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    last_updated_at: Optional[str] = None

    @property
    def latest(self) -> Optional[int]:
        if self.latest_version is not None:
            return self.latest_version
        return max(self.versions) if self.versions else None


class PaginationMeta(ResponseSchema):
    page: int = 1
    limit: int = 20
    total_pages: int = 0
    total_items: int = 0


class PromptListPage(ResponseSchema):
    data: List[PromptListItem] = Field(default_factory=list)
    meta: PaginationMeta = Field(default_factory=PaginationMeta)


class CreatePromptParams(BaseSchema):
    """Payload for creating a prompt (or a new version of an existing one)."""

    name: str
    type: PromptType
    prompt: Union[str, List[ChatMessage]]
    config: Optional[PromptConfig] = None
    labels: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    commit_message: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class UpdatePromptLabelsParams(BaseSchema):
    name: str
    version: int = Field(gt=0)
    new_labels: List[str]
