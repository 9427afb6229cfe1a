from langfuse_prompt_mcp.langfuse_api.models import (
    ChatMessage,
    CreatePromptParams,
    LangfuseConfig,
    PaginationMeta,
    PromptConfig,
    PromptListItem,
    PromptListPage,
    PromptVersion,
    UpdatePromptLabelsParams,
)

from .client import LangfuseApiClient
from .errors import (
    ErrorKind,
    LangfuseApiError,
    LangfuseAuthenticationError,
    LangfuseError,
    LangfuseRateLimitError,
    PromptValidationError,
)
from .result import ApiResult

__all__ = [
    "ApiResult",
    "ChatMessage",
    "CreatePromptParams",
    "ErrorKind",
    "LangfuseApiClient",
    "LangfuseApiError",
    "LangfuseAuthenticationError",
    "LangfuseConfig",
    "LangfuseError",
    "LangfuseRateLimitError",
    "PaginationMeta",
    "PromptConfig",
    "PromptListItem",
    "PromptListPage",
    "PromptValidationError",
    "PromptVersion",
    "UpdatePromptLabelsParams",
]
