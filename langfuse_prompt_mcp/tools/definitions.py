"""Tool definitions for the Langfuse prompt-management MCP tools.

This module defines the input schema of every tool together with the
field-level rules Langfuse expects (name, label and tag formats, chat message
shape, generation-parameter ranges), and the `ToolDefinition` entries the
server advertises.
"""

from __future__ import annotations

import re
from typing import Annotated, Any, Dict, List, Literal, Mapping, Optional, Type, TypeVar, Union

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator

from langfuse_prompt_mcp.langfuse_api.errors import PromptValidationError
from langfuse_prompt_mcp.langfuse_api.models import ChatMessage, PromptConfig, PromptType
from langfuse_prompt_mcp.schemas.base import BaseSchema

PROMPT_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9_\-/.]+$")
LABEL_PATTERN = re.compile(r"^[a-zA-Z0-9_\-]+$")
RESERVED_LABELS = frozenset({"latest", "all"})
MAX_NAME_LENGTH = 255
MAX_LABEL_LENGTH = 50
MAX_TAG_LENGTH = 50
MAX_BATCH_UPDATES = 50


def _check_prompt_name(name: str) -> str:
    if not name:
        raise ValueError("Prompt name cannot be empty")
    if len(name) > MAX_NAME_LENGTH:
        raise ValueError(f"Prompt name cannot exceed {MAX_NAME_LENGTH} characters")
    # Slashes allow folder-like organization
    if not PROMPT_NAME_PATTERN.match(name):
        raise ValueError("Prompt name can only contain letters, numbers, underscores, hyphens, dots, and slashes")
    return name


def _check_label(label: str) -> str:
    if not label:
        raise ValueError("Label cannot be empty")
    if len(label) > MAX_LABEL_LENGTH:
        raise ValueError(f"Label cannot exceed {MAX_LABEL_LENGTH} characters")
    if label.lower() in RESERVED_LABELS:
        raise ValueError(f"Label '{label}' is reserved and cannot be used")
    if not LABEL_PATTERN.match(label):
        raise ValueError("Labels can only contain letters, numbers, underscores, and hyphens")
    return label


def _check_tag(tag: str) -> str:
    if not tag:
        raise ValueError("Tag cannot be empty")
    if len(tag) > MAX_TAG_LENGTH:
        raise ValueError(f"Tag cannot exceed {MAX_TAG_LENGTH} characters")
    return tag


PromptName = Annotated[str, AfterValidator(_check_prompt_name)]
Label = Annotated[str, AfterValidator(_check_label)]
Tag = Annotated[str, AfterValidator(_check_tag)]


class ListPromptsInput(BaseSchema):
    """Input schema for list-prompts."""

    name: Optional[str] = Field(None, description="Filter by prompt name (partial match)")
    label: Optional[str] = Field(None, description="Filter by label (e.g., 'production', 'staging')")
    tag: Optional[str] = Field(None, description="Filter by tag")
    page: Optional[int] = Field(None, ge=1, description="Page number for pagination")
    limit: Optional[int] = Field(None, ge=1, le=100, description="Number of results per page (default: 20, max: 100)")


class GetPromptInput(BaseSchema):
    """Input schema for get-prompt."""

    name: str = Field(..., min_length=1, description="Prompt name")
    version: Optional[int] = Field(None, gt=0, description="Specific version number")
    label: Optional[str] = Field(None, description="Label to fetch (e.g., 'production', 'latest')")
    arguments: Optional[Dict[str, str]] = Field(None, description="Arguments to compile the prompt with")


class CreatePromptInput(BaseSchema):
    """Input schema for create-prompt."""

    name: PromptName = Field(..., description="Prompt name")
    type: PromptType = Field(..., description="Prompt type")
    prompt: Union[str, List[ChatMessage]] = Field(
        ..., description="Prompt content (string for text, array of messages for chat)"
    )
    config: Optional[PromptConfig] = Field(None, description="Model configuration")
    labels: Optional[List[Label]] = Field(None, description="Labels to assign")
    tags: Optional[List[Tag]] = Field(None, description="Tags for categorization")
    commit_message: Optional[str] = Field(None, description="Version commit message")

    @field_validator("prompt")
    @classmethod
    def _prompt_matches_type(cls, v: Union[str, List[ChatMessage]], info: ValidationInfo):
        prompt_type = info.data.get("type")
        if prompt_type == "text" and not isinstance(v, str):
            raise ValueError("Text prompts must be a string")
        if prompt_type == "chat" and not isinstance(v, list):
            raise ValueError("Chat prompts must be an array of messages")
        return v


class ImportedPrompt(CreatePromptInput):
    """One entry of import data; export-only fields (version, createdAt, ...) are ignored."""

    model_config = ConfigDict(extra="ignore")


class UpdatePromptLabelsInput(BaseSchema):
    """Input schema for update-prompt-labels."""

    name: PromptName = Field(..., description="Prompt name")
    version: int = Field(..., gt=0, description="Version to update")
    new_labels: List[Label] = Field(..., description="New labels to set (replaces existing labels)")


class DeletePromptInput(BaseSchema):
    """Input schema for delete-prompt."""

    name: PromptName = Field(..., description="Prompt name")
    version: Optional[int] = Field(None, gt=0, description="Specific version to delete")
    delete_all: Optional[bool] = Field(None, description="Delete all versions of the prompt")


class BatchUpdateLabelsInput(BaseSchema):
    """Input schema for batch-update-labels."""

    updates: List[UpdatePromptLabelsInput] = Field(
        ...,
        min_length=1,
        max_length=MAX_BATCH_UPDATES,
        description=f"Array of label updates to perform (max {MAX_BATCH_UPDATES})",
    )


class ExportPromptsInput(BaseSchema):
    """Input schema for export-prompts."""

    names: Optional[List[str]] = Field(
        None, description="Specific prompt names to export (exports all if not specified)"
    )
    include_all_versions: bool = Field(False, description="Export all versions or just latest")
    format: Literal["json", "jsonl"] = Field("json", description="Export format")


class ImportPromptsInput(BaseSchema):
    """Input schema for import-prompts."""

    data: str = Field(..., description="JSON or JSONL formatted prompt data to import")
    overwrite_existing: bool = Field(False, description="Overwrite existing prompts with same name")
    dry_run: bool = Field(False, description="Validate without actually importing")


InputModel = TypeVar("InputModel", bound=BaseModel)


def _field_path(loc: tuple) -> str:
    # Union members show up in loc as type tags ("str", "list[ChatMessage]")
    parts = [str(p) for p in loc if not (isinstance(p, str) and (p == "str" or "[" in p))]
    return ".".join(parts) or "input"


def to_validation_error(exc: ValidationError) -> PromptValidationError:
    """Convert the most specific pydantic error into a `PromptValidationError`."""
    error = max(exc.errors(), key=lambda e: len(e.get("loc", ())))
    message = str(error.get("msg", "invalid value"))
    if message.startswith("Value error, "):
        message = message[len("Value error, ") :]
    return PromptValidationError(_field_path(tuple(error.get("loc", ()))), message)


def parse_tool_input(model: Type[InputModel], arguments: Optional[Mapping[str, Any]]) -> InputModel:
    """Validate raw tool arguments.

    Raises:
        PromptValidationError: On the first failing field.
    """
    try:
        return model.model_validate(dict(arguments or {}))
    except ValidationError as exc:
        raise to_validation_error(exc) from exc


class ToolDefinition(BaseModel):
    """Name, description and input schema of an MCP tool."""

    name: str = Field(..., description="Unique identifier for the tool")
    description: str = Field(..., description="Human-readable description of what the tool does")
    input_schema: Type[BaseModel] = Field(..., description="Pydantic model class for input validation")

    model_config = ConfigDict(arbitrary_types_allowed=True)

    def to_dict(self) -> Dict[str, Any]:
        """Convert tool definition to dictionary format.

        Returns:
            Dictionary representation of tool definition with JSON schema
        """
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.get_input_schema_json(),
        }

    def get_input_schema_json(self) -> Dict[str, Any]:
        return self.input_schema.model_json_schema(by_alias=True)


# Tool instances
list_prompts_tool = ToolDefinition(
    name="list-prompts",
    description="List all prompts with filtering, pagination, and search",
    input_schema=ListPromptsInput,
)

get_prompt_tool = ToolDefinition(
    name="get-prompt",
    description="Get a specific prompt by name with optional version/label",
    input_schema=GetPromptInput,
)

create_prompt_tool = ToolDefinition(
    name="create-prompt",
    description="Create a new prompt or add a new version to existing prompt",
    input_schema=CreatePromptInput,
)

update_prompt_labels_tool = ToolDefinition(
    name="update-prompt-labels",
    description="Update labels for a specific prompt version",
    input_schema=UpdatePromptLabelsInput,
)

delete_prompt_tool = ToolDefinition(
    name="delete-prompt",
    description="Delete a prompt or specific version (not yet available in API)",
    input_schema=DeletePromptInput,
)

batch_update_labels_tool = ToolDefinition(
    name="batch-update-labels",
    description="Update labels for multiple prompt versions in a single operation",
    input_schema=BatchUpdateLabelsInput,
)

export_prompts_tool = ToolDefinition(
    name="export-prompts",
    description="Export prompts to JSON or JSONL format for backup/migration",
    input_schema=ExportPromptsInput,
)

import_prompts_tool = ToolDefinition(
    name="import-prompts",
    description="Import prompts from JSON or JSONL format",
    input_schema=ImportPromptsInput,
)

TOOL_DEFINITIONS: List[ToolDefinition] = [
    list_prompts_tool,
    get_prompt_tool,
    create_prompt_tool,
    update_prompt_labels_tool,
    delete_prompt_tool,
    batch_update_labels_tool,
    export_prompts_tool,
    import_prompts_tool,
]
