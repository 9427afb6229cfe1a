from __future__ import annotations

import pytest

from langfuse_prompt_mcp.langfuse_api import PromptValidationError
from langfuse_prompt_mcp.tools.definitions import (
    TOOL_DEFINITIONS,
    BatchUpdateLabelsInput,
    CreatePromptInput,
    ListPromptsInput,
    UpdatePromptLabelsInput,
    parse_tool_input,
)


def _create(**overrides):
    args = {"name": "greeting", "type": "text", "prompt": "Hello"}
    args.update(overrides)
    return parse_tool_input(CreatePromptInput, args)


def test_tool_definitions_have_unique_names_and_camel_case_schemas() -> None:
    names = [d.name for d in TOOL_DEFINITIONS]
    assert names == [
        "list-prompts",
        "get-prompt",
        "create-prompt",
        "update-prompt-labels",
        "delete-prompt",
        "batch-update-labels",
        "export-prompts",
        "import-prompts",
    ]
    schema = TOOL_DEFINITIONS[3].get_input_schema_json()
    assert "newLabels" in schema["properties"]
    assert set(schema["required"]) == {"name", "version", "newLabels"}


def test_valid_create_input_accepts_folder_names_and_camel_case() -> None:
    parsed = _create(name="team/support.v2", commitMessage="first", labels=["staging"], tags=["x"])
    assert parsed.commit_message == "first"
    assert parsed.labels == ["staging"]


@pytest.mark.parametrize(
    "name, constraint",
    [
        ("", "Prompt name cannot be empty"),
        ("a" * 256, "Prompt name cannot exceed 255 characters"),
        ("bad name", "Prompt name can only contain"),
    ],
)
def test_invalid_prompt_names(name: str, constraint: str) -> None:
    with pytest.raises(PromptValidationError) as exc:
        _create(name=name)
    assert exc.value.field == "name"
    assert exc.value.constraint.startswith(constraint)


@pytest.mark.parametrize("label", ["latest", "ALL", "", "has space", "x" * 51])
def test_invalid_labels(label: str) -> None:
    with pytest.raises(PromptValidationError) as exc:
        _create(labels=[label])
    assert exc.value.field == "labels.0"


def test_prompt_shape_must_match_type() -> None:
    with pytest.raises(PromptValidationError) as exc:
        _create(type="chat", prompt="text body")
    assert exc.value.field == "prompt"
    assert exc.value.constraint == "Chat prompts must be an array of messages"

    with pytest.raises(PromptValidationError):
        _create(prompt=[{"role": "user", "content": "hi"}])


def test_chat_message_roles_and_config_ranges() -> None:
    with pytest.raises(PromptValidationError) as exc:
        _create(type="chat", prompt=[{"role": "tool", "content": "x"}])
    assert exc.value.field.startswith("prompt.0")

    with pytest.raises(PromptValidationError) as exc:
        _create(config={"temperature": 3})
    assert exc.value.field == "config.temperature"

    parsed = _create(config={"temperature": 0.2, "maxTokens": 50, "custom": "kept out"})
    assert parsed.config.max_tokens == 50


def test_unknown_arguments_are_rejected() -> None:
    with pytest.raises(PromptValidationError):
        parse_tool_input(ListPromptsInput, {"pageSize": 3})


def test_list_limit_and_version_bounds() -> None:
    with pytest.raises(PromptValidationError):
        parse_tool_input(ListPromptsInput, {"limit": 101})
    with pytest.raises(PromptValidationError):
        parse_tool_input(UpdatePromptLabelsInput, {"name": "a", "version": 0, "newLabels": []})


def test_batch_size_bounds() -> None:
    update = {"name": "a", "version": 1, "newLabels": ["x"]}
    assert len(parse_tool_input(BatchUpdateLabelsInput, {"updates": [update] * 50}).updates) == 50
    with pytest.raises(PromptValidationError):
        parse_tool_input(BatchUpdateLabelsInput, {"updates": [update] * 51})
    with pytest.raises(PromptValidationError):
        parse_tool_input(BatchUpdateLabelsInput, {"updates": []})
