from __future__ import annotations

from langfuse_prompt_mcp.tools.templating import compile_prompt, extract_variables, replace_variables


def test_extract_variables_is_unique_trimmed_and_ordered() -> None:
    text = "Hi {{ name }}, welcome to {{place}}. Bye {{name}}!"
    assert extract_variables(text) == ["name", "place"]


def test_extract_variables_from_chat_messages() -> None:
    chat = [
        {"role": "system", "content": "You help {{user}}"},
        {"role": "user", "content": "About {{topic}} for {{user}}"},
        {"role": "assistant"},
    ]
    assert extract_variables(chat) == ["user", "topic"]


def test_replace_variables_keeps_unknown_placeholders() -> None:
    assert replace_variables("{{a}} and {{ b }}", {"a": "1"}) == "1 and {{ b }}"


def test_compile_prompt_preserves_chat_structure() -> None:
    chat = [{"role": "system", "content": "Hello {{name}}"}, {"role": "user", "content": "plain"}]
    compiled = compile_prompt(chat, {"name": "Ada"})

    assert compiled == [{"role": "system", "content": "Hello Ada"}, {"role": "user", "content": "plain"}]
    # Source messages are not mutated
    assert chat[0]["content"] == "Hello {{name}}"
    assert compile_prompt("Hey {{name}}", {"name": "Bob"}) == "Hey Bob"
