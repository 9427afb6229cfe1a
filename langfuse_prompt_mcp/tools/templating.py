"""Mustache-style ``{{variable}}`` helpers for prompt templates."""

from __future__ import annotations

import re
from typing import Any, Dict, List, Mapping, Union

VARIABLE_PATTERN = re.compile(r"\{\{([^}]+)\}\}")

PromptContent = Union[str, List[Dict[str, Any]]]


def _texts(prompt: PromptContent) -> List[str]:
    if isinstance(prompt, str):
        return [prompt]
    return [m["content"] for m in prompt if isinstance(m, Mapping) and isinstance(m.get("content"), str)]


def extract_variables(prompt: PromptContent) -> List[str]:
    """Return unique variable names, in first-seen order."""
    seen: Dict[str, None] = {}
    for text in _texts(prompt):
        for match in VARIABLE_PATTERN.finditer(text):
            seen.setdefault(match.group(1).strip(), None)
    return list(seen)


def replace_variables(text: str, variables: Mapping[str, str]) -> str:
    """Substitute known variables; unknown placeholders are kept verbatim."""

    def _sub(match: "re.Match[str]") -> str:
        name = match.group(1).strip()
        return str(variables[name]) if name in variables else match.group(0)

    return VARIABLE_PATTERN.sub(_sub, text)


def compile_prompt(prompt: PromptContent, variables: Mapping[str, str]) -> PromptContent:
    """Compile a text prompt or every message of a chat prompt."""
    if isinstance(prompt, str):
        return replace_variables(prompt, variables)
    compiled: List[Dict[str, Any]] = []
    for message in prompt:
        content = message.get("content")
        if isinstance(content, str):
            message = {**message, "content": replace_variables(content, variables)}
        compiled.append(dict(message))
    return compiled
