"""Prompt-management tools: input definitions, templating and handlers."""

from .definitions import TOOL_DEFINITIONS, ToolDefinition, parse_tool_input
from .handlers import (
    PROMPTS_CACHE,
    PROMPTS_LIST_CACHE,
    GetPromptHandler,
    ListPromptsHandler,
    ToolHandler,
    ToolHandlerRegistry,
    ToolOutput,
    build_handler_registry,
)
from .templating import compile_prompt, extract_variables

__all__ = [
    "PROMPTS_CACHE",
    "PROMPTS_LIST_CACHE",
    "TOOL_DEFINITIONS",
    "GetPromptHandler",
    "ListPromptsHandler",
    "ToolDefinition",
    "ToolHandler",
    "ToolHandlerRegistry",
    "ToolOutput",
    "build_handler_registry",
    "compile_prompt",
    "extract_variables",
    "parse_tool_input",
]
