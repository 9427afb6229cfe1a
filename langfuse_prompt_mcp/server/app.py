"""
MCP Server Assembly.

This module wires the tool handlers into an `mcp` low-level `Server`:

- tools capability: every prompt-management tool, dispatched through a
  `ToolHandlerRegistry`
- prompts capability: Langfuse prompts exposed as MCP prompts, fetched through
  the same handlers (and therefore the same caches) as the tools
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Type, TypeVar

import mcp.types as types
from mcp.server.lowlevel import Server

from langfuse_prompt_mcp import __version__
from langfuse_prompt_mcp.core.logging_config import get_logger
from langfuse_prompt_mcp.langfuse_api import PromptValidationError
from langfuse_prompt_mcp.tools import (
    GetPromptHandler,
    ListPromptsHandler,
    ToolHandler,
    ToolHandlerRegistry,
    compile_prompt,
    parse_tool_input,
)
from langfuse_prompt_mcp.tools.definitions import GetPromptInput, ListPromptsInput

logger = get_logger(__name__)

SERVER_NAME = "langfuse-prompt-mcp"


class ToolCallError(Exception):
    """Raised inside the call-tool handler so the SDK marks the result ``isError``."""


def to_prompt_messages(prompt: Any) -> List[types.PromptMessage]:
    """Map a compiled Langfuse prompt onto MCP prompt messages.

    MCP prompts only know ``user`` and ``assistant``; system messages are sent
    as user messages.
    """
    if isinstance(prompt, str):
        return [types.PromptMessage(role="user", content=types.TextContent(type="text", text=prompt))]
    messages: List[types.PromptMessage] = []
    for message in prompt:
        role = "assistant" if message.get("role") == "assistant" else "user"
        text = str(message.get("content", ""))
        messages.append(types.PromptMessage(role=role, content=types.TextContent(type="text", text=text)))
    return messages


HandlerT = TypeVar("HandlerT", bound=ToolHandler[Any])


def require_handler(handlers: ToolHandlerRegistry, name: str, handler_type: Type[HandlerT]) -> HandlerT:
    """Look up a handler the prompts capability depends on.

    Raises:
        LookupError: When ``name`` is missing or not a ``handler_type``.
    """
    handler = handlers.get(name)
    if not isinstance(handler, handler_type):
        raise LookupError(f"Tool handler '{name}' must be registered as {handler_type.__name__}")
    return handler


def build_server(handlers: ToolHandlerRegistry) -> Server:
    """Create the MCP server for an already assembled handler registry.

    Raises:
        LookupError: When the registry lacks the list-prompts or get-prompt handler.
    """
    list_handler = require_handler(handlers, "list-prompts", ListPromptsHandler)
    get_handler = require_handler(handlers, "get-prompt", GetPromptHandler)
    server: Server = Server(SERVER_NAME, version=__version__)

    @server.list_tools()
    async def list_tools() -> List[types.Tool]:
        return [
            types.Tool(
                name=definition.name,
                description=definition.description,
                inputSchema=definition.get_input_schema_json(),
            )
            for definition in handlers.definitions()
        ]

    @server.call_tool()
    async def call_tool(name: str, arguments: Optional[Dict[str, Any]]) -> List[types.TextContent]:
        logger.debug(f"Tool call: {name}")
        output = await handlers.call(name, arguments)
        if output.is_error:
            raise ToolCallError(output.text)
        return [types.TextContent(type="text", text=output.text)]

    @server.list_prompts()
    async def list_prompts() -> List[types.Prompt]:
        page, _ = await list_handler.fetch(ListPromptsInput())
        return [
            types.Prompt(
                name=item.name,
                description=f"Langfuse prompt: {item.name}" + (f" (v{item.latest})" if item.latest else ""),
                arguments=[],
            )
            for item in page.data
        ]

    @server.get_prompt()
    async def get_prompt(name: str, arguments: Optional[Dict[str, str]]) -> types.GetPromptResult:
        try:
            input_data = parse_tool_input(GetPromptInput, {"name": name, "arguments": arguments})
        except PromptValidationError as e:
            raise ValueError(str(e)) from e
        prompt, cached = await get_handler.fetch(input_data)
        compiled = compile_prompt(prompt.prompt, arguments or {})
        logger.debug(f"Prompt '{name}' v{prompt.version} served (cached={cached})")
        return types.GetPromptResult(
            description=prompt.commit_message or f"Langfuse prompt: {prompt.name} (v{prompt.version})",
            messages=to_prompt_messages(compiled),
        )

    return server
