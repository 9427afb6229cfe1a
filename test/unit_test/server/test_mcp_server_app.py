from __future__ import annotations

import httpx
import mcp.types as types
import pytest

from langfuse_prompt_mcp.cache import CacheRegistry
from langfuse_prompt_mcp.langfuse_api import LangfuseApiClient, LangfuseConfig
from langfuse_prompt_mcp.server.app import build_server, to_prompt_messages
from langfuse_prompt_mcp.tools import ToolHandlerRegistry, build_handler_registry

CHAT_PROMPT = {
    "name": "assistant",
    "version": 2,
    "type": "chat",
    "prompt": [
        {"role": "system", "content": "You help {{user}}"},
        {"role": "assistant", "content": "Hi {{user}}"},
    ],
    "labels": ["production"],
    "tags": [],
}


def _handler(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/api/public/v2/prompts":
        return httpx.Response(
            200,
            json={
                "data": [{"name": "assistant", "versions": [1, 2]}],
                "meta": {"page": 1, "limit": 20, "totalPages": 1, "totalItems": 1},
            },
        )
    if request.url.path == "/api/public/v2/prompts/assistant":
        return httpx.Response(200, json=CHAT_PROMPT)
    return httpx.Response(404, json={"error": "Prompt not found"})


@pytest.fixture
def server(fake_clock):
    http = httpx.AsyncClient(transport=httpx.MockTransport(_handler))
    config = LangfuseConfig(public_key="pk", secret_key="sk", base_url="http://mock", max_retries=0)
    client = LangfuseApiClient(config, client=http)
    return build_server(build_handler_registry(client, CacheRegistry(clock=fake_clock, autostart=False)))


def test_text_prompt_becomes_one_user_message() -> None:
    messages = to_prompt_messages("Hello")
    assert len(messages) == 1
    assert messages[0].role == "user"
    assert messages[0].content.text == "Hello"


def test_system_messages_are_sent_as_user() -> None:
    messages = to_prompt_messages([{"role": "system", "content": "a"}, {"role": "assistant", "content": "b"}])
    assert [m.role for m in messages] == ["user", "assistant"]


@pytest.mark.asyncio
async def test_list_tools_exposes_every_tool(server) -> None:
    result = await server.request_handlers[types.ListToolsRequest](types.ListToolsRequest(method="tools/list"))
    tools = result.root.tools
    assert len(tools) == 8
    get_prompt = next(t for t in tools if t.name == "get-prompt")
    assert "name" in get_prompt.inputSchema["properties"]


@pytest.mark.asyncio
async def test_call_tool_returns_json_text(server) -> None:
    request = types.CallToolRequest(
        method="tools/call",
        params=types.CallToolRequestParams(name="get-prompt", arguments={"name": "assistant"}),
    )
    result = await server.request_handlers[types.CallToolRequest](request)
    assert result.root.isError is False
    assert '"version": 2' in result.root.content[0].text


@pytest.mark.asyncio
async def test_failed_tool_call_is_marked_as_error(server) -> None:
    request = types.CallToolRequest(
        method="tools/call",
        params=types.CallToolRequestParams(name="delete-prompt", arguments={"name": "assistant"}),
    )
    result = await server.request_handlers[types.CallToolRequest](request)
    assert result.root.isError is True
    assert "Delete operation not yet supported" in result.root.content[0].text


@pytest.mark.asyncio
async def test_list_prompts_capability(server) -> None:
    result = await server.request_handlers[types.ListPromptsRequest](types.ListPromptsRequest(method="prompts/list"))
    prompts = result.root.prompts
    assert [p.name for p in prompts] == ["assistant"]
    assert prompts[0].arguments == []


@pytest.mark.asyncio
async def test_get_prompt_capability_compiles_and_maps_roles(server) -> None:
    request = types.GetPromptRequest(
        method="prompts/get",
        params=types.GetPromptRequestParams(name="assistant", arguments={"user": "Ada"}),
    )
    result = await server.request_handlers[types.GetPromptRequest](request)
    messages = result.root.messages
    assert [m.role for m in messages] == ["user", "assistant"]
    assert messages[0].content.text == "You help Ada"
    assert messages[1].content.text == "Hi Ada"


def test_build_server_requires_prompt_handlers() -> None:
    with pytest.raises(LookupError, match="list-prompts"):
        build_server(ToolHandlerRegistry())
