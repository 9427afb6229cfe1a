"""Langfuse Prompt MCP.

This package exposes the Langfuse prompt-management API to MCP (Model Context
Protocol) clients as a set of tools, plus the standard MCP prompts capability.

High-level architecture
-----------------------

- ``langfuse_prompt_mcp.langfuse_api``:

  - ``LangfuseApiClient``: authenticated, timeout-bounded, retrying access to
    the Langfuse public REST API (``/api/public/v2``).
  - A small error taxonomy (API, validation, authentication, rate limit) and
    ``ApiResult`` so callers branch on a tagged failure instead of catching
    ad hoc exceptions.

- ``langfuse_prompt_mcp.cache``:

  - ``TTLCache``: per-entry expiry with lazy eviction and pattern invalidation.
  - ``CacheRegistry``: named caches shared across tool handlers, with a
    background sweep of expired entries.

- ``langfuse_prompt_mcp.tools``: input schemas, templating helpers and the tool
  handlers that wire cache reads, writes and invalidation around client calls.

- ``langfuse_prompt_mcp.server``: MCP server assembly and the stdio entry point.

Typical workflow
----------------

1. A read tool derives a cache key and consults its named cache.
2. On a miss it calls the client, stores the result with a TTL and returns it.
3. A mutating tool calls the client, then invalidates affected cache entries
   by name (pattern) so later reads go back to Langfuse.
"""

__version__ = "2.0.0"
