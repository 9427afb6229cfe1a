"""
Main Application Entry Point.

This module loads the configuration, builds the Langfuse client, the shared
cache registry and the MCP server, and serves over stdio until the client
disconnects.
"""

import asyncio
import sys

from mcp.server.stdio import stdio_server
from pydantic import ValidationError

from langfuse_prompt_mcp.cache import CacheRegistry
from langfuse_prompt_mcp.core.config import Settings
from langfuse_prompt_mcp.core.logging_config import get_logger, setup_logging
from langfuse_prompt_mcp.langfuse_api import LangfuseApiClient, LangfuseError
from langfuse_prompt_mcp.tools import build_handler_registry

from .app import build_server

logger = get_logger(__name__)


async def serve(settings: Settings) -> None:
    """
    Run the MCP server over stdio.

    The cache sweep runs for the lifetime of the server; on exit it is stopped
    and the HTTP client is closed, whether the session ended normally or not.
    """
    client = LangfuseApiClient(settings.langfuse)
    caches = CacheRegistry()
    try:
        handlers = build_handler_registry(
            client,
            caches,
            prompt_cache_ttl=settings.prompt_cache_ttl,
            list_cache_ttl=settings.list_cache_ttl,
        )
        server = build_server(handlers)
        logger.info(f"Starting Langfuse prompt MCP server (base URL {client.base_url})")
        async with stdio_server() as (read_stream, write_stream):
            await server.run(read_stream, write_stream, server.create_initialization_options())
    finally:
        logger.info("Shutting down Langfuse prompt MCP server...")
        caches.close()
        await client.aclose()


def main() -> None:
    """Console-script entry point."""
    try:
        settings = Settings()
    except ValidationError as e:
        setup_logging()
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)

    setup_logging(settings.log_level, settings.log_format)
    try:
        asyncio.run(serve(settings))
    except LangfuseError as e:
        logger.error(f"Failed to start server: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Interrupted")


if __name__ == "__main__":
    main()
