"""
Langfuse Prompt MCP Server Package.

This package contains the MCP server that exposes Langfuse prompt management
over the stdio transport.

Modules:
    app: Server assembly (tools and prompts capabilities).
    main: Process entry point used by the ``langfuse-prompt-mcp`` script.
"""
