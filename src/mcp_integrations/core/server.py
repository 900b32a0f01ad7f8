"""MCP transport bridge: exposes a ToolAdapter over the Model Context Protocol.

Example:
    from mcp_integrations.core.registry import get_adapter
    from mcp_integrations.core.server import run_stdio

    run_stdio(get_adapter("slack"))
"""

import asyncio
import logging
from typing import Any

from mcp import types
from mcp.server.lowlevel import NotificationOptions, Server
from mcp.server.models import InitializationOptions
from mcp.server.stdio import stdio_server
from mcp.shared.exceptions import McpError

from mcp_integrations.core.exceptions import (
    CredentialUnavailable,
    IntegrationError,
    InvalidParams,
    TransportError,
    UnknownTool,
)
from mcp_integrations.core.interfaces import ToolAdapter

logger = logging.getLogger(__name__)


def to_error_data(exc: Exception) -> types.ErrorData:
    """Map an exception to a typed MCP error.

    Args:
        exc: Exception raised by a tool invocation

    Returns:
        ErrorData with the protocol error code and a descriptive message
    """
    if isinstance(exc, InvalidParams):
        return types.ErrorData(code=types.INVALID_PARAMS, message=exc.message)
    if isinstance(exc, UnknownTool):
        return types.ErrorData(code=types.METHOD_NOT_FOUND, message=exc.message)
    if isinstance(exc, CredentialUnavailable):
        return types.ErrorData(
            code=types.INTERNAL_ERROR,
            message=f"Failed to retrieve credentials: {exc.message}",
        )
    if isinstance(exc, TransportError):
        return types.ErrorData(code=types.INTERNAL_ERROR, message=str(exc))
    if isinstance(exc, IntegrationError):
        return types.ErrorData(code=types.INTERNAL_ERROR, message=str(exc))
    return types.ErrorData(code=types.INTERNAL_ERROR, message=f"Tool execution failed: {exc}")


def to_mcp_tools(adapter: ToolAdapter) -> list[types.Tool]:
    """Tool descriptors for discovery."""
    return [
        types.Tool(name=spec.name, description=spec.description, inputSchema=spec.input_schema())
        for spec in adapter.list_tools()
    ]


def invoke(adapter: ToolAdapter, name: str, arguments: dict[str, Any] | None) -> list[types.TextContent]:
    """Invoke a tool and convert its result, raising McpError on failure."""
    try:
        result = adapter.call_tool(name, arguments)
    except Exception as e:
        error = to_error_data(e)
        if not isinstance(e, (InvalidParams, UnknownTool)):
            logger.error("Tool %s failed: %s", name, error.message)
        raise McpError(error) from e
    return [types.TextContent(type="text", text=block.text) for block in result.content]


def build_server(adapter: ToolAdapter) -> Server:
    """Build a low-level MCP server bound to one adapter."""
    server: Server = Server(adapter.server_name)

    @server.list_tools()
    async def handle_list_tools() -> list[types.Tool]:
        return to_mcp_tools(adapter)

    # McpError must reach the session as a JSON-RPC error carrying its code
    async def handle_call_tool(request: types.CallToolRequest) -> types.ServerResult:
        # Handlers are synchronous; each invocation completes before the next is read.
        content = invoke(adapter, request.params.name, request.params.arguments)
        return types.ServerResult(types.CallToolResult(content=content, isError=False))

    server.request_handlers[types.CallToolRequest] = handle_call_tool

    return server


async def serve_stdio(adapter: ToolAdapter) -> None:
    """Serve an adapter over stdio until the client disconnects."""
    server = build_server(adapter)
    async with stdio_server() as (read_stream, write_stream):
        logger.info("%s running on stdio", adapter.server_name)
        await server.run(
            read_stream,
            write_stream,
            InitializationOptions(
                server_name=adapter.server_name,
                server_version=adapter.server_version,
                capabilities=server.get_capabilities(
                    notification_options=NotificationOptions(),
                    experimental_capabilities={},
                ),
            ),
        )


def run_stdio(adapter: ToolAdapter) -> None:
    """Blocking entry point for ``serve_stdio``."""
    asyncio.run(serve_stdio(adapter))
