"""
mcp-integrations: MCP tool servers for workplace systems.

Each adapter exposes a fixed set of tools over the Model Context Protocol
and translates tool calls into requests against one external system:
Jira (through the Jira CLI), Confluence, Slack and Zoom (through their REST
APIs). Credentials are read from a secret store for every call.

Example Usage:
    from mcp_integrations import get_adapter

    slack = get_adapter("slack")
    for spec in slack.list_tools():
        print(spec.name)

    result = slack.call_tool("slack_get_user_info", {"user": "@jane"})
    print(result.text)
"""

from mcp_integrations.core.exceptions import (
    CredentialUnavailable,
    IntegrationError,
    InvalidParams,
    TransportError,
    UnknownTool,
    UnrecognizedFormat,
)
from mcp_integrations.core.interfaces import ToolAdapter
from mcp_integrations.core.models import RecordKind, ToolInvocationResult
from mcp_integrations.core.registry import get_adapter, list_adapters, register_adapter

__version__ = "0.1.0"

__all__ = [
    # Adapters
    "ToolAdapter",
    "ToolInvocationResult",
    "RecordKind",
    # Registry
    "get_adapter",
    "list_adapters",
    "register_adapter",
    # Exceptions
    "IntegrationError",
    "CredentialUnavailable",
    "TransportError",
    "UnrecognizedFormat",
    "InvalidParams",
    "UnknownTool",
]
