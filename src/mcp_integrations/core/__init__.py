"""Core adapter machinery for mcp-integrations."""

from mcp_integrations.core.exceptions import (
    CredentialUnavailable,
    IntegrationError,
    InvalidParams,
    TransportError,
    UnknownTool,
    UnrecognizedFormat,
)
from mcp_integrations.core.interfaces import ToolAdapter
from mcp_integrations.core.models import (
    Channel,
    CredentialRef,
    CredentialSet,
    Issue,
    Meeting,
    MeetingSummary,
    Message,
    OutboundRequest,
    Page,
    RecordKind,
    Space,
    ToolInvocationResult,
    User,
)
from mcp_integrations.core.normalize import normalize
from mcp_integrations.core.registry import get_adapter, list_adapters, register_adapter
from mcp_integrations.core.tools import ToolParam, ToolSpec, tool

__all__ = [
    "Channel",
    "CredentialRef",
    "CredentialSet",
    "Issue",
    "Meeting",
    "MeetingSummary",
    "Message",
    "OutboundRequest",
    "Page",
    "RecordKind",
    "Space",
    "ToolInvocationResult",
    "User",
    "ToolAdapter",
    "ToolParam",
    "ToolSpec",
    "tool",
    "normalize",
    "get_adapter",
    "list_adapters",
    "register_adapter",
    "IntegrationError",
    "CredentialUnavailable",
    "TransportError",
    "UnrecognizedFormat",
    "InvalidParams",
    "UnknownTool",
]
