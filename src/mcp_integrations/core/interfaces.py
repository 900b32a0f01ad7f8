"""Base class every integration adapter implements.

An adapter owns one credential item, one request executor and a table of
tools built from its ``@tool``-decorated methods. Each tool call runs the
same linear sequence: validate, then one or more (resolve credentials ->
execute) steps, then normalize and format.
"""

import inspect
import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, ClassVar, Literal

from mcp_integrations.core.config import IntegrationConfig, load_config
from mcp_integrations.core.credentials import CredentialProvider, get_credential_provider
from mcp_integrations.core.exceptions import UnknownTool
from mcp_integrations.core.models import CredentialRef, OutboundRequest, ToolInvocationResult
from mcp_integrations.core.tools import TOOL_SPEC_ATTR, ToolSpec, validate_arguments

logger = logging.getLogger(__name__)


class ToolAdapter(ABC):
    """Abstract base for tool-exposing integration adapters.

    Implementations: JiraAdapter, ConfluenceAdapter, SlackAdapter, ZoomAdapter

    Attributes:
        provider_name: Provider identifier for logging and errors
        credential: Credential item and fields needed for every call
    """

    provider_name: ClassVar[str] = ""
    server_name: ClassVar[str] = ""
    server_version: ClassVar[str] = "0.1.0"
    credential: ClassVar[CredentialRef]
    _tools: ClassVar[dict[str, ToolSpec]] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        """Build the tool table from decorated methods, in declaration order."""
        super().__init_subclass__(**kwargs)
        tools: dict[str, ToolSpec] = {}
        for attr in vars(cls).values():
            spec = getattr(attr, TOOL_SPEC_ATTR, None)
            if spec is None:
                continue
            if spec.name in tools:
                raise TypeError(f"{cls.__name__} declares tool '{spec.name}' twice")
            _check_handler(cls, spec)
            tools[spec.name] = spec
        cls._tools = tools

    def __init__(
        self,
        config: IntegrationConfig | None = None,
        credentials: CredentialProvider | None = None,
        executor: Any = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            config: Process configuration (loaded from the environment if omitted)
            credentials: Credential provider (selected by configuration if omitted)
            executor: Request executor override (built by the adapter if omitted)
        """
        self.config = config or load_config()
        self.credentials = credentials or get_credential_provider(self.config)
        self.executor = executor or self._build_executor()

    @abstractmethod
    def _build_executor(self) -> Any:
        """Create the adapter's request executor."""

    def list_tools(self) -> list[ToolSpec]:
        """Return every supported tool, in declaration order."""
        return list(self._tools.values())

    def call_tool(self, name: str, arguments: Mapping[str, Any] | None = None) -> ToolInvocationResult:
        """Invoke a tool by name.

        Args:
            name: Tool name
            arguments: Caller arguments

        Returns:
            Tool result text blocks

        Raises:
            UnknownTool: If no tool has that name
            InvalidParams: If arguments violate the tool schema
            CredentialUnavailable: If credentials cannot be resolved
            TransportError: If an outbound call fails
        """
        spec = self._tools.get(name)
        if spec is None:
            raise UnknownTool(f"Unknown tool: {name}", tool=name, provider=self.provider_name)

        values = validate_arguments(spec, arguments)
        logger.info("Calling %s", name)
        return spec.handler(self, **values)

    def _call(
        self,
        target: str,
        params: Mapping[str, Any] | None = None,
        args: tuple[str, ...] = (),
        expect: Literal["json", "text"] = "json",
    ) -> Any:
        """Perform one outbound call with this adapter's credential."""
        request = OutboundRequest(
            target=target,
            args=args,
            params=dict(params or {}),
            credential=self.credential,
            expect=expect,
        )
        return self.executor.execute(request)


def _check_handler(cls: type, spec: ToolSpec) -> None:
    """Fail at class creation if a handler cannot accept its declared parameters."""
    signature = inspect.signature(spec.handler)
    accepts_kwargs = any(
        p.kind is inspect.Parameter.VAR_KEYWORD for p in signature.parameters.values()
    )
    missing = [
        param.keyword
        for param in spec.params
        if param.keyword not in signature.parameters and not accepts_kwargs
    ]
    if missing:
        raise TypeError(
            f"{cls.__name__}.{spec.handler.__name__} does not accept parameters: {missing}"
        )
