"""Tool declarations: parameter schemas, registration and argument validation.

A tool is declared by decorating an adapter method with ``@tool``. The schema
and the handler live in one place, so a declared tool without a handler (or
the reverse) cannot exist.

Example:
    class SlackAdapter(ToolAdapter):
        @tool(
            "slack_get_user_info",
            "Get information about a specific user",
            params=[ToolParam(name="user", type="string", required=True, description="User ID")],
        )
        def get_user_info(self, user: str) -> ToolInvocationResult:
            ...
"""

import math
from collections.abc import Callable, Mapping
from typing import Any, Literal

from pydantic import BaseModel, Field

from mcp_integrations.core.exceptions import InvalidParams
from mcp_integrations.core.executor import clamp

ParamType = Literal["string", "number", "boolean", "object"]

TOOL_SPEC_ATTR = "__tool_spec__"


class ToolParam(BaseModel):
    """One declared tool parameter."""

    name: str = Field(description="Parameter name as seen by callers")
    type: ParamType = Field(description="Declared JSON type")
    description: str = Field(default="", description="Human description")
    required: bool = Field(default=False, description="Whether the caller must supply it")
    default: Any = Field(default=None, description="Value applied when omitted")
    minimum: int | float | None = Field(default=None, description="Smallest accepted value")
    maximum: int | float | None = Field(
        default=None, description="Ceiling; larger values are clamped to it"
    )
    dest: str | None = Field(default=None, description="Handler keyword (defaults to name)")

    class Config:
        """Pydantic configuration."""

        frozen = True

    @property
    def keyword(self) -> str:
        """Keyword argument the handler receives this parameter under."""
        return self.dest or self.name

    def schema_entry(self) -> dict[str, Any]:
        """JSON schema fragment for this parameter."""
        entry: dict[str, Any] = {"type": self.type, "description": self.description}
        if self.default is not None:
            entry["default"] = self.default
        if self.minimum is not None:
            entry["minimum"] = self.minimum
        if self.maximum is not None:
            entry["maximum"] = self.maximum
        return entry


class ToolSpec(BaseModel):
    """A tool: name, description, parameters and the handler implementing it."""

    name: str
    description: str
    params: tuple[ToolParam, ...] = ()
    handler: Callable[..., Any] = Field(exclude=True)

    class Config:
        """Pydantic configuration."""

        frozen = True

    def input_schema(self) -> dict[str, Any]:
        """JSON schema describing the tool's arguments."""
        schema: dict[str, Any] = {
            "type": "object",
            "properties": {param.name: param.schema_entry() for param in self.params},
        }
        required = [param.name for param in self.params if param.required]
        if required:
            schema["required"] = required
        return schema

    def describe(self) -> dict[str, Any]:
        """Tool descriptor as returned by discovery."""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema(),
        }


def tool(
    name: str,
    description: str,
    params: list[ToolParam] | tuple[ToolParam, ...] = (),
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Decorator declaring an adapter method as a tool.

    Args:
        name: Tool name (e.g., 'jira_get_issue')
        description: Human description shown in discovery
        params: Declared parameters, in schema order

    Returns:
        Decorator function
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        setattr(
            func,
            TOOL_SPEC_ATTR,
            ToolSpec(name=name, description=description, params=tuple(params), handler=func),
        )
        return func

    return decorator


def validate_arguments(spec: ToolSpec, arguments: Mapping[str, Any] | None) -> dict[str, Any]:
    """Validate caller arguments against a tool's declared parameters.

    Required parameters must be present, declared defaults are applied,
    values are checked against their declared type, and numbers with a
    declared maximum are clamped to it. Undeclared arguments are dropped.

    Args:
        spec: Tool specification
        arguments: Caller-supplied arguments

    Returns:
        Handler keyword arguments

    Raises:
        InvalidParams: If a required parameter is missing or a value is invalid
    """
    arguments = arguments or {}
    values: dict[str, Any] = {}

    for param in spec.params:
        value = arguments.get(param.name)
        if value is None or (param.type == "string" and value == "" and param.required):
            if param.required:
                raise InvalidParams(
                    f"Missing required parameter: {param.name}",
                    field=param.name,
                )
            values[param.keyword] = param.default
            continue

        value = _coerce(param, value)

        if param.minimum is not None and value < param.minimum:
            raise InvalidParams(
                f"Parameter {param.name} must be at least {param.minimum}",
                field=param.name,
            )
        if param.maximum is not None:
            value = clamp(value, param.maximum)

        values[param.keyword] = value

    return values


def _coerce(param: ToolParam, value: Any) -> Any:
    if param.type == "number":
        if isinstance(value, bool):
            raise _type_error(param, value)
        if isinstance(value, int):
            return value
        if isinstance(value, float):
            number = value
        elif isinstance(value, str):
            try:
                number = float(value)
            except ValueError:
                raise _type_error(param, value) from None
        else:
            raise _type_error(param, value)
        if not math.isfinite(number):
            raise InvalidParams(
                f"Parameter {param.name} must be a finite number, got {value!r}",
                field=param.name,
            )
        if isinstance(value, float):
            return value
        return int(number) if number.is_integer() else number

    if param.type == "boolean":
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.lower() in ("true", "false"):
            return value.lower() == "true"
        raise _type_error(param, value)

    if param.type == "string":
        if isinstance(value, str):
            return value
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        raise _type_error(param, value)

    if not isinstance(value, Mapping):
        raise _type_error(param, value)
    return dict(value)


def _type_error(param: ToolParam, value: Any) -> InvalidParams:
    return InvalidParams(
        f"Parameter {param.name} must be a {param.type}, got {type(value).__name__}",
        field=param.name,
    )


def match_record(query: str, primary: str, secondary: str | None = None) -> bool:
    """Case-insensitive substring match against primary and optional secondary text.

    Args:
        query: Search term
        primary: Primary field (e.g., title or topic)
        secondary: Text of a successfully fetched secondary artifact, if any

    Returns:
        True if either text contains the query
    """
    needle = query.lower()
    if needle in primary.lower():
        return True
    return secondary is not None and needle in secondary.lower()
