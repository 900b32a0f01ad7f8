"""Adapter registry for discovery and instantiation by name."""

from typing import Any, TypeVar

from mcp_integrations.core.exceptions import IntegrationError
from mcp_integrations.core.interfaces import ToolAdapter

T = TypeVar("T", bound=type[ToolAdapter])

_adapter_registry: dict[str, type[ToolAdapter]] = {}


def register_adapter(name: str) -> Any:
    """Decorator to register an adapter implementation.

    Args:
        name: Adapter name (e.g., 'jira', 'slack')

    Returns:
        Decorator function

    Example:
        @register_adapter("slack")
        class SlackAdapter(ToolAdapter):
            ...
    """

    def decorator(cls: T) -> T:
        _adapter_registry[name] = cls
        return cls

    return decorator


def get_adapter(name: str, **kwargs: Any) -> ToolAdapter:
    """Get an adapter instance.

    Args:
        name: Adapter name (e.g., 'zoom')
        **kwargs: Arguments passed to the adapter constructor

    Returns:
        ToolAdapter instance

    Raises:
        IntegrationError: If no adapter is registered under that name
    """
    # Import adapters to trigger registration
    _import_adapters()

    if name not in _adapter_registry:
        available = sorted(_adapter_registry)
        raise IntegrationError(
            f"Adapter '{name}' not found. Available: {available}",
            provider=name,
        )

    return _adapter_registry[name](**kwargs)


def list_adapters() -> list[str]:
    """List all registered adapter names."""
    _import_adapters()
    return sorted(_adapter_registry)


def _import_adapters() -> None:
    """Import all adapter modules to trigger registration."""
    # These imports register adapters via decorators
    import mcp_integrations.atlassian  # noqa: F401
    import mcp_integrations.slack  # noqa: F401
    import mcp_integrations.zoom  # noqa: F401
