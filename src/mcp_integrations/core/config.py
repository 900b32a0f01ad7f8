"""Process configuration for adapters and their executors.

Values are resolved in the following order:
1. Explicit overrides passed to ``load_config``
2. Environment variables (MCP_INTEGRATIONS_*)
3. Built-in defaults

Example:
    from mcp_integrations.core.config import load_config

    config = load_config(secrets_backend="keyring")
    env = config.subprocess_env()
"""

import logging
import os
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

ENV_PREFIX = "MCP_INTEGRATIONS_"

# Binary search directories appended to PATH for every subprocess
DEFAULT_EXTRA_PATH = ("/usr/local/bin", "/opt/homebrew/bin")


class IntegrationConfig(BaseModel):
    """Explicit configuration handed to credential providers and executors."""

    extra_path: tuple[str, ...] = Field(
        default=DEFAULT_EXTRA_PATH, description="Directories appended to PATH"
    )
    secrets_backend: Literal["op", "keyring"] = Field(
        default="op", description="Secret store used to resolve credentials"
    )
    op_binary: str = Field(default="op", description="1Password CLI executable")
    jira_binary: str = Field(default="jira", description="Jira CLI executable")
    timeout: float | None = Field(
        default=None, description="HTTP timeout in seconds (None = library default)"
    )
    log_level: str = Field(default="WARNING", description="Logging level for the CLI")

    class Config:
        """Pydantic configuration."""

        frozen = True

    @field_validator("extra_path", mode="before")
    @classmethod
    def _split_path(cls, value: Any) -> Any:
        if isinstance(value, str):
            return tuple(part for part in value.split(os.pathsep) if part)
        return value

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()

    def subprocess_env(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        """Build the environment for a subprocess.

        Args:
            extra: Additional variables to export (e.g., a CLI token)

        Returns:
            Copy of the current environment with PATH augmented
        """
        env = dict(os.environ)
        path = [env["PATH"]] if env.get("PATH") else []
        env["PATH"] = os.pathsep.join([*path, *self.extra_path])
        if extra:
            env.update(extra)
        return env


def load_config(**overrides: Any) -> IntegrationConfig:
    """Load configuration from overrides and environment variables.

    Args:
        **overrides: Explicit field values (take precedence over environment)

    Returns:
        IntegrationConfig instance
    """
    values: dict[str, Any] = {}
    for name in IntegrationConfig.model_fields:
        env_value = os.environ.get(f"{ENV_PREFIX}{name.upper()}")
        if env_value:
            values[name] = env_value

    values.update({k: v for k, v in overrides.items() if v is not None})
    logger.debug("Loaded configuration keys: %s", sorted(values))
    return IntegrationConfig(**values)
