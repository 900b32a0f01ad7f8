"""Credential resolution from an external secret store.

Credentials are resolved fresh for every outbound call and never cached:
a ``CredentialSet`` lives only as long as the request that needed it.

Backends:
1. 1Password CLI (``op item get <item> --field <field> --reveal``), the default
2. System keyring (via keyring library), service = item, username = field

Example:
    from mcp_integrations.core.credentials import get_credential_provider

    provider = get_credential_provider()
    creds = provider.resolve("Slack API Token", ["password"])
    token = creds["password"]
"""

import logging
import subprocess
from abc import ABC, abstractmethod
from collections.abc import Sequence

import keyring
import keyring.errors

from mcp_integrations.core.config import IntegrationConfig, load_config
from mcp_integrations.core.exceptions import CredentialUnavailable
from mcp_integrations.core.models import CredentialSet

logger = logging.getLogger(__name__)


class CredentialProvider(ABC):
    """Resolves a named credential item into its field values."""

    def __init__(self, config: IntegrationConfig | None = None) -> None:
        self.config = config or load_config()

    def resolve(self, credential_name: str, field_names: Sequence[str]) -> CredentialSet:
        """Resolve the requested fields of a credential item.

        Args:
            credential_name: Secret store item name
            field_names: Ordered field names to read

        Returns:
            CredentialSet with one value per requested field

        Raises:
            CredentialUnavailable: If retrieval fails or yields an empty/partial result
        """
        logger.debug("Resolving credential '%s' fields %s", credential_name, list(field_names))

        values = self._read_fields(credential_name, field_names)

        if len(values) != len(field_names):
            raise CredentialUnavailable(
                f"Expected {len(field_names)} fields from '{credential_name}', got {len(values)}",
                item=credential_name,
            )

        empty = [field for field, value in zip(field_names, values) if not value]
        if empty:
            raise CredentialUnavailable(
                f"Credential '{credential_name}' returned no value for: {', '.join(empty)}",
                item=credential_name,
                details={"fields": empty},
            )

        return CredentialSet(credential_name, dict(zip(field_names, values)))

    def _read_fields(self, credential_name: str, field_names: Sequence[str]) -> list[str | None]:
        """Read all requested fields, in order."""
        return [self._read_field(credential_name, field) for field in field_names]

    @abstractmethod
    def _read_field(self, credential_name: str, field: str) -> str | None:
        """Read one field; return None or an empty string when absent."""


class OnePasswordProvider(CredentialProvider):
    """Reads fields through the 1Password CLI, one subprocess per field."""

    def _read_field(self, credential_name: str, field: str) -> str | None:
        argv = [self.config.op_binary, "item", "get", credential_name, "--field", field, "--reveal"]
        try:
            completed = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                env=self.config.subprocess_env(),
                check=False,
            )
        except OSError as e:
            raise CredentialUnavailable(
                f"Secret store unavailable: {e.strerror or e}",
                item=credential_name,
            ) from e

        if completed.returncode != 0:
            reason = completed.stderr.strip() or f"exit status {completed.returncode}"
            raise CredentialUnavailable(
                f"Failed to read '{field}' from '{credential_name}': {reason}",
                item=credential_name,
                details={"returncode": completed.returncode},
            )

        return completed.stdout.strip()


class KeyringProvider(CredentialProvider):
    """Reads fields from the system keyring."""

    def _read_field(self, credential_name: str, field: str) -> str | None:
        try:
            value = keyring.get_password(credential_name, field)
        except keyring.errors.KeyringError as e:
            raise CredentialUnavailable(
                f"Keyring error for '{credential_name}': {e}",
                item=credential_name,
            ) from e
        return value.strip() if value else None


_PROVIDERS: dict[str, type[CredentialProvider]] = {
    "op": OnePasswordProvider,
    "keyring": KeyringProvider,
}


def get_credential_provider(config: IntegrationConfig | None = None) -> CredentialProvider:
    """Get the credential provider selected by configuration.

    Args:
        config: Configuration (loaded from the environment if omitted)

    Returns:
        CredentialProvider instance
    """
    config = config or load_config()
    return _PROVIDERS[config.secrets_backend](config)
