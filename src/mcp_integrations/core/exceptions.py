"""Exception hierarchy for mcp-integrations."""


class IntegrationError(Exception):
    """Base exception for all mcp-integrations errors."""

    def __init__(self, message: str, provider: str | None = None, details: dict | None = None):
        """Initialize IntegrationError.

        Args:
            message: Error message
            provider: Provider name (e.g., 'slack', 'atlassian_jira')
            details: Additional error details
        """
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation."""
        if self.provider:
            return f"[{self.provider}] {self.message}"
        return self.message


class CredentialUnavailable(IntegrationError):
    """Secret retrieval failed or returned an empty/partial result."""

    def __init__(
        self,
        message: str,
        item: str | None = None,
        provider: str | None = None,
        details: dict | None = None,
    ):
        """Initialize CredentialUnavailable.

        Args:
            message: Error message
            item: Secret store item name (never a secret value)
            provider: Provider name
            details: Additional error details
        """
        super().__init__(message, provider, details)
        self.item = item


class TransportError(IntegrationError):
    """Outbound call failed or the upstream reported an application-level error."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        reason: str | None = None,
        provider: str | None = None,
        details: dict | None = None,
    ):
        """Initialize TransportError.

        Args:
            message: Error message
            status_code: HTTP status code or process exit code
            reason: Upstream-reported failure reason
            provider: Provider name
            details: Additional error details
        """
        super().__init__(message, provider, details)
        self.status_code = status_code
        self.reason = reason


class UnrecognizedFormat(IntegrationError):
    """Response body could not be parsed into the expected structure.

    Recoverable: callers report a degraded result instead of failing.
    """


class InvalidParams(IntegrationError):
    """Tool arguments violate the declared schema."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        provider: str | None = None,
        details: dict | None = None,
    ):
        """Initialize InvalidParams.

        Args:
            message: Error message
            field: Parameter that failed validation
            provider: Provider name
            details: Additional error details
        """
        super().__init__(message, provider, details)
        self.field = field


class UnknownTool(IntegrationError):
    """No tool is registered under the requested name."""

    def __init__(
        self,
        message: str,
        tool: str | None = None,
        provider: str | None = None,
        details: dict | None = None,
    ):
        """Initialize UnknownTool.

        Args:
            message: Error message
            tool: Requested tool name
            provider: Provider name
            details: Additional error details
        """
        super().__init__(message, provider, details)
        self.tool = tool
