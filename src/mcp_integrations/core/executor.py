"""Request executors: one outbound call per ``execute``.

Two flavours share the same contract, ``execute(request) -> raw response``:

- ``HttpExecutor``: a single GET against a REST API, authenticated with a
  bearer token or HTTP Basic credentials, JSON (or text) body returned.
- ``CliExecutor``: a single invocation of a local CLI binary with a
  structured argument list (never a shell line), stdout returned.

Both resolve credentials through a ``CredentialProvider`` on every call.
There is no retry, no backoff and no connection pooling.

Example:
    executor = HttpExecutor(
        credentials=get_credential_provider(),
        auth=bearer_auth("password"),
        base_url="https://slack.com/api",
        error_check=slack_error,
    )
    payload = executor.execute(
        OutboundRequest(target="users.info", params={"user": "U123"}, credential=SLACK_TOKEN)
    )
"""

import logging
import subprocess
from collections.abc import Callable
from typing import Any

import requests
from requests.auth import AuthBase, HTTPBasicAuth

from mcp_integrations.core.config import IntegrationConfig, load_config
from mcp_integrations.core.credentials import CredentialProvider
from mcp_integrations.core.exceptions import TransportError
from mcp_integrations.core.models import CredentialSet, OutboundRequest

logger = logging.getLogger(__name__)

ErrorCheck = Callable[[Any], str | None]
AuthFactory = Callable[[CredentialSet], AuthBase]


class BearerAuth(AuthBase):
    """Attaches ``Authorization: Bearer <token>``."""

    def __init__(self, token: str) -> None:
        self.token = token

    def __call__(self, r: requests.PreparedRequest) -> requests.PreparedRequest:
        r.headers["Authorization"] = f"Bearer {self.token}"
        return r


def bearer_auth(token_field: str) -> AuthFactory:
    """Auth factory reading a bearer token from one credential field."""

    def factory(creds: CredentialSet) -> AuthBase:
        return BearerAuth(creds[token_field])

    return factory


def basic_auth(user_field: str, token_field: str) -> AuthFactory:
    """Auth factory for HTTP Basic from a user field and a token field."""

    def factory(creds: CredentialSet) -> AuthBase:
        return HTTPBasicAuth(creds[user_field], creds[token_field])

    return factory


def clamp(value: int | float, maximum: int | float) -> int | float:
    """Cap a numeric parameter at its declared maximum."""
    return min(value, maximum)


class HttpExecutor:
    """Executes one authenticated GET per request.

    Attributes:
        base_url: Fixed API base URL (when not taken from credentials)
        base_url_field: Credential field holding the instance URL
        provider_name: Provider identifier for logging and errors
    """

    def __init__(
        self,
        credentials: CredentialProvider,
        auth: AuthFactory,
        base_url: str | None = None,
        base_url_field: str | None = None,
        api_path: str = "",
        error_check: ErrorCheck | None = None,
        config: IntegrationConfig | None = None,
        provider_name: str | None = None,
    ) -> None:
        """Initialize the executor.

        Args:
            credentials: Provider used to resolve credentials for every call
            auth: Builds the requests auth object from resolved credentials
            base_url: Fixed base URL (e.g., https://slack.com/api)
            base_url_field: Credential field containing the base URL instead
            api_path: Path appended to a credential-provided base URL
            error_check: Returns an upstream reason when a 2xx payload signals failure
            config: Process configuration (timeout)
            provider_name: Provider identifier for logging and errors
        """
        if not base_url and not base_url_field:
            raise ValueError("Either base_url or base_url_field is required")
        self.credentials = credentials
        self.auth = auth
        self.base_url = base_url.rstrip("/") if base_url else None
        self.base_url_field = base_url_field
        self.api_path = api_path
        self.error_check = error_check
        self.config = config or credentials.config
        self.provider_name = provider_name

    def execute(self, request: OutboundRequest) -> Any:
        """Perform the request and return the parsed body.

        Args:
            request: Outbound request

        Returns:
            Parsed JSON payload, or the body text when ``request.expect == "text"``

        Raises:
            CredentialUnavailable: If credentials cannot be resolved
            TransportError: If the call fails or the payload signals an error
        """
        creds = self.credentials.resolve(request.credential.item, request.credential.fields)
        url = self._build_url(request.target, creds)
        params = {k: _render(v) for k, v in request.params.items()}

        logger.debug("GET %s", url)

        try:
            response = requests.get(
                url,
                params=params,
                headers={"Accept": "application/json"},
                auth=self.auth(creds),
                timeout=self.config.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise TransportError(
                f"Request to {request.target} failed: {e}",
                reason=str(e),
                provider=self.provider_name,
            ) from e

        logger.debug(
            "GET %s -> %d (%d bytes)",
            request.target,
            response.status_code,
            len(response.content),
        )

        if not response.ok:
            reason = _upstream_reason(response) or response.reason
            raise TransportError(
                f"HTTP {response.status_code}: {reason}",
                status_code=response.status_code,
                reason=reason,
                provider=self.provider_name,
                details={"target": request.target},
            )

        if request.expect == "text":
            return response.text

        try:
            payload = response.json()
        except ValueError as e:
            raise TransportError(
                f"Response from {request.target} is not valid JSON",
                status_code=response.status_code,
                provider=self.provider_name,
            ) from e

        if self.error_check:
            reason = self.error_check(payload)
            if reason:
                raise TransportError(
                    f"API error: {reason}",
                    status_code=response.status_code,
                    reason=reason,
                    provider=self.provider_name,
                    details={"target": request.target},
                )

        return payload

    def _build_url(self, target: str, creds: CredentialSet) -> str:
        if target.startswith(("http://", "https://")):
            return target
        if self.base_url:
            base = self.base_url
        else:
            base = creds[self.base_url_field or ""].rstrip("/") + self.api_path
        return f"{base}/{target.lstrip('/')}"


class CliExecutor:
    """Executes one CLI invocation per request.

    The resolved token is exported to the child process as an environment
    variable; arguments are passed as a list so nothing is re-interpreted by
    a shell.
    """

    def __init__(
        self,
        credentials: CredentialProvider,
        binary: str,
        token_env: str,
        token_field: str,
        config: IntegrationConfig | None = None,
        provider_name: str | None = None,
    ) -> None:
        self.credentials = credentials
        self.binary = binary
        self.token_env = token_env
        self.token_field = token_field
        self.config = config or credentials.config
        self.provider_name = provider_name

    def build_argv(self, request: OutboundRequest) -> list[str]:
        """Build the argument list for a request.

        Params become ``--name value`` flags in insertion order; list values
        repeat the flag, ``True`` renders a bare flag and ``False`` is omitted.
        """
        argv = [self.binary, *request.target.split(), *request.args]
        for name, value in request.params.items():
            flag = f"--{name}"
            if value is True:
                argv.append(flag)
            elif value is False:
                continue
            elif isinstance(value, (list, tuple)):
                for item in value:
                    argv.extend([flag, str(item)])
            else:
                argv.extend([flag, str(value)])
        return argv

    def execute(self, request: OutboundRequest) -> str:
        """Run the CLI and return its stripped standard output.

        Raises:
            CredentialUnavailable: If credentials cannot be resolved
            TransportError: If the binary is missing or exits non-zero
        """
        creds = self.credentials.resolve(request.credential.item, request.credential.fields)
        argv = self.build_argv(request)
        env = self.config.subprocess_env({self.token_env: creds[self.token_field]})

        logger.debug("Running %s %s", self.binary, request.target)

        try:
            completed = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                env=env,
                check=False,
            )
        except OSError as e:
            raise TransportError(
                f"Could not run {self.binary}: {e.strerror or e}",
                reason=str(e),
                provider=self.provider_name,
            ) from e

        if completed.returncode != 0:
            reason = completed.stderr.strip() or completed.stdout.strip() or None
            raise TransportError(
                f"{self.binary} {request.target} failed: {reason or f'exit status {completed.returncode}'}",
                status_code=completed.returncode,
                reason=reason,
                provider=self.provider_name,
            )

        if completed.stderr.strip():
            logger.debug("%s stderr: %s", self.binary, completed.stderr.strip())

        return completed.stdout.strip()


def _render(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


def _upstream_reason(response: requests.Response) -> str | None:
    """Extract the upstream error message from an error body, if any."""
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    for key in ("message", "error", "errorMessage"):
        if isinstance(body.get(key), str) and body[key]:
            return str(body[key])
    messages = body.get("errorMessages")
    if isinstance(messages, list) and messages:
        return "; ".join(str(m) for m in messages)
    return None
