"""Confluence Cloud adapter (REST API v2, HTTP Basic auth).

The instance URL, username and API token all come from one credential item;
requests go to ``<base url>/wiki/api/v2``.
"""

import logging
from datetime import datetime
from typing import Any

from mcp_integrations.core.exceptions import InvalidParams
from mcp_integrations.core.executor import HttpExecutor, basic_auth
from mcp_integrations.core.interfaces import ToolAdapter
from mcp_integrations.core.models import CredentialRef, Page, RecordKind, Space, ToolInvocationResult
from mcp_integrations.core.normalize import normalize, normalize_many
from mcp_integrations.core.registry import register_adapter
from mcp_integrations.core.tools import ToolParam, tool

logger = logging.getLogger(__name__)

CONFLUENCE_CREDENTIAL = CredentialRef(
    item="Confluence API Key",
    fields=("username", "password", "base url"),
)
API_PATH = "/wiki/api/v2"
MAX_LIMIT = 250


def cql_string(value: str) -> str:
    """Quote a value for use inside a CQL string literal."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def build_search_cql(query: str, space: str | None = None) -> str:
    """Build the page search CQL for a text query, optionally within a space."""
    cql = f"type=page AND text~{cql_string(query)}"
    if space:
        cql += f" AND space.key={cql_string(space)}"
    return cql


def _when(value: datetime | None) -> str:
    return value.isoformat() if value else "Unknown"


def _results(payload: Any) -> list[Any]:
    if isinstance(payload, dict) and isinstance(payload.get("results"), list):
        return payload["results"]
    return []


def _site_base(payload: Any) -> str:
    """Site URL from the ``_links.base`` of a v2 list response."""
    if isinstance(payload, dict) and isinstance(payload.get("_links"), dict):
        return str(payload["_links"].get("base") or "")
    return ""


@register_adapter("confluence")
class ConfluenceAdapter(ToolAdapter):
    """Confluence tools over the REST API v2."""

    provider_name = "atlassian_confluence"
    server_name = "confluence-mcp-server"
    credential = CONFLUENCE_CREDENTIAL

    def _build_executor(self) -> HttpExecutor:
        return HttpExecutor(
            self.credentials,
            auth=basic_auth("username", "password"),
            base_url_field="base url",
            api_path=API_PATH,
            config=self.config,
            provider_name=self.provider_name,
        )

    def _numeric_id(self, value: str, field: str) -> str:
        value = value.strip()
        if not value.isdigit():
            raise InvalidParams(
                f"Invalid {field}: {value!r} (expected a numeric ID)",
                field=field,
                provider=self.provider_name,
            )
        return value

    @tool(
        "confluence_search_pages",
        "Search for Confluence pages by text query",
        params=[
            ToolParam(name="query", type="string", required=True, description="Search query text"),
            ToolParam(name="space", type="string", description="Space key to limit search to (optional)"),
            ToolParam(
                name="limit",
                type="number",
                default=20,
                minimum=1,
                maximum=MAX_LIMIT,
                description="Maximum number of results to return (default: 20)",
            ),
        ],
    )
    def search_pages(self, query: str, limit: int, space: str | None = None) -> ToolInvocationResult:
        payload = self._call("pages", params={"limit": limit, "cql": build_search_cql(query, space)})
        pages = normalize_many(_results(payload), RecordKind.PAGE)
        site = _site_base(payload)

        blocks = []
        for page in pages:
            block = f"• {page.title} (ID: {page.id})\n  Space: {page.space_id}"
            if site and page.webui:
                block += f"\n  URL: {site}{page.webui}"
            blocks.append(block)

        return ToolInvocationResult.of(
            f'Search Results for "{query}" ({len(pages)} pages):',
            *(blocks or ["No pages found"]),
        )

    @tool(
        "confluence_get_page",
        "Get detailed information about a specific Confluence page",
        params=[
            ToolParam(name="page_id", type="string", required=True, description="The Confluence page ID"),
            ToolParam(
                name="body_format",
                type="string",
                default="storage",
                description="Format for page body: storage, atlas_doc_format, or view (default: storage)",
            ),
        ],
    )
    def get_page(self, page_id: str, body_format: str) -> ToolInvocationResult:
        page_id = self._numeric_id(page_id, "page_id")
        payload = self._call(f"pages/{page_id}", params={"body-format": body_format})
        page = normalize(payload, RecordKind.PAGE)
        if page is None:
            return ToolInvocationResult.of(f"Page {page_id} found but its format was not recognized")

        return ToolInvocationResult.of(
            f"Title: {page.title}\n"
            f"ID: {page.id}\n"
            f"Space: {page.space_id}\n"
            f"Status: {page.status}\n"
            f"Created: {_when(page.created_at)}\n"
            f"Last Modified: {_when(page.version_created_at)}\n"
            f"Version: {page.version}\n\n"
            f"Content:\n{page.body or 'No content available'}"
        )

    @tool(
        "confluence_list_spaces",
        "List all accessible Confluence spaces",
        params=[
            ToolParam(name="type", type="string", description="Filter by space type (global, personal)"),
            ToolParam(
                name="status",
                type="string",
                default="current",
                description="Filter by space status (current, archived)",
            ),
            ToolParam(
                name="limit",
                type="number",
                default=25,
                minimum=1,
                maximum=MAX_LIMIT,
                description="Maximum number of spaces to return (default: 25)",
            ),
        ],
    )
    def list_spaces(self, status: str, limit: int, type: str | None = None) -> ToolInvocationResult:
        payload = self._call("spaces", params={"limit": limit, "status": status, "type": type})
        spaces: list[Space] = normalize_many(_results(payload), RecordKind.SPACE)

        blocks = [
            f"• {space.name} ({space.key})\n"
            f"  ID: {space.id}\n"
            f"  Type: {space.type}\n"
            f"  Description: {space.description or 'No description'}"
            for space in spaces
        ]
        return ToolInvocationResult.of(
            f"Confluence Spaces ({len(spaces)}):",
            *(blocks or ["No spaces found"]),
        )

    @tool(
        "confluence_get_space",
        "Get detailed information about a specific Confluence space",
        params=[
            ToolParam(name="space_id", type="string", required=True, description="The Confluence space ID"),
        ],
    )
    def get_space(self, space_id: str) -> ToolInvocationResult:
        space_id = self._numeric_id(space_id, "space_id")
        space = normalize(self._call(f"spaces/{space_id}"), RecordKind.SPACE)
        if space is None:
            return ToolInvocationResult.of(f"Space {space_id} found but its format was not recognized")

        return ToolInvocationResult.of(
            "Space Information:\n\n"
            f"Name: {space.name}\n"
            f"Key: {space.key}\n"
            f"ID: {space.id}\n"
            f"Type: {space.type}\n"
            f"Status: {space.status}\n"
            f"Created: {_when(space.created_at)}\n"
            f"Homepage ID: {space.homepage_id}\n"
            f"Description: {space.description or 'No description'}"
        )

    @tool(
        "confluence_list_pages",
        "List pages in a Confluence space",
        params=[
            ToolParam(name="space_id", type="string", description="Space ID to list pages from"),
            ToolParam(
                name="limit",
                type="number",
                default=25,
                minimum=1,
                maximum=MAX_LIMIT,
                description="Maximum number of pages to return (default: 25)",
            ),
            ToolParam(
                name="status",
                type="string",
                default="current",
                description="Filter by page status (current, archived, draft)",
            ),
        ],
    )
    def list_pages(self, limit: int, status: str, space_id: str | None = None) -> ToolInvocationResult:
        if space_id:
            space_id = self._numeric_id(space_id, "space_id")
        payload = self._call("pages", params={"limit": limit, "status": status, "space-id": space_id})
        pages: list[Page] = normalize_many(_results(payload), RecordKind.PAGE)

        blocks = [
            f"• {page.title} (ID: {page.id})\n"
            f"  Space: {page.space_id}\n"
            f"  Status: {page.status}\n"
            f"  Created: {_when(page.created_at)}"
            for page in pages
        ]
        scope = f" in Space {space_id}" if space_id else ""
        return ToolInvocationResult.of(
            f"Pages{scope} ({len(pages)}):",
            *(blocks or ["No pages found"]),
        )

    @tool(
        "confluence_get_page_children",
        "Get child pages of a specific Confluence page",
        params=[
            ToolParam(name="page_id", type="string", required=True, description="The parent page ID"),
            ToolParam(
                name="limit",
                type="number",
                default=25,
                minimum=1,
                maximum=MAX_LIMIT,
                description="Maximum number of child pages to return (default: 25)",
            ),
        ],
    )
    def get_page_children(self, page_id: str, limit: int) -> ToolInvocationResult:
        page_id = self._numeric_id(page_id, "page_id")
        payload = self._call(f"pages/{page_id}/children", params={"limit": limit})
        children: list[Page] = normalize_many(_results(payload), RecordKind.PAGE)

        blocks = [
            f"• {page.title} (ID: {page.id})\n  Status: {page.status}\n  Created: {_when(page.created_at)}"
            for page in children
        ]
        return ToolInvocationResult.of(
            f"Child Pages of {page_id} ({len(children)}):",
            *(blocks or ["No child pages found"]),
        )
