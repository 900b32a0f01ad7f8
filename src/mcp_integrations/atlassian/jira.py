"""Jira adapter backed by the ``jira`` command-line client.

Every tool maps to one or two CLI invocations. The API token is read from
the secret store for each call and exported to the CLI as JIRA_API_TOKEN;
arguments are passed as a list, so user input is never parsed by a shell.

Example:
    from mcp_integrations.atlassian import JiraAdapter

    jira = JiraAdapter()
    result = jira.call_tool("jira_get_issue", {"issue_key": "PROJ-123"})
"""

import logging
import re

from mcp_integrations.core.exceptions import IntegrationError, InvalidParams
from mcp_integrations.core.executor import CliExecutor
from mcp_integrations.core.interfaces import ToolAdapter
from mcp_integrations.core.models import CredentialRef, Issue, RecordKind, ToolInvocationResult
from mcp_integrations.core.normalize import normalize
from mcp_integrations.core.registry import register_adapter
from mcp_integrations.core.tools import ToolParam, tool

logger = logging.getLogger(__name__)

JIRA_CREDENTIAL = CredentialRef(item="Jira API Key", fields=("password",))
JIRA_TOKEN_ENV = "JIRA_API_TOKEN"  # noqa: S105

# Story points are estimated in engineering days on a Fibonacci scale
FIBONACCI_POINTS = (1, 2, 3, 5, 8, 13, 21, 34, 55, 89)

DEFAULT_COLUMNS = "key,summary,status,assignee"
MAX_SEARCH_RESULTS = 500

ISSUE_KEY_PATTERN = re.compile(r"^[A-Z][A-Z0-9_]*-\d+$")

# CLI column names that differ from Issue field names
ISSUE_COLUMN_FIELDS = {"type": "issue_type"}


def column_names(columns: str) -> list[str]:
    """Lowercased column names from a comma-separated list."""
    return [name.strip().lower() for name in columns.split(",") if name.strip()]


def parse_rows(output: str, columns: str) -> list[dict[str, str]]:
    """Split ``issue list --plain --no-headers`` output into column dicts.

    Cells are tab separated; lines without tabs fall back to runs of two
    or more spaces.
    """
    names = column_names(columns)
    rows = []
    for line in output.splitlines():
        if not line.strip():
            continue
        cells = line.split("\t")
        if len(cells) == 1:
            cells = re.split(r"\s{2,}", line.strip())
        rows.append(dict(zip(names, (cell.strip() for cell in cells))))
    return rows


def parse_issue_rows(output: str, columns: str) -> list[Issue]:
    """Parse ``issue list --plain --no-headers`` output into Issue records.

    Args:
        output: CLI standard output, one issue per line
        columns: Comma-separated column names the output was requested with

    Returns:
        Issues in output order; lines that do not yield an issue are skipped
    """
    issues = []
    for row in parse_rows(output, columns):
        issue = normalize(row, RecordKind.ISSUE)
        if issue is not None:
            issues.append(issue)
    return issues


def split_labels(labels: str) -> list[str]:
    """Split a comma-separated label list, dropping blanks."""
    return [label.strip() for label in labels.split(",") if label.strip()]


def format_issue_row(row: dict[str, str], columns: str) -> str:
    """Render one search row with every requested column, in request order.

    Key and summary head the block; the remaining columns follow as
    ``Name: value`` pairs. Columns that map to an Issue field use the
    normalized value, others the raw cell.
    """
    issue = normalize(row, RecordKind.ISSUE)
    key = issue.key if issue else row.get("key", "")
    summary = issue.summary if issue else row.get("summary", "")
    line = f"{key}: {summary}" if summary else key

    details = []
    for name in column_names(columns):
        if name in ("key", "summary"):
            continue
        value: object = row.get(name, "")
        field = ISSUE_COLUMN_FIELDS.get(name, name)
        if issue is not None and field in Issue.model_fields:
            value = getattr(issue, field)
        if isinstance(value, list):
            value = ", ".join(value)
        if value:
            details.append(f"{name.replace('_', ' ').title()}: {value}")
    if details:
        line += f"\n  {' | '.join(details)}"
    return line


@register_adapter("jira")
class JiraAdapter(ToolAdapter):
    """Jira tools over the Jira CLI.

    Attributes:
        provider_name: Provider identifier for logging and errors
    """

    provider_name = "atlassian_jira"
    server_name = "jira-mcp-server"
    credential = JIRA_CREDENTIAL

    def _build_executor(self) -> CliExecutor:
        return CliExecutor(
            self.credentials,
            binary=self.config.jira_binary,
            token_env=JIRA_TOKEN_ENV,
            token_field="password",
            config=self.config,
            provider_name=self.provider_name,
        )

    def _issue_key(self, issue_key: str) -> str:
        key = issue_key.strip().upper()
        if not ISSUE_KEY_PATTERN.match(key):
            raise InvalidParams(
                f"Invalid issue key: {issue_key!r} (expected e.g. 'PROJ-123')",
                field="issue_key",
                provider=self.provider_name,
            )
        return key

    @tool(
        "jira_search_issues",
        "Search for Jira issues using JQL (Jira Query Language)",
        params=[
            ToolParam(
                name="jql",
                type="string",
                required=True,
                description="JQL query to search for issues (e.g., 'project = PROJ AND status = Open')",
            ),
            ToolParam(
                name="limit",
                type="number",
                default=50,
                minimum=1,
                maximum=MAX_SEARCH_RESULTS,
                description=f"Maximum number of results to return (default: 50, max: {MAX_SEARCH_RESULTS})",
            ),
            ToolParam(
                name="fields",
                type="string",
                default=DEFAULT_COLUMNS,
                description=f"Comma-separated list of fields to return (default: {DEFAULT_COLUMNS})",
            ),
        ],
    )
    def search_issues(self, jql: str, limit: int, fields: str) -> ToolInvocationResult:
        """Search issues; output rows are truncated to ``limit``."""
        output = self._call(
            "issue list",
            params={"jql": jql, "plain": True, "columns": fields, "no-headers": True},
        )
        rows = parse_rows(output, fields)[: int(limit)]
        logger.debug("Found %d issues", len(rows))

        return ToolInvocationResult.of(
            f"Search Results ({len(rows)} issues):",
            *(format_issue_row(row, fields) for row in rows),
        )

    @tool(
        "jira_get_issue",
        "Get detailed information about a specific Jira issue. A Jira issue will be provided (e.g., 'PROJ-123')",
        params=[
            ToolParam(
                name="issue_key",
                type="string",
                required=True,
                description="The Jira issue key (e.g., 'PROJ-123')",
            ),
        ],
    )
    def get_issue(self, issue_key: str) -> ToolInvocationResult:
        output = self._call("issue view", args=(self._issue_key(issue_key),))
        return ToolInvocationResult.of(f"Issue Details:\n{output}")

    @tool(
        "jira_create_issue",
        "Create a new Jira issue with all required fields including story points estimation.",
        params=[
            ToolParam(
                name="project",
                type="string",
                required=True,
                description="Project key where the issue will be created",
            ),
            ToolParam(
                name="issue_type",
                type="string",
                required=True,
                description="Type of issue (e.g., 'Bug', 'Task', 'Story')",
            ),
            ToolParam(
                name="summary",
                type="string",
                required=True,
                description="Brief summary/title of the issue",
            ),
            ToolParam(
                name="description",
                type="string",
                required=True,
                description="Detailed description of the issue (required)",
            ),
            ToolParam(
                name="story_points",
                type="number",
                required=True,
                description="Story points using fibonacci numbers (1, 2, 3, 5, 8, 13, 21) "
                "representing engineering days of effort",
            ),
            ToolParam(
                name="labels",
                type="string",
                required=True,
                description="Comma-separated list of labels (required)",
            ),
            ToolParam(
                name="assignee",
                type="string",
                description="Username or email of the assignee (optional, can be unassigned)",
            ),
            ToolParam(
                name="priority",
                type="string",
                description="Priority level (e.g., 'High', 'Medium', 'Low')",
            ),
        ],
    )
    def create_issue(
        self,
        project: str,
        issue_type: str,
        summary: str,
        description: str,
        story_points: int | float,
        labels: str,
        assignee: str | None = None,
        priority: str | None = None,
    ) -> ToolInvocationResult:
        """Create an issue; story points must be on the Fibonacci scale."""
        if story_points not in FIBONACCI_POINTS:
            raise InvalidParams(
                "Story points must be a fibonacci number: "
                + ", ".join(str(n) for n in FIBONACCI_POINTS),
                field="story_points",
                provider=self.provider_name,
            )
        label_list = split_labels(labels)
        if not label_list:
            raise InvalidParams(
                "At least one label is required",
                field="labels",
                provider=self.provider_name,
            )
        points = int(story_points)

        output = self._call(
            "issue create",
            params={
                "project": project,
                "type": issue_type,
                "summary": summary,
                "body": description,
                "no-input": True,
                "custom": f"Story Points={points}",
                "label": label_list,
                "assignee": assignee,
                "priority": priority,
            },
        )
        logger.info("Created issue in %s: %s", project, summary)

        return ToolInvocationResult.of(
            f"Issue Created Successfully:\n{output}\n\n"
            "Fields set:\n"
            f"- Summary: {summary}\n"
            f"- Description: {description}\n"
            f"- Story Points: {points}\n"
            f"- Labels: {', '.join(label_list)}\n"
            f"- Assignee: {assignee or 'Unassigned'}\n"
            f"- Priority: {priority or 'Default'}"
        )

    @tool(
        "jira_update_issue",
        "Update an existing Jira issue",
        params=[
            ToolParam(name="issue_key", type="string", required=True, description="The Jira issue key to update"),
            ToolParam(name="summary", type="string", description="New summary/title for the issue"),
            ToolParam(name="description", type="string", description="New description for the issue"),
            ToolParam(name="assignee", type="string", description="New assignee username or email"),
            ToolParam(name="status", type="string", description="New status (will attempt transition)"),
            ToolParam(name="priority", type="string", description="New priority level"),
            ToolParam(name="labels", type="string", description="Comma-separated list of labels to set"),
        ],
    )
    def update_issue(
        self,
        issue_key: str,
        summary: str | None = None,
        description: str | None = None,
        assignee: str | None = None,
        status: str | None = None,
        priority: str | None = None,
        labels: str | None = None,
    ) -> ToolInvocationResult:
        """Edit fields, then move the issue if a status was given.

        A failed status transition is reported in the result rather than
        failing the whole call, since the edit has already been applied.
        """
        key = self._issue_key(issue_key)
        output = self._call(
            "issue edit",
            args=(key,),
            params={
                "no-input": True,
                "summary": summary,
                "body": description,
                "assignee": assignee,
                "priority": priority,
                "label": split_labels(labels) if labels else None,
            },
        )
        text = f"Issue Updated:\n{output}"

        if status:
            try:
                moved = self._call("issue move", args=(key, status))
            except IntegrationError as e:
                logger.warning("Transition of %s to %s failed: %s", key, status, e)
                text += f"\n\nStatus Transition Failed: {e.message}"
            else:
                text += f"\n\nStatus Transition:\n{moved}"

        return ToolInvocationResult.of(text)

    @tool(
        "jira_add_comment",
        "Add a comment to a Jira issue",
        params=[
            ToolParam(name="issue_key", type="string", required=True, description="The Jira issue key to comment on"),
            ToolParam(name="comment", type="string", required=True, description="The comment text to add"),
        ],
    )
    def add_comment(self, issue_key: str, comment: str) -> ToolInvocationResult:
        output = self._call("issue comment add", args=(self._issue_key(issue_key), comment))
        return ToolInvocationResult.of(f"Comment Added:\n{output}")

    @tool(
        "jira_transition_issue",
        "Transition a Jira issue to a different status",
        params=[
            ToolParam(name="issue_key", type="string", required=True, description="The Jira issue key to transition"),
            ToolParam(
                name="status",
                type="string",
                required=True,
                description="Target status name (e.g., 'In Progress', 'Done')",
            ),
        ],
    )
    def transition_issue(self, issue_key: str, status: str) -> ToolInvocationResult:
        output = self._call("issue move", args=(self._issue_key(issue_key), status))
        return ToolInvocationResult.of(f"Issue Transitioned:\n{output}")

    @tool("jira_list_projects", "List all accessible Jira projects")
    def list_projects(self) -> ToolInvocationResult:
        output = self._call("project list")
        return ToolInvocationResult.of(f"Projects:\n{output}")
