"""Tests for JiraAdapter."""

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from mcp_integrations.atlassian.jira import JiraAdapter, parse_issue_rows
from mcp_integrations.core.exceptions import CredentialUnavailable, InvalidParams, TransportError


def completed(stdout: str = "", returncode: int = 0, stderr: str = "") -> subprocess.CompletedProcess:
    """Build a finished jira CLI process."""
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


@pytest.fixture
def jira(config, credentials) -> JiraAdapter:
    """JiraAdapter with the real CLI executor."""
    return JiraAdapter(config=config, credentials=credentials)


@pytest.fixture
def mock_run():
    """Patch subprocess.run for the CLI executor."""
    with patch("mcp_integrations.core.executor.subprocess.run") as mock:
        mock.return_value = completed()
        yield mock


def argv(mock: MagicMock, call: int = 0) -> list[str]:
    """Argument list of one recorded invocation."""
    return mock.call_args_list[call].args[0]


class TestDiscovery:
    """Tests for tool discovery."""

    def test_tools(self, jira: JiraAdapter) -> None:
        """Test all Jira tools are exposed in order."""
        assert [s.name for s in jira.list_tools()] == [
            "jira_search_issues",
            "jira_get_issue",
            "jira_create_issue",
            "jira_update_issue",
            "jira_add_comment",
            "jira_transition_issue",
            "jira_list_projects",
        ]


class TestSearchIssues:
    """Tests for jira_search_issues."""

    def test_search(self, jira: JiraAdapter, mock_run: MagicMock) -> None:
        """Test JQL search runs issue list and parses rows."""
        mock_run.return_value = completed(
            "PROJ-1\tFix login\tTo Do\tjane@example.com\nPROJ-2\tAdd search\tIn Progress\t\n"
        )

        result = jira.call_tool("jira_search_issues", {"jql": "project = PROJ"})

        assert argv(mock_run) == [
            "jira",
            "issue",
            "list",
            "--jql",
            "project = PROJ",
            "--plain",
            "--columns",
            "key,summary,status,assignee",
            "--no-headers",
        ]
        assert mock_run.call_args.kwargs["env"]["JIRA_API_TOKEN"] == "jira-token"
        assert result.content[0].text == "Search Results (2 issues):"
        assert result.content[1].text == "PROJ-1: Fix login\n  Status: To Do | Assignee: jane@example.com"
        assert result.content[2].text == "PROJ-2: Add search\n  Status: In Progress"

    def test_limit_truncates(self, jira: JiraAdapter, mock_run: MagicMock) -> None:
        """Test output is truncated to the requested limit."""
        mock_run.return_value = completed("PROJ-1\tA\nPROJ-2\tB\nPROJ-3\tC")

        result = jira.call_tool("jira_search_issues", {"jql": "x", "limit": 2, "fields": "key,summary"})

        assert result.content[0].text == "Search Results (2 issues):"
        assert len(result.content) == 3

    def test_requested_columns_rendered(self, jira: JiraAdapter, mock_run: MagicMock) -> None:
        """Test every requested column appears in request order."""
        mock_run.return_value = completed("PROJ-1\tFix it\tHigh\t2024-01-01\tNEW-FLAG")

        result = jira.call_tool(
            "jira_search_issues",
            {"jql": "project = PROJ", "fields": "key,summary,priority,created,resolution"},
        )

        assert argv(mock_run)[7] == "key,summary,priority,created,resolution"
        assert result.content[1].text == (
            "PROJ-1: Fix it\n  Priority: High | Created: 2024-01-01 | Resolution: NEW-FLAG"
        )

    def test_type_and_labels_columns(self, jira: JiraAdapter, mock_run: MagicMock) -> None:
        """Test mapped columns use their normalized values."""
        mock_run.return_value = completed("PROJ-2\tBug\tui, login")

        result = jira.call_tool("jira_search_issues", {"jql": "x", "fields": "KEY,TYPE,LABELS"})

        assert result.content[1].text == "PROJ-2\n  Type: Bug | Labels: ui, login"

    def test_missing_jql(self, jira: JiraAdapter, mock_run: MagicMock) -> None:
        """Test a missing JQL query makes no CLI call."""
        with pytest.raises(InvalidParams):
            jira.call_tool("jira_search_issues", {"limit": 10})

        mock_run.assert_not_called()


class TestParseIssueRows:
    """Tests for plain-output row parsing."""

    def test_space_separated(self) -> None:
        """Test rows without tabs split on runs of spaces."""
        issues = parse_issue_rows("PROJ-7  Write docs  Done", "key,summary,status")

        assert issues[0].key == "PROJ-7"
        assert issues[0].summary == "Write docs"
        assert issues[0].status == "Done"

    def test_type_column(self) -> None:
        """Test the type column fills issue_type."""
        issues = parse_issue_rows("Bug\tPROJ-8", "TYPE,KEY")

        assert issues[0].issue_type == "Bug"
        assert issues[0].key == "PROJ-8"


class TestGetIssue:
    """Tests for jira_get_issue."""

    def test_get(self, jira: JiraAdapter, mock_run: MagicMock) -> None:
        """Test an issue is viewed by key."""
        mock_run.return_value = completed("Fix login\nStatus: To Do")

        result = jira.call_tool("jira_get_issue", {"issue_key": "proj-123"})

        assert argv(mock_run) == ["jira", "issue", "view", "PROJ-123"]
        assert result.text == "Issue Details:\nFix login\nStatus: To Do"

    def test_invalid_key(self, jira: JiraAdapter, mock_run: MagicMock) -> None:
        """Test a malformed key is rejected before any call."""
        with pytest.raises(InvalidParams, match="Invalid issue key"):
            jira.call_tool("jira_get_issue", {"issue_key": "PROJ 123; rm -rf /"})

        mock_run.assert_not_called()

    def test_cli_failure(self, jira: JiraAdapter, mock_run: MagicMock) -> None:
        """Test a failing CLI raises TransportError."""
        mock_run.return_value = completed(returncode=1, stderr="Error: 404 issue does not exist")

        with pytest.raises(TransportError, match="issue does not exist"):
            jira.call_tool("jira_get_issue", {"issue_key": "PROJ-404"})

    def test_empty_token(self, jira: JiraAdapter, credentials, mock_run: MagicMock) -> None:
        """Test an empty token fails before the CLI runs."""
        credentials.values[("Jira API Key", "password")] = ""

        with pytest.raises(CredentialUnavailable):
            jira.call_tool("jira_get_issue", {"issue_key": "PROJ-1"})

        mock_run.assert_not_called()


class TestCreateIssue:
    """Tests for jira_create_issue."""

    ARGS = {
        "project": "PROJ",
        "issue_type": "Story",
        "summary": "New feature",
        "description": "Details",
        "story_points": 5,
        "labels": "backend, api",
    }

    def test_create(self, jira: JiraAdapter, mock_run: MagicMock) -> None:
        """Test all required fields are passed to issue create."""
        mock_run.return_value = completed("✓ Issue created\nhttps://example.atlassian.net/browse/PROJ-9")

        result = jira.call_tool("jira_create_issue", self.ARGS)

        assert argv(mock_run) == [
            "jira",
            "issue",
            "create",
            "--project",
            "PROJ",
            "--type",
            "Story",
            "--summary",
            "New feature",
            "--body",
            "Details",
            "--no-input",
            "--custom",
            "Story Points=5",
            "--label",
            "backend",
            "--label",
            "api",
        ]
        assert "Story Points: 5" in result.text
        assert "Assignee: Unassigned" in result.text
        assert "Labels: backend, api" in result.text

    def test_optional_fields(self, jira: JiraAdapter, mock_run: MagicMock) -> None:
        """Test assignee and priority are passed when given."""
        jira.call_tool("jira_create_issue", {**self.ARGS, "assignee": "jane@example.com", "priority": "High"})

        assert argv(mock_run)[-4:] == ["--assignee", "jane@example.com", "--priority", "High"]

    def test_non_fibonacci_points(self, jira: JiraAdapter, mock_run: MagicMock) -> None:
        """Test story points off the Fibonacci scale are rejected before any call."""
        with pytest.raises(InvalidParams, match="fibonacci"):
            jira.call_tool("jira_create_issue", {**self.ARGS, "story_points": 4})

        mock_run.assert_not_called()

    def test_blank_labels(self, jira: JiraAdapter, mock_run: MagicMock) -> None:
        """Test a label list with no labels is rejected."""
        with pytest.raises(InvalidParams):
            jira.call_tool("jira_create_issue", {**self.ARGS, "labels": " , "})

        mock_run.assert_not_called()


class TestUpdateIssue:
    """Tests for jira_update_issue."""

    def test_update_fields(self, jira: JiraAdapter, mock_run: MagicMock) -> None:
        """Test only supplied fields are edited."""
        mock_run.return_value = completed("✓ Issue updated")

        result = jira.call_tool("jira_update_issue", {"issue_key": "PROJ-1", "summary": "Renamed"})

        assert argv(mock_run) == ["jira", "issue", "edit", "PROJ-1", "--no-input", "--summary", "Renamed"]
        assert mock_run.call_count == 1
        assert result.text == "Issue Updated:\n✓ Issue updated"

    def test_update_with_transition(self, jira: JiraAdapter, mock_run: MagicMock) -> None:
        """Test a status triggers a second move call."""
        mock_run.side_effect = [completed("✓ Issue updated"), completed("✓ Issue transitioned")]

        result = jira.call_tool("jira_update_issue", {"issue_key": "PROJ-1", "status": "Done"})

        assert argv(mock_run, 1) == ["jira", "issue", "move", "PROJ-1", "Done"]
        assert "Status Transition:\n✓ Issue transitioned" in result.text

    def test_failed_transition_is_reported(self, jira: JiraAdapter, mock_run: MagicMock) -> None:
        """Test a failed transition is reported without failing the update."""
        mock_run.side_effect = [
            completed("✓ Issue updated"),
            completed(returncode=1, stderr="Error: invalid transition"),
        ]

        result = jira.call_tool("jira_update_issue", {"issue_key": "PROJ-1", "status": "Nope"})

        assert result.text.startswith("Issue Updated:")
        assert "Status Transition Failed:" in result.text
        assert "invalid transition" in result.text


class TestOtherTools:
    """Tests for comment, transition and project tools."""

    def test_add_comment(self, jira: JiraAdapter, mock_run: MagicMock) -> None:
        """Test a comment is added as a positional argument."""
        jira.call_tool("jira_add_comment", {"issue_key": "PROJ-1", "comment": "Work started; see PR #12"})

        assert argv(mock_run) == ["jira", "issue", "comment", "add", "PROJ-1", "Work started; see PR #12"]

    def test_transition(self, jira: JiraAdapter, mock_run: MagicMock) -> None:
        """Test an issue is moved to a status."""
        mock_run.return_value = completed("✓ Issue transitioned")

        result = jira.call_tool("jira_transition_issue", {"issue_key": "PROJ-1", "status": "In Progress"})

        assert argv(mock_run) == ["jira", "issue", "move", "PROJ-1", "In Progress"]
        assert result.text == "Issue Transitioned:\n✓ Issue transitioned"

    def test_list_projects(self, jira: JiraAdapter, mock_run: MagicMock) -> None:
        """Test projects are listed."""
        mock_run.return_value = completed("PROJ\tProject\tjane")

        result = jira.call_tool("jira_list_projects")

        assert argv(mock_run) == ["jira", "project", "list"]
        assert result.text == "Projects:\nPROJ\tProject\tjane"
