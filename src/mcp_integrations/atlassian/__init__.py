"""Atlassian adapters: Jira (via the Jira CLI) and Confluence (REST API v2)."""

from mcp_integrations.atlassian.confluence import ConfluenceAdapter
from mcp_integrations.atlassian.jira import JiraAdapter

__all__ = ["ConfluenceAdapter", "JiraAdapter"]
