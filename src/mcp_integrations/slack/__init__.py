"""Slack adapter."""

from mcp_integrations.slack.adapter import SlackAdapter, parse_permalink

__all__ = ["SlackAdapter", "parse_permalink"]
