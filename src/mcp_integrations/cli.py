"""Command-line interface for mcp-integrations.

Runs any registered adapter as an MCP server over stdio, or calls its tools
directly from a shell.

Usage:
    # Serve an adapter to an MCP client (stdio transport)
    mcp-integrations serve slack

    # Inspect and call tools without an MCP client
    mcp-integrations tools zoom --json
    mcp-integrations call jira jira_get_issue --args '{"issue_key": "PROJ-123"}'

    # List adapters
    mcp-integrations adapters
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from mcp_integrations import __version__
from mcp_integrations.core.config import load_config
from mcp_integrations.core.exceptions import IntegrationError
from mcp_integrations.core.registry import get_adapter, list_adapters
from mcp_integrations.core.server import run_stdio


def configure_logging(level: str | None = None) -> None:
    """Send log records to stderr; stdout carries the MCP protocol."""
    config = load_config(log_level=level)
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


# =============================================================================
# Commands
# =============================================================================


def cmd_serve(args: argparse.Namespace) -> int:
    """Serve an adapter over stdio until the client disconnects."""
    adapter = get_adapter(args.adapter)
    run_stdio(adapter)
    return 0


def cmd_tools(args: argparse.Namespace) -> int:
    """Print the tools an adapter exposes."""
    adapter = get_adapter(args.adapter)
    specs = adapter.list_tools()

    if args.json:
        print(json.dumps([spec.describe() for spec in specs], indent=2))
        return 0

    for spec in specs:
        required = spec.input_schema().get("required", [])
        print(f"{spec.name}")
        print(f"  {spec.description}")
        for param in spec.params:
            marker = "*" if param.name in required else " "
            print(f"  {marker} {param.name} ({param.type}): {param.description}")
    return 0


def cmd_call(args: argparse.Namespace) -> int:
    """Invoke one tool and print its text blocks."""
    try:
        arguments = json.loads(args.args) if args.args else {}
    except ValueError as e:
        print(f"Error: --args is not valid JSON: {e}", file=sys.stderr)
        return 1
    if not isinstance(arguments, dict):
        print("Error: --args must be a JSON object", file=sys.stderr)
        return 1

    adapter = get_adapter(args.adapter)
    result = adapter.call_tool(args.tool, arguments)
    print(result.text)
    return 0


def cmd_adapters(args: argparse.Namespace) -> int:
    """List registered adapters."""
    for name in list_adapters():
        print(name)
    return 0


# =============================================================================
# Main Entry Point
# =============================================================================


def main() -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="mcp-integrations",
        description="MCP tool servers for Jira, Confluence, Slack and Zoom",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  mcp-integrations serve confluence
  mcp-integrations tools slack
  mcp-integrations call zoom zoom_search_meeting_summaries --args '{"query": "planning"}'
        """,
    )
    parser.add_argument("--version", action="version", version=f"mcp-integrations {__version__}")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        help="Log level (default: $MCP_INTEGRATIONS_LOG_LEVEL or WARNING)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # serve
    serve = subparsers.add_parser("serve", help="Run an adapter as an MCP server on stdio")
    serve.add_argument("adapter", help="Adapter name (e.g., jira, slack)")

    # tools
    tools = subparsers.add_parser("tools", help="List an adapter's tools")
    tools.add_argument("adapter", help="Adapter name")
    tools.add_argument("--json", action="store_true", help="Print MCP tool descriptors as JSON")

    # call
    call = subparsers.add_parser("call", help="Invoke a tool once")
    call.add_argument("adapter", help="Adapter name")
    call.add_argument("tool", help="Tool name (e.g., slack_get_user_info)")
    call.add_argument("--args", help="Tool arguments as a JSON object")

    # adapters
    subparsers.add_parser("adapters", help="List available adapters")

    # Parse and dispatch
    args = parser.parse_args()
    configure_logging(args.log_level)

    commands = {
        "serve": cmd_serve,
        "tools": cmd_tools,
        "call": cmd_call,
        "adapters": cmd_adapters,
    }

    try:
        return commands[args.command](args)
    except IntegrationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Error: Tool execution failed: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
