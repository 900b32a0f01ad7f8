"""Slack adapter over the Web API with a bearer token.

Slack reports most failures as HTTP 200 with ``{"ok": false, "error": ...}``;
the executor's error check turns those into TransportError.

Example:
    from mcp_integrations.slack import SlackAdapter

    slack = SlackAdapter()
    result = slack.call_tool("slack_get_channel_messages", {"channel": "#general", "limit": 20})
"""

import logging
import re
from typing import Any

from mcp_integrations.core.exceptions import InvalidParams
from mcp_integrations.core.executor import HttpExecutor, bearer_auth
from mcp_integrations.core.interfaces import ToolAdapter
from mcp_integrations.core.models import Channel, CredentialRef, Message, RecordKind, ToolInvocationResult, User
from mcp_integrations.core.normalize import normalize, normalize_many
from mcp_integrations.core.registry import register_adapter
from mcp_integrations.core.tools import ToolParam, tool

logger = logging.getLogger(__name__)

SLACK_CREDENTIAL = CredentialRef(item="Slack API Token", fields=("password",))
SLACK_API_URL = "https://slack.com/api"

DEFAULT_CHANNEL_TYPES = "public_channel,private_channel"
MAX_SEARCH_COUNT = 100
MAX_LIST_LIMIT = 1000

PERMALINK_PATTERN = re.compile(r"/archives/([^/]+)/p(\d+)")


def slack_error(payload: Any) -> str | None:
    """Return the error reason when a Slack payload reports ``ok: false``.

    Every Web API method answers with a JSON object; anything else is reported
    as ``invalid_response``.
    """
    if not isinstance(payload, dict):
        return "invalid_response"
    if not payload.get("ok"):
        return str(payload.get("error") or "unknown_error")
    return None


def parse_permalink(link: str) -> tuple[str, str] | None:
    """Parse a message permalink into ``(channel_id, ts)``.

    Permalinks carry the timestamp without its dot
    (``.../archives/C123/p1234567890123456``); the API form is
    ``1234567890.123456``.
    """
    match = PERMALINK_PATTERN.search(link)
    if not match:
        return None
    channel_id, digits = match.groups()
    if len(digits) <= 10:
        return None
    return channel_id, f"{digits[:10]}.{digits[10:]}"


def format_message(message: Message, channel_name: str = "") -> str:
    """Render one message as a single attributed line."""
    timestamp = message.timestamp
    when = timestamp.isoformat() if timestamp else message.ts
    user = message.user or "Unknown User"
    where = f" in #{channel_name}" if channel_name else ""

    text = message.text
    if message.attachments:
        text += f"\n[Attachments: {', '.join(message.attachments)}]"
    if message.files:
        text += f"\n[Files: {', '.join(message.files)}]"

    return f"[{when}] {user}{where}: {text}"


def _items(payload: Any, key: str) -> list[Any]:
    value = payload.get(key) if isinstance(payload, dict) else None
    return value if isinstance(value, list) else []


@register_adapter("slack")
class SlackAdapter(ToolAdapter):
    """Slack tools over the Slack Web API."""

    provider_name = "slack"
    server_name = "slack-mcp-server"
    credential = SLACK_CREDENTIAL

    def _build_executor(self) -> HttpExecutor:
        return HttpExecutor(
            self.credentials,
            auth=bearer_auth("password"),
            base_url=SLACK_API_URL,
            error_check=slack_error,
            config=self.config,
            provider_name=self.provider_name,
        )

    def _resolve_channel(self, channel: str) -> str:
        """Resolve ``#name`` to a channel ID; anything else passes through."""
        if not channel.startswith("#"):
            return channel
        name = channel[1:]
        payload = self._call(
            "conversations.list",
            params={"types": DEFAULT_CHANNEL_TYPES, "limit": MAX_LIST_LIMIT},
        )
        for raw in _items(payload, "channels"):
            if isinstance(raw, dict) and raw.get("name") == name:
                return str(raw.get("id") or channel)
        logger.debug("Channel %s not found in conversations.list", channel)
        return channel

    def _channel_name(self, channel_id: str) -> str:
        payload = self._call("conversations.info", params={"channel": channel_id})
        info = normalize(payload.get("channel"), RecordKind.CHANNEL)
        return info.name if info else ""

    @tool(
        "slack_search_messages",
        "Search for messages across Slack workspace",
        params=[
            ToolParam(
                name="query",
                type="string",
                required=True,
                description="Search query (supports Slack search syntax like 'from:@user in:#channel')",
            ),
            ToolParam(
                name="sort",
                type="string",
                default="timestamp",
                description="Sort order: 'timestamp' or 'score' (default: timestamp)",
            ),
            ToolParam(
                name="count",
                type="number",
                default=20,
                minimum=1,
                maximum=MAX_SEARCH_COUNT,
                description=f"Number of results to return (default: 20, max: {MAX_SEARCH_COUNT})",
            ),
        ],
    )
    def search_messages(self, query: str, sort: str, count: int) -> ToolInvocationResult:
        payload = self._call("search.messages", params={"query": query, "sort": sort, "count": count})
        matches = _items(payload.get("messages"), "matches")
        messages: list[Message] = normalize_many(matches, RecordKind.MESSAGE)

        return ToolInvocationResult.of(
            f"Search Results ({len(messages)} messages found):",
            *(format_message(m, m.channel_name) for m in messages),
        )

    @tool(
        "slack_get_channel_messages",
        "Get recent messages from a specific channel",
        params=[
            ToolParam(
                name="channel",
                type="string",
                required=True,
                description="Channel ID or name (with # prefix for public channels)",
            ),
            ToolParam(
                name="limit",
                type="number",
                default=50,
                minimum=1,
                maximum=MAX_LIST_LIMIT,
                description=f"Number of messages to retrieve (default: 50, max: {MAX_LIST_LIMIT})",
            ),
            ToolParam(name="oldest", type="string", description="Start of time range (timestamp)"),
            ToolParam(name="latest", type="string", description="End of time range (timestamp)"),
        ],
    )
    def get_channel_messages(
        self,
        channel: str,
        limit: int,
        oldest: str | None = None,
        latest: str | None = None,
    ) -> ToolInvocationResult:
        """Channel history, oldest message first."""
        channel_id = self._resolve_channel(channel)
        payload = self._call(
            "conversations.history",
            params={"channel": channel_id, "limit": limit, "oldest": oldest, "latest": latest},
        )
        channel_name = self._channel_name(channel_id)

        # The API returns newest first
        messages: list[Message] = normalize_many(reversed(_items(payload, "messages")), RecordKind.MESSAGE)

        return ToolInvocationResult.of(
            f"Channel Messages from #{channel_name} ({len(messages)} messages):",
            *(format_message(m, channel_name) for m in messages),
        )

    @tool(
        "slack_get_thread_messages",
        "Get all messages in a thread",
        params=[
            ToolParam(name="channel", type="string", required=True, description="Channel ID where the thread exists"),
            ToolParam(
                name="thread_ts",
                type="string",
                required=True,
                description="Timestamp of the parent message (thread_ts)",
            ),
        ],
    )
    def get_thread_messages(self, channel: str, thread_ts: str) -> ToolInvocationResult:
        channel_id = self._resolve_channel(channel)
        payload = self._call("conversations.replies", params={"channel": channel_id, "ts": thread_ts})
        channel_name = self._channel_name(channel_id)
        messages: list[Message] = normalize_many(_items(payload, "messages"), RecordKind.MESSAGE)

        blocks = [
            ("[THREAD ROOT] " if index == 0 else "[REPLY] ") + format_message(m, channel_name)
            for index, m in enumerate(messages)
        ]
        return ToolInvocationResult.of(
            f"Thread Messages in #{channel_name} ({len(messages)} messages):",
            *blocks,
        )

    @tool(
        "slack_read_permalink",
        "Read a specific message from a Slack permalink URL",
        params=[
            ToolParam(
                name="permalink",
                type="string",
                required=True,
                description="Slack permalink URL (e.g., https://workspace.slack.com/archives/C1234567890/p1234567890123456)",
            ),
            ToolParam(
                name="include_thread",
                type="boolean",
                default=False,
                description="Whether to include thread replies if the message is part of a thread",
            ),
        ],
    )
    def read_permalink(self, permalink: str, include_thread: bool) -> ToolInvocationResult:
        parsed = parse_permalink(permalink)
        if parsed is None:
            raise InvalidParams(
                "Invalid Slack permalink format",
                field="permalink",
                provider=self.provider_name,
            )
        channel_id, ts = parsed

        payload = self._call(
            "conversations.history",
            params={"channel": channel_id, "latest": ts, "limit": 1, "inclusive": True},
        )
        raw_messages = _items(payload, "messages")
        message = normalize(raw_messages[0], RecordKind.MESSAGE) if raw_messages else None
        if message is None:
            raise InvalidParams("Message not found", field="permalink", provider=self.provider_name)

        channel_name = self._channel_name(channel_id)
        blocks = [f"Message from permalink:\n\n{format_message(message, channel_name)}"]

        if include_thread and message.thread_ts:
            thread = self._call("conversations.replies", params={"channel": channel_id, "ts": message.thread_ts})
            # First entry is the parent message
            replies: list[Message] = normalize_many(_items(thread, "messages")[1:], RecordKind.MESSAGE)
            if replies:
                blocks.append(f"--- Thread Replies ({len(replies)}) ---")
                blocks.extend("[REPLY] " + format_message(m, channel_name) for m in replies)

        return ToolInvocationResult.of(*blocks)

    @tool(
        "slack_get_channel_info",
        "Get information about a specific channel",
        params=[
            ToolParam(
                name="channel",
                type="string",
                required=True,
                description="Channel ID or name (with # prefix for public channels)",
            ),
        ],
    )
    def get_channel_info(self, channel: str) -> ToolInvocationResult:
        channel_id = self._resolve_channel(channel)
        payload = self._call("conversations.info", params={"channel": channel_id})
        info: Channel | None = normalize(payload.get("channel"), RecordKind.CHANNEL)
        if info is None:
            return ToolInvocationResult.of(f"Channel {channel} found but its format was not recognized")

        lines = [
            f"Name: #{info.name}",
            f"ID: {info.id}",
            f"Purpose: {info.purpose or 'No purpose set'}",
            f"Topic: {info.topic or 'No topic set'}",
            f"Type: {'Private' if info.is_private else 'Public'} Channel",
            f"Members: {info.num_members or 'Unknown'}",
            f"Created: {info.created.isoformat() if info.created else 'Unknown'}",
        ]
        return ToolInvocationResult.of("Channel Information:\n\n" + "\n".join(lines))

    @tool(
        "slack_get_user_info",
        "Get information about a specific user",
        params=[
            ToolParam(name="user", type="string", required=True, description="User ID or username (with @ prefix)"),
        ],
    )
    def get_user_info(self, user: str) -> ToolInvocationResult:
        user_id = user[1:] if user.startswith("@") else user
        payload = self._call("users.info", params={"user": user_id})
        info: User | None = normalize(payload.get("user"), RecordKind.USER)
        if info is None:
            return ToolInvocationResult.of(f"User {user_id} found but its format was not recognized")

        lines = [
            f"Name: {info.display_name}",
            f"Username: @{info.name}",
            f"ID: {info.id}",
            f"Title: {info.title or 'No title set'}",
            f"Email: {info.email or 'Not available'}",
            f"Status: {info.presence or 'Unknown'}",
            f"Time Zone: {info.tz_label or 'Unknown'}",
        ]
        return ToolInvocationResult.of("User Information:\n\n" + "\n".join(lines))

    @tool(
        "slack_list_channels",
        "List channels that the bot has access to",
        params=[
            ToolParam(
                name="types",
                type="string",
                default=DEFAULT_CHANNEL_TYPES,
                description="Comma-separated list of channel types (public_channel, private_channel, mpim, im)",
            ),
            ToolParam(
                name="limit",
                type="number",
                default=100,
                minimum=1,
                maximum=MAX_LIST_LIMIT,
                description="Number of channels to return (default: 100)",
            ),
        ],
    )
    def list_channels(self, types: str, limit: int) -> ToolInvocationResult:
        payload = self._call("conversations.list", params={"types": types, "limit": limit})
        channels: list[Channel] = normalize_many(_items(payload, "channels"), RecordKind.CHANNEL)

        lines = []
        for channel in channels:
            kind = "Private" if channel.is_private else "Public"
            members = f" ({channel.num_members} members)" if channel.num_members else ""
            lines.append(f"#{channel.name} - {kind}{members}")

        return ToolInvocationResult.of(
            f"Channels ({len(channels)} found):",
            "\n".join(lines) if lines else "No channels found",
        )
