"""Zoom adapter: cloud recordings and their AI meeting summaries.

Summaries are not part of the recordings listing. Each meeting carries a
recording file of type ``SUMMARY`` whose download URL returns a JSON
document; searching therefore costs one listing call plus one download per
meeting that has a summary. A failed download only drops that meeting's
summary from the search, it never fails the search itself.

Example:
    from mcp_integrations.zoom import ZoomAdapter

    zoom = ZoomAdapter()
    result = zoom.call_tool("zoom_search_meeting_summaries", {"query": "planning"})
"""

import logging
from typing import Any

from mcp_integrations.core.exceptions import IntegrationError, InvalidParams
from mcp_integrations.core.executor import HttpExecutor, bearer_auth
from mcp_integrations.core.interfaces import ToolAdapter
from mcp_integrations.core.models import (
    CredentialRef,
    Meeting,
    MeetingSummary,
    RecordKind,
    ToolInvocationResult,
    User,
)
from mcp_integrations.core.normalize import normalize, normalize_many
from mcp_integrations.core.registry import register_adapter
from mcp_integrations.core.tools import ToolParam, match_record, tool

logger = logging.getLogger(__name__)

ZOOM_CREDENTIAL = CredentialRef(item="Zoom API Credentials", fields=("Account ID", "JWT Token"))
ZOOM_API_URL = "https://api.zoom.us/v2"
MAX_PAGE_SIZE = 300

USER_TYPES = {1: "Basic", 2: "Licensed", 3: "On-prem"}


def zoom_error(payload: Any) -> str | None:
    """Return the error message when a Zoom payload carries a non-200 ``code``."""
    if isinstance(payload, dict) and "code" in payload and payload["code"] != 200:
        return str(payload.get("message") or "Unknown error")
    return None


def format_meeting(meeting: Meeting) -> str:
    """Render the listing metadata of one recorded meeting."""
    when = meeting.start_time.isoformat() if meeting.start_time else "Unknown time"
    size_gb = meeting.total_size / (1024 * 1024 * 1024)
    return (
        f"Meeting: {meeting.topic}\n"
        f"Date: {when} ({meeting.duration} min)\n"
        f"Host: {meeting.host_email}\n"
        f"Recordings: {size_gb:.2f} GB, {meeting.recording_count} files\n"
        f"Meeting ID: {meeting.id}"
    )


def format_summary(summary: MeetingSummary) -> str:
    """Render an AI summary with its meeting metadata."""
    when = summary.start_time.isoformat() if summary.start_time else "Unknown time"
    sections = [
        f"Meeting: {summary.meeting_topic}\n"
        f"Date: {when}\n"
        f"Duration: {summary.duration} minutes\n"
        f"Host: {summary.host_email}\n"
        f"Meeting ID: {summary.meeting_id}"
    ]
    if summary.summary:
        sections.append(f"Summary:\n{summary.summary}")
    for title, items in (
        ("Key Points", summary.key_points),
        ("Action Items", summary.action_items),
        ("Next Steps", summary.next_steps),
        ("Agenda", summary.agenda),
    ):
        if items:
            sections.append(f"{title}:\n" + "\n".join(f"• {item}" for item in items))
    return "\n\n".join(sections)


@register_adapter("zoom")
class ZoomAdapter(ToolAdapter):
    """Zoom tools over the Zoom REST API v2."""

    provider_name = "zoom"
    server_name = "zoom-mcp-server"
    credential = ZOOM_CREDENTIAL

    def _build_executor(self) -> HttpExecutor:
        return HttpExecutor(
            self.credentials,
            auth=bearer_auth("JWT Token"),
            base_url=ZOOM_API_URL,
            error_check=zoom_error,
            config=self.config,
            provider_name=self.provider_name,
        )

    def _recordings(self, user_id: str, **params: Any) -> list[Meeting]:
        payload = self._call(f"users/{user_id}/recordings", params=params)
        meetings = payload.get("meetings") if isinstance(payload, dict) else None
        return normalize_many(meetings or [], RecordKind.MEETING)

    def _download_summary(self, meeting: Meeting) -> MeetingSummary | None:
        """Fetch and parse a meeting's summary file.

        Returns None when the meeting has no summary file or the file is not
        a recognized summary document.

        Raises:
            TransportError: If the download fails
            CredentialUnavailable: If credentials cannot be resolved
        """
        summary_file = meeting.summary_file()
        if summary_file is None or not summary_file.download_url:
            return None
        content = self._call(summary_file.download_url, expect="text")
        summary = normalize(content, RecordKind.MEETING_SUMMARY)
        return summary.for_meeting(meeting) if summary else None

    @tool(
        "zoom_search_meeting_summaries",
        "Search through Zoom meeting summaries by keyword, topic, or content",
        params=[
            ToolParam(
                name="query",
                type="string",
                required=True,
                description="Search query to find in meeting topics, summaries, or content",
            ),
            ToolParam(
                name="user_id",
                type="string",
                default="me",
                description="User ID or email (defaults to 'me' for authenticated user)",
            ),
            ToolParam(name="from", type="string", dest="from_date", description="Start date (YYYY-MM-DD format)"),
            ToolParam(name="to", type="string", dest="to_date", description="End date (YYYY-MM-DD format)"),
            ToolParam(
                name="page_size",
                type="number",
                default=30,
                minimum=1,
                maximum=MAX_PAGE_SIZE,
                description=f"Number of results per page (default: 30, max: {MAX_PAGE_SIZE})",
            ),
        ],
    )
    def search_meeting_summaries(
        self,
        query: str,
        user_id: str,
        page_size: int,
        from_date: str | None = None,
        to_date: str | None = None,
    ) -> ToolInvocationResult:
        """Match meetings whose topic or summary text contains the query.

        Meetings are evaluated in listing order. A meeting whose summary
        cannot be downloaded is logged and matched on its topic alone.
        """
        meetings = self._recordings(user_id, page_size=page_size, **{"from": from_date, "to": to_date})

        matches: list[tuple[Meeting, MeetingSummary | None]] = []
        for meeting in meetings:
            try:
                summary = self._download_summary(meeting)
            except IntegrationError as e:
                logger.warning("Failed to process summary for meeting %s: %s", meeting.id, e)
                summary = None

            if match_record(query, meeting.topic, summary.text() if summary else None):
                matches.append((meeting, summary))

        if not matches:
            return ToolInvocationResult.of(f'No meetings found matching query: "{query}"')

        blocks = []
        for meeting, summary in matches:
            detail = format_summary(summary) if summary else "No AI summary available for this meeting"
            blocks.append(f"{format_meeting(meeting)}\n\n{detail}")

        return ToolInvocationResult.of(
            f'Search Results for "{query}" ({len(matches)} meetings found):',
            *blocks,
        )

    @tool(
        "zoom_get_meeting_summary",
        "Get the AI-generated summary for a specific Zoom meeting",
        params=[
            ToolParam(name="meeting_id", type="string", required=True, description="Zoom meeting ID or UUID"),
            ToolParam(
                name="user_id",
                type="string",
                default="me",
                description="User ID or email (defaults to 'me' for authenticated user)",
            ),
        ],
    )
    def get_meeting_summary(self, meeting_id: str, user_id: str) -> ToolInvocationResult:
        meetings = self._recordings(user_id, page_size=MAX_PAGE_SIZE)
        meeting = next((m for m in meetings if meeting_id in (m.id, m.uuid)), None)
        if meeting is None:
            raise InvalidParams(
                f"Meeting {meeting_id} not found",
                field="meeting_id",
                provider=self.provider_name,
            )

        if meeting.summary_file() is None:
            return ToolInvocationResult.of(
                f"Meeting found but no AI summary available:\n\n{format_meeting(meeting)}"
            )

        summary = self._download_summary(meeting)
        if summary is None:
            return ToolInvocationResult.of(
                f"Meeting found but summary format not recognized:\n\n{format_meeting(meeting)}"
            )

        return ToolInvocationResult.of(format_summary(summary))

    @tool(
        "zoom_list_recent_meetings",
        "List recent Zoom meetings that have AI summaries available",
        params=[
            ToolParam(
                name="user_id",
                type="string",
                default="me",
                description="User ID or email (defaults to 'me')",
            ),
            ToolParam(name="from", type="string", dest="from_date", description="Start date (YYYY-MM-DD format)"),
            ToolParam(name="to", type="string", dest="to_date", description="End date (YYYY-MM-DD format)"),
            ToolParam(
                name="page_size",
                type="number",
                default=30,
                minimum=1,
                maximum=MAX_PAGE_SIZE,
                description=f"Number of results (default: 30, max: {MAX_PAGE_SIZE})",
            ),
        ],
    )
    def list_recent_meetings(
        self,
        user_id: str,
        page_size: int,
        from_date: str | None = None,
        to_date: str | None = None,
    ) -> ToolInvocationResult:
        meetings = self._recordings(user_id, page_size=page_size, **{"from": from_date, "to": to_date})
        with_summaries = [m for m in meetings if m.summary_file() is not None]

        if not with_summaries:
            return ToolInvocationResult.of("No recent meetings with AI summaries found.")

        return ToolInvocationResult.of(
            f"Recent Meetings with AI Summaries ({len(with_summaries)} found):",
            *(format_meeting(m) for m in with_summaries),
        )

    @tool(
        "zoom_get_user_info",
        "Get information about a Zoom user",
        params=[
            ToolParam(
                name="user_id",
                type="string",
                default="me",
                description="User ID or email (defaults to 'me')",
            ),
        ],
    )
    def get_user_info(self, user_id: str) -> ToolInvocationResult:
        user: User | None = normalize(self._call(f"users/{user_id}"), RecordKind.USER)
        if user is None:
            return ToolInvocationResult.of(f"User {user_id} found but its format was not recognized")

        lines = [
            f"Name: {user.first_name} {user.last_name}".rstrip(),
            f"Email: {user.email}",
            f"User ID: {user.id}",
            f"Type: {USER_TYPES.get(user.type, 'Unknown')}",
            f"Status: {user.status}",
            f"Department: {user.dept or 'Not specified'}",
            f"Timezone: {user.tz_label or 'Not specified'}",
            f"Last Login: {user.last_login_time.isoformat() if user.last_login_time else 'Never'}",
            f"Created: {user.created_at.isoformat() if user.created_at else 'Unknown'}",
        ]
        return ToolInvocationResult.of("User Information:\n\n" + "\n".join(lines))
