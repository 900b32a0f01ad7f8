"""Request-scoped data models shared by all adapters.

Nothing here persists between tool invocations: credential sets, outbound
requests and normalized records are created for one call and then dropped.
"""

from collections.abc import Iterator, Mapping
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar, Literal, get_args

from pydantic import BaseModel, Field, ValidationInfo, field_validator


class RecordKind(str, Enum):
    """Closed set of normalized record variants."""

    MEETING = "meeting"
    MEETING_SUMMARY = "meeting_summary"
    MESSAGE = "message"
    CHANNEL = "channel"
    USER = "user"
    ISSUE = "issue"
    PAGE = "page"
    SPACE = "space"


class CredentialSet(Mapping[str, str]):
    """Resolved secret values for one outbound call.

    Behaves as a read-only mapping from field name to secret value. The
    representation never includes the values themselves.
    """

    __slots__ = ("_item", "_values")

    def __init__(self, item: str, values: Mapping[str, str]) -> None:
        self._item = item
        self._values = dict(values)

    @property
    def item(self) -> str:
        """Secret store item the values were read from."""
        return self._item

    def __getitem__(self, field: str) -> str:
        return self._values[field]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"CredentialSet(item={self._item!r}, fields={list(self._values)!r})"


class CredentialRef(BaseModel):
    """Reference to a credential item and the fields an adapter needs from it."""

    item: str = Field(description="Secret store item name (e.g., 'Slack API Token')")
    fields: tuple[str, ...] = Field(description="Ordered field names to resolve")

    class Config:
        """Pydantic configuration."""

        frozen = True


class OutboundRequest(BaseModel):
    """One outbound call: an HTTP GET or a CLI invocation."""

    target: str = Field(description="Endpoint path, absolute URL, or CLI subcommand")
    args: tuple[str, ...] = Field(default=(), description="Positional CLI arguments")
    params: dict[str, Any] = Field(
        default_factory=dict, description="Query parameters or CLI flags, in order"
    )
    credential: CredentialRef = Field(description="Credential used to authenticate")
    expect: Literal["json", "text"] = Field(default="json", description="Response format")

    class Config:
        """Pydantic configuration."""

        frozen = True

    @field_validator("params", mode="before")
    @classmethod
    def _drop_unset(cls, value: Any) -> Any:
        if isinstance(value, Mapping):
            return {k: v for k, v in value.items() if v is not None}
        return value


# =============================================================================
# Normalized records
# =============================================================================


class Record(BaseModel):
    """Base class for normalized records.

    ``field_sources`` lists, per field, the candidate source keys in priority
    order. Dotted keys descend into nested objects. Fields not listed are read
    from a key with the same name.
    """

    field_sources: ClassVar[dict[str, tuple[str, ...]]] = {}

    class Config:
        """Pydantic configuration."""

        frozen = True
        extra = "ignore"

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_scalars(cls, value: Any, info: ValidationInfo) -> Any:
        field = cls.model_fields.get(info.field_name or "")
        if field is None:
            return value
        if field.annotation is str and isinstance(value, (int, float)) and not isinstance(
            value, bool
        ):
            return str(value)
        if datetime in get_args(field.annotation):
            if value in ("", 0):
                return None
            if isinstance(value, (int, float)):
                return datetime.fromtimestamp(value, tz=timezone.utc)
        return value


class RecordingFile(Record):
    """One file attached to a cloud recording."""

    id: str = ""
    meeting_id: str = ""
    file_type: str = ""
    file_extension: str = ""
    file_size: int = 0
    recording_type: str = ""
    status: str = ""
    play_url: str = ""
    download_url: str = ""


class Meeting(Record):
    """A recorded meeting."""

    id: str = ""
    uuid: str = ""
    topic: str = ""
    host_id: str = ""
    host_email: str = ""
    start_time: datetime | None = None
    duration: int = Field(default=0, description="Duration in minutes")
    total_size: int = Field(default=0, description="Total recording size in bytes")
    recording_count: int = 0
    share_url: str = ""
    recording_files: list[RecordingFile] = Field(default_factory=list)

    def summary_file(self) -> RecordingFile | None:
        """Return the AI summary file, if the meeting has one."""
        for recording_file in self.recording_files:
            if recording_file.file_type == "SUMMARY":
                return recording_file
        return None


class MeetingSummary(Record):
    """AI-generated meeting summary."""

    field_sources: ClassVar[dict[str, tuple[str, ...]]] = {
        "summary": ("summary", "meeting_summary"),
        "key_points": ("key_points", "keyPoints"),
        "action_items": ("action_items", "actionItems"),
        "next_steps": ("next_steps", "nextSteps"),
        "meeting_id": ("meeting_id", "meetingId"),
        "meeting_topic": ("meeting_topic", "topic"),
    }

    summary: str = ""
    key_points: list[str] = Field(default_factory=list)
    action_items: list[str] = Field(default_factory=list)
    next_steps: list[str] = Field(default_factory=list)
    agenda: list[str] = Field(default_factory=list)
    meeting_id: str = ""
    meeting_topic: str = ""
    start_time: datetime | None = None
    duration: int = 0
    host_email: str = ""

    def text(self) -> str:
        """All textual content of the summary, space separated."""
        return " ".join(
            [self.summary, *self.key_points, *self.action_items, *self.next_steps, *self.agenda]
        )

    def for_meeting(self, meeting: Meeting) -> "MeetingSummary":
        """Return a copy whose metadata is taken from the meeting listing."""
        return self.model_copy(
            update={
                "meeting_id": meeting.id,
                "meeting_topic": meeting.topic,
                "start_time": meeting.start_time,
                "duration": meeting.duration,
                "host_email": meeting.host_email,
            }
        )


class Message(Record):
    """A chat message."""

    field_sources: ClassVar[dict[str, tuple[str, ...]]] = {
        "user": ("user", "username"),
        "channel_id": ("channel.id",),
        "channel_name": ("channel.name",),
    }

    ts: str = ""
    user: str = ""
    text: str = ""
    thread_ts: str = ""
    reply_count: int = 0
    channel_id: str = ""
    channel_name: str = ""
    permalink: str = ""
    attachments: list[str] = Field(default_factory=list, description="Attachment titles")
    files: list[str] = Field(default_factory=list, description="File names")

    @field_validator("attachments", mode="before")
    @classmethod
    def _attachment_titles(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [
                (item.get("title") or item.get("fallback") or "Attachment")
                if isinstance(item, Mapping)
                else item
                for item in value
            ]
        return value

    @field_validator("files", mode="before")
    @classmethod
    def _file_names(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [
                (item.get("name") or "") if isinstance(item, Mapping) else item
                for item in value
            ]
        return value

    @property
    def timestamp(self) -> datetime | None:
        """Message time parsed from the ``ts`` identifier."""
        try:
            return datetime.fromtimestamp(float(self.ts), tz=timezone.utc)
        except ValueError:
            return None


class Channel(Record):
    """A chat channel."""

    field_sources: ClassVar[dict[str, tuple[str, ...]]] = {
        "purpose": ("purpose.value",),
        "topic": ("topic.value",),
    }

    id: str = ""
    name: str = ""
    purpose: str = ""
    topic: str = ""
    is_private: bool = False
    num_members: int = 0
    created: datetime | None = None


class User(Record):
    """A user account (chat workspace or meeting platform)."""

    field_sources: ClassVar[dict[str, tuple[str, ...]]] = {
        "real_name": ("real_name", "profile.real_name"),
        "title": ("profile.title", "title"),
        "email": ("profile.email", "email"),
        "tz_label": ("tz_label", "timezone"),
    }

    id: str = ""
    name: str = ""
    real_name: str = ""
    first_name: str = ""
    last_name: str = ""
    title: str = ""
    email: str = ""
    presence: str = ""
    tz_label: str = ""
    type: int = 0
    status: str = ""
    dept: str = ""
    last_login_time: datetime | None = None
    created_at: datetime | None = None

    @property
    def display_name(self) -> str:
        """Best available human-readable name."""
        full_name = f"{self.first_name} {self.last_name}".strip()
        return self.real_name or full_name or self.name


class Issue(Record):
    """An issue tracker item."""

    field_sources: ClassVar[dict[str, tuple[str, ...]]] = {
        "issue_type": ("issue_type", "type", "issuetype"),
    }

    key: str = ""
    summary: str = ""
    status: str = ""
    assignee: str = ""
    reporter: str = ""
    issue_type: str = ""
    priority: str = ""
    labels: list[str] = Field(default_factory=list)
    created: str = ""
    updated: str = ""

    @field_validator("labels", mode="before")
    @classmethod
    def _split_labels(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [label.strip() for label in value.split(",") if label.strip()]
        return value


class Page(Record):
    """A wiki page."""

    field_sources: ClassVar[dict[str, tuple[str, ...]]] = {
        "space_id": ("spaceId", "space_id"),
        "parent_id": ("parentId", "parent_id"),
        "created_at": ("createdAt", "created_at"),
        "version": ("version.number",),
        "version_created_at": ("version.createdAt",),
        "body": ("body.storage.value", "body.view.value", "body.atlas_doc_format.value"),
        "webui": ("_links.webui",),
    }

    id: str = ""
    title: str = ""
    space_id: str = ""
    status: str = ""
    parent_id: str = ""
    created_at: datetime | None = None
    version: int = 0
    version_created_at: datetime | None = None
    body: str = ""
    webui: str = ""


class Space(Record):
    """A wiki space."""

    field_sources: ClassVar[dict[str, tuple[str, ...]]] = {
        "created_at": ("createdAt", "created_at"),
        "homepage_id": ("homepageId", "homepage_id"),
        "description": ("description.plain.value",),
    }

    id: str = ""
    key: str = ""
    name: str = ""
    type: str = ""
    status: str = ""
    created_at: datetime | None = None
    homepage_id: str = ""
    description: str = ""


# =============================================================================
# Tool results
# =============================================================================


class TextContent(BaseModel):
    """One text block of a tool result."""

    type: Literal["text"] = "text"
    text: str

    class Config:
        """Pydantic configuration."""

        frozen = True


class ToolInvocationResult(BaseModel):
    """Ordered text blocks returned by a tool invocation."""

    content: list[TextContent] = Field(default_factory=list)

    class Config:
        """Pydantic configuration."""

        frozen = True

    @classmethod
    def of(cls, *texts: str) -> "ToolInvocationResult":
        """Build a result from plain strings, one block each."""
        return cls(content=[TextContent(text=text) for text in texts])

    @property
    def text(self) -> str:
        """All blocks joined with blank lines."""
        return "\n\n".join(block.text for block in self.content)
