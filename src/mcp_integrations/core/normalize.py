"""Response normalization into fixed-shape records.

Upstream payloads drift between API versions, so every record field is read
from an ordered list of candidate keys (``Record.field_sources``). The first
candidate present with a non-null value wins; missing fields keep the record's
explicit default.

An unparseable payload is not an error here: ``normalize`` returns ``None``
and the caller reports a degraded result.
"""

import json
import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from pydantic import ValidationError

from mcp_integrations.core.exceptions import UnrecognizedFormat
from mcp_integrations.core.models import (
    Channel,
    Issue,
    Meeting,
    MeetingSummary,
    Message,
    Page,
    Record,
    RecordKind,
    Space,
    User,
)

logger = logging.getLogger(__name__)

RECORD_TYPES: dict[RecordKind, type[Record]] = {
    RecordKind.MEETING: Meeting,
    RecordKind.MEETING_SUMMARY: MeetingSummary,
    RecordKind.MESSAGE: Message,
    RecordKind.CHANNEL: Channel,
    RecordKind.USER: User,
    RecordKind.ISSUE: Issue,
    RecordKind.PAGE: Page,
    RecordKind.SPACE: Space,
}

_MISSING = object()


def lookup(raw: Mapping[str, Any], path: str) -> Any:
    """Read a possibly dotted key from nested mappings.

    Returns a sentinel (not ``None``) when any segment is missing.
    """
    current: Any = raw
    for segment in path.split("."):
        if not isinstance(current, Mapping) or segment not in current:
            return _MISSING
        current = current[segment]
    return current


def first_present(raw: Mapping[str, Any], candidates: Sequence[str], default: Any = None) -> Any:
    """Return the value of the first candidate key present and not null.

    Args:
        raw: Source mapping
        candidates: Candidate keys in priority order (dotted paths allowed)
        default: Value returned when no candidate is present

    Returns:
        First present value, or ``default``
    """
    for candidate in candidates:
        value = lookup(raw, candidate)
        if value is not _MISSING and value is not None:
            return value
    return default


def extract(raw: Mapping[str, Any], record_type: type[Record]) -> dict[str, Any]:
    """Pick the known field set of a record type out of a raw mapping."""
    values: dict[str, Any] = {}
    for name in record_type.model_fields:
        candidates = record_type.field_sources.get(name, (name,))
        value = first_present(raw, candidates, _MISSING)
        if value is not _MISSING:
            values[name] = value
    return values


def parse(raw: Any, kind: RecordKind) -> Record:
    """Normalize a raw response, raising on an unrecognized format.

    Args:
        raw: Parsed JSON value or a text body expected to contain JSON
        kind: Record variant to produce

    Returns:
        Normalized record

    Raises:
        UnrecognizedFormat: If the payload cannot be read as that record
    """
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError as e:
            raise UnrecognizedFormat(f"{kind.value} payload is not JSON") from e

    if not isinstance(raw, Mapping):
        raise UnrecognizedFormat(f"{kind.value} payload is {type(raw).__name__}, not an object")

    record_type = RECORD_TYPES[kind]
    try:
        return record_type(**extract(raw, record_type))
    except ValidationError as e:
        raise UnrecognizedFormat(
            f"{kind.value} payload has unexpected field types",
            details={"errors": e.errors(include_url=False)},
        ) from e


def normalize(raw: Any, kind: RecordKind) -> Record | None:
    """Normalize a raw response into a record, or ``None`` if unrecognized.

    Args:
        raw: Parsed JSON value or text body
        kind: Record variant to produce

    Returns:
        Normalized record, or None when the format is not recognized
    """
    try:
        return parse(raw, kind)
    except UnrecognizedFormat as e:
        logger.debug("Unrecognized %s format: %s", kind.value, e)
        return None


def normalize_many(items: Iterable[Any], kind: RecordKind) -> list[Any]:
    """Normalize a sequence of raw items, skipping unrecognized ones."""
    records = []
    for item in items:
        record = normalize(item, kind)
        if record is not None:
            records.append(record)
    return records
