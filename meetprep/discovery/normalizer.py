"""Normalization of raw Workspace Graph payloads into DiscoveredItem variants.

Every provider shape is converted here, immediately after fetch. Nothing
downstream of the Deduplicator reads raw Graph dicts.
"""

import re
from datetime import UTC, datetime

from meetprep.discovery.schemas import (
    DocumentSource,
    EmailItem,
    FileItem,
    MeetingItem,
    TeamItem,
)

_EXCESS_FRACTION = re.compile(r"(\.\d{6})\d+")
_DRIVE_RESOURCE = re.compile(r"drives/([^/]+)/items/([^/?]+)", re.IGNORECASE)

NO_SUBJECT = "(No subject)"


def parse_graph_datetime(value: object) -> datetime | None:
    """Parse a Graph timestamp into an aware UTC datetime.

    Accepts ISO strings (with ``Z`` or offsets, and Graph's seven-digit
    fractions) and ``{"dateTime": ..., "timeZone": ...}`` objects. Naive
    values are taken as UTC, which is what adapters request.
    """
    if isinstance(value, dict):
        value = value.get("dateTime")
    if not value or not isinstance(value, str):
        return None

    text = _EXCESS_FRACTION.sub(r"\1", value.strip())
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def _display_name(identity_set: dict | None) -> str | None:
    if not identity_set:
        return None
    user = identity_set.get("user") or {}
    return user.get("displayName") or None


def content_identity_key(
    drive_id: str | None,
    item_id: str | None,
    web_url: str | None = None,
) -> str:
    """Stable identity of a document regardless of which source surfaced it."""
    if drive_id and item_id:
        return f"{drive_id}/{item_id}".lower()
    if web_url:
        return web_url.lower()
    return (item_id or "").lower()


def normalize_meeting(raw: dict) -> MeetingItem:
    online = raw.get("onlineMeeting") or {}
    return MeetingItem(
        id=str(raw.get("id") or ""),
        title=raw.get("subject") or NO_SUBJECT,
        start_time=parse_graph_datetime(raw.get("start")),
        end_time=parse_graph_datetime(raw.get("end")),
        attendee_count=len(raw.get("attendees") or []),
        is_online_meeting=bool(raw.get("isOnlineMeeting")),
        join_url=online.get("joinUrl"),
        raw=raw,
    )


def normalize_email(raw: dict) -> EmailItem:
    address = (raw.get("from") or {}).get("emailAddress") or {}
    return EmailItem(
        id=str(raw.get("id") or ""),
        title=raw.get("subject") or NO_SUBJECT,
        from_name=address.get("name") or address.get("address"),
        from_email=address.get("address"),
        received_time=parse_graph_datetime(raw.get("receivedDateTime")),
        has_attachments=bool(raw.get("hasAttachments")),
        conversation_id=raw.get("conversationId") or None,
        raw=raw,
    )


def normalize_team(raw: dict) -> TeamItem:
    return TeamItem(
        id=str(raw.get("id") or ""),
        title=raw.get("displayName") or "Unnamed Team",
        description=raw.get("description"),
        raw=raw,
    )


def normalize_drive_item(raw: dict, source: DocumentSource) -> FileItem:
    """Normalize a driveItem (recent files, search hits).

    Recent files shared from another drive carry the real document under
    ``remoteItem``; its id and drive are the identity.
    """
    base = raw.get("remoteItem") or raw
    item_id = base.get("id") or raw.get("id")
    parent = base.get("parentReference") or raw.get("parentReference") or {}
    web_url = raw.get("webUrl") or base.get("webUrl")
    file_facet = raw.get("file") or base.get("file") or {}

    return FileItem(
        id=str(item_id or ""),
        title=raw.get("name") or base.get("name") or "",
        content_key=content_identity_key(parent.get("driveId"), item_id, web_url),
        document_source=source,
        web_url=web_url,
        modified_time=parse_graph_datetime(
            raw.get("lastModifiedDateTime") or base.get("lastModifiedDateTime")
        ),
        owner=_display_name(raw.get("lastModifiedBy"))
        or _display_name(raw.get("createdBy")),
        size=raw.get("size", base.get("size")),
        mime_type=file_facet.get("mimeType"),
        container_name=parent.get("name"),
        raw=raw,
    )


def normalize_insight(raw: dict, source: DocumentSource) -> FileItem:
    """Normalize a trending/used/shared insight resource."""
    visualization = raw.get("resourceVisualization") or {}
    reference = raw.get("resourceReference") or {}
    web_url = reference.get("webUrl")

    drive_id = item_id = None
    match = _DRIVE_RESOURCE.search(reference.get("id") or "")
    if match:
        drive_id, item_id = match.group(1), match.group(2)

    owner = None
    modified = None
    if source is DocumentSource.SHARED:
        last_shared = raw.get("lastShared") or {}
        owner = (last_shared.get("sharedBy") or {}).get("displayName")
        modified = last_shared.get("sharedDateTime")
    elif source is DocumentSource.USED:
        last_used = raw.get("lastUsed") or {}
        modified = last_used.get("lastModifiedDateTime") or last_used.get(
            "lastAccessedDateTime"
        )
    else:
        modified = raw.get("lastModifiedDateTime")

    return FileItem(
        id=str(item_id or raw.get("id") or ""),
        title=visualization.get("title") or "",
        content_key=content_identity_key(drive_id, item_id, web_url),
        document_source=source,
        web_url=web_url,
        modified_time=parse_graph_datetime(modified),
        owner=owner,
        mime_type=visualization.get("mediaType"),
        container_name=visualization.get("containerDisplayName"),
        raw=raw,
    )


def normalize_documents(raw_by_source: dict[DocumentSource, list[dict]]) -> list[FileItem]:
    """Normalize every document source, keeping per-source order."""
    documents: list[FileItem] = []
    for source, raw_items in raw_by_source.items():
        for raw in raw_items:
            if source in (DocumentSource.RECENT, DocumentSource.SEARCH):
                documents.append(normalize_drive_item(raw, source))
            else:
                documents.append(normalize_insight(raw, source))
    return documents
