"""Content fetcher for preparation generation.

Fetches the full content of every user-selected item in parallel: meeting
events with transcripts, email bodies, recent channel messages and file
metadata. Each item is isolated; one failure drops only that item.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime

import structlog

from meetprep.adapters.base import WorkspaceGraph
from meetprep.config import settings
from meetprep.discovery.normalizer import NO_SUBJECT, parse_graph_datetime
from meetprep.prep.formatter import strip_html
from meetprep.prep.schemas import FileReference, PrepSelections, TeamChannelRef

logger = structlog.get_logger()


@dataclass
class FetchedMeeting:
    id: str
    subject: str
    start_time: datetime | None
    end_time: datetime | None
    transcript: str | None = None
    body: str | None = None
    attendees: list[str] = field(default_factory=list)

    @property
    def content(self) -> str:
        """Text to summarize: transcript if present, else the event body."""
        return (self.transcript or self.body or "").strip()


@dataclass
class FetchedEmail:
    id: str
    subject: str
    sender: str
    received_time: datetime | None
    body: str = ""


@dataclass
class ChannelMessages:
    team_id: str
    channel_id: str
    messages: list[dict] = field(default_factory=list)


@dataclass
class FetchedContent:
    """Full content of the selected items that could be fetched."""

    meetings: list[FetchedMeeting] = field(default_factory=list)
    emails: list[FetchedEmail] = field(default_factory=list)
    channels: list[ChannelMessages] = field(default_factory=list)
    files: list[FileReference] = field(default_factory=list)


def _body_text(raw: dict) -> str:
    body = raw.get("body") or {}
    content = body.get("content") or ""
    if (body.get("contentType") or "").lower() == "html":
        content = strip_html(content)
    return content.strip() or (raw.get("bodyPreview") or "").strip()


def attendee_names(raw: dict) -> list[str]:
    names = []
    for attendee in raw.get("attendees") or []:
        address = attendee.get("emailAddress") or {}
        name = address.get("name") or address.get("address")
        if name:
            names.append(name)
    return names


class ContentFetcher:
    """Gathers full content for a set of selections."""

    def __init__(
        self,
        timeout_seconds: float | None = None,
        channel_messages_limit: int | None = None,
    ):
        self._timeout = timeout_seconds or settings.source_timeout_seconds
        self._channel_limit = channel_messages_limit or settings.channel_messages_limit

    async def fetch(
        self,
        graph: WorkspaceGraph,
        selections: PrepSelections,
    ) -> FetchedContent:
        """Fetch every selected item concurrently.

        Args:
            graph: Workspace Graph bound to the caller's credential
            selections: User-confirmed items

        Returns:
            FetchedContent without the items that failed or no longer exist
        """
        meetings, emails, channels, files = await asyncio.gather(
            self._fetch_each(selections.meeting_ids, self._fetch_meeting, graph, "meeting"),
            self._fetch_each(selections.email_ids, self._fetch_email, graph, "email"),
            self._fetch_each(
                selections.team_channels, self._fetch_channel, graph, "channel"
            ),
            self._fetch_each(selections.file_ids, self._fetch_file, graph, "file"),
        )

        logger.info(
            "fetched selected content",
            meetings=len(meetings),
            emails=len(emails),
            channels=len(channels),
            files=len(files),
        )
        return FetchedContent(
            meetings=meetings,
            emails=emails,
            channels=channels,
            files=files,
        )

    async def _fetch_each(self, keys, fetch_one, graph: WorkspaceGraph, kind: str) -> list:
        results = await asyncio.gather(
            *(asyncio.wait_for(fetch_one(graph, key), timeout=self._timeout) for key in keys),
            return_exceptions=True,
        )
        fetched = []
        for key, result in zip(keys, results, strict=True):
            value = self._extract_result(result, kind, key)
            if value is not None:
                fetched.append(value)
        return fetched

    def _extract_result(self, result, kind: str, key):
        """Extract result from asyncio.gather, handling exceptions."""
        if isinstance(result, BaseException):
            logger.warning(
                "selected item fetch failed",
                kind=kind,
                item=str(key),
                error=str(result) or type(result).__name__,
            )
            return None
        if result is None:
            logger.info("selected item not found", kind=kind, item=str(key))
        return result

    async def _fetch_meeting(
        self, graph: WorkspaceGraph, meeting_id: str
    ) -> FetchedMeeting | None:
        raw = await graph.get_event(meeting_id)
        if not raw:
            return None

        transcript = None
        join_url = (raw.get("onlineMeeting") or {}).get("joinUrl")
        if raw.get("isOnlineMeeting") and join_url:
            try:
                transcript = await graph.get_meeting_transcript(join_url)
            except Exception as e:
                logger.info("no transcript available", meeting_id=meeting_id, error=str(e))

        return FetchedMeeting(
            id=raw.get("id") or meeting_id,
            subject=raw.get("subject") or NO_SUBJECT,
            start_time=parse_graph_datetime(raw.get("start")),
            end_time=parse_graph_datetime(raw.get("end")),
            transcript=transcript,
            body=_body_text(raw),
            attendees=attendee_names(raw),
        )

    async def _fetch_email(self, graph: WorkspaceGraph, email_id: str) -> FetchedEmail | None:
        raw = await graph.get_message(email_id)
        if not raw:
            return None

        address = (raw.get("from") or {}).get("emailAddress") or {}
        return FetchedEmail(
            id=raw.get("id") or email_id,
            subject=raw.get("subject") or NO_SUBJECT,
            sender=address.get("name") or address.get("address") or "Unknown",
            received_time=parse_graph_datetime(raw.get("receivedDateTime")),
            body=_body_text(raw),
        )

    async def _fetch_channel(
        self, graph: WorkspaceGraph, ref: TeamChannelRef
    ) -> ChannelMessages:
        messages = await graph.get_channel_messages(
            ref.team_id, ref.channel_id, self._channel_limit
        )
        return ChannelMessages(
            team_id=ref.team_id,
            channel_id=ref.channel_id,
            messages=list(messages or []),
        )

    async def _fetch_file(self, graph: WorkspaceGraph, file_id: str) -> FileReference | None:
        raw = await graph.get_drive_item(file_id)
        if not raw:
            return None
        return FileReference(
            id=raw.get("id") or file_id,
            name=raw.get("name") or f"File {file_id}",
            web_url=raw.get("webUrl"),
            size=raw.get("size"),
            modified_time=parse_graph_datetime(raw.get("lastModifiedDateTime")),
        )
