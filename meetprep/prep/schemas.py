"""Schemas for preparation generation.

Defines the user-confirmed selections accepted by POST /meeting-prep and
the camelCase preparation result returned to the client.
"""

from datetime import datetime

from pydantic import Field

from meetprep.discovery.schemas import ApiModel, TargetMeeting
from meetprep.services.summarizer import EmailSummary, MeetingSummary


class TeamChannelRef(ApiModel):
    """A selected channel within a team."""

    team_id: str
    channel_id: str


class PrepSelections(ApiModel):
    """User-confirmed subset of discovery candidates. Empty lists are valid."""

    meeting_ids: list[str] = Field(default_factory=list)
    email_ids: list[str] = Field(default_factory=list)
    team_channels: list[TeamChannelRef] = Field(default_factory=list)
    file_ids: list[str] = Field(default_factory=list)


class PreparationRequest(ApiModel):
    """Request body for preparation generation."""

    meeting_id: str | None = Field(default=None, description="Target meeting id")
    selections: PrepSelections = Field(default_factory=PrepSelections)


class MeetingSummaryEntry(ApiModel):
    meeting_id: str
    subject: str
    date: datetime | None = None
    summary: MeetingSummary
    cached: bool


class EmailSummaryEntry(ApiModel):
    email_id: str
    subject: str
    sender: str
    date: datetime | None = None
    summary: EmailSummary
    cached: bool


class PreparationSummaries(ApiModel):
    meetings: list[MeetingSummaryEntry] = Field(default_factory=list)
    emails: list[EmailSummaryEntry] = Field(default_factory=list)


class FileReference(ApiModel):
    """Metadata of a selected file. File content is not summarized."""

    id: str
    name: str
    web_url: str | None = None
    size: int | None = None
    modified_time: datetime | None = None


class PrepStats(ApiModel):
    total_meetings: int = 0
    meetings_cached: int = 0
    meetings_generated: int = 0
    total_emails: int = 0
    emails_cached: int = 0
    emails_generated: int = 0
    channel_message_count: int = 0
    processing_time_ms: int = 0


class PreparationResult(ApiModel):
    """Brief and per-item summaries for one target meeting."""

    target_meeting: TargetMeeting
    preparation_brief: str
    summaries: PreparationSummaries
    files: list[FileReference] = Field(default_factory=list)
    stats: PrepStats
