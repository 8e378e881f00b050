"""Schemas for meeting context discovery.

Defines the tagged DiscoveredItem variants produced at the Graph boundary,
scored candidates, the classification oracle contract, and the camelCase
wire models of a DiscoveryResult.
"""

import math
from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
)
from pydantic.alias_generators import to_camel

AUTO_SELECT_THRESHOLD = 70
MAX_SCORE = 100


class SourceKind(str, Enum):
    """Kind of workplace signal a discovered item came from."""

    MEETING = "meeting"
    EMAIL = "email"
    TEAM = "team"
    FILE = "file"


class DocumentSource(str, Enum):
    """Discovery source a document was surfaced by."""

    TRENDING = "trending"
    SHARED = "shared"
    SEARCH = "search"
    USED = "used"
    RECENT = "recent"


# Highest trust first. Decides which occurrence of a duplicated document wins.
DOCUMENT_PRECEDENCE: tuple[DocumentSource, ...] = (
    DocumentSource.TRENDING,
    DocumentSource.SHARED,
    DocumentSource.SEARCH,
    DocumentSource.USED,
    DocumentSource.RECENT,
)


class DiscoveredItem(BaseModel):
    """An item surfaced by one discovery source, normalized at the boundary.

    Identity is (source_kind, id). ``raw`` keeps the provider payload for
    diagnostics only and is never serialized.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    source_kind: SourceKind
    title: str = ""
    raw: dict = Field(default_factory=dict, exclude=True, repr=False)


class MeetingItem(DiscoveredItem):
    source_kind: Literal[SourceKind.MEETING] = SourceKind.MEETING
    start_time: datetime | None = None
    end_time: datetime | None = None
    attendee_count: int = 0
    is_online_meeting: bool = False
    join_url: str | None = None


class EmailItem(DiscoveredItem):
    source_kind: Literal[SourceKind.EMAIL] = SourceKind.EMAIL
    from_name: str | None = None
    from_email: str | None = None
    received_time: datetime | None = None
    has_attachments: bool = False
    conversation_id: str | None = None
    chain_email_count: int = Field(
        default=1,
        description="Messages in the thread before conversation collapse",
    )

    @property
    def is_part_of_chain(self) -> bool:
        return self.chain_email_count > 1


class TeamItem(DiscoveredItem):
    source_kind: Literal[SourceKind.TEAM] = SourceKind.TEAM
    description: str | None = None


class FileItem(DiscoveredItem):
    source_kind: Literal[SourceKind.FILE] = SourceKind.FILE
    content_key: str = Field(description="Identity of the underlying document")
    document_source: DocumentSource
    web_url: str | None = None
    modified_time: datetime | None = None
    owner: str | None = None
    size: int | None = None
    mime_type: str | None = None
    container_name: str | None = None


def clamp_score(value: object) -> int:
    """Coerce an oracle or boosted score into the 0-100 integer range.

    Unparseable values and NaN score 0; infinities clamp to the bounds.
    """
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError, OverflowError):
        return 0
    if math.isnan(number):
        return 0
    if math.isinf(number):
        return MAX_SCORE if number > 0 else 0
    return max(0, min(MAX_SCORE, round(number)))


class ScoredCandidate(BaseModel):
    """A discovered item with its relevance score.

    ``auto_selected`` is derived from the score so the threshold
    invariant cannot drift after boosting.
    """

    model_config = ConfigDict(frozen=True)

    item: DiscoveredItem
    score: int = 0
    reasoning: str = ""

    @field_validator("score", mode="before")
    @classmethod
    def _clamp(cls, value: object) -> int:
        return clamp_score(value)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def auto_selected(self) -> bool:
        return self.score >= AUTO_SELECT_THRESHOLD

    @property
    def id(self) -> str:
        return self.item.id

    @property
    def title(self) -> str:
        return self.item.title


class ClassificationItem(BaseModel):
    """One entry sent to the relevance oracle."""

    id: str
    title: str
    metadata: str = ""


class RelevanceScore(BaseModel):
    """One entry returned by the relevance oracle."""

    id: str = Field(description="Item id, or 1-based position in the list")
    score: float = Field(default=0, description="Relevance from 0 to 100")
    reasoning: str = Field(default="", description="Brief explanation")


class RelevanceScores(BaseModel):
    """Structured output wrapper for one classification call."""

    scores: list[RelevanceScore] = Field(default_factory=list)


# Wire models


class ApiModel(BaseModel):
    """Base for response models serialized with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class TargetMeeting(ApiModel):
    id: str
    subject: str
    start_time: datetime | None = None
    end_time: datetime | None = None


class MeetingCandidate(ApiModel):
    id: str
    subject: str
    start_time: datetime | None = None
    end_time: datetime | None = None
    score: int
    auto_selected: bool
    attendee_count: int = 0
    has_transcript: bool = False
    reasoning: str = ""


class EmailCandidate(ApiModel):
    id: str
    subject: str
    from_name: str
    from_email: str = ""
    received_time: datetime | None = None
    score: int
    auto_selected: bool
    has_attachments: bool = False
    is_part_of_chain: bool = False
    chain_email_count: int = 1
    reasoning: str = ""


class ChannelCandidate(ApiModel):
    id: str
    display_name: str
    description: str | None = None
    selected: bool = False


class TeamCandidate(ApiModel):
    id: str
    name: str
    description: str | None = None
    score: int
    auto_selected: bool
    channels: list[ChannelCandidate] = Field(default_factory=list)
    reasoning: str = ""


class FileCandidate(ApiModel):
    id: str
    name: str
    path: str = ""
    modified_time: datetime | None = None
    score: int
    auto_selected: bool
    owner: str | None = None
    size: int | None = None
    reasoning: str = ""
    source: DocumentSource
    container_name: str | None = None
    mime_type: str | None = None


class DiscoveryCandidates(ApiModel):
    meetings: list[MeetingCandidate] = Field(default_factory=list)
    emails: list[EmailCandidate] = Field(default_factory=list)
    teams: list[TeamCandidate] = Field(default_factory=list)
    files: list[FileCandidate] = Field(default_factory=list)


class DiscoveryStats(ApiModel):
    total_meetings: int = 0
    total_emails: int = 0
    total_teams: int = 0
    total_files: int = 0
    auto_selected_count: int = 0
    file_sources: dict[str, int] = Field(
        default_factory=dict,
        description="Documents per discovery source, counted before dedup",
    )
    emails_before_collapse: int = 0


class DiscoveryResult(ApiModel):
    """Ranked candidates for one target meeting. Cached as a whole."""

    target_meeting: TargetMeeting
    candidates: DiscoveryCandidates
    stats: DiscoveryStats
    cached_at: datetime
