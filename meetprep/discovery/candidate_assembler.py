"""Assembly of ranked, typed candidate lists and discovery stats."""

import asyncio
from datetime import UTC, datetime

import structlog

from meetprep.adapters.base import WorkspaceGraph
from meetprep.config import settings
from meetprep.discovery.schemas import (
    AUTO_SELECT_THRESHOLD,
    ChannelCandidate,
    DiscoveredItem,
    DiscoveryCandidates,
    DiscoveryResult,
    DiscoveryStats,
    EmailCandidate,
    EmailItem,
    FileCandidate,
    FileItem,
    MeetingCandidate,
    MeetingItem,
    ScoredCandidate,
    SourceKind,
    TargetMeeting,
    TeamCandidate,
    TeamItem,
)

logger = structlog.get_logger()


def has_required_fields(item: DiscoveredItem) -> bool:
    """Whether an item has the identity/time fields its candidate needs."""
    if not item.id:
        return False
    if isinstance(item, MeetingItem):
        return item.start_time is not None
    if isinstance(item, EmailItem):
        return bool(item.from_email or item.from_name)
    if isinstance(item, FileItem):
        return bool(item.title)
    return True


def filter_complete(items: list[DiscoveredItem]) -> list[DiscoveredItem]:
    """Drop items missing required fields, before they are scored."""
    return [item for item in items if has_required_fields(item)]


def _ranked(candidates: list[ScoredCandidate]) -> list[ScoredCandidate]:
    return sorted(candidates, key=lambda c: c.score, reverse=True)


class CandidateAssembler:
    """Builds the DiscoveryResult from scored candidates.

    For teams scoring at or above the channel threshold, channels are
    fetched in a second stage and pre-selected when the team itself is
    auto-selected.
    """

    def __init__(
        self,
        channel_fetch_threshold: int | None = None,
        timeout_seconds: float | None = None,
    ):
        self._channel_threshold = (
            channel_fetch_threshold
            if channel_fetch_threshold is not None
            else settings.channel_fetch_threshold
        )
        self._timeout = timeout_seconds or settings.source_timeout_seconds

    async def assemble(
        self,
        graph: WorkspaceGraph,
        target: TargetMeeting,
        scored: dict[SourceKind, list[ScoredCandidate]],
        file_source_counts: dict[str, int] | None = None,
        emails_before_collapse: int = 0,
        now: datetime | None = None,
    ) -> DiscoveryResult:
        """Build ranked candidate lists and stats.

        Args:
            graph: Workspace Graph for the channel second stage
            target: The meeting being prepared for
            scored: Boosted candidates per source type
            file_source_counts: Documents per source, counted before dedup
            emails_before_collapse: Message count before conversation collapse
            now: Timestamp recorded as cached_at

        Returns:
            DiscoveryResult with every list sorted by score, descending
        """
        meetings = [
            self._meeting_candidate(c) for c in _ranked(scored.get(SourceKind.MEETING, []))
        ]
        emails = [
            self._email_candidate(c) for c in _ranked(scored.get(SourceKind.EMAIL, []))
        ]
        files = [
            self._file_candidate(c) for c in _ranked(scored.get(SourceKind.FILE, []))
        ]

        ranked_teams = _ranked(scored.get(SourceKind.TEAM, []))
        channel_lists = await asyncio.gather(
            *(self._channels_for(graph, team) for team in ranked_teams)
        )
        teams = [
            self._team_candidate(team, channels)
            for team, channels in zip(ranked_teams, channel_lists, strict=True)
        ]

        auto_selected_count = sum(
            1
            for candidate in [*meetings, *emails, *teams, *files]
            if candidate.auto_selected
        )

        stats = DiscoveryStats(
            total_meetings=len(meetings),
            total_emails=len(emails),
            total_teams=len(teams),
            total_files=len(files),
            auto_selected_count=auto_selected_count,
            file_sources=dict(file_source_counts or {}),
            emails_before_collapse=emails_before_collapse,
        )

        return DiscoveryResult(
            target_meeting=target,
            candidates=DiscoveryCandidates(
                meetings=meetings,
                emails=emails,
                teams=teams,
                files=files,
            ),
            stats=stats,
            cached_at=now or datetime.now(UTC),
        )

    async def _channels_for(
        self,
        graph: WorkspaceGraph,
        team: ScoredCandidate,
    ) -> list[ChannelCandidate]:
        """Second-stage channel fetch for a sufficiently relevant team."""
        if team.score < self._channel_threshold:
            return []

        try:
            raw_channels = await asyncio.wait_for(
                graph.list_team_channels(team.id), timeout=self._timeout
            )
        except Exception as e:
            logger.warning(
                "channel fetch failed",
                team_id=team.id,
                error=str(e) or type(e).__name__,
            )
            return []

        selected = team.score >= AUTO_SELECT_THRESHOLD
        return [
            ChannelCandidate(
                id=channel["id"],
                display_name=channel.get("displayName") or "Unnamed Channel",
                description=channel.get("description"),
                selected=selected,
            )
            for channel in raw_channels or []
            if channel.get("id")
        ]

    def _meeting_candidate(self, candidate: ScoredCandidate) -> MeetingCandidate:
        item: MeetingItem = candidate.item  # type: ignore[assignment]
        return MeetingCandidate(
            id=item.id,
            subject=item.title,
            start_time=item.start_time,
            end_time=item.end_time,
            score=candidate.score,
            auto_selected=candidate.auto_selected,
            attendee_count=item.attendee_count,
            has_transcript=item.is_online_meeting,
            reasoning=candidate.reasoning,
        )

    def _email_candidate(self, candidate: ScoredCandidate) -> EmailCandidate:
        item: EmailItem = candidate.item  # type: ignore[assignment]
        return EmailCandidate(
            id=item.id,
            subject=item.title,
            from_name=item.from_name or item.from_email or "Unknown",
            from_email=item.from_email or "",
            received_time=item.received_time,
            score=candidate.score,
            auto_selected=candidate.auto_selected,
            has_attachments=item.has_attachments,
            is_part_of_chain=item.is_part_of_chain,
            chain_email_count=item.chain_email_count,
            reasoning=candidate.reasoning,
        )

    def _team_candidate(
        self,
        candidate: ScoredCandidate,
        channels: list[ChannelCandidate],
    ) -> TeamCandidate:
        item: TeamItem = candidate.item  # type: ignore[assignment]
        return TeamCandidate(
            id=item.id,
            name=item.title,
            description=item.description,
            score=candidate.score,
            auto_selected=candidate.auto_selected,
            channels=channels,
            reasoning=candidate.reasoning,
        )

    def _file_candidate(self, candidate: ScoredCandidate) -> FileCandidate:
        item: FileItem = candidate.item  # type: ignore[assignment]
        return FileCandidate(
            id=item.id,
            name=item.title,
            path=item.web_url or item.title,
            modified_time=item.modified_time,
            score=candidate.score,
            auto_selected=candidate.auto_selected,
            owner=item.owner,
            size=item.size,
            reasoning=candidate.reasoning,
            source=item.document_source,
            container_name=item.container_name,
            mime_type=item.mime_type,
        )
